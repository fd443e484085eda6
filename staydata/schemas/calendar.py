from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class UnavailabilityReason(StrEnum):
    unknown = "Unknown"
    booked = "Booked"
    blocked_by_host = "BlockedByHost"
    past_date = "PastDate"
    min_night_restriction = "MinNightRestriction"

    @property
    def label(self) -> str:
        return {
            UnavailabilityReason.blocked_by_host: "Blocked by host",
            UnavailabilityReason.past_date: "Past date",
            UnavailabilityReason.min_night_restriction: "Min night restriction",
        }.get(self, self.value)


class CalendarDay(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: str
    price: float | None = None
    available: bool = False
    min_nights: int | None = None
    max_nights: int | None = None
    closed_to_arrival: bool | None = None
    closed_to_departure: bool | None = None
    unavailability_reason: UnavailabilityReason | None = None


class PriceCalendar(BaseModel):
    model_config = ConfigDict(frozen=True)

    listing_id: str
    currency: str = "$"
    days: list[CalendarDay] = []
    average_price: float | None = None
    occupancy_rate: float | None = None
    min_price: float | None = None
    max_price: float | None = None

    @classmethod
    def assemble(cls, listing_id: str, currency: str, days: list[CalendarDay]) -> "PriceCalendar":
        """Build a calendar with its aggregate stats computed once from ``days``."""
        return cls(listing_id=listing_id, currency=currency, days=days, **compute_stats(days))

    def __str__(self) -> str:
        lines = [f"Price calendar for listing {self.listing_id} ({self.currency})"]
        if self.occupancy_rate is not None:
            lines.append(f"Occupancy: {self.occupancy_rate:.1f}%")
        if self.average_price is not None:
            avg = f"Avg price: {self.currency}{self.average_price:.0f}"
            if self.min_price is not None and self.max_price is not None:
                avg += (
                    f" (range: {self.currency}{self.min_price:.0f}"
                    f"-{self.currency}{self.max_price:.0f})"
                )
            lines.append(avg)
        lines.append(f"{'Date':<12} {'Price':>8} {'Available':>10} {'Min nights':>10}")
        lines.append("-" * 44)
        for day in self.days:
            price = f"{self.currency}{day.price:.0f}" if day.price is not None else "-"
            if day.available:
                available = "Yes"
            elif day.unavailability_reason:
                available = f"No ({day.unavailability_reason.label})"
            else:
                available = "No"
            min_nights = str(day.min_nights) if day.min_nights is not None else "-"
            lines.append(f"{day.date:<12} {price:>8} {available:>10} {min_nights:>10}")
        return "\n".join(lines)


def compute_stats(days: list[CalendarDay]) -> dict[str, float | None]:
    """Average/min/max over available priced days, occupancy over all days."""
    prices = [d.price for d in days if d.available and d.price is not None]
    stats: dict[str, float | None] = {
        "average_price": None,
        "min_price": None,
        "max_price": None,
        "occupancy_rate": None,
    }
    if prices:
        stats["average_price"] = sum(prices) / len(prices)
        stats["min_price"] = min(prices)
        stats["max_price"] = max(prices)
    if days:
        unavailable = sum(1 for d in days if not d.available)
        stats["occupancy_rate"] = unavailable / len(days) * 100.0
    return stats
