from pydantic import BaseModel, ConfigDict


class PropertyTypeCount(BaseModel):
    model_config = ConfigDict(frozen=True)

    property_type: str
    count: int
    percentage: float


class NeighborhoodStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    location: str
    total_listings: int = 0
    average_price: float | None = None
    median_price: float | None = None
    price_range: tuple[float, float] | None = None
    average_rating: float | None = None
    property_type_distribution: list[PropertyTypeCount] = []
    superhost_percentage: float | None = None

    def __str__(self) -> str:
        lines = [
            f"# Neighborhood: {self.location}",
            f"Listings analyzed: {self.total_listings}",
        ]
        if self.average_price is not None:
            lines.append(f"Average price: ${self.average_price:.0f}/night")
        if self.median_price is not None:
            lines.append(f"Median price: ${self.median_price:.0f}/night")
        if self.price_range is not None:
            low, high = self.price_range
            lines.append(f"Price range: ${low:.0f} - ${high:.0f}/night")
        if self.average_rating is not None:
            lines.append(f"Average rating: {self.average_rating:.2f}")
        if self.superhost_percentage is not None:
            lines.append(f"Superhosts: {self.superhost_percentage:.0f}%")
        if self.property_type_distribution:
            lines.append("\nProperty types:")
            for pt in self.property_type_distribution:
                lines.append(f"  {pt.property_type}: {pt.count} ({pt.percentage:.0f}%)")
        return "\n".join(lines)


class MonthlyOccupancy(BaseModel):
    model_config = ConfigDict(frozen=True)

    month: str
    total_days: int
    occupied_days: int
    available_days: int
    occupancy_rate: float
    average_price: float | None = None


class OccupancyEstimate(BaseModel):
    model_config = ConfigDict(frozen=True)

    listing_id: str
    period_start: str = ""
    period_end: str = ""
    total_days: int = 0
    occupied_days: int = 0
    available_days: int = 0
    occupancy_rate: float = 0.0
    average_available_price: float | None = None
    weekend_avg_price: float | None = None
    weekday_avg_price: float | None = None
    monthly_breakdown: list[MonthlyOccupancy] = []

    def __str__(self) -> str:
        lines = [
            f"# Occupancy: listing {self.listing_id}",
            f"Period: {self.period_start} to {self.period_end}",
            f"Days: {self.total_days} total, {self.occupied_days} occupied, "
            f"{self.available_days} available",
            f"Occupancy rate: {self.occupancy_rate:.1f}%",
        ]
        if self.average_available_price is not None:
            lines.append(f"Avg available price: ${self.average_available_price:.0f}/night")
        if self.weekend_avg_price is not None:
            lines.append(f"Weekend avg: ${self.weekend_avg_price:.0f}/night")
        if self.weekday_avg_price is not None:
            lines.append(f"Weekday avg: ${self.weekday_avg_price:.0f}/night")
        if self.monthly_breakdown:
            lines.append("\nMonthly breakdown:")
            lines.append(
                f"{'Month':<10} {'Days':>6} {'Occupied':>8} {'Avail':>8} "
                f"{'Occ%':>10} {'Avg price':>10}"
            )
            for m in self.monthly_breakdown:
                price = f"${m.average_price:.0f}" if m.average_price is not None else "-"
                lines.append(
                    f"{m.month:<10} {m.total_days:>6} {m.occupied_days:>8} "
                    f"{m.available_days:>8} {m.occupancy_rate:>9.1f}% {price:>10}"
                )
        return "\n".join(lines)
