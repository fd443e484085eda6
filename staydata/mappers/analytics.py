"""Aggregates derived from search results and availability calendars."""

from collections import Counter
from datetime import datetime
from statistics import median

from staydata.schemas.analytics import (
    MonthlyOccupancy,
    NeighborhoodStats,
    OccupancyEstimate,
    PropertyTypeCount,
)
from staydata.schemas.calendar import PriceCalendar
from staydata.schemas.listing import Listing

_WEEKEND = (4, 5)  # Friday and Saturday nights


def _mean(values: list[float]) -> float | None:
    return sum(values) / len(values) if values else None


def compute_neighborhood_stats(location: str, listings: list[Listing]) -> NeighborhoodStats:
    total = len(listings)

    # A zero price means the extractor found none, so it stays out of the averages.
    prices = sorted(listing.price_per_night for listing in listings if listing.price_per_night > 0)
    ratings = [listing.rating for listing in listings if listing.rating is not None]

    counts = Counter(listing.property_type or "Unknown" for listing in listings)
    distribution = [
        PropertyTypeCount(
            property_type=property_type,
            count=count,
            percentage=count / total * 100.0,
        )
        for property_type, count in counts.most_common()
    ]

    superhosts = sum(1 for listing in listings if listing.is_superhost is True)

    return NeighborhoodStats(
        location=location,
        total_listings=total,
        average_price=_mean(prices),
        median_price=median(prices) if prices else None,
        price_range=(prices[0], prices[-1]) if prices else None,
        average_rating=_mean(ratings),
        property_type_distribution=distribution,
        superhost_percentage=superhosts / total * 100.0 if total else None,
    )


def compute_occupancy_estimate(listing_id: str, calendar: PriceCalendar) -> OccupancyEstimate:
    days = calendar.days
    total = len(days)
    available = sum(1 for d in days if d.available)
    occupied = total - available

    available_prices: list[float] = []
    weekend_prices: list[float] = []
    weekday_prices: list[float] = []
    for day in days:
        if not day.available or day.price is None:
            continue
        available_prices.append(day.price)
        try:
            weekday = datetime.strptime(day.date, "%Y-%m-%d").weekday()
        except ValueError:
            continue
        if weekday in _WEEKEND:
            weekend_prices.append(day.price)
        else:
            weekday_prices.append(day.price)

    months: dict[str, list] = {}
    for day in days:
        key = day.date[:7] if len(day.date) >= 7 else "unknown"
        bucket = months.setdefault(key, [0, 0, []])
        bucket[0] += 1
        if not day.available:
            bucket[1] += 1
        elif day.price is not None:
            bucket[2].append(day.price)

    breakdown = [
        MonthlyOccupancy(
            month=month,
            total_days=month_total,
            occupied_days=month_occupied,
            available_days=month_total - month_occupied,
            occupancy_rate=month_occupied / month_total * 100.0,
            average_price=_mean(month_prices),
        )
        for month, (month_total, month_occupied, month_prices) in sorted(months.items())
    ]

    return OccupancyEstimate(
        listing_id=listing_id,
        period_start=days[0].date if days else "",
        period_end=days[-1].date if days else "",
        total_days=total,
        occupied_days=occupied,
        available_days=available,
        occupancy_rate=occupied / total * 100.0 if total else 0.0,
        average_available_price=_mean(available_prices),
        weekend_avg_price=_mean(weekend_prices),
        weekday_avg_price=_mean(weekday_prices),
        monthly_breakdown=breakdown,
    )
