"""Availability-calendar extraction shared by both backends."""

import json
from datetime import date, datetime
from typing import Any

from staydata.exceptions.custom import ParseError
from staydata.mappers.json_probe import (
    as_dict,
    as_float,
    as_str,
    dig,
    find_first,
    parse_price,
    probe_bool,
    probe_int,
    probe_list,
    probe_str,
)
from staydata.mappers.page_payloads import (
    DEFERRED_STATE,
    NEXT_DATA,
    NIOBE_ENTRY,
    first_match,
    parse_html,
)
from staydata.schemas.calendar import CalendarDay, PriceCalendar, UnavailabilityReason

_CALENDAR_PATHS = (
    "props.pageProps.calendarData",
    "props.pageProps.listing.calendarData",
    "data.merlin.pdpAvailabilityCalendar",
)
_MONTH_KEYS = ("calendarMonths", "calendar_months")
_BOOKED_MARKERS = ("booked", "reservation")


def infer_unavailability_reason(
    data: Any, day: str, today: date | None = None
) -> UnavailabilityReason:
    """Why an unavailable day is unavailable.

    Precedence: past date, booking status, host block, arrival+departure
    closure, unknown.
    """
    today = today or date.today()
    try:
        if datetime.strptime(day, "%Y-%m-%d").date() < today:
            return UnavailabilityReason.past_date
    except ValueError:
        pass

    status = probe_str(data, "bookingStatusType", "booking_status_type", "bookingStatus")
    if status and any(marker in status.lower() for marker in _BOOKED_MARKERS):
        return UnavailabilityReason.booked

    if probe_bool(data, "autoAvailability", "auto_availability") is False:
        return UnavailabilityReason.blocked_by_host
    if probe_bool(data, "hostBlocked", "host_blocked", "blocked") is True:
        return UnavailabilityReason.blocked_by_host

    if probe_bool(data, "closedToArrival") and probe_bool(data, "closedToDeparture"):
        return UnavailabilityReason.min_night_restriction

    return UnavailabilityReason.unknown


def _day_price(data: dict) -> float | None:
    raw = data.get("price")
    if raw is not None:
        price = as_float(raw)
        if price is None and isinstance(raw, dict):
            for key in ("amount", "local_price", "native_price"):
                price = as_float(raw.get(key))
                if price is not None:
                    break
        if price is None and as_str(raw) is not None:
            price = parse_price(raw)
        if price is not None:
            return price
    return parse_price(probe_str(data, "localPriceFormatted")) or parse_price(
        probe_str(data, "price_string")
    )


def parse_calendar_day(data: Any, today: date | None = None) -> CalendarDay | None:
    day = probe_str(data, "date", "calendarDate")
    if day is None:
        return None
    available = probe_bool(data, "available", "isAvailable") or False
    return CalendarDay(
        date=day,
        price=_day_price(data),
        available=available,
        min_nights=probe_int(data, "minNights", "minimumNights", "min_nights"),
        max_nights=probe_int(data, "maxNights", "maximumNights", "max_nights"),
        closed_to_arrival=probe_bool(data, "closedToArrival"),
        closed_to_departure=probe_bool(data, "closedToDeparture"),
        unavailability_reason=(
            None if available else infer_unavailability_reason(data, day, today)
        ),
    )


def _has_day_items(items: Any) -> bool:
    return isinstance(items, list) and any(
        isinstance(item, dict) and ("date" in item or "calendarDate" in item) for item in items
    )


def _looks_like_calendar(node: Any) -> bool:
    if isinstance(node, dict):
        return any(key in node for key in _MONTH_KEYS) or _has_day_items(node.get("days"))
    return _has_day_items(node)


def _find_calendar_data(payload: Any) -> Any:
    if isinstance(payload, dict) and any(key in payload for key in _MONTH_KEYS):
        return payload
    for path in _CALENDAR_PATHS:
        found = dig(payload, path)
        if found is not None:
            return found
    return find_first(payload, _looks_like_calendar)


def calendar_from_json(payload: Any, listing_id: str, today: date | None = None) -> PriceCalendar | None:
    data = _find_calendar_data(payload)
    if data is None:
        return None

    raw_days: list = []
    for month in probe_list(data, *_MONTH_KEYS) or []:
        raw_days.extend(probe_list(month, "days") or [])
    if not raw_days and isinstance(data, list):
        raw_days = data
    if not raw_days:
        raw_days = probe_list(data, "days") or []

    days = [day for raw in raw_days if (day := parse_calendar_day(raw, today)) is not None]
    if not days:
        return None

    currency = probe_str(as_dict(data), "currency", "priceCurrency") or "$"
    return PriceCalendar.assemble(listing_id, currency, days)


def parse_price_calendar(text: str, listing_id: str, today: date | None = None) -> PriceCalendar:
    """Calendar from a rendered page, or from a raw JSON calendar response."""

    def from_json(payload: Any) -> PriceCalendar | None:
        return calendar_from_json(payload, listing_id, today)

    calendar = first_match(
        parse_html(text),
        {NEXT_DATA: (from_json,), NIOBE_ENTRY: (from_json,), DEFERRED_STATE: (from_json,)},
    )
    if calendar is not None:
        return calendar

    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        payload = None
    if payload is not None:
        calendar = from_json(payload)
        if calendar is not None:
            return calendar

    raise ParseError("could not extract calendar data from response")
