from typing import Any

from staydata.schemas.listing import ListingDetail

_TEXT_FIELDS = ("name", "location", "description")
_LIST_FIELDS = ("amenities", "photos", "house_rules")
_OPTIONAL_FIELDS = ("host_name", "host_id", "rating")


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, list):
        return not value
    return False


def needs_merge(detail: ListingDetail) -> bool:
    """True when any critical field was left unpopulated by the extractor."""
    return (
        any(_is_empty(getattr(detail, f)) for f in (*_TEXT_FIELDS, *_LIST_FIELDS))
        or detail.price_per_night == 0.0
        or detail.rating is None
    )


def merge_detail(primary: ListingDetail, secondary: ListingDetail) -> ListingDetail:
    """Fill the empty fields of ``primary`` from ``secondary``.

    Populated primary fields are never overwritten. Price and currency move
    together so a merged price is never shown in the wrong currency.
    """
    updates: dict[str, Any] = {}

    for field in (*_TEXT_FIELDS, *_LIST_FIELDS, *_OPTIONAL_FIELDS):
        old, new = getattr(primary, field), getattr(secondary, field)
        if _is_empty(old) and not _is_empty(new):
            updates[field] = new

    if primary.price_per_night == 0.0 and secondary.price_per_night > 0.0:
        updates["price_per_night"] = secondary.price_per_night
        updates["currency"] = secondary.currency

    if primary.review_count == 0 and secondary.review_count > 0:
        updates["review_count"] = secondary.review_count

    if not updates:
        return primary
    return primary.model_copy(update=updates)
