import logging
from typing import Any

from staydata.exceptions.custom import ParseError
from staydata.mappers.json_probe import (
    as_dict,
    parse_price,
    probe_bool,
    probe_float,
    probe_id,
    probe_int,
    probe_list,
    probe_str,
    strip_html,
)
from staydata.mappers.pdp_sections import (
    SECTIONS_ROOT,
    amenity_titles,
    component_type,
    host_details,
    languages_from_highlights,
    room_counts,
    section_list,
    string_list,
)
from staydata.schemas.listing import ListingDetail

logger = logging.getLogger(__name__)

_METADATA = f"{SECTIONS_ROOT}.metadata"
_OVERVIEW_IDS = ("OVERVIEW_DEFAULT", "OVERVIEW_DEFAULT_V2")
_SIDEBAR_PRICE_PATHS = (
    "structuredStayDisplayPrice.primaryLine.price",
    "structuredDisplayPrice.primaryLine.discountedPrice",
    "structuredDisplayPrice.primaryLine.originalPrice",
    "structuredDisplayPrice.primaryLine.price",
)


def _title(data: dict, fields: dict) -> None:
    if not fields["name"]:
        fields["name"] = probe_str(data, "title") or ""
    if not fields["location"]:
        fields["location"] = probe_str(data, "subtitle") or ""


def _hero(data: dict, fields: dict) -> None:
    if not fields["photos"]:
        for image in probe_list(data, "previewImages") or []:
            url = probe_str(image, "baseUrl")
            if url:
                fields["photos"].append(url)


def _description(data: dict, fields: dict) -> None:
    html = probe_str(data, "htmlDescription.htmlText")
    if html is not None:
        fields["description"] = strip_html(html)
    else:
        fields["description"] = probe_str(data, "description") or fields["description"]


def _amenities(data: dict, fields: dict) -> None:
    groups = probe_list(data, "seeAllAmenitiesGroups", "previewAmenitiesGroups", "amenityGroups")
    for title in amenity_titles(groups):
        if title not in fields["amenities"]:
            fields["amenities"].append(title)


def _policies(data: dict, fields: dict) -> None:
    for rule in probe_list(data, "houseRules") or []:
        title = probe_str(rule, "title")
        if title:
            fields["house_rules"].append(title)
    policy = probe_str(data, "cancellationPolicy.title")
    if policy:
        fields["cancellation_policy"] = policy


def _photo_tour(data: dict, fields: dict) -> None:
    for item in probe_list(data, "mediaItems") or []:
        url = probe_str(item, "baseUrl", "url")
        if url and url not in fields["photos"]:
            fields["photos"].append(url)


def _book_it(data: dict, fields: dict) -> None:
    price = parse_price(probe_str(data, *_SIDEBAR_PRICE_PATHS))
    if price is not None:
        fields["price_per_night"] = price
    if not fields["price_per_night"]:
        fields["price_per_night"] = probe_float(data, "price.amount") or 0.0
    if fields["max_guests"] is None:
        fields["max_guests"] = probe_int(data, "maxGuestCapacity")


def _overview(data: dict, fields: dict) -> None:
    fields.update(room_counts(probe_list(data, "detailItems")))


def _host(data: dict, fields: dict) -> None:
    fields["host_name"] = probe_str(data, "cardData.name", "hostName", "name")
    fields["host_id"] = probe_id(data, "cardData.userId", "hostId", "id")
    fields["host_is_superhost"] = probe_bool(data, "cardData.isSuperhost", "isSuperhost")
    rate, time = host_details(data)
    fields["host_response_rate"] = rate
    fields["host_response_time"] = time
    fields["host_joined"] = probe_str(data, "hostMemberSince")
    fields["host_total_listings"] = probe_int(data, "hostListingCount")
    if not fields["host_languages"]:
        fields["host_languages"] = (
            string_list(probe_list(data, "hostLanguages")) or languages_from_highlights(data)
        )


def _location(data: dict, fields: dict) -> None:
    if not fields["location"]:
        fields["location"] = probe_str(data, "subtitle", "title") or ""
    fields["latitude"] = probe_float(data, "lat")
    fields["longitude"] = probe_float(data, "lng")
    if fields["neighborhood"] is None:
        fields["neighborhood"] = probe_str(data, "subtitle")


def _reviews(data: dict, fields: dict) -> None:
    if fields["rating"] is None:
        fields["rating"] = probe_float(data, "overallRating")
    if not fields["review_count"]:
        fields["review_count"] = probe_int(data, "overallCount", "reviewsCount") or 0


def _any_section(data: dict, fields: dict) -> None:
    if fields["rating"] is None:
        fields["rating"] = probe_float(data, "overallRating", "reviewSummary.overallRating")
    if not fields["review_count"]:
        fields["review_count"] = (
            probe_int(data, "overallCount", "reviewsCount", "reviewSummary.totalReviews") or 0
        )
    if fields["property_type"] is None:
        fields["property_type"] = probe_str(data, "propertyType", "roomType")


_HANDLERS = {
    "TITLE_DEFAULT": _title,
    "HERO_DEFAULT": _hero,
    "DESCRIPTION_DEFAULT": _description,
    "DESCRIPTION_SECTION": _description,
    "AMENITIES_DEFAULT": _amenities,
    "AMENITIES_SECTION": _amenities,
    "POLICIES_DEFAULT": _policies,
    "HOUSE_RULES_DEFAULT": _policies,
    "PHOTO_TOUR_SCROLLABLE": _photo_tour,
    "PHOTO_TOUR_MODAL": _photo_tour,
    "BOOK_IT_SIDEBAR": _book_it,
    "OVERVIEW_DEFAULT": _overview,
    "MEET_YOUR_HOST": _host,
    "HOST_PROFILE_DEFAULT": _host,
    "HOST_OVERVIEW_DEFAULT": _host,
    "LOCATION_DEFAULT": _location,
    "LOCATION_PDP": _location,
    "REVIEWS_DEFAULT": _reviews,
}


def _handler_for(entry: Any):
    kind = component_type(entry)
    if kind == "SBUI_SENTINEL":
        section_id = probe_str(entry, "sectionId", "id")
        return _overview if section_id in _OVERVIEW_IDS else _any_section
    return _HANDLERS.get(kind, _any_section)


def _apply_metadata(payload: Any, fields: dict) -> None:
    if not fields["price_per_night"]:
        fields["price_per_night"] = (
            probe_float(payload, f"{_METADATA}.loggingContext.eventDataLogging.listingPrice")
            or 0.0
        )

    price_items = probe_list(payload, f"{_METADATA}.bookingPrefetchData.priceBreakdown.priceItems")
    for item in price_items or []:
        label = (probe_str(item, "localizedTitle") or "").lower()
        micros = probe_float(item, "total.amountMicros")
        amount = micros / 1_000_000 if micros is not None else probe_float(item, "total.amount")
        if "cleaning" in label:
            fields["cleaning_fee"] = amount
        elif "service" in label:
            fields["service_fee"] = amount

    currency = probe_str(payload, f"{_METADATA}.loggingContext.eventDataLogging.currency")
    if currency:
        fields["currency"] = currency
    check_in = probe_str(payload, f"{_METADATA}.bookingPrefetchData.checkIn")
    if check_in:
        fields["check_in_time"] = check_in
    check_out = probe_str(payload, f"{_METADATA}.bookingPrefetchData.checkOut")
    if check_out:
        fields["check_out_time"] = check_out


def parse_detail_response(payload: Any, listing_id: str, base_url: str) -> ListingDetail:
    """Build a ListingDetail from a ``StaysPdpSections`` response."""
    sections = section_list(payload)
    if sections is None:
        raise ParseError("GraphQL detail: could not find sections array")

    fields: dict[str, Any] = {
        "name": "",
        "location": "",
        "description": "",
        "price_per_night": 0.0,
        "currency": "USD",
        "rating": None,
        "review_count": 0,
        "property_type": None,
        "amenities": [],
        "house_rules": [],
        "photos": [],
        "max_guests": None,
        "neighborhood": None,
        "host_languages": [],
    }
    for entry in sections:
        data = as_dict(entry.get("section")) if isinstance(entry, dict) else None
        if data is None:
            data = entry if isinstance(entry, dict) else {}
        _handler_for(entry)(data, fields)

    _apply_metadata(payload, fields)
    return ListingDetail(id=listing_id, url=f"{base_url}/rooms/{listing_id}", **fields)
