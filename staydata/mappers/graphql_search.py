from typing import Any

from staydata.exceptions.custom import ParseError
from staydata.mappers.json_probe import (
    as_dict,
    parse_price,
    probe_bool,
    probe_float,
    probe_int,
    probe_list,
    probe_str,
)
from staydata.schemas.listing import Listing, SearchResult
from staydata.schemas.search import SearchParams

_RESULTS_PATHS = (
    "data.presentation.staysSearch.results.searchResults",
    "data.presentation.explore.sections.sectionIndependentData.staysSearch.searchResults",
)
_PAGINATION = "data.presentation.staysSearch.results.paginationInfo"
_FIXED_FILTERS = (
    ("cdnCacheSafe", "false"),
    ("channel", "EXPLORE"),
    ("source", "structured_search_input_header"),
    ("searchType", "filter_change"),
)
_PARAM_FILTERS = {
    "checkin": "checkin",
    "checkout": "checkout",
    "adults": "adults",
    "children": "children",
    "infants": "infants",
    "pets": "pets",
    "price_min": "priceMin",
    "price_max": "priceMax",
}


def _to_listing(result: dict, base_url: str) -> Listing | None:
    data = as_dict(result.get("listing")) or result

    listing_id = probe_str(data, "id") or ""
    if not listing_id:
        return None

    price = parse_price(
        probe_str(result, "pricingQuote.structuredStayDisplayPrice.primaryLine.price")
    )
    if price is None:
        price = probe_float(result, "pricingQuote.rate.amount")

    return Listing(
        id=listing_id,
        name=probe_str(data, "name") or "Unknown",
        location=probe_str(data, "city") or "",
        price_per_night=price or 0.0,
        currency=probe_str(result, "pricingQuote.rate.currency") or "USD",
        rating=probe_float(data, "avgRating"),
        review_count=probe_int(data, "reviewsCount") or 0,
        thumbnail_url=probe_str(data, "contextualPictures.0.picture"),
        property_type=probe_str(data, "roomTypeCategory"),
        is_superhost=probe_bool(data, "isSuperhost"),
        latitude=probe_float(data, "latitude", "coordinate.latitude"),
        longitude=probe_float(data, "longitude", "coordinate.longitude"),
        total_price=parse_price(
            probe_str(result, "pricingQuote.structuredStayDisplayPrice.primaryLine.originalPrice")
        ),
        url=f"{base_url}/rooms/{listing_id}",
    )


def parse_search_response(payload: Any, base_url: str) -> SearchResult:
    results = probe_list(payload, *_RESULTS_PATHS)
    if results is None:
        raise ParseError("GraphQL search: could not find searchResults array")

    listings = [
        listing
        for item in results
        if isinstance(item, dict) and (listing := _to_listing(item, base_url)) is not None
    ]
    return SearchResult(
        listings=listings,
        total_count=probe_int(payload, f"{_PAGINATION}.totalCount"),
        next_cursor=probe_str(payload, f"{_PAGINATION}.nextPageCursor"),
    )


def build_search_variables(params: SearchParams) -> dict[str, Any]:
    """Variables for the ``StaysSearch`` persisted query."""
    filters = [*_FIXED_FILTERS, ("placeId", params.location.strip())]
    filters += [
        (_PARAM_FILTERS[key], value)
        for key, value in params.to_query_pairs()
        if key in _PARAM_FILTERS
    ]
    raw_params = [{"filterName": name, "filterValues": [value]} for name, value in filters]

    request: dict[str, Any] = {
        "requestedPageType": "STAYS_SEARCH",
        "metadataOnly": False,
        "searchType": "filter_change",
        "treatmentFlags": ["decompose_stays_search_m2_treatment"],
        "rawParams": raw_params,
    }
    if params.cursor:
        request["cursor"] = params.cursor
    return {"staysSearchRequest": request, "staysMapSearchRequestV2": dict(request)}
