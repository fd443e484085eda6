import base64
import binascii
import logging
from typing import Any

from bs4 import BeautifulSoup

from staydata.exceptions.custom import ParseError
from staydata.mappers.json_probe import (
    as_dict,
    as_float,
    as_str,
    find_first,
    parse_price,
    probe_bool,
    probe_float,
    probe_id,
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
from staydata.schemas.listing import Listing, SearchResult

logger = logging.getLogger(__name__)

_RESULT_PATHS = (
    "props.pageProps.searchResults",
    "niobeMinimalClientData",
    "data.presentation.staysSearch.results.searchResults",
)
_CURSOR_PATHS = (
    "data.presentation.staysSearch.results.paginationInfo.nextPageCursor",
    "props.pageProps.pagination.nextCursor",
)
_ENTIRE_HOME_PREFIXES = (
    "apartment in",
    "home in",
    "condo in",
    "loft in",
    "townhouse in",
    "villa in",
    "rental unit in",
)


def decode_listing_id(encoded: str) -> str | None:
    """``base64("DemandStayListing:12345")`` -> ``"12345"``."""
    try:
        decoded = base64.b64decode(encoded, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None
    parts = decoded.split(":")
    return parts[1] if len(parts) > 1 else None


def location_from_title(title: str) -> str:
    """"Place to stay in Paris" -> "Paris"."""
    index = title.rfind(" in ")
    return title[index + 4:] if index != -1 else title


def property_type_from_title(title: str) -> str | None:
    lower = title.lower()
    if lower.startswith(("room in", "place to stay")):
        return "Private room"
    if lower.startswith(_ENTIRE_HOME_PREFIXES):
        return "Entire home"
    if lower.startswith("hotel"):
        return "Hotel"
    return None


def currency_symbol(price: str) -> str | None:
    prefix = ""
    for char in price:
        if char.isdigit():
            break
        prefix += char
    return prefix.strip() or None


def parse_rating_localized(text: str) -> tuple[float | None, int]:
    """"4.98 (126)" -> (4.98, 126); "New" -> (None, 0)."""
    if not text:
        return None, 0
    head = text.replace("(", " ").split(" ")[0]
    try:
        rating = float(head)
    except ValueError:
        rating = None
    count = 0
    if "(" in text:
        tail = text.split("(", 1)[1].rstrip(")")
        if tail.isdigit():
            count = int(tail)
    return rating, count


def _per_night_price(display: Any) -> float | None:
    description = probe_str(display, "explanationData.priceDetails.0.items.0.description")
    if description and " x " in description:
        price = parse_price(description.split(" x ", 1)[1])
        if price is not None:
            return price
    return parse_price(probe_str(display, "primaryLine.price"))


def _has_badge(section: dict, marker: str) -> bool:
    return any(
        marker in (probe_str(badge, "type") or "") for badge in probe_list(section, "badges") or []
    )


def _primary_line(section: dict) -> list:
    return probe_list(section, "structuredContent.primaryLine") or []


def _niobe_listing(section: dict, base_url: str) -> Listing | None:
    encoded = probe_str(section, "demandStayListing.id")
    listing_id = decode_listing_id(encoded) if encoded else None
    if not listing_id:
        return None

    title = probe_str(section, "title") or ""
    display = section.get("structuredDisplayPrice")
    primary_price = probe_str(display, "primaryLine.price")
    rating, review_count = parse_rating_localized(probe_str(section, "avgRatingLocalized") or "")
    photos = [
        url for pic in probe_list(section, "contextualPictures") or []
        if (url := probe_str(pic, "picture"))
    ]
    host_name = next(
        (
            probe_str(item, "body")
            for item in _primary_line(section)
            if probe_str(item, "type") == "HOSTINFO"
        ),
        None,
    )

    is_superhost = True if _has_badge(section, "SUPERHOST") else None
    if is_superhost is None and any(
        "Superhost" in (probe_str(item, "body") or "") for item in _primary_line(section)
    ):
        is_superhost = True

    is_guest_favorite = probe_bool(section, "guestFavorite")
    if is_guest_favorite is None and _has_badge(section, "GUEST_FAVORITE"):
        is_guest_favorite = True

    return Listing(
        id=listing_id,
        name=probe_str(
            section, "subtitle", "nameLocalized.localizedStringWithTranslationPreference", "title"
        )
        or "Unknown listing",
        location=location_from_title(title) if title else "",
        price_per_night=_per_night_price(display) or 0.0,
        currency=(currency_symbol(primary_price) if primary_price else None) or "$",
        rating=rating,
        review_count=review_count,
        thumbnail_url=photos[0] if photos else None,
        property_type=property_type_from_title(title),
        host_name=host_name,
        url=f"{base_url}/rooms/{listing_id}",
        is_superhost=is_superhost,
        is_guest_favorite=is_guest_favorite,
        instant_book=probe_bool(section, "demandStayListing.instantBookEnabled"),
        total_price=parse_price(probe_str(display, "secondaryLine.price")),
        photos=photos,
        latitude=probe_float(section, "demandStayListing.location.coordinate.latitude"),
        longitude=probe_float(section, "demandStayListing.location.coordinate.longitude"),
    )


def _legacy_price(data: Any) -> float | None:
    price = probe_float(data, "pricingQuote.price.amount")
    if price is not None:
        return price
    price = parse_price(probe_str(data, "pricingQuote.structuredStayDisplayPrice.primaryLine.price"))
    if price is not None:
        return price
    for key in ("price", "pricePerNight"):
        value = data.get(key) if isinstance(data, dict) else None
        if value is not None:
            return as_float(value) if as_str(value) is None else parse_price(value)
    return None


def _legacy_listing(section: dict, base_url: str) -> Listing | None:
    data = as_dict(section.get("listing")) or section
    listing_id = probe_id(data, "id", "listingId")
    if not listing_id:
        return None

    # Listings without any price are not real search hits.
    price = _legacy_price(section)
    if price is None:
        price = _legacy_price(data)
    if price is None:
        return None

    return Listing(
        id=listing_id,
        name=probe_str(data, "name", "title") or "Unknown listing",
        location=probe_str(data, "city", "location", "publicAddress") or "",
        price_per_night=price,
        currency=probe_str(
            section,
            "pricingQuote.price.currencySymbol",
            "pricingQuote.price.currency",
            "pricingQuote.currencySymbol",
            "pricingQuote.currency",
        )
        or probe_str(data, "currency", "priceCurrency")
        or "$",
        rating=probe_float(data, "avgRating"),
        review_count=probe_int(data, "reviewsCount") or 0,
        thumbnail_url=probe_str(data, "contextualPictures.0.picture", "thumbnail", "pictureUrl"),
        property_type=probe_str(data, "roomType", "propertyType"),
        host_name=probe_str(data, "user.firstName", "hostName"),
        url=f"{base_url}/rooms/{listing_id}",
    )


def _looks_like_results(node: Any) -> bool:
    return (
        isinstance(node, list)
        and len(node) > 0
        and any(
            isinstance(item, dict)
            and ("listing" in item or isinstance(item.get("id"), str) or "listingId" in item)
            for item in node
        )
    )


def _listings_from_json(payload: Any, base_url: str) -> SearchResult | None:
    sections = probe_list(payload, *_RESULT_PATHS) or find_first(payload, _looks_like_results)
    if not sections:
        return None

    listings: list[Listing] = []
    for section in sections:
        if not isinstance(section, dict):
            continue
        if "demandStayListing" in section or "structuredDisplayPrice" in section:
            listing = _niobe_listing(section, base_url)
        else:
            listing = _legacy_listing(section, base_url)
        if listing is not None:
            listings.append(listing)

    if not listings:
        return None
    return SearchResult(listings=listings, next_cursor=probe_str(payload, *_CURSOR_PATHS))


def _listing_id_from_href(href: str) -> str | None:
    parts = href.split("/")
    for i, part in enumerate(parts[:-1]):
        if part == "rooms":
            listing_id = parts[i + 1].split("?")[0]
            if listing_id:
                return listing_id
    return None


def _listings_from_cards(soup: BeautifulSoup, base_url: str) -> SearchResult:
    listings: list[Listing] = []
    for card in soup.select("[itemprop='itemListElement'], [data-testid='card-container']"):
        link = card.select_one("a[href*='/rooms/']")
        if link is None:
            continue
        listing_id = _listing_id_from_href(link.get("href", ""))
        if not listing_id:
            continue
        listings.append(
            Listing(
                id=listing_id,
                name=link.get_text().strip() or "Untitled listing",
                url=f"{base_url}/rooms/{listing_id}",
            )
        )

    if not listings:
        raise ParseError("no listings found in search results")
    logger.warning(
        "CSS fallback produced %d listings with incomplete data (price=0, no location)",
        len(listings),
    )
    return SearchResult(listings=listings)


def parse_search_results(html: str, base_url: str) -> SearchResult:
    soup = parse_html(html)

    def from_json(payload: Any) -> SearchResult | None:
        return _listings_from_json(payload, base_url)

    result = first_match(
        soup,
        {NEXT_DATA: (from_json,), NIOBE_ENTRY: (from_json,), DEFERRED_STATE: (from_json,)},
    )
    if result is not None:
        return result
    return _listings_from_cards(soup, base_url)
