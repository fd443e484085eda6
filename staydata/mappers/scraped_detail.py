from typing import Any

from bs4 import BeautifulSoup

from staydata.exceptions.custom import ParseError
from staydata.mappers.json_probe import (
    as_dict,
    dig,
    find_first,
    first_int,
    parse_price,
    probe_bool,
    probe_float,
    probe_id,
    probe_int,
    probe_list,
    probe_str,
    strip_html,
)
from staydata.mappers.page_payloads import (
    DEFERRED_STATE,
    NEXT_DATA,
    NIOBE_ENTRY,
    first_match,
    parse_html,
)
from staydata.mappers.pdp_sections import (
    amenity_titles,
    find_section,
    host_from_card,
    section_list,
    sections_container,
    string_list,
)
from staydata.schemas.host import HostProfile
from staydata.schemas.listing import ListingDetail

_SIDEBAR_PRICE_PATHS = (
    "structuredDisplayPrice.primaryLine.discountedPrice",
    "structuredDisplayPrice.primaryLine.originalPrice",
    "structuredDisplayPrice.primaryLine.price",
    "structuredStayDisplayPrice.primaryLine.price",
)
_LISTING_PATHS = ("props.pageProps.listing", "props.pageProps.listingData.listing")


def room_counts_from_title(title: str) -> tuple[int | None, int | None, float | None]:
    """"Rental unit · 1 bedroom · 2 beds · 1 shared bath" -> (1, 2, 1.0)."""
    bedrooms = beds = None
    bathrooms = None
    for part in (p.strip() for p in title.split("·")):
        lower = part.lower()
        if "bedroom" in lower or "studio" in lower:
            bedrooms = first_int(part)
            if bedrooms is None and "studio" in lower:
                bedrooms = 0
        elif "bed" in lower:
            beds = first_int(part)
        elif "bath" in lower:
            count = first_int(part)
            bathrooms = float(count) if count is not None else None
    return bedrooms, beds, bathrooms


def _check_times(rules: list | None) -> tuple[str | None, str | None]:
    check_in = check_out = None
    for rule in rules or []:
        title = probe_str(rule, "title") or ""
        lower = title.lower()
        if lower.startswith(("check-in", "checkin")):
            check_in = title
        elif lower.startswith(("checkout", "check out")):
            check_out = title
    return check_in, check_out


def _card_superhost(card: Any) -> bool | None:
    flag = probe_bool(card, "isSuperhost")
    if flag is not None:
        return flag
    badges = probe_list(card, "badges") or []
    if any(isinstance(b, str) and "uperhost" in b for b in badges):
        return True
    return None


def _detail_from_sections(payload: Any, listing_id: str, base_url: str) -> ListingDetail | None:
    container = sections_container(payload)
    sections = section_list(payload)
    metadata = as_dict(dig(container, "metadata"))
    if sections is None or metadata is None:
        return None

    sharing = metadata.get("sharingConfig")
    logging_ctx = dig(metadata, "loggingContext.eventDataLogging")
    calendar = find_section(sections, "AVAILABILITY_CALENDAR_DEFAULT")
    location_pdp = find_section(sections, "LOCATION_PDP")
    description = find_section(sections, "DESCRIPTION_DEFAULT")
    sidebar = find_section(sections, "BOOK_IT_SIDEBAR")
    reviews = find_section(sections, "REVIEWS_DEFAULT")
    host = find_section(sections, "MEET_YOUR_HOST")
    amenities = find_section(sections, "AMENITIES_DEFAULT")
    policies = find_section(sections, "POLICIES_DEFAULT")
    card = as_dict(dig(host, "cardData"))

    price = parse_price(probe_str(sidebar, *_SIDEBAR_PRICE_PATHS))
    if price is None:
        price = probe_float(logging_ctx, "listingPrice")

    rating = probe_float(reviews, "overallRating")
    if rating is None:
        rating = probe_float(sharing, "starRating")
    if rating is None:
        rating = probe_float(logging_ctx, "guestSatisfactionOverall")

    review_count = probe_int(reviews, "overallCount")
    if review_count is None:
        review_count = probe_int(sharing, "reviewCount")

    max_guests = probe_int(calendar, "maxGuestCapacity")
    if max_guests is None:
        max_guests = probe_int(sharing, "personCapacity")
    if max_guests is None:
        max_guests = probe_int(logging_ctx, "personCapacity")

    bedrooms = beds = bathrooms = None
    sharing_title = probe_str(sharing, "title")
    if sharing_title:
        bedrooms, beds, bathrooms = room_counts_from_title(sharing_title)

    description_html = probe_str(description, "htmlDescription.htmlText")
    latitude = probe_float(location_pdp, "lat")
    if latitude is None:
        latitude = probe_float(logging_ctx, "listingLat")
    longitude = probe_float(location_pdp, "lng")
    if longitude is None:
        longitude = probe_float(logging_ctx, "listingLng")

    rules = probe_list(policies, "houseRules")
    check_in, check_out = _check_times(rules)
    image = probe_str(sharing, "imageUrl")

    return ListingDetail(
        id=listing_id,
        name=sharing_title or probe_str(calendar, "listingTitle") or "Unknown listing",
        location=probe_str(sharing, "location") or probe_str(location_pdp, "subtitle") or "",
        description=strip_html(description_html) if description_html else "",
        price_per_night=price or 0.0,
        currency="$",
        rating=rating,
        review_count=review_count or 0,
        property_type=probe_str(sharing, "propertyType") or probe_str(logging_ctx, "roomType"),
        host_name=probe_str(host, "cardData.name", "titleText"),
        host_id=probe_id(logging_ctx, "hostId") or probe_id(card, "id"),
        host_is_superhost=_card_superhost(card),
        host_response_rate=probe_str(card, "responseRate"),
        host_response_time=probe_str(card, "responseTime"),
        host_joined=probe_str(card, "memberSince", "createdAt", "joinedDate"),
        host_total_listings=probe_int(card, "listingsCount"),
        host_languages=string_list(probe_list(card, "languages")),
        url=f"{base_url}/rooms/{listing_id}",
        amenities=amenity_titles(probe_list(amenities, "previewAmenitiesGroups")),
        house_rules=[title for rule in rules or [] if (title := probe_str(rule, "title"))],
        photos=[image] if image else [],
        latitude=latitude,
        longitude=longitude,
        bedrooms=bedrooms,
        beds=beds,
        bathrooms=bathrooms,
        max_guests=max_guests,
        check_in_time=check_in,
        check_out_time=check_out,
        cancellation_policy=(
            probe_str(policies, "cancellationPolicy.title", "cancellationPolicy.policyName")
            or probe_str(policies, "cancellationPolicyForDisplay")
        ),
        instant_book=probe_bool(logging_ctx, "instantBook", "isInstantBook"),
        neighborhood=probe_str(location_pdp, "subtitle", "neighborhoodName"),
    )


def _looks_like_listing(node: Any) -> bool:
    return isinstance(node, dict) and "name" in node and (
        "description" in node or "amenities" in node
    )


def _named_items(items: list | None, *keys: str) -> list[str]:
    """Names of plain-string or keyed items, deduplicated in first-seen order."""
    names: list[str] = []
    for item in items or []:
        name = item if isinstance(item, str) else probe_str(item, *keys)
        if name and name not in names:
            names.append(name)
    return names


def _detail_from_listing_json(payload: Any, listing_id: str, base_url: str) -> ListingDetail | None:
    listing = None
    for path in _LISTING_PATHS:
        listing = as_dict(dig(payload, path))
        if listing is not None:
            break
    if listing is None:
        listing = find_first(payload, _looks_like_listing)
    if listing is None:
        return None

    price = probe_float(listing, "price")
    if price is None:
        price = probe_float(listing, "pricingQuote.price.amount")

    return ListingDetail(
        id=listing_id,
        name=probe_str(listing, "name", "title") or "Unknown listing",
        location=probe_str(listing, "location", "city", "publicAddress") or "",
        description=probe_str(listing, "description", "sectionedDescription.description") or "",
        price_per_night=price or 0.0,
        currency=probe_str(listing, "priceCurrency") or "$",
        rating=probe_float(listing, "avgRating", "overallRating"),
        review_count=probe_int(listing, "reviewsCount", "visibleReviewCount") or 0,
        property_type=probe_str(listing, "roomType", "propertyType"),
        host_name=probe_str(listing, "host.name", "primaryHost.firstName"),
        url=f"{base_url}/rooms/{listing_id}",
        amenities=_named_items(probe_list(listing, "amenities"), "name", "tag"),
        house_rules=string_list(probe_list(listing, "houseRules")),
        photos=_named_items(probe_list(listing, "photos"), "pictureUrl", "baseUrl", "url"),
        latitude=probe_float(listing, "lat", "latitude"),
        longitude=probe_float(listing, "lng", "longitude"),
        bedrooms=probe_int(listing, "bedrooms", "bedroomCount"),
        beds=probe_int(listing, "beds", "bedCount"),
        bathrooms=probe_float(listing, "bathrooms", "bathroomCount"),
        max_guests=probe_int(listing, "personCapacity", "maxGuests"),
        check_in_time=probe_str(listing, "checkIn", "checkInTime"),
        check_out_time=probe_str(listing, "checkOut", "checkOutTime"),
    )


def _detail_from_heading(soup: BeautifulSoup, listing_id: str, base_url: str) -> ListingDetail:
    heading = soup.select_one("h1, [data-testid='listing-title']")
    return ListingDetail(
        id=listing_id,
        name=heading.get_text().strip() if heading is not None else "Unknown listing",
        url=f"{base_url}/rooms/{listing_id}",
    )


def parse_listing_detail(html: str, listing_id: str, base_url: str) -> ListingDetail:
    soup = parse_html(html)

    def from_sections(payload: Any) -> ListingDetail | None:
        return _detail_from_sections(payload, listing_id, base_url)

    def from_listing_json(payload: Any) -> ListingDetail | None:
        return _detail_from_listing_json(payload, listing_id, base_url)

    detail = first_match(
        soup,
        {
            NEXT_DATA: (from_listing_json,),
            NIOBE_ENTRY: (from_sections, from_listing_json),
            DEFERRED_STATE: (from_listing_json,),
        },
    )
    if detail is not None:
        return detail
    return _detail_from_heading(soup, listing_id, base_url)


def _host_from_sections(payload: Any) -> HostProfile | None:
    sections = section_list(payload)
    if sections is None:
        return None
    section = find_section(sections, "MEET_YOUR_HOST")
    return host_from_card(section) if section is not None else None


def parse_host_profile(html: str) -> HostProfile:
    profile = first_match(parse_html(html), {NIOBE_ENTRY: (_host_from_sections,)})
    if profile is None:
        raise ParseError("could not extract host profile from listing page")
    return profile
