"""Helpers for the sectioned product-detail-page shape.

Both the GraphQL ``StaysPdpSections`` response and the deferred-state blob
of a rendered listing page carry
``data.presentation.stayProductDetailPage.sections`` with a ``sections``
list of ``{"sectionComponentType": ..., "section": {...}}`` entries.
"""

from typing import Any

from staydata.mappers.json_probe import (
    as_dict,
    as_str,
    dig,
    first_int,
    probe_bool,
    probe_id,
    probe_int,
    probe_list,
    probe_str,
)
from staydata.schemas.host import HostProfile

SECTIONS_ROOT = "data.presentation.stayProductDetailPage.sections"


def sections_container(payload: Any) -> dict | None:
    return as_dict(dig(payload, SECTIONS_ROOT))


def section_list(payload: Any) -> list | None:
    return probe_list(payload, f"{SECTIONS_ROOT}.sections")


def component_type(entry: Any) -> str:
    return probe_str(entry, "sectionComponentType") or ""


def find_section(sections: list, kind: str) -> dict | None:
    for entry in sections:
        if component_type(entry) == kind:
            section = as_dict(dig(entry, "section"))
            if section is not None:
                return section
    return None


def amenity_titles(groups: list | None) -> list[str]:
    """Available amenity titles across groups, deduplicated, in first-seen order."""
    titles: list[str] = []
    for group in groups or []:
        for item in probe_list(group, "amenities") or []:
            if probe_bool(item, "available") is False:
                continue
            title = probe_str(item, "title")
            if title and title not in titles:
                titles.append(title)
    return titles


def split_languages(text: str) -> list[str]:
    """"English, French and Spanish" -> ["English", "French", "Spanish"]."""
    parts: list[str] = []
    for chunk in text.replace("&", ",").split(","):
        parts.extend(p.strip() for p in chunk.split(" and "))
    return [p for p in parts if p]


def languages_from_highlights(section: Any) -> list[str]:
    for highlight in probe_list(section, "hostHighlights") or []:
        title = probe_str(highlight, "title")
        if title and title.lower().startswith("speaks "):
            return split_languages(title[len("speaks "):])
    return []


def string_list(values: list | None) -> list[str]:
    return [v for v in values or [] if isinstance(v, str)]


def host_details(section: Any) -> tuple[str | None, str | None]:
    """Response rate and response time from ``hostDetails`` strings, then direct fields."""
    rate = time = None
    for detail in string_list(probe_list(section, "hostDetails")):
        lower = detail.lower()
        if "response rate" in lower:
            rate = detail
        elif "respond" in lower:
            time = detail
    rate = rate or probe_str(section, "hostResponseRate")
    time = time or probe_str(section, "hostRespondTimeCopy", "hostResponseTime")
    return rate, time


def room_counts(detail_items: list | None) -> dict[str, Any]:
    """Guests, bedrooms, beds and baths from overview titles like "2 bedrooms"."""
    counts: dict[str, Any] = {}
    for item in detail_items or []:
        title = probe_str(item, "title") or ""
        if "guest" in title:
            counts["max_guests"] = first_int(title)
        elif "bedroom" in title:
            counts["bedrooms"] = first_int(title)
        elif "bed" in title:
            counts["beds"] = first_int(title)
        elif "bath" in title:
            baths = first_int(title)
            counts["bathrooms"] = float(baths) if baths is not None else None
    return counts


def host_from_card(section: dict) -> HostProfile | None:
    """Host profile from a MEET_YOUR_HOST section as rendered into the page."""
    card = as_dict(section.get("cardData"))
    if card is None:
        return None

    member_since = probe_str(card, "memberSince", "createdAt", "joinedDate")
    if member_since is None:
        years = probe_int(card, "timeAsHost.years")
        if years is not None:
            member_since = f"{years} years hosting"

    languages = string_list(probe_list(card, "languages")) or languages_from_highlights(section)

    return HostProfile(
        host_id=probe_id(card, "userId", "id", "hostId"),
        name=probe_str(card, "name") or "Unknown",
        is_superhost=probe_bool(card, "isSuperhost"),
        response_rate=probe_str(card, "responseRate") or as_str(section.get("hostResponseRate")),
        response_time=(
            probe_str(card, "responseTime") or as_str(section.get("hostRespondTimeCopy"))
        ),
        member_since=member_since,
        languages=languages,
        total_listings=probe_int(card, "listingsCount", "hostListingCount"),
        description=probe_str(card, "about", "description") or as_str(section.get("about")),
        profile_picture_url=probe_str(
            card, "profilePictureUrl", "profilePicture", "avatarUrl", "pictureUrl"
        ),
        identity_verified=probe_bool(card, "isIdentityVerified", "identityVerified", "isVerified"),
    )
