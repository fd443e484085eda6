from typing import Any

from staydata.exceptions.custom import ParseError
from staydata.mappers.json_probe import (
    as_dict,
    dig,
    probe_bool,
    probe_id,
    probe_int,
    probe_list,
    probe_str,
)
from staydata.mappers.pdp_sections import (
    component_type,
    host_details,
    languages_from_highlights,
    section_list,
    string_list,
)
from staydata.schemas.host import HostProfile


def _from_profile(profile: dict) -> HostProfile:
    """Legacy ``GetUserProfile`` object."""
    response_rate = probe_str(profile, "responseRate", "hostResponseRate")
    if response_rate is None:
        percent = probe_int(profile, "responseRate")
        response_rate = f"{percent}%" if percent is not None else None

    return HostProfile(
        host_id=probe_id(profile, "id", "hostId", "userId"),
        name=probe_str(profile, "name", "hostName", "firstName") or "Unknown",
        is_superhost=probe_bool(profile, "isSuperhost"),
        response_rate=response_rate,
        response_time=probe_str(profile, "responseTime", "hostResponseTime"),
        member_since=probe_str(profile, "memberSince", "createdAt", "hostMemberSince"),
        languages=string_list(probe_list(profile, "languages", "hostLanguages")),
        total_listings=probe_int(profile, "listingsCount", "hostListingCount"),
        description=probe_str(profile, "about", "description"),
        profile_picture_url=probe_str(
            profile, "profilePicture.baseUrl", "profilePictureUrl", "pictureUrl"
        ),
        identity_verified=probe_bool(profile, "isIdentityVerified", "identityVerified"),
    )


def _from_host_section(section: dict) -> HostProfile:
    member_since = None
    years = probe_int(section, "cardData.timeAsHost.years")
    if years is not None:
        member_since = f"{years} years hosting"
    else:
        member_since = probe_str(section, "hostMemberSince")

    response_rate, response_time = host_details(section)
    languages = languages_from_highlights(section) or string_list(
        probe_list(section, "hostLanguages")
    )

    return HostProfile(
        host_id=probe_id(section, "cardData.userId", "hostId"),
        name=probe_str(section, "cardData.name", "hostName", "name") or "Unknown",
        is_superhost=probe_bool(section, "cardData.isSuperhost", "isSuperhost"),
        response_rate=response_rate,
        response_time=response_time,
        member_since=member_since,
        languages=languages,
        total_listings=probe_int(section, "listingsCount", "hostListingCount"),
        description=probe_str(section, "about", "description"),
        profile_picture_url=probe_str(
            section, "cardData.profilePictureUrl", "profilePicture.baseUrl", "profilePictureUrl"
        ),
        identity_verified=probe_bool(section, "cardData.isIdentityVerified", "isIdentityVerified"),
    )


def parse_host_response(payload: Any) -> HostProfile:
    profile = as_dict(dig(payload, "data.presentation.userProfileContainer")) or as_dict(
        dig(payload, "data.user")
    )
    if profile is not None:
        return _from_profile(profile)

    sections = section_list(payload)
    if sections is None:
        raise ParseError("GraphQL host: could not find sections array")

    for entry in sections:
        kind = component_type(entry)
        if kind == "MEET_YOUR_HOST" or "HOST" in kind:
            section = as_dict(dig(entry, "section"))
            if section is not None:
                return _from_host_section(section)
    raise ParseError("GraphQL host: could not find host section")
