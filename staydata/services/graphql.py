import base64
import json
import logging
from datetime import date
from typing import Any

import httpx

from staydata.config import CacheSettings, QueryHashes
from staydata.exceptions.custom import ParseError, RateLimitError, TransportError
from staydata.mappers.analytics import compute_neighborhood_stats, compute_occupancy_estimate
from staydata.mappers.calendar import calendar_from_json
from staydata.mappers.graphql_detail import parse_detail_response
from staydata.mappers.graphql_host import parse_host_response
from staydata.mappers.graphql_reviews import parse_reviews_response
from staydata.mappers.graphql_search import build_search_variables, parse_search_response
from staydata.schemas.analytics import NeighborhoodStats, OccupancyEstimate
from staydata.schemas.calendar import PriceCalendar
from staydata.schemas.host import HostProfile
from staydata.schemas.listing import ListingDetail, SearchResult
from staydata.schemas.review import ReviewsPage
from staydata.schemas.search import SearchParams
from staydata.services.cache import ResponseCache, load_cached, store_cached
from staydata.services.credentials import ApiKeyManager
from staydata.services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

REVIEWS_PAGE_SIZE = 50

_PDP_SECTIONS_REQUEST = {
    "adults": "1",
    "bypassTargetings": False,
    "categoryTag": None,
    "children": None,
    "infants": None,
    "layouts": ["SIDEBAR", "SINGLE_COLUMN"],
    "pets": 0,
    "preview": False,
    "previousStateCheckIn": None,
    "previousStateCheckOut": None,
    "privateBooking": False,
    "staysBookingMigrationEnabled": False,
    "useNewSectionWrapperApi": False,
}


def _global_id(kind: str, listing_id: str) -> str:
    return base64.b64encode(f"{kind}:{listing_id}".encode()).decode()


def build_pdp_variables(listing_id: str) -> dict[str, Any]:
    return {
        "id": _global_id("StayListing", listing_id),
        "demandStayListingId": _global_id("DemandStayListing", listing_id),
        "pdpSectionsRequest": dict(_PDP_SECTIONS_REQUEST),
    }


def reviews_offset(cursor: str | None) -> int:
    """Numeric offset encoded in a reviews cursor; anything else starts over."""
    try:
        return max(int(cursor), 0) if cursor else 0
    except ValueError:
        return 0


def build_reviews_variables(listing_id: str, offset: int) -> dict[str, Any]:
    return {
        "id": listing_id,
        "pdpReviewsRequest": {
            "fieldSelector": "for_p3_translation_only",
            "forPreview": False,
            "limit": REVIEWS_PAGE_SIZE,
            "offset": str(offset),
            "showingTranslationButton": False,
            "first": REVIEWS_PAGE_SIZE,
            "sortingPreference": "MOST_RECENT",
            "numberOfAdults": "1",
            "numberOfChildren": "0",
            "numberOfInfants": "0",
            "numberOfPets": "0",
            "after": None,
        },
    }


def build_calendar_variables(listing_id: str, months: int, today: date | None = None) -> dict[str, Any]:
    today = today or date.today()
    return {
        "request": {
            "count": months,
            "listingId": listing_id,
            "month": today.month,
            "year": today.year,
        }
    }


class GraphQLClient:
    """Listing backend speaking the site's persisted-query GraphQL API.

    Calls are never retried here; a 429 surfaces immediately so the
    composite client can fall back instead.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        rate_limiter: RateLimiter,
        cache: ResponseCache,
        api_keys: ApiKeyManager,
        base_url: str,
        user_agent: str,
        hashes: QueryHashes | None = None,
        cache_settings: CacheSettings | None = None,
    ):
        self._client = client
        self._rate_limiter = rate_limiter
        self._cache = cache
        self._api_keys = api_keys
        self._base_url = base_url.rstrip("/")
        self._user_agent = user_agent
        self._hashes = hashes or QueryHashes()
        self._ttl = cache_settings or CacheSettings()

    async def _headers(self) -> dict[str, str]:
        return {
            "X-Airbnb-Api-Key": await self._api_keys.get_api_key(),
            "Accept": "application/json",
            "Content-Type": "application/json",
            "Accept-Language": "en-US,en;q=0.9",
            "User-Agent": self._user_agent,
        }

    def _endpoint(self, operation: str, query_hash: str) -> str:
        return f"{self._base_url}/api/v3/{operation}/{query_hash}/"

    @staticmethod
    def _extensions(query_hash: str) -> dict[str, Any]:
        return {"persistedQuery": {"version": 1, "sha256Hash": query_hash}}

    async def _send(self, operation: str, request: httpx.Request) -> Any:
        await self._rate_limiter.wait()
        logger.debug("GraphQL %s %s", request.method, operation)
        try:
            resp = await self._client.send(request)
        except httpx.HTTPError as exc:
            raise TransportError(str(exc)) from exc

        if resp.status_code == 429:
            raise RateLimitError(f"GraphQL {operation}")
        if resp.status_code in (401, 403):
            # Rejected key; the next call harvests a fresh one.
            self._api_keys.invalidate()
        if not resp.is_success:
            raise ParseError(
                f"GraphQL {operation} returned HTTP {resp.status_code}",
                status_code=resp.status_code,
            )

        logger.debug("GraphQL %s response received (%d bytes)", operation, len(resp.content))
        try:
            return json.loads(resp.text)
        except json.JSONDecodeError as exc:
            raise ParseError(f"GraphQL {operation} JSON parse error: {exc}") from exc

    async def _get(self, operation: str, query_hash: str, variables: dict[str, Any]) -> Any:
        request = self._client.build_request(
            "GET",
            self._endpoint(operation, query_hash),
            params={
                "operationName": operation,
                "locale": "en",
                "currency": "USD",
                "variables": json.dumps(variables, separators=(",", ":")),
                "extensions": json.dumps(self._extensions(query_hash), separators=(",", ":")),
            },
            headers=await self._headers(),
        )
        return await self._send(operation, request)

    async def _post(self, operation: str, query_hash: str, variables: dict[str, Any]) -> Any:
        request = self._client.build_request(
            "POST",
            self._endpoint(operation, query_hash),
            json={
                "operationName": operation,
                "variables": variables,
                "extensions": self._extensions(query_hash),
            },
            headers=await self._headers(),
        )
        return await self._send(operation, request)

    async def search_listings(self, params: SearchParams) -> SearchResult:
        params.validate_params()

        key = f"gql:search:{params.cache_key()}"
        if (cached := load_cached(self._cache, key, SearchResult)) is not None:
            return cached

        payload = await self._post(
            "StaysSearch", self._hashes.stays_search, build_search_variables(params)
        )
        result = parse_search_response(payload, self._base_url)
        store_cached(self._cache, key, result, self._ttl.search_ttl_secs)
        return result

    async def get_listing_detail(self, listing_id: str) -> ListingDetail:
        key = f"gql:detail:{listing_id}"
        if (cached := load_cached(self._cache, key, ListingDetail)) is not None:
            return cached

        payload = await self._get(
            "StaysPdpSections", self._hashes.stays_pdp_sections, build_pdp_variables(listing_id)
        )
        detail = parse_detail_response(payload, listing_id, self._base_url)
        store_cached(self._cache, key, detail, self._ttl.detail_ttl_secs)
        return detail

    async def get_reviews(self, listing_id: str, cursor: str | None = None) -> ReviewsPage:
        key = f"gql:reviews:{listing_id}:{cursor or 'first'}"
        if (cached := load_cached(self._cache, key, ReviewsPage)) is not None:
            return cached

        offset = reviews_offset(cursor)
        payload = await self._get(
            "StaysPdpReviewsQuery",
            self._hashes.stays_pdp_reviews,
            build_reviews_variables(listing_id, offset),
        )
        page = parse_reviews_response(payload, listing_id, offset)
        store_cached(self._cache, key, page, self._ttl.reviews_ttl_secs)
        return page

    async def get_price_calendar(self, listing_id: str, months: int = 3) -> PriceCalendar:
        key = f"gql:calendar:{listing_id}:m={months}"
        if (cached := load_cached(self._cache, key, PriceCalendar)) is not None:
            return cached

        payload = await self._get(
            "PdpAvailabilityCalendar",
            self._hashes.pdp_availability_calendar,
            build_calendar_variables(listing_id, months),
        )
        calendar = calendar_from_json(payload, listing_id)
        if calendar is None:
            raise ParseError("GraphQL PdpAvailabilityCalendar: could not extract calendar data")
        store_cached(self._cache, key, calendar, self._ttl.calendar_ttl_secs)
        return calendar

    async def get_host_profile(self, listing_id: str) -> HostProfile:
        # The profile query wants a user id, so the host is read from the PDP sections.
        key = f"gql:host:{listing_id}"
        if (cached := load_cached(self._cache, key, HostProfile)) is not None:
            return cached

        payload = await self._get(
            "StaysPdpSections", self._hashes.stays_pdp_sections, build_pdp_variables(listing_id)
        )
        profile = parse_host_response(payload)
        store_cached(self._cache, key, profile, self._ttl.host_profile_ttl_secs)
        return profile

    async def get_neighborhood_stats(self, params: SearchParams) -> NeighborhoodStats:
        result = await self.search_listings(params)
        return compute_neighborhood_stats(params.location, result.listings)

    async def get_occupancy_estimate(self, listing_id: str, months: int = 3) -> OccupancyEstimate:
        calendar = await self.get_price_calendar(listing_id, months)
        return compute_occupancy_estimate(listing_id, calendar)
