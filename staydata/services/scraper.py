import asyncio
import logging
from urllib.parse import quote

import httpx

from staydata.config import CacheSettings
from staydata.exceptions.custom import (
    AirbnbError,
    ListingNotFoundError,
    ParseError,
    RateLimitError,
    TransportError,
)
from staydata.mappers.analytics import compute_neighborhood_stats, compute_occupancy_estimate
from staydata.mappers.calendar import parse_price_calendar
from staydata.mappers.scraped_detail import parse_host_profile, parse_listing_detail
from staydata.mappers.scraped_reviews import parse_reviews
from staydata.mappers.scraped_search import parse_search_results
from staydata.schemas.analytics import NeighborhoodStats, OccupancyEstimate
from staydata.schemas.calendar import PriceCalendar
from staydata.schemas.host import HostProfile
from staydata.schemas.listing import ListingDetail, SearchResult
from staydata.schemas.review import ReviewsPage
from staydata.schemas.search import SearchParams
from staydata.services.cache import ResponseCache, load_cached, store_cached
from staydata.services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


def listing_id_from_url(url: str) -> str | None:
    if "/rooms/" not in url:
        return None
    listing_id = url.split("/rooms/", 1)[1].split("?", 1)[0].strip("/")
    return listing_id or None


def build_search_url(base_url: str, params: SearchParams) -> httpx.URL:
    # Hyphens stand in for spaces in the site's own location slugs.
    slug = quote(params.location.strip().replace(" ", "-"), safe="-,")
    return httpx.URL(f"{base_url}/s/{slug}/homes", params=params.to_query_pairs())


class ScraperClient:
    """Listing backend that reads the public HTML pages.

    Transport errors and 5xx responses are retried with a linear backoff;
    404 and 429 end the call at once.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        rate_limiter: RateLimiter,
        cache: ResponseCache,
        base_url: str,
        user_agent: str,
        max_retries: int = 2,
        retry_delay_secs: float = 2.0,
        cache_settings: CacheSettings | None = None,
    ):
        self._client = client
        self._rate_limiter = rate_limiter
        self._cache = cache
        self._base_url = base_url.rstrip("/")
        self._user_agent = user_agent
        self._max_retries = max(max_retries, 0)
        self._retry_delay = retry_delay_secs
        self._ttl = cache_settings or CacheSettings()

    async def _fetch_once(self, url: httpx.URL | str) -> str:
        try:
            resp = await self._client.get(
                url,
                headers={
                    "User-Agent": self._user_agent,
                    "Accept": "text/html,application/xhtml+xml",
                    "Accept-Language": "en-US,en;q=0.9",
                },
                follow_redirects=True,
            )
        except httpx.HTTPError as exc:
            raise TransportError(str(exc)) from exc

        if resp.status_code == 429:
            raise RateLimitError("Airbnb")
        if resp.status_code == 404:
            listing_id = listing_id_from_url(str(url))
            if listing_id is not None:
                raise ListingNotFoundError(listing_id)
            raise ParseError(f"page not found (404): {url}", status_code=404)
        if not resp.is_success:
            raise ParseError(f"HTTP {resp.status_code} for {url}", status_code=resp.status_code)
        return resp.text

    @staticmethod
    def _retryable(exc: AirbnbError) -> bool:
        if isinstance(exc, TransportError):
            return True
        return isinstance(exc, ParseError) and (exc.status_code or 0) >= 500

    async def fetch_html(self, url: httpx.URL | str) -> str:
        attempts = self._max_retries + 1
        attempt = 0
        while True:
            attempt += 1
            await self._rate_limiter.wait()
            logger.debug("Fetching %s (attempt %d)", url, attempt)
            try:
                return await self._fetch_once(url)
            except AirbnbError as exc:
                if attempt >= attempts or not self._retryable(exc):
                    raise
                logger.warning("Request failed (attempt %d/%d): %s", attempt, attempts, exc)
                await asyncio.sleep(attempt * self._retry_delay)

    def _room_url(self, listing_id: str) -> str:
        return f"{self._base_url}/rooms/{listing_id}"

    async def search_listings(self, params: SearchParams) -> SearchResult:
        params.validate_params()

        key = f"search:{params.cache_key()}"
        if (cached := load_cached(self._cache, key, SearchResult)) is not None:
            return cached

        html = await self.fetch_html(build_search_url(self._base_url, params))
        result = parse_search_results(html, self._base_url)
        store_cached(self._cache, key, result, self._ttl.search_ttl_secs)
        return result

    async def get_listing_detail(self, listing_id: str) -> ListingDetail:
        key = f"detail:{listing_id}"
        if (cached := load_cached(self._cache, key, ListingDetail)) is not None:
            return cached

        html = await self.fetch_html(self._room_url(listing_id))
        detail = parse_listing_detail(html, listing_id, self._base_url)
        store_cached(self._cache, key, detail, self._ttl.detail_ttl_secs)
        return detail

    async def get_reviews(self, listing_id: str, cursor: str | None = None) -> ReviewsPage:
        key = f"reviews:{listing_id}:{cursor or 'first'}"
        if (cached := load_cached(self._cache, key, ReviewsPage)) is not None:
            return cached

        url = httpx.URL(self._room_url(listing_id))
        if cursor:
            url = url.copy_add_param("review_cursor", cursor)
        html = await self.fetch_html(url)
        page = parse_reviews(html, listing_id)
        store_cached(self._cache, key, page, self._ttl.reviews_ttl_secs)
        return page

    async def get_price_calendar(self, listing_id: str, months: int = 3) -> PriceCalendar:
        key = f"calendar:{listing_id}:m={months}"
        if (cached := load_cached(self._cache, key, PriceCalendar)) is not None:
            return cached

        url = httpx.URL(self._room_url(listing_id), params={"calendar_months": months})
        html = await self.fetch_html(url)
        calendar = parse_price_calendar(html, listing_id)
        store_cached(self._cache, key, calendar, self._ttl.calendar_ttl_secs)
        return calendar

    async def get_host_profile(self, listing_id: str) -> HostProfile:
        key = f"host:{listing_id}"
        if (cached := load_cached(self._cache, key, HostProfile)) is not None:
            return cached

        html = await self.fetch_html(self._room_url(listing_id))
        profile = parse_host_profile(html)
        store_cached(self._cache, key, profile, self._ttl.host_profile_ttl_secs)
        return profile

    async def get_neighborhood_stats(self, params: SearchParams) -> NeighborhoodStats:
        result = await self.search_listings(params)
        return compute_neighborhood_stats(params.location, result.listings)

    async def get_occupancy_estimate(self, listing_id: str, months: int = 3) -> OccupancyEstimate:
        calendar = await self.get_price_calendar(listing_id, months)
        return compute_occupancy_estimate(listing_id, calendar)
