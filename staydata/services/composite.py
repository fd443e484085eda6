import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from staydata.exceptions.custom import AirbnbError
from staydata.mappers.listing_merger import merge_detail, needs_merge
from staydata.schemas.analytics import NeighborhoodStats, OccupancyEstimate
from staydata.schemas.calendar import PriceCalendar
from staydata.schemas.host import HostProfile
from staydata.schemas.listing import ListingDetail, SearchResult
from staydata.schemas.review import ReviewsPage
from staydata.schemas.search import SearchParams
from staydata.services.base import ListingClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CompositeClient:
    """Fronts a primary and a secondary backend behind one interface.

    Most operations fall back to the secondary when the primary raises.
    Listing details are merged field by field, and reviews are swapped as
    a whole page.
    """

    def __init__(self, primary: ListingClient, secondary: ListingClient):
        self._primary = primary
        self._secondary = secondary

    async def _with_fallback(
        self,
        operation: str,
        primary_call: Callable[[], Awaitable[T]],
        secondary_call: Callable[[], Awaitable[T]],
    ) -> T:
        try:
            return await primary_call()
        except AirbnbError as exc:
            logger.warning(
                "GraphQL failed, falling back to HTML scraper (method=%s): %s", operation, exc
            )
            return await secondary_call()

    async def search_listings(self, params: SearchParams) -> SearchResult:
        return await self._with_fallback(
            "search_listings",
            lambda: self._primary.search_listings(params),
            lambda: self._secondary.search_listings(params),
        )

    async def get_listing_detail(self, listing_id: str) -> ListingDetail:
        try:
            detail = await self._primary.get_listing_detail(listing_id)
        except AirbnbError as exc:
            logger.warning(
                "GraphQL failed, falling back to HTML scraper (method=get_listing_detail): %s",
                exc,
            )
            return await self._secondary.get_listing_detail(listing_id)

        if not needs_merge(detail):
            return detail

        try:
            supplement = await self._secondary.get_listing_detail(listing_id)
        except AirbnbError as exc:
            logger.warning("Detail supplement for %s failed, keeping partial data: %s", listing_id, exc)
            return detail
        return merge_detail(detail, supplement)

    async def get_reviews(self, listing_id: str, cursor: str | None = None) -> ReviewsPage:
        try:
            page = await self._primary.get_reviews(listing_id, cursor)
        except AirbnbError as exc:
            logger.warning(
                "GraphQL failed, falling back to HTML scraper (method=get_reviews): %s", exc
            )
            return await self._secondary.get_reviews(listing_id, cursor)

        if page.reviews:
            return page

        try:
            other = await self._secondary.get_reviews(listing_id, cursor)
        except AirbnbError as exc:
            logger.warning("Review supplement for %s failed: %s", listing_id, exc)
            return page

        if other.reviews:
            return other
        if page.summary is None and other.summary is not None:
            return other
        return page

    async def get_price_calendar(self, listing_id: str, months: int = 3) -> PriceCalendar:
        return await self._with_fallback(
            "get_price_calendar",
            lambda: self._primary.get_price_calendar(listing_id, months),
            lambda: self._secondary.get_price_calendar(listing_id, months),
        )

    async def get_host_profile(self, listing_id: str) -> HostProfile:
        return await self._with_fallback(
            "get_host_profile",
            lambda: self._primary.get_host_profile(listing_id),
            lambda: self._secondary.get_host_profile(listing_id),
        )

    async def get_neighborhood_stats(self, params: SearchParams) -> NeighborhoodStats:
        return await self._with_fallback(
            "get_neighborhood_stats",
            lambda: self._primary.get_neighborhood_stats(params),
            lambda: self._secondary.get_neighborhood_stats(params),
        )

    async def get_occupancy_estimate(self, listing_id: str, months: int = 3) -> OccupancyEstimate:
        return await self._with_fallback(
            "get_occupancy_estimate",
            lambda: self._primary.get_occupancy_estimate(listing_id, months),
            lambda: self._secondary.get_occupancy_estimate(listing_id, months),
        )
