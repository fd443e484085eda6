from typing import Protocol

from staydata.schemas.analytics import NeighborhoodStats, OccupancyEstimate
from staydata.schemas.calendar import PriceCalendar
from staydata.schemas.host import HostProfile
from staydata.schemas.listing import ListingDetail, SearchResult
from staydata.schemas.review import ReviewsPage
from staydata.schemas.search import SearchParams


class ListingClient(Protocol):
    """Capability interface shared by both backends and the composite client."""

    async def search_listings(self, params: SearchParams) -> SearchResult: ...

    async def get_listing_detail(self, listing_id: str) -> ListingDetail: ...

    async def get_reviews(self, listing_id: str, cursor: str | None = None) -> ReviewsPage: ...

    async def get_price_calendar(self, listing_id: str, months: int = 3) -> PriceCalendar: ...

    async def get_host_profile(self, listing_id: str) -> HostProfile: ...

    async def get_neighborhood_stats(self, params: SearchParams) -> NeighborhoodStats: ...

    async def get_occupancy_estimate(
        self, listing_id: str, months: int = 3
    ) -> OccupancyEstimate: ...
