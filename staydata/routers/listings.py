from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from staydata.dependencies import ListingClientDep
from staydata.schemas.analytics import NeighborhoodStats, OccupancyEstimate
from staydata.schemas.calendar import PriceCalendar
from staydata.schemas.host import HostProfile
from staydata.schemas.listing import ListingDetail, SearchResult
from staydata.schemas.review import ReviewsPage
from staydata.schemas.search import SearchParams

router = APIRouter()

SearchParamsDep = Annotated[SearchParams, Depends()]
Months = Annotated[int, Query(ge=1, le=12)]
Format = Annotated[Literal["json", "text"], Query()]


def _render(record: BaseModel, fmt: str):
    """Records go out as JSON unless the caller asks for the readable text form."""
    if fmt == "text":
        return PlainTextResponse(str(record))
    return record


@router.get("/search", response_model=SearchResult)
async def search_listings(client: ListingClientDep, params: SearchParamsDep, format: Format = "json"):
    return _render(await client.search_listings(params), format)


@router.get("/listings/{listing_id}", response_model=ListingDetail)
async def get_listing_detail(listing_id: str, client: ListingClientDep, format: Format = "json"):
    return _render(await client.get_listing_detail(listing_id), format)


@router.get("/listings/{listing_id}/reviews", response_model=ReviewsPage)
async def get_reviews(
    listing_id: str,
    client: ListingClientDep,
    cursor: str | None = None,
    format: Format = "json",
):
    return _render(await client.get_reviews(listing_id, cursor), format)


@router.get("/listings/{listing_id}/calendar", response_model=PriceCalendar)
async def get_price_calendar(
    listing_id: str,
    client: ListingClientDep,
    months: Months = 3,
    format: Format = "json",
):
    return _render(await client.get_price_calendar(listing_id, months), format)


@router.get("/listings/{listing_id}/host", response_model=HostProfile)
async def get_host_profile(listing_id: str, client: ListingClientDep, format: Format = "json"):
    return _render(await client.get_host_profile(listing_id), format)


@router.get("/listings/{listing_id}/occupancy", response_model=OccupancyEstimate)
async def get_occupancy_estimate(
    listing_id: str,
    client: ListingClientDep,
    months: Months = 3,
    format: Format = "json",
):
    return _render(await client.get_occupancy_estimate(listing_id, months), format)


@router.get("/neighborhood", response_model=NeighborhoodStats)
async def get_neighborhood_stats(
    client: ListingClientDep, params: SearchParamsDep, format: Format = "json"
):
    return _render(await client.get_neighborhood_stats(params), format)
