import httpx
import pytest

from staydata.config import Settings
from staydata.exceptions.custom import (
    ConfigError,
    InvalidParamsError,
    ListingNotFoundError,
    ParseError,
    RateLimitError,
    TransportError,
)
from staydata.main import build_listing_client
from staydata.schemas.analytics import NeighborhoodStats, OccupancyEstimate
from staydata.schemas.calendar import CalendarDay, PriceCalendar
from staydata.schemas.host import HostProfile
from staydata.schemas.listing import Listing, ListingDetail, SearchResult
from staydata.schemas.review import Review, ReviewsPage
from staydata.schemas.search import SearchParams
from staydata.services.composite import CompositeClient
from staydata.services.scraper import ScraperClient


# --- search ---


@pytest.mark.asyncio
async def test_search_returns_json(client, listing_client):
    listing_client.search_listings.return_value = SearchResult(
        listings=[Listing(id="1", name="Loft", location="Paris", price_per_night=120.0)],
        total_count=1,
    )

    resp = await client.get("/search", params={"location": "Paris", "adults": 2})

    assert resp.status_code == 200
    data = resp.json()
    assert data["total_count"] == 1
    assert data["listings"][0]["name"] == "Loft"
    params = listing_client.search_listings.await_args.args[0]
    assert params == SearchParams(location="Paris", adults=2)


@pytest.mark.asyncio
async def test_search_text_format(client, listing_client):
    listing_client.search_listings.return_value = SearchResult(
        listings=[Listing(id="1", name="Loft", location="Paris", price_per_night=120.0)]
    )

    resp = await client.get("/search", params={"location": "Paris", "format": "text"})

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/plain")
    assert resp.text == "1. Loft - Paris ($120/night)"


@pytest.mark.asyncio
async def test_search_requires_location(client, listing_client):
    resp = await client.get("/search")

    assert resp.status_code == 422
    listing_client.search_listings.assert_not_called()


@pytest.mark.asyncio
async def test_invalid_params_maps_to_422(client, listing_client):
    listing_client.search_listings.side_effect = InvalidParamsError(
        "min_price cannot be greater than max_price"
    )

    resp = await client.get("/search", params={"location": "Paris", "min_price": 300, "max_price": 100})

    assert resp.status_code == 422
    assert resp.json()["detail"] == (
        "Invalid search parameters: min_price cannot be greater than max_price"
    )


# --- listing records ---


@pytest.mark.asyncio
async def test_listing_detail(client, listing_client):
    listing_client.get_listing_detail.return_value = ListingDetail(
        id="42", name="Cabin", price_per_night=99.5
    )

    resp = await client.get("/listings/42")

    assert resp.status_code == 200
    assert resp.json()["price_per_night"] == 99.5
    listing_client.get_listing_detail.assert_awaited_once_with("42")


@pytest.mark.asyncio
async def test_listing_not_found_maps_to_404(client, listing_client):
    listing_client.get_listing_detail.side_effect = ListingNotFoundError("404404")

    resp = await client.get("/listings/404404")

    assert resp.status_code == 404
    assert resp.json() == {"detail": "Listing not found: 404404", "listing_id": "404404"}


@pytest.mark.asyncio
async def test_reviews_pass_cursor(client, listing_client):
    listing_client.get_reviews.return_value = ReviewsPage(
        listing_id="42",
        reviews=[Review(author="Ana", date="March 2025", comment="Lovely")],
        next_cursor="100",
    )

    resp = await client.get("/listings/42/reviews", params={"cursor": "50"})

    assert resp.status_code == 200
    assert resp.json()["next_cursor"] == "100"
    listing_client.get_reviews.assert_awaited_once_with("42", "50")


@pytest.mark.asyncio
async def test_calendar_default_months(client, listing_client):
    listing_client.get_price_calendar.return_value = PriceCalendar(
        listing_id="42",
        days=[CalendarDay(date="2026-06-01", price=100.0, available=True)],
    )

    resp = await client.get("/listings/42/calendar")

    assert resp.status_code == 200
    assert resp.json()["days"][0]["date"] == "2026-06-01"
    listing_client.get_price_calendar.assert_awaited_once_with("42", 3)


@pytest.mark.asyncio
@pytest.mark.parametrize("months", [0, 13])
async def test_calendar_months_out_of_range(client, listing_client, months):
    resp = await client.get("/listings/42/calendar", params={"months": months})

    assert resp.status_code == 422
    listing_client.get_price_calendar.assert_not_called()


@pytest.mark.asyncio
async def test_host_profile_text(client, listing_client):
    listing_client.get_host_profile.return_value = HostProfile(
        name="Maria", host_id="7", is_superhost=True
    )

    resp = await client.get("/listings/42/host", params={"format": "text"})

    assert resp.status_code == 200
    assert resp.text == "# Host: Maria\nID: 7\nSuperhost: Yes"


@pytest.mark.asyncio
async def test_occupancy(client, listing_client):
    listing_client.get_occupancy_estimate.return_value = OccupancyEstimate(
        listing_id="42", total_days=30, occupied_days=15, available_days=15, occupancy_rate=50.0
    )

    resp = await client.get("/listings/42/occupancy", params={"months": 1})

    assert resp.status_code == 200
    assert resp.json()["occupancy_rate"] == 50.0
    listing_client.get_occupancy_estimate.assert_awaited_once_with("42", 1)


@pytest.mark.asyncio
async def test_neighborhood(client, listing_client):
    listing_client.get_neighborhood_stats.return_value = NeighborhoodStats(
        location="Lisbon", total_listings=2, average_price=150.0
    )

    resp = await client.get("/neighborhood", params={"location": "Lisbon"})

    assert resp.status_code == 200
    assert resp.json()["average_price"] == 150.0


# --- upstream errors ---


@pytest.mark.asyncio
async def test_rate_limit_maps_to_429(client, listing_client):
    listing_client.get_host_profile.side_effect = RateLimitError("Airbnb")

    resp = await client.get("/listings/42/host")

    assert resp.status_code == 429
    assert resp.json()["detail"] == "Rate limit exceeded, try again later"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [ParseError("HTTP 500 for https://www.airbnb.com/rooms/42"), TransportError("timed out")],
)
async def test_upstream_errors_map_to_502(client, listing_client, error):
    listing_client.get_listing_detail.side_effect = error

    resp = await client.get("/listings/42")

    assert resp.status_code == 502
    assert resp.json()["detail"] == error.message


# --- wiring ---


@pytest.mark.asyncio
async def test_lifespan_builds_composite_client(client):
    from staydata.main import app

    assert isinstance(app.state.listing_client, CompositeClient)


@pytest.mark.asyncio
async def test_scraper_only_when_graphql_disabled():
    async with httpx.AsyncClient() as http:
        backend = build_listing_client(Settings(graphql_enabled=False), http)

    assert isinstance(backend, ScraperClient)


@pytest.mark.asyncio
async def test_bad_base_url_is_config_error():
    async with httpx.AsyncClient() as http:
        with pytest.raises(ConfigError, match="base_url"):
            build_listing_client(Settings(base_url="ftp://example.com"), http)
