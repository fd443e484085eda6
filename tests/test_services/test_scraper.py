import json

import httpx
import pytest
import respx
from httpx import Response

from staydata.exceptions.custom import (
    InvalidParamsError,
    ListingNotFoundError,
    ParseError,
    RateLimitError,
    TransportError,
)
from staydata.schemas.search import SearchParams
from staydata.services.cache import MemoryCache
from staydata.services.rate_limiter import RateLimiter
from staydata.services.scraper import ScraperClient, build_search_url, listing_id_from_url

BASE = "https://www.airbnb.com"
ROOM_URL = f"{BASE}/rooms/123"

LISTING_PAGE = (
    '<script id="__NEXT_DATA__">'
    + json.dumps(
        {
            "props": {
                "pageProps": {
                    "listing": {"name": "Old Mill", "city": "York", "description": "Stone", "price": 140}
                }
            }
        }
    )
    + "</script>"
)
SEARCH_PAGE = '<div itemprop="itemListElement"><a href="/rooms/42">Cottage</a></div>'


def _service(client, max_retries=2, cache=None):
    return ScraperClient(
        client,
        RateLimiter(0),
        cache if cache is not None else MemoryCache(10),
        BASE,
        "test-agent",
        max_retries=max_retries,
        retry_delay_secs=0,
    )


def test_listing_id_from_url():
    assert listing_id_from_url(f"{BASE}/rooms/123?calendar_months=3") == "123"
    assert listing_id_from_url(f"{BASE}/s/Paris/homes") is None


def test_build_search_url():
    url = build_search_url(BASE, SearchParams(location="New York", adults=2, min_price=50))

    assert url.path == "/s/New-York/homes"
    assert url.params["adults"] == "2"
    assert url.params["price_min"] == "50"
    assert "checkin" not in url.params


@respx.mock
@pytest.mark.asyncio
async def test_detail_success_and_cache():
    route = respx.get(ROOM_URL).mock(return_value=Response(200, html=LISTING_PAGE))
    cache = MemoryCache(10)

    async with httpx.AsyncClient() as client:
        service = _service(client, cache=cache)
        detail = await service.get_listing_detail("123")
        again = await service.get_listing_detail("123")

    assert detail.name == "Old Mill"
    assert again == detail
    assert route.call_count == 1
    assert cache.get("detail:123") is not None
    assert route.calls.last.request.headers["User-Agent"] == "test-agent"


@respx.mock
@pytest.mark.asyncio
async def test_404_on_listing_is_not_found():
    route = respx.get(ROOM_URL).mock(return_value=Response(404))

    async with httpx.AsyncClient() as client:
        with pytest.raises(ListingNotFoundError) as exc_info:
            await _service(client).get_listing_detail("123")

    assert exc_info.value.listing_id == "123"
    assert route.call_count == 1


@respx.mock
@pytest.mark.asyncio
async def test_404_on_search_is_parse_error():
    respx.get(f"{BASE}/s/Atlantis/homes").mock(return_value=Response(404))

    async with httpx.AsyncClient() as client:
        with pytest.raises(ParseError, match=r"page not found \(404\)"):
            await _service(client).search_listings(SearchParams(location="Atlantis"))


@respx.mock
@pytest.mark.asyncio
async def test_429_fails_immediately():
    route = respx.get(ROOM_URL).mock(return_value=Response(429))

    async with httpx.AsyncClient() as client:
        with pytest.raises(RateLimitError):
            await _service(client, max_retries=3).get_listing_detail("123")

    assert route.call_count == 1


@respx.mock
@pytest.mark.asyncio
async def test_server_errors_are_retried_until_success(caplog):
    route = respx.get(ROOM_URL).mock(
        side_effect=[Response(500), Response(503), Response(200, html=LISTING_PAGE)]
    )

    async with httpx.AsyncClient() as client:
        with caplog.at_level("WARNING"):
            detail = await _service(client, max_retries=2).get_listing_detail("123")

    assert detail.name == "Old Mill"
    assert route.call_count == 3
    assert "Request failed (attempt 1/3)" in caplog.text


@respx.mock
@pytest.mark.asyncio
async def test_retries_exhausted_surfaces_last_error():
    route = respx.get(ROOM_URL).mock(return_value=Response(502))

    async with httpx.AsyncClient() as client:
        with pytest.raises(ParseError, match="HTTP 502"):
            await _service(client, max_retries=2).get_listing_detail("123")

    assert route.call_count == 3


@respx.mock
@pytest.mark.asyncio
async def test_transport_errors_are_retried():
    route = respx.get(ROOM_URL).mock(
        side_effect=[httpx.ConnectError("reset"), Response(200, html=LISTING_PAGE)]
    )

    async with httpx.AsyncClient() as client:
        detail = await _service(client, max_retries=1).get_listing_detail("123")

    assert detail.name == "Old Mill"
    assert route.call_count == 2


@respx.mock
@pytest.mark.asyncio
async def test_transport_error_without_retries():
    respx.get(ROOM_URL).mock(side_effect=httpx.ConnectError("reset"))

    async with httpx.AsyncClient() as client:
        with pytest.raises(TransportError):
            await _service(client, max_retries=0).get_listing_detail("123")


@respx.mock
@pytest.mark.asyncio
async def test_client_errors_are_not_retried():
    route = respx.get(ROOM_URL).mock(return_value=Response(403))

    async with httpx.AsyncClient() as client:
        with pytest.raises(ParseError, match="HTTP 403"):
            await _service(client).get_listing_detail("123")

    assert route.call_count == 1


@pytest.mark.asyncio
async def test_invalid_params_short_circuit():
    # No routes are mocked: any request would fail the test.
    with respx.mock:
        async with httpx.AsyncClient() as client:
            with pytest.raises(InvalidParamsError, match="checkout date must be after checkin date"):
                await _service(client).search_listings(
                    SearchParams(location="Paris", checkin="2026-06-10", checkout="2026-06-01")
                )


@respx.mock
@pytest.mark.asyncio
async def test_search_and_neighborhood_share_cache():
    route = respx.get(f"{BASE}/s/Bath/homes").mock(return_value=Response(200, html=SEARCH_PAGE))

    async with httpx.AsyncClient() as client:
        service = _service(client)
        result = await service.search_listings(SearchParams(location="Bath"))
        stats = await service.get_neighborhood_stats(SearchParams(location="Bath"))

    assert result.listings[0].id == "42"
    assert stats.total_listings == 1
    assert stats.location == "Bath"
    assert route.call_count == 1


@respx.mock
@pytest.mark.asyncio
async def test_padded_location_reuses_cached_search():
    route = respx.get(f"{BASE}/s/Bath/homes").mock(return_value=Response(200, html=SEARCH_PAGE))

    async with httpx.AsyncClient() as client:
        service = _service(client)
        await service.search_listings(SearchParams(location="Bath"))
        await service.search_listings(SearchParams(location=" Bath "))

    assert route.call_count == 1


@respx.mock
@pytest.mark.asyncio
async def test_reviews_cursor_in_query():
    route = respx.get(ROOM_URL).mock(
        return_value=Response(200, html='<div itemprop="review">Great</div>')
    )

    async with httpx.AsyncClient() as client:
        page = await _service(client).get_reviews("123", cursor="abc")

    assert route.calls.last.request.url.params["review_cursor"] == "abc"
    assert page.reviews[0].comment == "Great"


@respx.mock
@pytest.mark.asyncio
async def test_calendar_requests_months():
    page = '<script id="__NEXT_DATA__">' + json.dumps(
        {
            "props": {
                "pageProps": {
                    "calendarData": {
                        "calendarMonths": [
                            {"days": [{"date": "2099-03-01", "available": True, "price": 99}]}
                        ]
                    }
                }
            }
        }
    ) + "</script>"
    route = respx.get(ROOM_URL).mock(return_value=Response(200, html=page))

    async with httpx.AsyncClient() as client:
        calendar = await _service(client).get_price_calendar("123", months=6)

    assert route.calls.last.request.url.params["calendar_months"] == "6"
    assert calendar.average_price == 99.0
