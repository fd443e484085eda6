import base64
import json
from unittest.mock import AsyncMock

import httpx
import pytest
import respx
from httpx import Response

from staydata.config import QueryHashes
from staydata.exceptions.custom import (
    InvalidParamsError,
    ParseError,
    RateLimitError,
    TransportError,
)
from staydata.schemas.search import SearchParams
from staydata.services.cache import MemoryCache
from staydata.services.credentials import ApiKeyManager
from staydata.services.graphql import GraphQLClient, reviews_offset
from staydata.services.rate_limiter import RateLimiter

BASE = "https://www.airbnb.com"
HASHES = QueryHashes()
DETAIL_URL = f"{BASE}/api/v3/StaysPdpSections/{HASHES.stays_pdp_sections}/"
REVIEWS_URL = f"{BASE}/api/v3/StaysPdpReviewsQuery/{HASHES.stays_pdp_reviews}/"
CALENDAR_URL = f"{BASE}/api/v3/PdpAvailabilityCalendar/{HASHES.pdp_availability_calendar}/"
SEARCH_URL = f"{BASE}/api/v3/StaysSearch/{HASHES.stays_search}/"

DETAIL_JSON = {
    "data": {
        "presentation": {
            "stayProductDetailPage": {
                "sections": {
                    "sections": [
                        {"sectionComponentType": "TITLE_DEFAULT", "section": {"title": "Loft", "subtitle": "Lisbon"}},
                        {
                            "sectionComponentType": "MEET_YOUR_HOST",
                            "section": {"cardData": {"name": "Ana", "userId": "77"}},
                        },
                    ]
                }
            }
        }
    }
}


@pytest.fixture
def api_keys():
    mock = AsyncMock(spec=ApiKeyManager)
    mock.get_api_key.return_value = "test-key"
    return mock


def _service(client, api_keys, cache=None):
    return GraphQLClient(
        client,
        RateLimiter(0),
        cache if cache is not None else MemoryCache(10),
        api_keys,
        BASE,
        "test-agent",
    )


def test_reviews_offset():
    assert reviews_offset(None) == 0
    assert reviews_offset("50") == 50
    assert reviews_offset("garbage") == 0
    assert reviews_offset("-5") == 0


@respx.mock
@pytest.mark.asyncio
async def test_detail_request_shape(api_keys):
    route = respx.get(DETAIL_URL).mock(return_value=Response(200, json=DETAIL_JSON))

    async with httpx.AsyncClient() as client:
        detail = await _service(client, api_keys).get_listing_detail("555")

    assert detail.name == "Loft"
    assert detail.url == f"{BASE}/rooms/555"

    request = route.calls.last.request
    assert request.headers["X-Airbnb-Api-Key"] == "test-key"
    assert request.headers["User-Agent"] == "test-agent"
    assert request.url.params["operationName"] == "StaysPdpSections"
    assert request.url.params["locale"] == "en"
    assert request.url.params["currency"] == "USD"
    variables = json.loads(request.url.params["variables"])
    assert variables["id"] == base64.b64encode(b"StayListing:555").decode()
    assert variables["demandStayListingId"] == base64.b64encode(b"DemandStayListing:555").decode()
    extensions = json.loads(request.url.params["extensions"])
    assert extensions["persistedQuery"]["sha256Hash"] == HASHES.stays_pdp_sections


@respx.mock
@pytest.mark.asyncio
async def test_cached_detail_skips_network(api_keys):
    route = respx.get(DETAIL_URL).mock(return_value=Response(200, json=DETAIL_JSON))
    cache = MemoryCache(10)

    async with httpx.AsyncClient() as client:
        service = _service(client, api_keys, cache)
        first = await service.get_listing_detail("555")
        second = await service.get_listing_detail("555")

    assert first == second
    assert route.call_count == 1
    assert cache.get("gql:detail:555") is not None


@respx.mock
@pytest.mark.asyncio
async def test_corrupt_cache_entry_is_refetched(api_keys):
    route = respx.get(DETAIL_URL).mock(return_value=Response(200, json=DETAIL_JSON))
    cache = MemoryCache(10)
    cache.set("gql:detail:555", "{broken", 60)

    async with httpx.AsyncClient() as client:
        detail = await _service(client, api_keys, cache).get_listing_detail("555")

    assert detail.name == "Loft"
    assert route.call_count == 1


@respx.mock
@pytest.mark.asyncio
async def test_rate_limit_is_not_retried(api_keys):
    route = respx.get(DETAIL_URL).mock(return_value=Response(429))

    async with httpx.AsyncClient() as client:
        with pytest.raises(RateLimitError):
            await _service(client, api_keys).get_listing_detail("555")

    assert route.call_count == 1


@respx.mock
@pytest.mark.asyncio
async def test_non_success_status_names_operation(api_keys):
    respx.get(DETAIL_URL).mock(return_value=Response(503))

    async with httpx.AsyncClient() as client:
        with pytest.raises(ParseError, match="GraphQL StaysPdpSections returned HTTP 503") as exc_info:
            await _service(client, api_keys).get_listing_detail("555")

    assert exc_info.value.status_code == 503
    api_keys.invalidate.assert_not_called()


@respx.mock
@pytest.mark.asyncio
async def test_rejected_key_is_invalidated(api_keys):
    respx.get(DETAIL_URL).mock(return_value=Response(403))

    async with httpx.AsyncClient() as client:
        with pytest.raises(ParseError, match="returned HTTP 403"):
            await _service(client, api_keys).get_listing_detail("555")

    api_keys.invalidate.assert_called_once_with()


@respx.mock
@pytest.mark.asyncio
async def test_malformed_body_names_operation(api_keys):
    respx.get(REVIEWS_URL).mock(return_value=Response(200, text="<html>oops</html>"))

    async with httpx.AsyncClient() as client:
        with pytest.raises(ParseError, match="GraphQL StaysPdpReviewsQuery JSON parse error"):
            await _service(client, api_keys).get_reviews("555")


@respx.mock
@pytest.mark.asyncio
async def test_transport_error_is_wrapped(api_keys):
    respx.get(DETAIL_URL).mock(side_effect=httpx.ReadTimeout("slow"))

    async with httpx.AsyncClient() as client:
        with pytest.raises(TransportError):
            await _service(client, api_keys).get_listing_detail("555")


@respx.mock
@pytest.mark.asyncio
async def test_reviews_cursor_is_offset(api_keys):
    payload = {
        "data": {
            "presentation": {
                "stayProductDetailPage": {
                    "reviews": {"reviews": [{"comments": "Nice"}], "reviewsCount": 200}
                }
            }
        }
    }
    route = respx.get(REVIEWS_URL).mock(return_value=Response(200, json=payload))

    async with httpx.AsyncClient() as client:
        page = await _service(client, api_keys).get_reviews("555", cursor="50")

    variables = json.loads(route.calls.last.request.url.params["variables"])
    assert variables["id"] == "555"
    assert variables["pdpReviewsRequest"]["offset"] == "50"
    assert variables["pdpReviewsRequest"]["limit"] == 50
    assert page.next_cursor == "51"


@respx.mock
@pytest.mark.asyncio
async def test_search_is_posted_and_cached_per_params(api_keys):
    payload = {
        "data": {
            "presentation": {
                "staysSearch": {
                    "results": {"searchResults": [{"listing": {"id": "1", "name": "A"}}]}
                }
            }
        }
    }
    route = respx.post(SEARCH_URL).mock(return_value=Response(200, json=payload))

    async with httpx.AsyncClient() as client:
        service = _service(client, api_keys)
        await service.search_listings(SearchParams(location="Paris"))
        await service.search_listings(SearchParams(location="paris"))
        result = await service.search_listings(SearchParams(location="Paris", adults=2))

    assert result.listings[0].id == "1"
    assert route.call_count == 2
    body = json.loads(route.calls.last.request.content)
    assert body["operationName"] == "StaysSearch"
    assert body["extensions"]["persistedQuery"]["sha256Hash"] == HASHES.stays_search


@respx.mock
@pytest.mark.asyncio
async def test_invalid_search_never_hits_network(api_keys):
    async with httpx.AsyncClient() as client:
        with pytest.raises(InvalidParamsError, match="location is required"):
            await _service(client, api_keys).search_listings(SearchParams(location="  "))

    api_keys.get_api_key.assert_not_called()


@respx.mock
@pytest.mark.asyncio
async def test_calendar_and_occupancy(api_keys):
    payload = {
        "data": {
            "merlin": {
                "pdpAvailabilityCalendar": {
                    "calendarMonths": [
                        {
                            "days": [
                                {"calendarDate": "2099-01-01", "available": True, "price": {"amount": 100}},
                                {"calendarDate": "2099-01-02", "available": False},
                            ]
                        }
                    ]
                }
            }
        }
    }
    route = respx.get(CALENDAR_URL).mock(return_value=Response(200, json=payload))

    async with httpx.AsyncClient() as client:
        service = _service(client, api_keys)
        calendar = await service.get_price_calendar("555", months=2)
        estimate = await service.get_occupancy_estimate("555", months=2)

    variables = json.loads(route.calls.last.request.url.params["variables"])
    assert variables["request"]["count"] == 2
    assert variables["request"]["listingId"] == "555"
    assert calendar.occupancy_rate == 50.0
    assert estimate.occupied_days == 1
    assert route.call_count == 1


@respx.mock
@pytest.mark.asyncio
async def test_calendar_without_days_raises(api_keys):
    respx.get(CALENDAR_URL).mock(return_value=Response(200, json={"data": {}}))

    async with httpx.AsyncClient() as client:
        with pytest.raises(ParseError, match="PdpAvailabilityCalendar"):
            await _service(client, api_keys).get_price_calendar("555")


@respx.mock
@pytest.mark.asyncio
async def test_host_profile_from_pdp_sections(api_keys):
    respx.get(DETAIL_URL).mock(return_value=Response(200, json=DETAIL_JSON))

    async with httpx.AsyncClient() as client:
        host = await _service(client, api_keys).get_host_profile("555")

    assert host.name == "Ana"
    assert host.host_id == "77"
