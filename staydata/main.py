import logging
import sys
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from staydata.config import Settings
from staydata.exceptions.custom import (
    ConfigError,
    InvalidParamsError,
    ListingNotFoundError,
    ParseError,
    RateLimitError,
    TransportError,
)
from staydata.exceptions.handlers import (
    invalid_params_error_handler,
    listing_not_found_error_handler,
    rate_limit_error_handler,
    upstream_error_handler,
)
from staydata.routers.listings import router as listings_router
from staydata.services.base import ListingClient
from staydata.services.cache import MemoryCache
from staydata.services.composite import CompositeClient
from staydata.services.credentials import ApiKeyManager
from staydata.services.graphql import GraphQLClient
from staydata.services.rate_limiter import RateLimiter
from staydata.services.scraper import ScraperClient


def build_listing_client(settings: Settings, client: httpx.AsyncClient) -> ListingClient:
    if not settings.base_url.startswith(("http://", "https://")):
        raise ConfigError(f"base_url must be an http(s) URL, got '{settings.base_url}'")

    cache = MemoryCache(settings.cache.max_entries)

    scraper = ScraperClient(
        client,
        RateLimiter(settings.rate_limit_per_second),
        cache,
        settings.base_url,
        settings.user_agent,
        max_retries=settings.max_retries,
        retry_delay_secs=settings.retry_delay_secs,
        cache_settings=settings.cache,
    )
    if not settings.graphql_enabled:
        return scraper

    api_keys = ApiKeyManager(
        client, settings.base_url, settings.user_agent, ttl_secs=settings.api_key_cache_secs
    )
    graphql = GraphQLClient(
        client,
        RateLimiter(settings.rate_limit_per_second),
        cache,
        api_keys,
        settings.base_url,
        settings.user_agent,
        hashes=settings.hashes,
        cache_settings=settings.cache,
    )
    return CompositeClient(graphql, scraper)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = Settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)

    async with httpx.AsyncClient(timeout=settings.request_timeout_secs) as client:
        app.state.listing_client = build_listing_client(settings, client)
        yield


app = FastAPI(title="Staydata", lifespan=lifespan)

app.add_exception_handler(InvalidParamsError, invalid_params_error_handler)
app.add_exception_handler(ListingNotFoundError, listing_not_found_error_handler)
app.add_exception_handler(RateLimitError, rate_limit_error_handler)
app.add_exception_handler(TransportError, upstream_error_handler)
app.add_exception_handler(ParseError, upstream_error_handler)

app.include_router(listings_router)
