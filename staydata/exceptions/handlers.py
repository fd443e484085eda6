import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from .custom import (
    InvalidParamsError,
    ListingNotFoundError,
    ParseError,
    RateLimitError,
    TransportError,
)

logger = logging.getLogger(__name__)


async def invalid_params_error_handler(_request: Request, exc: InvalidParamsError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": exc.message})


async def listing_not_found_error_handler(
    _request: Request, exc: ListingNotFoundError
) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content={"detail": exc.message, "listing_id": exc.listing_id},
    )


async def rate_limit_error_handler(_request: Request, exc: RateLimitError) -> JSONResponse:
    logger.warning("Rate limit hit for %s", exc.service)
    return JSONResponse(status_code=429, content={"detail": exc.message})


async def upstream_error_handler(
    _request: Request, exc: TransportError | ParseError
) -> JSONResponse:
    logger.error("Upstream error: %s (status=%s)", exc.message, exc.status_code)
    return JSONResponse(status_code=502, content={"detail": exc.message})
