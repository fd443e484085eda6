import logging
import time

import httpx

from staydata.exceptions.custom import ParseError, RateLimitError, TransportError

logger = logging.getLogger(__name__)

_API_KEY_MARKER = '"api_config":{"key":"'


def extract_api_key(html: str) -> str | None:
    """Return the token embedded in the landing page, or None when absent or empty."""
    start = html.find(_API_KEY_MARKER)
    if start == -1:
        return None
    start += len(_API_KEY_MARKER)
    end = html.find('"', start)
    if end == -1:
        return None
    key = html[start:end]
    return key or None


class ApiKeyManager:
    """Owns the access token harvested from the landing page, with a TTL.

    Concurrent callers that find the token stale may each refresh it; the
    last writer wins.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        user_agent: str,
        ttl_secs: float = 86400,
    ) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._user_agent = user_agent
        self._ttl = ttl_secs
        self._cached: tuple[str, float] | None = None

    def _fresh_key(self) -> str | None:
        if self._cached is None:
            return None
        key, fetched_at = self._cached
        if time.monotonic() - fetched_at >= self._ttl:
            return None
        return key

    async def get_api_key(self) -> str:
        key = self._fresh_key()
        if key is not None:
            return key

        logger.info("Fetching GraphQL API key from %s", self._base_url)
        try:
            resp = await self._client.get(
                f"{self._base_url}/",
                headers={
                    "User-Agent": self._user_agent,
                    "Accept-Language": "en-US,en;q=0.9",
                },
                follow_redirects=True,
            )
        except httpx.HTTPError as exc:
            raise TransportError(str(exc)) from exc

        if resp.status_code == 429:
            raise RateLimitError("Airbnb homepage")
        if resp.status_code >= 400:
            raise ParseError(
                f"HTTP {resp.status_code} fetching homepage for API key",
                status_code=resp.status_code,
            )

        key = extract_api_key(resp.text)
        if key is None:
            raise ParseError("could not extract API key from Airbnb homepage")

        self._cached = (key, time.monotonic())
        return key

    def invalidate(self) -> None:
        self._cached = None
