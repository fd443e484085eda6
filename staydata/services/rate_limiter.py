"""Request pacing shared by every caller of one backend instance."""

import asyncio
import logging
import time

logger = logging.getLogger(__name__)


class RateLimiter:
    """Spaces outbound requests at least ``1 / requests_per_second`` apart.

    Each caller reserves the next free slot synchronously and then sleeps
    until it arrives, so no lock is held across the sleep.
    """

    def __init__(self, requests_per_second: float) -> None:
        if requests_per_second <= 0:
            logger.warning(
                "rate_limit_per_second=%s is not positive, rate limiting disabled",
                requests_per_second,
            )
            self._interval = 0.0
        else:
            self._interval = 1.0 / requests_per_second
        self._next_slot = 0.0

    @property
    def interval(self) -> float:
        return self._interval

    async def wait(self) -> None:
        if self._interval <= 0:
            return
        now = time.monotonic()
        slot = max(now, self._next_slot)
        self._next_slot = slot + self._interval
        delay = slot - now
        if delay > 0:
            await asyncio.sleep(delay)
