import logging
import threading
import time
from collections import OrderedDict
from typing import NamedTuple, Protocol, TypeVar

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

_FALLBACK_CAPACITY = 100

M = TypeVar("M", bound=BaseModel)


class ResponseCache(Protocol):
    """Serialized payload store keyed by operation + parameters."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str, ttl: float) -> None: ...


class _Entry(NamedTuple):
    value: str
    expires_at: float


class MemoryCache:
    """Bounded in-memory LRU with per-entry expiry."""

    def __init__(self, max_entries: int = 500) -> None:
        if max_entries <= 0:
            logger.warning(
                "Cache max_entries was %d, defaulting to %d", max_entries, _FALLBACK_CAPACITY
            )
            max_entries = _FALLBACK_CAPACITY
        self._max_entries = max_entries
        self._entries: OrderedDict[str, _Entry] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if time.monotonic() > entry.expires_at:
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return entry.value

    def set(self, key: str, value: str, ttl: float) -> None:
        with self._lock:
            self._entries[key] = _Entry(value, time.monotonic() + ttl)
            self._entries.move_to_end(key)
            while len(self._entries) > self._max_entries:
                self._entries.popitem(last=False)


def load_cached(cache: ResponseCache, key: str, model: type[M]) -> M | None:
    """Return the cached record under ``key``; an undecodable entry is a miss."""
    raw = cache.get(key)
    if raw is None:
        logger.debug("Cache miss for %s", key)
        return None
    try:
        record = model.model_validate_json(raw)
    except ValidationError:
        logger.debug("Discarding undecodable cache entry for %s", key)
        return None
    logger.debug("Cache hit for %s", key)
    return record


def store_cached(cache: ResponseCache, key: str, record: BaseModel, ttl: float) -> None:
    try:
        raw = record.model_dump_json()
    except ValueError as exc:
        logger.debug("Skipping cache write for %s: %s", key, exc)
        return
    cache.set(key, raw, ttl)
