"""Embedded JSON payloads of server-rendered pages, in priority order."""

import json
import logging
from collections.abc import Callable, Iterator
from typing import Any, TypeVar

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

T = TypeVar("T")

NEXT_DATA = "next_data"
NIOBE_ENTRY = "niobe_entry"
DEFERRED_STATE = "deferred_state"

_DEFERRED_SELECTOR = "script[data-deferred-state], script[id^='data-deferred-state']"

Probe = Callable[[Any], T | None]


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def _load(text: str | None) -> Any:
    if not text:
        return None
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return None


def embedded_payloads(soup: BeautifulSoup) -> Iterator[tuple[str, Any]]:
    """Yield ``(source, payload)`` pairs.

    Order: the legacy ``__NEXT_DATA__`` blob, then for every deferred-state
    script its wrapped ``niobeClientData`` entries followed by the script's
    own JSON.
    """
    script = soup.select_one("script#__NEXT_DATA__")
    if script is not None:
        data = _load(script.get_text())
        if data is not None:
            yield NEXT_DATA, data

    for script in soup.select(_DEFERRED_SELECTOR):
        data = _load(script.get_text())
        if data is None:
            continue
        entries = data.get("niobeClientData") if isinstance(data, dict) else None
        if isinstance(entries, list):
            for entry in entries:
                if isinstance(entry, list) and len(entry) > 1:
                    yield NIOBE_ENTRY, entry[1]
        yield DEFERRED_STATE, data


def first_match(soup: BeautifulSoup, probes: dict[str, tuple[Probe, ...]]) -> T | None:
    """Run the probes registered for each payload source; first non-None wins."""
    for source, payload in embedded_payloads(soup):
        for probe in probes.get(source, ()):
            result = probe(payload)
            if result is not None:
                logger.debug("Extracted %s payload via %s", source, probe.__name__)
                return result
    return None
