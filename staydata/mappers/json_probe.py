"""Typed lookups into untyped JSON trees.

Every extractor asks for a field through an ordered list of candidate
paths; the first candidate that exists *and* has the expected type wins.
Paths are dot-separated, with integer segments indexing into lists
(``"contextualPictures.0.picture"``).
"""

import re
from collections.abc import Callable, Iterator
from typing import Any

from bs4 import BeautifulSoup

_PRICE_CHARS_RE = re.compile(r"[^0-9.]")
_FIRST_INT_RE = re.compile(r"\d+")

_MISSING = object()


def dig(data: Any, path: str) -> Any:
    """Walk ``path`` through nested dicts/lists. Returns None on any miss."""
    current = data
    for segment in path.split("."):
        if isinstance(current, dict):
            current = current.get(segment, _MISSING)
        elif isinstance(current, list) and segment.isdigit():
            index = int(segment)
            current = current[index] if index < len(current) else _MISSING
        else:
            return None
        if current is _MISSING:
            return None
    return current


def as_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def as_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    return None


def as_int(value: Any) -> int | None:
    """Non-negative integers only; integral floats are accepted."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, float) and value.is_integer() and value >= 0:
        return int(value)
    return None


def as_bool(value: Any) -> bool | None:
    return value if isinstance(value, bool) else None


def as_list(value: Any) -> list | None:
    return value if isinstance(value, list) else None


def as_dict(value: Any) -> dict | None:
    return value if isinstance(value, dict) else None


def probe(data: Any, paths: tuple[str, ...] | list[str], cast: Callable[[Any], Any]) -> Any:
    """Return the first path under ``data`` whose value survives ``cast``."""
    for path in paths:
        value = cast(dig(data, path))
        if value is not None:
            return value
    return None


def probe_str(data: Any, *paths: str) -> str | None:
    return probe(data, paths, as_str)


def probe_float(data: Any, *paths: str) -> float | None:
    return probe(data, paths, as_float)


def probe_int(data: Any, *paths: str) -> int | None:
    return probe(data, paths, as_int)


def probe_bool(data: Any, *paths: str) -> bool | None:
    return probe(data, paths, as_bool)


def probe_list(data: Any, *paths: str) -> list | None:
    return probe(data, paths, as_list)


def probe_id(data: Any, *paths: str) -> str | None:
    """Ids arrive as strings or as integers."""
    for path in paths:
        value = dig(data, path)
        if isinstance(value, str):
            return value
        number = as_int(value)
        if number is not None:
            return str(number)
    return None


def parse_price(text: str | None) -> float | None:
    """Pull a number out of display prices like "$120", "€95.50" or "1,200 USD"."""
    if not text:
        return None
    cleaned = _PRICE_CHARS_RE.sub("", text)
    try:
        return float(cleaned)
    except ValueError:
        return None


def first_int(text: str) -> int | None:
    """First whitespace-separated integer: "3 bedrooms" -> 3."""
    for word in text.split():
        if word.isdigit():
            return int(word)
    return None


def leading_int(text: str) -> int | None:
    match = _FIRST_INT_RE.search(text)
    return int(match.group(0)) if match else None


def strip_html(html: str) -> str:
    soup = BeautifulSoup(html, "html.parser")
    for br in soup.find_all("br"):
        br.replace_with("\n")
    return soup.get_text().strip()


def walk(data: Any, max_depth: int = 20) -> Iterator[Any]:
    """Depth-first traversal of every dict and list node, bounded by ``max_depth``."""
    stack: list[tuple[Any, int]] = [(data, 0)]
    while stack:
        node, depth = stack.pop()
        if depth > max_depth:
            continue
        if isinstance(node, dict):
            yield node
            children = list(node.values())
        elif isinstance(node, list):
            yield node
            children = node
        else:
            continue
        for child in reversed(children):
            if isinstance(child, (dict, list)):
                stack.append((child, depth + 1))


def find_first(data: Any, predicate: Callable[[Any], bool], max_depth: int = 20) -> Any:
    for node in walk(data, max_depth):
        if predicate(node):
            return node
    return None
