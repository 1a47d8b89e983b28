"""URL canonicalization and item deduplication."""

from __future__ import annotations

import logging
import os
from dataclasses import replace
from typing import Container, Iterable
from urllib.parse import urlsplit, urlunsplit

from models import RawItem

_DEFAULT_MIN_ITEMS_TOTAL = 6

LOGGER = logging.getLogger(__name__)


def canonicalize_url(url: str | None) -> str:
    """Return the identity key for ``url``.

    Drops the fragment and strips one trailing slash from the path. A path
    ending in ``//`` is left alone so the result is stable under repeated
    application. Anything that is not an absolute URL comes back trimmed.
    """
    raw = (url or "").strip()
    try:
        parts = urlsplit(raw)
    except ValueError:
        return raw
    if not parts.scheme or not parts.netloc:
        return raw

    path = parts.path
    if path.endswith("/") and not path.endswith("//"):
        path = path[:-1]
    return urlunsplit((parts.scheme, parts.netloc, path, parts.query, ""))


def filter_against_history(items: Iterable[RawItem], seen: Container[str]) -> list[RawItem]:
    """Keep items whose canonical URL is neither in ``seen`` nor repeated in this run."""
    unique: list[RawItem] = []
    seen_this_run: set[str] = set()
    for item in items:
        key = canonicalize_url(item.url)
        if not key or key in seen or key in seen_this_run:
            continue
        seen_this_run.add(key)
        unique.append(replace(item, url=key))
    return unique


def dedupe_within_run(items: Iterable[RawItem]) -> list[RawItem]:
    """Collapse canonical-URL duplicates, first occurrence wins."""
    return filter_against_history(items, frozenset())


def select_candidates(
    items: list[RawItem],
    seen: Container[str],
    min_items: int | None = None,
) -> tuple[list[RawItem], bool]:
    """Filter against history, falling back to within-run dedup when too few remain.

    Returns the candidate list and whether the fallback was used.
    """
    if min_items is None:
        min_items = int(os.getenv("MIN_ITEMS_TOTAL", _DEFAULT_MIN_ITEMS_TOTAL))
    unique = filter_against_history(items, seen)
    LOGGER.info("After dedup against history: %s items", len(unique))
    if len(unique) >= min_items:
        return unique, False

    LOGGER.warning(
        "Only %s new items (< %s); including previously seen items", len(unique), min_items
    )
    return dedupe_within_run(items), True
