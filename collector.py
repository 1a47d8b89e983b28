"""Sequential collection across all configured sources."""

from __future__ import annotations

import logging
from typing import Iterable

from fetcher import fetch_text
from models import RawItem, Source
from sources import SOURCES

LOGGER = logging.getLogger(__name__)


def collect_items(sources: Iterable[Source] = SOURCES) -> list[RawItem]:
    """Fetch and parse every source in declaration order.

    A fetch or parse failure for one source is logged and contributes zero
    items; it never aborts the run.
    """
    collected: list[RawItem] = []
    for source in sources:
        LOGGER.debug("source:start %s %s", source.id, source.url)
        try:
            raw = fetch_text(source.url)
            items = source.parser(raw, source) or []
        except Exception as exc:
            LOGGER.warning("Source failed, skipping: %s (%s): %s", source.name, source.id, exc)
            continue
        LOGGER.debug("source:parsed %s %s", source.id, len(items))
        collected.extend(items)
    return collected
