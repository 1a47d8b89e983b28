"""Backfill missing snippets from each item's own page."""

from __future__ import annotations

import logging
import os
from dataclasses import replace

from fetcher import fetch_text
from markup import extract_meta_description
from models import RawItem

_DEFAULT_ENRICH_LIMIT = 12

LOGGER = logging.getLogger(__name__)


def enrich_items(items: list[RawItem], limit: int | None = None) -> list[RawItem]:
    """Fetch a meta description for the first ``limit`` items lacking a snippet.

    Order and count are preserved. An item that already has a snippet is never
    touched, and a failed fetch leaves the item as it was.
    """
    if limit is None:
        limit = int(os.getenv("ENRICH_LIMIT", _DEFAULT_ENRICH_LIMIT))
    enriched: list[RawItem] = []
    attempted = 0
    for item in items:
        if item.snippet or attempted >= limit:
            enriched.append(item)
            continue

        attempted += 1
        try:
            description = extract_meta_description(fetch_text(item.url))
        except Exception as exc:
            LOGGER.warning("Enrichment failed for %s: %s", item.url, exc)
            enriched.append(item)
            continue

        enriched.append(replace(item, snippet=description) if description else item)

    LOGGER.info("Enrichment done: attempted=%s total=%s", attempted, len(enriched))
    return enriched
