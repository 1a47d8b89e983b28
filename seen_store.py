"""Persisted history of emitted items, keyed by canonical URL.

File shape::

    {"version": 1, "updatedAt": "YYYY-MM-DD" | null,
     "items": {"<canonical url>": {"title", "sourceId", "sourceName",
                                   "firstSeen", "lastSeen"}}}

The store is loaded once per run, mutated after summarization, pruned, and
written back in a single atomic replace.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import date, timedelta
from json import JSONDecodeError
from pathlib import Path
from typing import Any, Iterable, Mapping

from dedup import canonicalize_url
from models import SeenEntry, SummarizedItem

STORE_VERSION = 1
_DEFAULT_RETENTION_DAYS = 180

LOGGER = logging.getLogger(__name__)


class SeenStore:
    """Single-owner, in-memory view of the seen-items file."""

    def __init__(
        self,
        items: dict[str, SeenEntry] | None = None,
        updated_at: str | None = None,
    ) -> None:
        self.items: dict[str, SeenEntry] = items if items is not None else {}
        self.updated_at = updated_at

    def __contains__(self, url: object) -> bool:
        return url in self.items

    def __len__(self) -> int:
        return len(self.items)

    def contains(self, url: str | None) -> bool:
        """True if the canonical form of ``url`` has been recorded."""
        key = canonicalize_url(url)
        return bool(key) and key in self.items

    @classmethod
    def load(cls, path: str | Path) -> SeenStore:
        """Read the store from ``path``; a missing or corrupt file gives an empty store."""
        path = Path(path)
        if not path.exists():
            return cls()

        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, JSONDecodeError) as exc:
            LOGGER.warning("Seen store %s unreadable, starting fresh: %s", path, exc)
            return cls()

        if not isinstance(payload, dict) or not isinstance(payload.get("items"), dict):
            LOGGER.warning("Seen store %s has an unexpected shape, starting fresh", path)
            return cls()

        items: dict[str, SeenEntry] = {}
        for url, meta in payload["items"].items():
            if not isinstance(meta, dict):
                continue
            items[url] = SeenEntry(
                title=_as_str(meta.get("title")) or "",
                source_id=_as_str(meta.get("sourceId")),
                source_name=_as_str(meta.get("sourceName")),
                first_seen=_as_str(meta.get("firstSeen")) or "",
                last_seen=_as_str(meta.get("lastSeen")) or "",
            )
        updated_at = payload.get("updatedAt")
        return cls(items=items, updated_at=updated_at if isinstance(updated_at, str) else None)

    def record(
        self,
        items: Iterable[SummarizedItem],
        date_string: str,
        lookup: Mapping[str, Any] | None = None,
    ) -> None:
        """Mark ``items`` as seen on ``date_string``.

        ``lookup`` maps canonical URL to the candidate RawItem so that source
        ids survive the trip through the summarizer.
        """
        lookup = lookup or {}
        for item in items:
            key = canonicalize_url(item.url)
            if not key:
                continue
            existing = self.items.get(key)
            if existing is not None:
                existing.last_seen = date_string
                continue
            original = lookup.get(key)
            self.items[key] = SeenEntry(
                title=item.title,
                source_id=getattr(original, "source_id", None),
                source_name=getattr(original, "source_name", None) or item.source,
                first_seen=date_string,
                last_seen=date_string,
            )

    def prune(self, today: date, keep_days: int | None = None) -> int:
        """Drop entries last seen before ``today - keep_days``. Returns the count removed."""
        if keep_days is None:
            keep_days = int(os.getenv("SEEN_RETENTION_DAYS", _DEFAULT_RETENTION_DAYS))
        cutoff = (today - timedelta(days=keep_days)).isoformat()
        stale = [
            url for url, entry in self.items.items()
            if entry.last_seen and entry.last_seen < cutoff
        ]
        for url in stale:
            del self.items[url]
        if stale:
            LOGGER.info("Pruned %s seen items last seen before %s", len(stale), cutoff)
        return len(stale)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": STORE_VERSION,
            "updatedAt": self.updated_at,
            "items": {
                url: {
                    "title": entry.title,
                    "sourceId": entry.source_id,
                    "sourceName": entry.source_name,
                    "firstSeen": entry.first_seen,
                    "lastSeen": entry.last_seen,
                }
                for url, entry in self.items.items()
            },
        }

    def save(self, path: str | Path, date_string: str) -> None:
        """Write the whole store to ``path`` via a temp file and ``os.replace``."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.updated_at = date_string

        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(self.to_dict(), fh, ensure_ascii=False, indent=2)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        LOGGER.info("Saved %s seen items to %s", len(self.items), path)


def _as_str(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None
