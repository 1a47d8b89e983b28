"""CLI entrypoint for the daily AI trend digest."""

from __future__ import annotations

import argparse
import logging
import os
import re
from dataclasses import dataclass
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Iterable

from dotenv import load_dotenv

from collector import collect_items
from dedup import canonicalize_url, select_candidates
from enricher import enrich_items
from models import Source
from page_writer import update_index, write_archive_page
from seen_store import SeenStore
from sources import SOURCES
from summarizer import require_api_key, summarize_items

_DEFAULT_ARCHIVE_DIR = "archives"
_DEFAULT_MAX_ITEMS_TOTAL = 18
SEEN_FILENAME = "seen-items.json"

LOGGER = logging.getLogger(__name__)

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass(frozen=True, slots=True)
class RunResult:
    """Counts and output location of one pipeline run.

    ``collected`` is the raw item count across sources, ``candidates`` the
    number handed to the summarizer after dedup, enrichment and trimming, and
    ``summarized`` the number written to the page. ``page_path`` is None for a
    dry run.
    """

    date: str
    collected: int
    candidates: int
    summarized: int
    used_fallback: bool
    page_path: Path | None


def parse_args() -> argparse.Namespace:
    """Parse command-line flags."""
    parser = argparse.ArgumentParser(description="Build the daily AI trend archive page")
    parser.add_argument(
        "--date",
        default=None,
        help="Run date as YYYY-MM-DD (overrides FORCE_DATE; defaults to today, UTC)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Collect and summarize but write no page and leave the seen store untouched",
    )
    parser.add_argument(
        "--archive-dir",
        default=None,
        help="Directory for archive pages and the seen store (default: ARCHIVE_DIR or archives)",
    )
    return parser.parse_args()


def resolve_run_date(forced: str | None, today: date | None = None) -> str:
    """Return ``forced`` if it is a real YYYY-MM-DD date, else today's date."""
    default = (today or datetime.now(UTC).date()).isoformat()
    if not forced:
        return default
    if _DATE_RE.match(forced):
        try:
            date.fromisoformat(forced)
        except ValueError:
            pass
        else:
            return forced
    LOGGER.warning("Forced date %r is not a valid YYYY-MM-DD date; using %s", forced, default)
    return default


def run(
    date_string: str,
    archive_dir: str | Path | None = None,
    dry_run: bool = False,
    sources: Iterable[Source] = SOURCES,
    max_items: int | None = None,
) -> RunResult:
    """Run one collect -> dedupe -> enrich -> summarize -> write -> persist cycle."""
    if archive_dir is None:
        archive_dir = os.getenv("ARCHIVE_DIR", _DEFAULT_ARCHIVE_DIR)
    if max_items is None:
        max_items = int(os.getenv("MAX_ITEMS_TOTAL", _DEFAULT_MAX_ITEMS_TOTAL))
    sources = tuple(sources)
    archive_dir = Path(archive_dir)
    seen_path = archive_dir / SEEN_FILENAME

    raw_items = collect_items(sources)
    LOGGER.info("Collected %s raw items from %s sources", len(raw_items), len(sources))

    store = SeenStore.load(seen_path)
    LOGGER.debug("seen:loaded %s", len(store))

    unique_items, _ = select_candidates(raw_items, store)
    enriched = enrich_items(unique_items)
    candidates = enriched[:max_items]
    LOGGER.info("Summarizing %s candidate items", len(candidates))

    summarized, used_fallback = summarize_items(candidates, date_string)

    if dry_run:
        for item in summarized:
            LOGGER.info("[dry-run] %s | %s | %s", item.category, item.source, item.title)
        LOGGER.info("[dry-run] Would write %s items for %s", len(summarized), date_string)
        return RunResult(
            date=date_string,
            collected=len(raw_items),
            candidates=len(candidates),
            summarized=len(summarized),
            used_fallback=used_fallback,
            page_path=None,
        )

    page_path = write_archive_page(summarized, date_string, archive_dir, sources)
    update_index(archive_dir)

    lookup = {canonicalize_url(item.url): item for item in candidates}
    store.record(summarized, date_string, lookup)
    store.prune(date.fromisoformat(date_string))
    store.save(seen_path, date_string)

    LOGGER.info(
        "Run complete. date=%s collected=%s candidates=%s summarized=%s fallback=%s",
        date_string,
        len(raw_items),
        len(candidates),
        len(summarized),
        used_fallback,
    )
    return RunResult(
        date=date_string,
        collected=len(raw_items),
        candidates=len(candidates),
        summarized=len(summarized),
        used_fallback=used_fallback,
        page_path=page_path,
    )


def main() -> None:
    """Initialize config and execute the pipeline."""
    load_dotenv()
    debug = os.getenv("DEBUG", "").lower() in {"1", "true"}
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )
    args = parse_args()

    try:
        require_api_key()
    except RuntimeError as exc:
        LOGGER.error("%s", exc)
        raise SystemExit(1) from exc

    date_string = resolve_run_date(args.date or os.getenv("FORCE_DATE"))
    LOGGER.info("Run date: %s", date_string)
    run(date_string, archive_dir=args.archive_dir, dry_run=args.dry_run)


if __name__ == "__main__":
    main()
