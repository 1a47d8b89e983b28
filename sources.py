"""Per-source adapters and the configured source list.

Every adapter has the same shape, ``(document, source) -> list[RawItem]``, and
never raises on malformed markup: no matches means an empty list.
"""

from __future__ import annotations

import re
from typing import Callable
from urllib.parse import urljoin

from markup import extract_anchors, extract_title, strip_tags
from models import RawItem, Source

MAX_ITEMS_PER_SOURCE = 5
MIN_TITLE_LENGTH = 8

_ENTRY_RE = re.compile(r"<entry>(.*?)</entry>", re.IGNORECASE | re.DOTALL)
_ENTRY_TITLE_RE = re.compile(r"<title>(.*?)</title>", re.IGNORECASE | re.DOTALL)
_ENTRY_ID_RE = re.compile(r"<id>(.*?)</id>", re.IGNORECASE | re.DOTALL)
_ENTRY_SUMMARY_RE = re.compile(r"<summary>(.*?)</summary>", re.IGNORECASE | re.DOTALL)


def _link_list(
    html: str,
    source: Source,
    origin: str,
    accept: Callable[[str], bool],
) -> list[RawItem]:
    """Shared body of the link-list adapters.

    Keeps anchors whose href passes ``accept``, resolves relative hrefs against
    ``origin``, drops short or empty anchor text and repeats of the same URL.
    """
    items: list[RawItem] = []
    seen_urls: set[str] = set()
    for anchor in extract_anchors(html):
        if not accept(anchor.href):
            continue
        url = urljoin(f"{origin}/", anchor.href)
        title = anchor.text
        if len(title) < MIN_TITLE_LENGTH:
            continue
        if url in seen_urls:
            continue
        seen_urls.add(url)
        items.append(
            RawItem(
                title=title,
                url=url,
                source_id=source.id,
                source_name=source.name,
                type=source.type,
            )
        )
        if len(items) >= MAX_ITEMS_PER_SOURCE:
            break
    return items


def parse_huggingface_papers(html: str, source: Source) -> list[RawItem]:
    return _link_list(
        html,
        source,
        "https://huggingface.co",
        lambda href: href.startswith("/papers/") and "#" not in href,
    )


def parse_papers_with_code(html: str, source: Source) -> list[RawItem]:
    return _link_list(
        html,
        source,
        "https://paperswithcode.com",
        lambda href: href.startswith("/paper/"),
    )


def parse_google_research_blog(html: str, source: Source) -> list[RawItem]:
    return _link_list(
        html,
        source,
        "https://research.google",
        lambda href: href.startswith(("/blog/", "https://research.google/blog/")),
    )


def parse_microsoft_research_blog(html: str, source: Source) -> list[RawItem]:
    return _link_list(
        html,
        source,
        "https://www.microsoft.com",
        lambda href: "/research/blog/" in href,
    )


def parse_qualcomm_ai(html: str, source: Source) -> list[RawItem]:
    return _link_list(
        html,
        source,
        "https://www.qualcomm.com",
        lambda href: "/research/" in href,
    )


def parse_arxiv_feed(xml: str, source: Source) -> list[RawItem]:
    """Parse an Atom feed from the arXiv query API.

    Only the first MAX_ITEMS_PER_SOURCE entries are considered; entries without
    a title or an id are then dropped.
    """
    items: list[RawItem] = []
    for entry_match in list(_ENTRY_RE.finditer(xml or ""))[:MAX_ITEMS_PER_SOURCE]:
        entry = entry_match.group(1)
        title = _first_group(_ENTRY_TITLE_RE, entry)
        url = _first_group(_ENTRY_ID_RE, entry)
        if not title or not url:
            continue
        items.append(
            RawItem(
                title=title,
                url=url,
                source_id=source.id,
                source_name=source.name,
                type=source.type,
                snippet=_first_group(_ENTRY_SUMMARY_RE, entry),
            )
        )
    return items


def parse_single_page_title(html: str, source: Source) -> list[RawItem]:
    """Watch-this-page sources: one item pointing at the source itself."""
    return [
        RawItem(
            title=extract_title(html) or source.name,
            url=source.url,
            source_id=source.id,
            source_name=source.name,
            type=source.type,
        )
    ]


def _first_group(pattern: re.Pattern[str], text: str) -> str:
    match = pattern.search(text)
    return strip_tags(match.group(1)) if match else ""


SOURCES: tuple[Source, ...] = (
    Source(
        id="hf_papers",
        name="Hugging Face Papers",
        url="https://huggingface.co/papers",
        type="paper",
        parser=parse_huggingface_papers,
    ),
    Source(
        id="arxiv_cv",
        name="arXiv cs.CV (recent)",
        url=(
            "https://export.arxiv.org/api/query?search_query=cat:cs.CV"
            "&sortBy=lastUpdatedDate&sortOrder=descending&max_results=10"
        ),
        type="paper",
        parser=parse_arxiv_feed,
    ),
    Source(
        id="paperswithcode",
        name="Papers with Code",
        url="https://paperswithcode.com/",
        type="paper",
        parser=parse_papers_with_code,
    ),
    Source(
        id="google_research_blog",
        name="Google Research Blog",
        url="https://research.google/blog/",
        type="news",
        parser=parse_google_research_blog,
    ),
    Source(
        id="microsoft_research_blog",
        name="Microsoft Research Blog",
        url="https://www.microsoft.com/en-us/research/blog/",
        type="news",
        parser=parse_microsoft_research_blog,
    ),
    Source(
        id="qualcomm_ai",
        name="Qualcomm AI Research",
        url="https://www.qualcomm.com/research/artificial-intelligence",
        type="news",
        parser=parse_qualcomm_ai,
    ),
    Source(
        id="google_ai_edge",
        name="Google AI Edge",
        url="https://ai.google.dev/edge",
        type="news",
        parser=parse_single_page_title,
    ),
    Source(
        id="open_vlm_leaderboard",
        name="Open VLM Leaderboard",
        url="https://huggingface.co/spaces/opencompass/open_vlm_leaderboard",
        type="news",
        parser=parse_single_page_title,
    ),
)
