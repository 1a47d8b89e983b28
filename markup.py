"""Best-effort regex extractors for raw HTML/XML markup.

These are deliberately not a markup parser. They pull anchors, the page title
and the meta description out of whatever text a source returns, and they
never raise on malformed or truncated input: no match means an empty result.
"""

from __future__ import annotations

import re
from typing import NamedTuple

# Only these entities are resolved. Anything else (&eacute;, &#8217;, ...) is
# left in the text untouched.
_ENTITIES: tuple[tuple[str, str], ...] = (
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&#x27;", "'"),
    ("&#x2F;", "/"),
    ("&nbsp;", " "),
)

_TAG_RE = re.compile(r"<[^>]*>")
_WS_RE = re.compile(r"\s+")
_ANCHOR_RE = re.compile(
    r"""<a\s+[^>]*href=["']([^"']+)["'][^>]*>(.*?)</a>""",
    re.IGNORECASE | re.DOTALL,
)
_TITLE_RE = re.compile(r"<title[^>]*>(.*?)</title>", re.IGNORECASE | re.DOTALL)
_META_DESCRIPTION_RE = re.compile(
    r"""<meta\s+name=["']description["'][^>]*content=["']([^"']+)["'][^>]*>""",
    re.IGNORECASE,
)
_OG_DESCRIPTION_RE = re.compile(
    r"""<meta\s+property=["']og:description["'][^>]*content=["']([^"']+)["'][^>]*>""",
    re.IGNORECASE,
)


class Anchor(NamedTuple):
    href: str
    text: str


def decode_entities(value: str) -> str:
    """Resolve the handful of common HTML entities, in a fixed order."""
    for entity, replacement in _ENTITIES:
        value = value.replace(entity, replacement)
    return value


def strip_tags(value: str | None) -> str:
    """Drop tags, decode entities and collapse whitespace runs."""
    text = _TAG_RE.sub(" ", value or "")
    return _WS_RE.sub(" ", decode_entities(text)).strip()


def extract_anchors(html: str) -> list[Anchor]:
    """Return every ``<a href=...>text</a>`` pair in document order."""
    return [
        Anchor(href=match.group(1), text=strip_tags(match.group(2)))
        for match in _ANCHOR_RE.finditer(html or "")
    ]


def extract_title(html: str) -> str:
    match = _TITLE_RE.search(html or "")
    return strip_tags(match.group(1)) if match else ""


def extract_meta_description(html: str) -> str:
    """Return ``name="description"`` content, else ``og:description``, else ''."""
    html = html or ""
    match = _META_DESCRIPTION_RE.search(html) or _OG_DESCRIPTION_RE.search(html)
    return strip_tags(match.group(1)) if match else ""
