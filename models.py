"""Shared typed models for the pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

Adapter = Callable[[str, "Source"], list["RawItem"]]

CATEGORIES: tuple[str, ...] = ("vlm", "sllm", "ondevice", "news")


@dataclass(frozen=True, slots=True)
class Source:
    """A configured origin (web page or feed) and the adapter that parses it."""

    id: str
    name: str
    url: str
    type: str  # "paper" | "news"
    parser: Adapter = field(repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class RawItem:
    """One announcement scraped from a source document."""

    title: str
    url: str
    source_id: str
    source_name: str
    type: str
    snippet: str = ""

    def to_prompt_dict(self) -> dict[str, str]:
        return {
            "title": self.title,
            "url": self.url,
            "sourceName": self.source_name,
            "type": self.type,
            "snippet": self.snippet,
        }


@dataclass(frozen=True, slots=True)
class SummarizedItem:
    """Categorized, summarized item handed to the page writer."""

    title: str
    url: str
    source: str
    type: str
    category: str
    summary_ko: str
    summary_en: str = ""


@dataclass(slots=True)
class SeenEntry:
    """History record for one canonical URL."""

    title: str
    source_id: str | None
    source_name: str | None
    first_seen: str
    last_seen: str
