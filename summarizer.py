"""Generative categorization and Korean summarization of candidate items.

The model is treated as an untrusted oracle: its reply is searched for the
first JSON object, validated item by item, and clamped. Any failure along the
way (HTTP error, bad shape, unparseable text, zero items) falls back to a
deterministic categorizer so the run always has output.
"""

from __future__ import annotations

import json
import logging
import os
from json import JSONDecodeError
from typing import Any, Mapping

import requests
from openai import OpenAI

from anthropic_client import claude_complete
from dedup import canonicalize_url
from models import CATEGORIES, RawItem, SummarizedItem

GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
_DEFAULT_GEMINI_MODEL = "gemini-1.5-flash"
_DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
_DEFAULT_TEMPERATURE = "0.2"
_DEFAULT_MAX_OUTPUT_TOKENS = "2048"
_DEFAULT_MAX_SUMMARY_ITEMS = "12"
REQUEST_TIMEOUT_SECONDS = 60

PROVIDER_KEY_ENV: dict[str, str] = {
    "gemini": "GEMINI_API_KEY",
    "openai": "OPENAI_API_KEY",
    "claude": "ANTHROPIC_API_KEY",
}

FALLBACK_SUMMARY_EN = "Summary unavailable."

LOGGER = logging.getLogger(__name__)

_PROMPT_TEMPLATE = """오늘 날짜({date}) 기준으로 최신 VLM, sLLM, on-device AI 관련 논문/뉴스를 한국어로 요약해야 합니다.

입력 데이터(JSON 배열)에는 title, url, sourceName, type, snippet가 포함됩니다.

규칙:
- 항목을 category: "vlm" | "sllm" | "ondevice" | "news" 중 하나로 분류하세요.
- summary_ko: 2~3문장 요약.
- papers(type=paper)에는 summary_en(영문 번역)도 제공하세요. news는 summary_en을 빈 문자열로 두세요.
- 실제로 최신성과 중요도가 높은 항목 위주로 최대 {max_items}개 선택하세요.
- 입력에 없는 내용은 추가하지 마세요.

출력은 반드시 아래 JSON 형식만 반환하세요:
{{
  "items": [
    {{
      "title": "",
      "url": "",
      "source": "",
      "type": "paper|news",
      "category": "vlm|sllm|ondevice|news",
      "summary_ko": "",
      "summary_en": ""
    }}
  ]
}}

입력 데이터:
{items}"""


class SummarizerError(RuntimeError):
    """The generative API call failed or returned an unusable reply."""


def current_provider() -> str:
    return os.getenv("SUMMARY_PROVIDER", "gemini").strip().lower()


def require_api_key(provider: str | None = None) -> str:
    """Return the credential for ``provider``; raise RuntimeError when it is missing."""
    provider = provider or current_provider()
    env_name = PROVIDER_KEY_ENV.get(provider)
    if env_name is None:
        raise RuntimeError(
            f"Unknown SUMMARY_PROVIDER {provider!r}; expected one of {sorted(PROVIDER_KEY_ENV)}"
        )
    api_key = os.getenv(env_name)
    if not api_key:
        raise RuntimeError(f"{env_name} environment variable is required")
    return api_key


def build_prompt(items: list[RawItem], date_string: str, max_items: int | None = None) -> str:
    if max_items is None:
        max_items = _max_summary_items()
    serialized = json.dumps([item.to_prompt_dict() for item in items], ensure_ascii=False, indent=2)
    return _PROMPT_TEMPLATE.format(date=date_string, max_items=max_items, items=serialized)


def call_model(prompt: str, provider: str | None = None) -> str:
    """Send ``prompt`` to the configured provider and return its raw text reply."""
    provider = provider or current_provider()
    api_key = require_api_key(provider)
    if provider == "gemini":
        return _call_gemini(prompt, api_key)
    if provider == "openai":
        return _call_openai(prompt, api_key)
    temperature, max_tokens = _generation_settings()
    return claude_complete(prompt, max_tokens=max_tokens, temperature=temperature)


def _call_gemini(prompt: str, api_key: str) -> str:
    model = os.getenv("GEMINI_MODEL", _DEFAULT_GEMINI_MODEL)
    temperature, max_tokens = _generation_settings()
    payload = {
        "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        "generationConfig": {
            "temperature": temperature,
            "maxOutputTokens": max_tokens,
        },
    }
    response = requests.post(
        GEMINI_API_URL.format(model=model),
        params={"key": api_key},
        headers={"Content-Type": "application/json"},
        json=payload,
        timeout=REQUEST_TIMEOUT_SECONDS,
    )
    if not response.ok:
        LOGGER.debug("gemini:fail %s %s", response.status_code, response.text[:400])
        raise SummarizerError(f"Gemini API error: {response.status_code} {response.text[:400]}")

    try:
        body = response.json()
        parts = body["candidates"][0]["content"]["parts"]
        text = "".join(part.get("text", "") for part in parts if isinstance(part, dict)).strip()
    except (ValueError, KeyError, IndexError, TypeError, AttributeError) as exc:
        raise SummarizerError("Unexpected Gemini response shape") from exc

    LOGGER.debug("gemini:ok chars=%s", len(text))
    return text


def _call_openai(prompt: str, api_key: str) -> str:
    temperature, max_tokens = _generation_settings()
    client = OpenAI(api_key=api_key)
    response = client.chat.completions.create(
        model=os.getenv("OPENAI_MODEL", _DEFAULT_OPENAI_MODEL),
        temperature=temperature,
        max_completion_tokens=max_tokens,
        messages=[{"role": "user", "content": prompt}],
    )
    content = response.choices[0].message.content
    if not content:
        raise SummarizerError("OpenAI returned an empty response")
    return content.strip()


def extract_json_object(content: str) -> dict[str, Any]:
    """Parse possibly noisy model output into the first JSON object it contains."""
    try:
        parsed = json.loads(content)
    except JSONDecodeError:
        parsed = None
    if isinstance(parsed, dict):
        return parsed

    decoder = json.JSONDecoder()
    for index, char in enumerate(content):
        if char != "{":
            continue
        try:
            candidate, _ = decoder.raw_decode(content[index:])
        except JSONDecodeError:
            continue
        if isinstance(candidate, dict):
            return candidate
    raise SummarizerError("Could not extract a JSON object from model output")


def parse_summary_items(
    payload: Mapping[str, Any],
    lookup: Mapping[str, RawItem] | None = None,
    max_items: int | None = None,
) -> list[SummarizedItem]:
    """Validate the ``{"items": [...]}`` reply into SummarizedItem records.

    Entries without a title or url are dropped, unknown categories become
    ``news``, and a missing source is filled from the candidate it came from.
    """
    if max_items is None:
        max_items = _max_summary_items()
    lookup = lookup or {}
    raw_items = payload.get("items")
    if not isinstance(raw_items, list):
        return []

    parsed: list[SummarizedItem] = []
    for entry in raw_items:
        if not isinstance(entry, dict):
            continue
        title = _as_text(entry.get("title"))
        url = _as_text(entry.get("url"))
        if not title or not url:
            continue

        original = lookup.get(canonicalize_url(url))
        item_type = _as_text(entry.get("type")) or (original.type if original else "news")
        category = _as_text(entry.get("category")).lower()
        parsed.append(
            SummarizedItem(
                title=title,
                url=url,
                source=(
                    _as_text(entry.get("source"))
                    or (original.source_name if original else "")
                    or "Unknown"
                ),
                type=item_type,
                category=category if category in CATEGORIES else "news",
                summary_ko=_as_text(entry.get("summary_ko")),
                summary_en=_as_text(entry.get("summary_en")),
            )
        )

    if len(parsed) > max_items:
        LOGGER.info("Model returned %s items; keeping the first %s", len(parsed), max_items)
        parsed = parsed[:max_items]
    return parsed


def categorize_fallback(items: list[RawItem]) -> list[SummarizedItem]:
    """Deterministic stand-in for the model: every item is filed under news."""
    return [
        SummarizedItem(
            title=item.title,
            url=item.url,
            source=item.source_name or "Unknown",
            type=item.type,
            category="news",
            summary_ko=item.snippet or f"{item.title} 관련 업데이트입니다.",
            summary_en=FALLBACK_SUMMARY_EN if item.type == "paper" else "",
        )
        for item in items
    ]


def summarize_items(
    items: list[RawItem],
    date_string: str,
    provider: str | None = None,
) -> tuple[list[SummarizedItem], bool]:
    """Summarize ``items`` with the model, or fall back.

    Returns the summarized items and whether the fallback categorizer was used.
    """
    if not items:
        LOGGER.warning("No candidate items to summarize")
        return [], False

    lookup = {canonicalize_url(item.url): item for item in items}
    summarized: list[SummarizedItem] = []
    try:
        prompt = build_prompt(items, date_string)
        LOGGER.debug("summarizer:prompt_chars %s", len(prompt))
        content = call_model(prompt, provider)
        LOGGER.debug("summarizer:raw %s", content[:500])
        summarized = parse_summary_items(extract_json_object(content), lookup)
        LOGGER.info("Summarizer returned %s items", len(summarized))
    except Exception as exc:
        LOGGER.warning("Summarization failed: %s", exc)

    if summarized:
        return summarized, False

    LOGGER.warning("Summary is empty; using fallback categorization for %s items", len(items))
    return categorize_fallback(items), True


def _generation_settings() -> tuple[float, int]:
    temperature = float(os.getenv("SUMMARY_TEMPERATURE", _DEFAULT_TEMPERATURE))
    max_tokens = int(os.getenv("SUMMARY_MAX_OUTPUT_TOKENS", _DEFAULT_MAX_OUTPUT_TOKENS))
    return temperature, max_tokens


def _max_summary_items() -> int:
    return int(os.getenv("MAX_SUMMARY_ITEMS", _DEFAULT_MAX_SUMMARY_ITEMS))


def _as_text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""
