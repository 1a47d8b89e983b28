"""Archive page and index output for one run.

Produces ``<archive_dir>/<date>.html`` from ``template.html`` (or a built-in
fallback template) and rewrites the link list that follows the
``<!-- LATEST_LINKS -->`` marker in ``index.html``.
"""

from __future__ import annotations

import html
import logging
import re
from pathlib import Path
from typing import Iterable

from models import CATEGORIES, Source, SummarizedItem

LOGGER = logging.getLogger(__name__)

TEMPLATE_PATH = Path("template.html")
INDEX_PATH = Path("index.html")

SECTIONS: dict[str, tuple[str, str]] = {
    "vlm": ("VLM 업데이트", "멀티모달 비전-언어 모델의 최신 논문과 리더보드 변화"),
    "sllm": ("sLLM 트렌드", "경량화·효율화를 위한 스몰 LLM 연구"),
    "ondevice": ("On-Device AI", "디바이스 내 추론 및 엣지 최적화 동향"),
    "news": ("AI 뉴스 & 리서치", "기업/연구기관의 주요 발표와 블로그 업데이트"),
}

_DEFAULT_TEMPLATE = """<!DOCTYPE html>
<html lang="ko">
<head>
  <meta charset="utf-8">
  <title>AI 트렌드 {{DATE}}</title>
</head>
<body>
  <h1>AI 트렌드 {{DATE}}</h1>
  <p>총 {{TOTAL_COUNT}}개 항목</p>
  {{CONTENT}}
  <h2>소스</h2>
  <ul>
    {{SOURCES}}
  </ul>
</body>
</html>
"""

_DEFAULT_INDEX = """<!DOCTYPE html>
<html lang="ko">
<head><meta charset="utf-8"><title>AI 트렌드 아카이브</title></head>
<body>
  <ul>
    <!-- LATEST_LINKS -->
  </ul>
</body>
</html>
"""

_LINKS_RE = re.compile(r"<!-- LATEST_LINKS -->.*?</ul>", re.DOTALL)
_PLACEHOLDER_RE = re.compile(r"\{\{(DATE|CONTENT|SOURCES|TOTAL_COUNT)\}\}")

_EMPTY_STATE = """
    <section class="section-block">
      <div class="section-header">
        <h2>오늘의 브리핑을 준비하지 못했습니다</h2>
        <p>소스 수집 또는 요약 과정에서 문제가 발생했습니다. 소스 상태 및 API 키를 확인해주세요.</p>
      </div>
    </section>
"""


def _esc(value: object) -> str:
    return html.escape(str(value or ""), quote=True)


def group_by_category(items: Iterable[SummarizedItem]) -> dict[str, list[SummarizedItem]]:
    grouped: dict[str, list[SummarizedItem]] = {category: [] for category in CATEGORIES}
    for item in items:
        grouped[item.category if item.category in grouped else "news"].append(item)
    return grouped


def render_card(item: SummarizedItem) -> str:
    summary_en = ""
    if item.type == "paper" and item.summary_en:
        summary_en = (
            f'<p class="card-translation"><span>English</span> {_esc(item.summary_en)}</p>'
        )
    return f"""
    <article class="card" data-item-url="{_esc(item.url)}" data-source="{_esc(item.source)}" data-item-type="{_esc(item.type)}">
      <header>
        <h3>{_esc(item.title)}</h3>
        <div class="card-meta">
          <span class="pill">{'Paper' if item.type == 'paper' else 'News'}</span>
          <span class="source">{_esc(item.source)}</span>
        </div>
      </header>
      <p class="card-summary">{_esc(item.summary_ko)}</p>
      {summary_en}
      <a class="card-link" href="{_esc(item.url)}" target="_blank" rel="noopener noreferrer">원문 보기</a>
    </article>
"""


def render_section(category: str, items: list[SummarizedItem]) -> str:
    if not items:
        return ""
    title, description = SECTIONS[category]
    cards = "\n".join(render_card(item) for item in items)
    return f"""
    <section class="section-block">
      <div class="section-header">
        <h2>{_esc(title)}</h2>
        <p>{_esc(description)}</p>
      </div>
      <div class="card-grid">
        {cards}
      </div>
    </section>
"""


def render_page(
    items: list[SummarizedItem],
    date_string: str,
    sources: Iterable[Source],
    template: str | None = None,
) -> str:
    if items:
        grouped = group_by_category(items)
        content = "\n".join(render_section(category, grouped[category]) for category in CATEGORIES)
    else:
        content = _EMPTY_STATE

    sources_html = "\n".join(
        f'<li><a href="{_esc(source.url)}" target="_blank" rel="noopener noreferrer">{_esc(source.name)}</a></li>'
        for source in sources
    )

    values = {
        "DATE": date_string,
        "CONTENT": content,
        "SOURCES": sources_html,
        "TOTAL_COUNT": str(len(items)),
    }
    page = template if template is not None else _load_template()
    # One pass over the template only, so placeholder text inside rendered items stays literal.
    return _PLACEHOLDER_RE.sub(lambda match: values[match.group(1)], page)


def write_archive_page(
    items: list[SummarizedItem],
    date_string: str,
    archive_dir: str | Path,
    sources: Iterable[Source],
) -> Path:
    archive_dir = Path(archive_dir)
    archive_dir.mkdir(parents=True, exist_ok=True)
    path = archive_dir / f"{date_string}.html"
    path.write_text(render_page(items, date_string, sources), encoding="utf-8")
    LOGGER.info("Wrote archive page %s (%s items)", path, len(items))
    return path


def update_index(archive_dir: str | Path, index_path: str | Path = INDEX_PATH) -> None:
    """Relist every archive page, newest first, after the LATEST_LINKS marker."""
    archive_dir = Path(archive_dir)
    index_path = Path(index_path)

    pages = sorted((p.stem for p in archive_dir.glob("*.html")), reverse=True)
    links = "\n".join(
        f'<li><a href="{archive_dir.name}/{date}.html">{date} AI 트렌드</a></li>' for date in pages
    )

    content = index_path.read_text(encoding="utf-8") if index_path.exists() else _DEFAULT_INDEX
    if not _LINKS_RE.search(content):
        LOGGER.warning("%s has no LATEST_LINKS marker; index left unchanged", index_path)
        return
    content = _LINKS_RE.sub(lambda _: f"<!-- LATEST_LINKS -->\n{links}\n</ul>", content, count=1)
    index_path.write_text(content, encoding="utf-8")
    LOGGER.info("Updated %s with %s archive links", index_path, len(pages))


def _load_template() -> str:
    if TEMPLATE_PATH.exists():
        return TEMPLATE_PATH.read_text(encoding="utf-8")
    return _DEFAULT_TEMPLATE
