from __future__ import annotations

from pathlib import Path

import pytest

import page_writer
from models import Source, SummarizedItem
from page_writer import group_by_category, render_page, update_index, write_archive_page

_SOURCES = [
    Source(id="a", name="Source <A>", url="https://a.com/", type="news", parser=lambda h, s: []),
]


def _item(category: str, title: str = "Title", item_type: str = "news", summary_en: str = "") -> SummarizedItem:
    return SummarizedItem(
        title=title,
        url=f"https://a.com/{title}",
        source="Src",
        type=item_type,
        category=category,
        summary_ko="요약",
        summary_en=summary_en,
    )


@pytest.fixture(autouse=True)
def no_template_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(page_writer, "TEMPLATE_PATH", tmp_path / "missing-template.html")


def test_group_by_category_unknown_goes_to_news() -> None:
    grouped = group_by_category([_item("vlm"), _item("robotics"), _item("sllm")])

    assert list(grouped) == ["vlm", "sllm", "ondevice", "news"]
    assert len(grouped["vlm"]) == 1
    assert len(grouped["news"]) == 1
    assert grouped["ondevice"] == []


def test_render_page_escapes_and_orders_sections() -> None:
    items = [
        _item("news", title="<script>x</script>"),
        _item("vlm", title="Vision", item_type="paper", summary_en="English text"),
    ]
    html = render_page(items, "2025-01-01", _SOURCES)

    assert "&lt;script&gt;x&lt;/script&gt;" in html
    assert "<script>x</script>" not in html
    assert html.index("VLM 업데이트") < html.index("AI 뉴스 &amp; 리서치")
    assert "English text" in html
    assert "Source &lt;A&gt;" in html
    assert "총 2개 항목" in html
    assert "sLLM 트렌드" not in html


def test_render_page_empty_state() -> None:
    html = render_page([], "2025-01-01", _SOURCES)
    assert "오늘의 브리핑을 준비하지 못했습니다" in html


def test_render_page_uses_given_template() -> None:
    html = render_page([], "2025-01-01", [], template="[{{DATE}}|{{TOTAL_COUNT}}]")
    assert html == "[2025-01-01|0]"


def test_render_page_keeps_placeholder_text_in_item_fields_literal() -> None:
    item = _item("news", title="Use {{SOURCES}} and {{DATE}} in templates")
    template = "<main>{{CONTENT}}</main><ul>{{SOURCES}}</ul><p>{{TOTAL_COUNT}}</p>"

    html = render_page([item], "2025-01-01", _SOURCES, template=template)

    assert "Use {{SOURCES}} and {{DATE}} in templates" in html
    assert html.count("Source &lt;A&gt;") == 1
    assert html.index("Source &lt;A&gt;") > html.index("</main>")
    assert html.endswith("<p>1</p>")


def test_write_archive_page_and_update_index(tmp_path: Path) -> None:
    archive_dir = tmp_path / "archives"
    index_path = tmp_path / "index.html"
    index_path.write_text(
        "<html><ul>\n<!-- LATEST_LINKS -->\n<li>old</li>\n</ul><footer></footer></html>",
        encoding="utf-8",
    )

    write_archive_page([_item("vlm")], "2025-01-01", archive_dir, _SOURCES)
    path = write_archive_page([_item("news")], "2025-01-02", archive_dir, _SOURCES)
    update_index(archive_dir, index_path)

    assert path == archive_dir / "2025-01-02.html"
    content = index_path.read_text(encoding="utf-8")
    assert "<li>old</li>" not in content
    assert content.index("archives/2025-01-02.html") < content.index("archives/2025-01-01.html")
    assert content.endswith("</ul><footer></footer></html>")


def test_update_index_creates_missing_index(tmp_path: Path) -> None:
    archive_dir = tmp_path / "archives"
    write_archive_page([], "2025-01-01", archive_dir, _SOURCES)
    index_path = tmp_path / "index.html"

    update_index(archive_dir, index_path)

    assert "archives/2025-01-01.html" in index_path.read_text(encoding="utf-8")
