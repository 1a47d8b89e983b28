from unittest.mock import patch

import pytest

from enricher import enrich_items
from fetcher import FetchError
from models import RawItem


def _item(n: int, snippet: str = "") -> RawItem:
    return RawItem(
        title=f"Item {n}",
        url=f"https://a.com/{n}",
        source_id="src",
        source_name="Source",
        type="news",
        snippet=snippet,
    )


def _page(description: str) -> str:
    return f'<html><head><meta name="description" content="{description}"></head></html>'


def test_enrich_fills_missing_snippets() -> None:
    items = [_item(1), _item(2)]
    with patch("enricher.fetch_text", side_effect=lambda url: _page(f"about {url}")):
        result = enrich_items(items)

    assert [i.snippet for i in result] == ["about https://a.com/1", "about https://a.com/2"]


def test_enrich_never_replaces_existing_snippet() -> None:
    items = [_item(1, snippet="from the feed"), _item(2)]
    with patch("enricher.fetch_text", return_value=_page("from the page")) as mock_fetch:
        result = enrich_items(items)

    assert result[0].snippet == "from the feed"
    assert result[1].snippet == "from the page"
    mock_fetch.assert_called_once_with("https://a.com/2")


def test_enrich_failure_keeps_item_unchanged() -> None:
    items = [_item(1), _item(2)]

    def fake_fetch(url: str) -> str:
        if url.endswith("/1"):
            raise FetchError(url, timed_out=True)
        return _page("ok")

    with patch("enricher.fetch_text", side_effect=fake_fetch):
        result = enrich_items(items)

    assert result[0] == items[0]
    assert result[1].snippet == "ok"


def test_enrich_respects_limit_and_preserves_order() -> None:
    items = [_item(n) for n in range(15)]
    with patch("enricher.fetch_text", return_value=_page("desc")) as mock_fetch:
        result = enrich_items(items, limit=12)

    assert mock_fetch.call_count == 12
    assert [i.url for i in result] == [i.url for i in items]
    assert all(i.snippet == "desc" for i in result[:12])
    assert all(i.snippet == "" for i in result[12:])


def test_enrich_page_without_description_keeps_empty_snippet() -> None:
    with patch("enricher.fetch_text", return_value="<html></html>"):
        result = enrich_items([_item(1)])
    assert result[0].snippet == ""


def test_enrich_limit_read_from_environment_at_call_time(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENRICH_LIMIT", "2")
    items = [_item(n) for n in range(5)]
    with patch("enricher.fetch_text", return_value=_page("desc")) as mock_fetch:
        result = enrich_items(items)

    assert mock_fetch.call_count == 2
    assert [i.snippet for i in result] == ["desc", "desc", "", "", ""]
