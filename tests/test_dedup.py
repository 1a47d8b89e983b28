import pytest

from dedup import canonicalize_url, dedupe_within_run, filter_against_history, select_candidates
from models import RawItem


def _item(url: str, title: str = "Some title", source_id: str = "src") -> RawItem:
    return RawItem(title=title, url=url, source_id=source_id, source_name="Source", type="news")


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("https://x.com/a/#frag", "https://x.com/a"),
        ("https://x.com/a/", "https://x.com/a"),
        ("https://x.com/a", "https://x.com/a"),
        ("https://x.com/a/?q=1#top", "https://x.com/a?q=1"),
        ("https://x.com/", "https://x.com"),
        ("  https://x.com/a/  ", "https://x.com/a"),
        ("/papers/relative/", "/papers/relative/"),
        ("  not a url  ", "not a url"),
        ("", ""),
    ],
)
def test_canonicalize_url(raw: str, expected: str) -> None:
    assert canonicalize_url(raw) == expected


@pytest.mark.parametrize(
    "raw",
    [
        "https://x.com/a/#frag",
        "https://x.com/a//",
        "https://x.com//",
        "http://[::1",
        "mailto:someone@example.com",
        "https://x.com/a/b/?x=1&y=2#z",
        "   ",
    ],
)
def test_canonicalize_url_is_idempotent(raw: str) -> None:
    once = canonicalize_url(raw)
    assert canonicalize_url(once) == once


def test_canonicalize_url_none() -> None:
    assert canonicalize_url(None) == ""


def test_filter_against_history_excludes_seen_keys() -> None:
    items = [_item("https://a.com/x/"), _item("https://a.com/y")]
    result = filter_against_history(items, {"https://a.com/x"})

    assert [i.url for i in result] == ["https://a.com/y"]


def test_filter_against_history_collapses_trailing_slash_variants() -> None:
    items = [
        _item("https://a.com/x/", title="first", source_id="one"),
        _item("https://a.com/x", title="second", source_id="two"),
    ]
    result = filter_against_history(items, set())

    assert len(result) == 1
    assert result[0].title == "first"
    assert result[0].source_id == "one"
    assert result[0].url == "https://a.com/x"


def test_filter_against_history_skips_empty_urls() -> None:
    assert filter_against_history([_item("   ")], set()) == []


def test_dedupe_within_run_ignores_history() -> None:
    items = [_item("https://a.com/x"), _item("https://a.com/x#again"), _item("https://a.com/z")]
    result = dedupe_within_run(items)
    assert [i.url for i in result] == ["https://a.com/x", "https://a.com/z"]


def test_select_candidates_keeps_history_result_at_threshold() -> None:
    items = [_item(f"https://a.com/{i}") for i in range(8)]
    seen = {"https://a.com/0", "https://a.com/1"}

    result, used_fallback = select_candidates(items, seen, min_items=6)

    assert used_fallback is False
    assert len(result) == 6
    assert not any(i.url in seen for i in result)


def test_select_candidates_falls_back_below_threshold() -> None:
    items = [_item(f"https://a.com/{i}") for i in range(8)] + [_item("https://a.com/0/")]
    seen = {f"https://a.com/{i}" for i in range(3)}

    result, used_fallback = select_candidates(items, seen, min_items=6)

    assert used_fallback is True
    assert [i.url for i in result] == [f"https://a.com/{i}" for i in range(8)]


def test_select_candidates_empty_input() -> None:
    result, used_fallback = select_candidates([], set(), min_items=6)
    assert result == []
    assert used_fallback is True


def test_select_candidates_reads_threshold_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    items = [_item(f"https://a.com/{i}") for i in range(4)]
    seen = {"https://a.com/0"}

    monkeypatch.setenv("MIN_ITEMS_TOTAL", "3")
    result, used_fallback = select_candidates(items, seen)
    assert used_fallback is False
    assert len(result) == 3

    monkeypatch.setenv("MIN_ITEMS_TOTAL", "4")
    result, used_fallback = select_candidates(items, seen)
    assert used_fallback is True
    assert len(result) == 4
