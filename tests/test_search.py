"""
Unit tests for search URL construction and result shaping.
"""

import json
from datetime import datetime, timezone
from urllib.parse import parse_qs, urlparse

import pytest

from core.errors import UpstreamProtocolError
from core.search import (
    build_fetch_document,
    build_search_url,
    extract_markdown_title,
    parse_organic_results,
)


def _query(url: str) -> dict:
    return {k: v[0] for k, v in parse_qs(urlparse(url).query).items()}


class TestBuildSearchUrl:

    def test_bing_first_is_one_based_offset(self):
        url = build_search_url("bing", "cats", cursor=2)

        assert url.startswith("https://www.bing.com/search?")
        assert _query(url)["first"] == "21"

    def test_yandex_uses_page_number(self):
        url = build_search_url("yandex", "cats", cursor=2)

        assert url.startswith("https://yandex.com/search/?")
        assert _query(url)["p"] == "2"

    def test_google_without_cursor_starts_at_zero(self):
        url = build_search_url("google", "cats", cursor=None)

        assert url.startswith("https://www.google.com/search?")
        assert _query(url)["start"] == "0"

    def test_string_cursor(self):
        assert _query(build_search_url("google", "cats", "3"))["start"] == "30"

    def test_query_is_url_encoded(self):
        url = build_search_url("google", "cats & dogs/100%")

        assert "cats%20%26%20dogs%2F100%25" in url
        assert _query(url)["q"] == "cats & dogs/100%"

    def test_is_deterministic(self):
        assert build_search_url("bing", "x", "1") == build_search_url("bing", "x", "1")


class TestParseOrganicResults:

    def test_keeps_results_with_link_and_title(self):
        raw = json.dumps({"organic": [
            {"link": "https://a.test", "title": "A", "description": "about a"},
            {"link": "https://b.test", "title": "B"},
            {"title": "no link"},
            {"link": "https://c.test"},
        ]})

        results = parse_organic_results(raw)

        assert results == [
            {"id": "https://a.test", "title": "A", "text": "about a", "url": "https://a.test"},
            {"id": "https://b.test", "title": "B", "text": "", "url": "https://b.test"},
        ]

    def test_missing_organic_section(self):
        assert parse_organic_results(json.dumps({"ads": []})) == []

    def test_invalid_json_is_protocol_error(self):
        with pytest.raises(UpstreamProtocolError):
            parse_organic_results("<html>not json</html>")


class TestFetchDocument:

    def test_title_from_first_heading(self):
        assert extract_markdown_title("intro\n## sub\n# Real Title \nbody") == "Real Title"

    def test_untitled_document(self):
        assert extract_markdown_title("no headings here") == "Untitled Document"

    def test_document_shape(self):
        now = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

        doc = build_fetch_document("https://a.test/x", "# Hello\nworld", now=now)

        assert doc["id"] == doc["url"] == "https://a.test/x"
        assert doc["title"] == "Hello"
        assert doc["text"] == "# Hello\nworld"
        assert doc["metadata"] == {
            "scraped_at": "2026-01-02T03:04:05+00:00",
            "content_type": "markdown",
        }
