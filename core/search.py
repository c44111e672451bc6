# =============================================================================
# core/search.py  —  Search URL Construction & Result Parsing
# =============================================================================
#
# Pure functions only: no I/O, no clock (except fetch metadata), no upstream.
# The search tools in tools/mcp_server.py call these to build the URL they
# scrape and to shape what comes back.
#
# PAGINATION:
#   The cursor is an opaque string to the caller but to us it is just the
#   page number.  Each engine spells "page" differently:
#     google  → start = page × 10
#     bing    → first = page × 10 + 1   (1-based)
#     yandex  → p     = page
# =============================================================================

import json
from datetime import datetime, timezone
from typing import Optional, Union
from urllib.parse import quote

from core.errors import UpstreamProtocolError


SEARCH_ENGINES = ("google", "bing", "yandex")
RESULTS_PER_PAGE = 10


def _page_from_cursor(cursor: Union[str, int, None]) -> int:
    if cursor is None or cursor == "":
        return 0
    try:
        return int(cursor)
    except (TypeError, ValueError):
        return 0


def build_search_url(
    engine: str, query: str, cursor: Union[str, int, None] = None
) -> str:
    """Build the results-page URL for ``query`` on ``engine``.

    Unknown engines fall back to google.
    """
    q = quote(query, safe="")
    page = _page_from_cursor(cursor)
    start = page * RESULTS_PER_PAGE

    if engine == "yandex":
        return f"https://yandex.com/search/?text={q}&p={page}"
    if engine == "bing":
        return f"https://www.bing.com/search?q={q}&first={start + 1}"
    return f"https://www.google.com/search?q={q}&start={start}"


def parse_organic_results(raw: str) -> list[dict[str, str]]:
    """Turn a JSON SERP body into ``[{id, title, text, url}, ...]``.

    Results without a link or a title are skipped.
    """
    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise UpstreamProtocolError(
            f"Failed to parse search results JSON: {exc}"
        ) from exc

    organic = data.get("organic") if isinstance(data, dict) else None
    if not isinstance(organic, list):
        return []

    results = []
    for item in organic:
        if not isinstance(item, dict):
            continue
        link, title = item.get("link"), item.get("title")
        if link and title:
            results.append({
                "id": link,
                "title": title,
                "text": item.get("description") or "",
                "url": link,
            })
    return results


def extract_markdown_title(content: str) -> str:
    for line in content.splitlines():
        if line.startswith("# "):
            return line[2:].strip()
    return "Untitled Document"


def build_fetch_document(url: str, content: str, now: Optional[datetime] = None) -> dict:
    """Shape a scraped markdown page as a deep-research document."""
    scraped_at = (now or datetime.now(timezone.utc)).isoformat()
    return {
        "id": url,
        "title": extract_markdown_title(content),
        "text": content,
        "url": url,
        "metadata": {
            "scraped_at": scraped_at,
            "content_type": "markdown",
        },
    }
