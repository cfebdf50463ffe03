"""
Backend pagination helpers.

The admin listing endpoints return at most ``pageSize`` rows per request.
This module walks the pages until a short page comes back so callers get
the full list.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

PageFetcher = Callable[[int, int], List[Dict[str, Any]]]


def fetch_all_pages(
    fetch_page: PageFetcher,
    *,
    page_size: int = 50,
    max_rows: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """
    Fetch every row from a paginated listing.

    Args:
        fetch_page: Callable taking (page, page_size), pages numbered from 1
            (e.g. BackendClient.list_submissions)
        page_size: Rows per request
        max_rows: Optional safety cap to prevent runaway fetches
    """
    if page_size is None or int(page_size) <= 0:
        page_size = 50
    page_size = int(page_size)

    out: List[Dict[str, Any]] = []
    page = 1
    while True:
        rows = fetch_page(page, page_size) or []
        out.extend(rows)

        if max_rows is not None and len(out) >= int(max_rows):
            return out[: int(max_rows)]
        if len(rows) < page_size:
            return out
        page += 1
