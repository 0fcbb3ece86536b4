"""
Page arithmetic for stitching two upstream pages into one application page.
"""

import math
from typing import List, Tuple, Union

from config import APP_PAGE_SIZE, UPSTREAM_PAGE_LIMIT

UPSTREAM_PER_APP_PAGE = APP_PAGE_SIZE // UPSTREAM_PAGE_LIMIT

ELLIPSIS = "…"


def upstream_pages(app_page: int) -> Tuple[int, int]:
    """App page 1 → (1, 2), app page 2 → (3, 4), ..."""
    if app_page < 1:
        raise ValueError(f"page numbers start at 1, got {app_page}")
    first = (app_page - 1) * UPSTREAM_PER_APP_PAGE + 1
    return first, first + 1


def app_last_page(*upstream_last_pages: int) -> int:
    return max(1, math.ceil(max(upstream_last_pages, default=1) / UPSTREAM_PER_APP_PAGE))


def page_numbers(current: int, last: int) -> List[Union[int, str]]:
    """
    Compact page list for a pager, e.g. (5, 20) → [1, '…', 4, 5, 6, '…', 20].
    Short ranges (≤ 7 pages) are listed in full.
    """
    if last <= 7:
        return list(range(1, last + 1))

    pages: List[Union[int, str]] = [1]
    if current > 3:
        pages.append(ELLIPSIS)
    pages.extend(range(max(2, current - 1), min(last - 1, current + 1) + 1))
    if current < last - 2:
        pages.append(ELLIPSIS)
    pages.append(last)
    return pages
