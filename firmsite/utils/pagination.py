"""Page-number strip for paginated lists.

``page_numbers(current, total)`` returns the entries to render between the
previous/next buttons: ints for page links and ``ELLIPSIS`` for gaps.
Short lists (``total <= 7``) show every page; longer ones keep the first
and last page plus the neighbours of the current one.
"""

from __future__ import annotations

from typing import List, Union

ELLIPSIS = "..."
MAX_UNCOLLAPSED = 7


def page_numbers(current: int, total: int) -> List[Union[int, str]]:
    if total <= 1:
        return []
    if total <= MAX_UNCOLLAPSED:
        return list(range(1, total + 1))

    current = max(1, min(current, total))
    pages: List[Union[int, str]] = [1]
    if current > 3:
        pages.append(ELLIPSIS)

    start = max(2, current - 1)
    end = min(total - 1, current + 1)
    for i in range(start, end + 1):
        if i not in pages:
            pages.append(i)

    if current < total - 2:
        pages.append(ELLIPSIS)
    if total not in pages:
        pages.append(total)
    return pages


def clamp_page(value, default: int = 1) -> int:
    """Parse a ``?page=`` query value into a positive int."""
    try:
        page = int(value)
    except (TypeError, ValueError):
        return default
    return page if page >= 1 else default
