"""Text utilities for templates: dates, excerpts and plain-text previews."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from bs4 import BeautifulSoup


def format_date(value: Optional[str]) -> str:
    """Render an ISO timestamp from the backend as e.g. ``March 5, 2025``."""
    if not value:
        return ""
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    return f"{dt.strftime('%B')} {dt.day}, {dt.year}"


def html_to_text(html: str) -> str:
    return BeautifulSoup(html or "", "html.parser").get_text(" ", strip=True)


def truncate(text: str, limit: int, suffix: str = "...") -> str:
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    cut = text[: max(0, limit - len(suffix))].rstrip()
    # Prefer a word boundary when one is reasonably close
    space = cut.rfind(" ")
    if space > limit // 2:
        cut = cut[:space]
    return cut + suffix
