"""Free-text validation for team and event fields."""

from __future__ import annotations

import re

MIN_NAME_LENGTH = 3

_MONTH = re.compile(r"jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec", re.IGNORECASE)
_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME = re.compile(r"\d{1,2}(:\d{2})?\s*(am|pm)?", re.IGNORECASE)


def sanitize_input(text: str | None, max_length: int = 100) -> str:
    if not text:
        return ""
    return text.strip()[:max_length]


def is_valid_date(text: str) -> bool:
    """Accept "Feb 15", "February 15, 2025" or "2025-02-15"."""
    if _ISO_DATE.match(text.strip()):
        return True
    return bool(_MONTH.search(text)) and bool(re.search(r"\d", text))


def is_valid_time(text: str) -> bool:
    """Accept "7PM", "7:00 PM EST" or "19:00"."""
    return bool(_TIME.search(text))


def is_valid_name(text: str) -> bool:
    return len(text) >= MIN_NAME_LENGTH
