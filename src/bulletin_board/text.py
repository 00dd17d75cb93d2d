"""
Plain-text helpers for rich-text bodies and timestamps.
"""

import re
from datetime import datetime

TAG_PATTERN = re.compile(r"<[^>]*>")
WHITESPACE_PATTERN = re.compile(r"\s+")

TITLE_MAX_LENGTH = 28
TITLE_TRUNCATE_AT = 25
TITLE_PLACEHOLDER = '(will default to "New request")'


def strip_tags(html: str | None) -> str:
    """Reduce rich text to collapsed plain text."""
    text = TAG_PATTERN.sub(" ", html or "")
    return WHITESPACE_PATTERN.sub(" ", text).strip()


def has_content(html: str | None) -> bool:
    """True when the body holds any text once markup is removed."""
    return bool(strip_tags(html))


def derive_title(html: str | None) -> str:
    """Short title taken from the start of a body's plain text.

    Returns an empty string when the body has no text.
    """
    text = strip_tags(html)
    if len(text) > TITLE_MAX_LENGTH:
        return text[:TITLE_TRUNCATE_AT] + "..."
    return text


def format_short(ts: datetime | None) -> str:
    """Short local rendering, e.g. 'Mar 4, 2:05 PM'."""
    if ts is None:
        return ""
    if ts.tzinfo is not None:
        ts = ts.astimezone()
    hour = ts.hour % 12 or 12
    return f"{ts:%b} {ts.day}, {hour}:{ts:%M} {ts:%p}"


def format_date(ts: datetime | None) -> str:
    """Date-only rendering for list rows."""
    if ts is None:
        return ""
    if ts.tzinfo is not None:
        ts = ts.astimezone()
    return ts.date().isoformat()
