"""Text helpers for rendering scraped fields into chat messages."""

import html
import re

ELLIPSIS = "…"

TAG_RE = re.compile(r"<[^>]+>")


def clean_text(text) -> str:
    """Collapse runs of whitespace; None becomes the empty string."""
    if text is None:
        return ""
    return re.sub(r"\s+", " ", str(text)).strip()


def escape_html(text) -> str:
    """Escape for Telegram's HTML parse mode. None becomes the empty string."""
    if text is None:
        return ""
    return html.escape(str(text), quote=False)


def escape_attr(text) -> str:
    """Escape a value placed inside a double-quoted attribute such as href."""
    if text is None:
        return ""
    return html.escape(str(text), quote=True)


def strip_tags(markup: str) -> str:
    """Drop tags and decode entities, leaving the visible text."""
    return html.unescape(TAG_RE.sub("", markup))


def truncate(text: str, limit: int) -> str:
    """Cut text to at most `limit` characters, marking the cut with an ellipsis."""
    if limit <= 0:
        return ""
    if len(text) <= limit:
        return text
    return text[: limit - len(ELLIPSIS)].rstrip() + ELLIPSIS


def fit_escaped(text: str, room: int) -> str:
    """Truncate raw text so that its escaped form is at most `room` characters."""
    limit = room
    while limit > 0:
        fitted = escape_html(truncate(text, limit))
        if len(fitted) <= room:
            return fitted
        # Escaping can grow the text, so shrink in proportion
        limit = min(limit - 1, limit * room // len(fitted))
    return ""
