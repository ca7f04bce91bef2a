"""Text normalization utilities for search input."""

from typing import Optional


def escape_like_string(value: str, escape_char: str = "\\") -> str:
    """Escape LIKE wildcards so user input matches literally."""
    return (
        value.replace(escape_char, escape_char * 2)
        .replace("%", f"{escape_char}%")
        .replace("_", f"{escape_char}_")
    )


def normalize_search_text(value: Optional[str]) -> Optional[str]:
    """
    Collapse whitespace in free-text search input.

    Returns None when nothing searchable remains.
    """
    if value is None:
        return None
    collapsed = " ".join(value.split())
    return collapsed or None


def snippet_around(text: Optional[str], term: str, *, width: int = 160) -> Optional[str]:
    """Return a window of ``text`` centered on the first case-insensitive hit of ``term``."""
    if not text:
        return None
    position = text.lower().find(term.lower())
    if position < 0 or len(text) <= width:
        return text[:width]
    start = max(0, position - width // 2)
    end = min(len(text), start + width)
    start = max(0, end - width)
    prefix = "…" if start > 0 else ""
    suffix = "…" if end < len(text) else ""
    return f"{prefix}{text[start:end]}{suffix}"
