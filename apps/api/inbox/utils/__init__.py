"""Utility modules."""

from inbox.utils.cursor import (
    Cursor,
    PlainCursor,
    ValuedCursor,
    decode_cursor,
    encode_cursor,
)
from inbox.utils.normalization import (
    escape_like_string,
    normalize_search_text,
)

__all__ = [
    "Cursor",
    "PlainCursor",
    "ValuedCursor",
    "decode_cursor",
    "encode_cursor",
    "escape_like_string",
    "normalize_search_text",
]
