"""Opaque keyset-pagination cursors for conversation lists.

A cursor carries the sort-key tuple of the last row on a page. Two shapes
exist: ``PlainCursor`` (timestamp, id) for chronological ordering and
``ValuedCursor`` (customer value, timestamp, id) when customer value leads
the ordering. Tokens are URL-safe base64 over compact, key-sorted JSON.

Decoding never raises: anything that is not a well-formed token of the
expected shape decodes to ``None`` and the caller restarts from the first
page.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any


logger = logging.getLogger(__name__)

# Ids and values bind to BIGINT columns
_INT_MIN = -(2**63)
_INT_MAX = 2**63 - 1


@dataclass(frozen=True)
class PlainCursor:
    """Resume point for (timestamp, id) ordering."""

    ts: datetime | None
    id: int


@dataclass(frozen=True)
class ValuedCursor:
    """Resume point for (customer value, timestamp, id) ordering."""

    value: int | None
    ts: datetime | None
    id: int


Cursor = PlainCursor | ValuedCursor


def encode_cursor(cursor: Cursor) -> str:
    payload: dict[str, Any] = {
        "ts": cursor.ts.isoformat() if cursor.ts is not None else None,
        "id": cursor.id,
    }
    if isinstance(cursor, ValuedCursor):
        payload["value"] = cursor.value
    raw = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii")


def decode_cursor(token: str | None, *, valued: bool) -> Cursor | None:
    """
    Decode a token into the cursor shape the current ordering expects.

    Returns None for an empty, corrupted, truncated or wrongly-shaped token.
    """
    if not token:
        return None
    try:
        raw = base64.b64decode(token.encode("ascii"), altchars=b"-_", validate=True)
        payload = json.loads(raw.decode("utf-8"))
        return _cursor_from_payload(payload, valued=valued)
    except (binascii.Error, UnicodeError, ValueError, TypeError, KeyError, RecursionError):
        logger.info("Ignoring malformed conversation cursor")
        return None


def _cursor_from_payload(payload: Any, *, valued: bool) -> Cursor:
    if not isinstance(payload, dict):
        raise TypeError("cursor payload must be an object")

    row_id = payload["id"]
    if not _is_int(row_id):
        raise TypeError("cursor id must be an integer")
    ts = _parse_ts(payload["ts"])

    if not valued:
        if "value" in payload:
            raise TypeError("valued cursor used for chronological ordering")
        return PlainCursor(ts=ts, id=row_id)

    value = payload["value"]
    if value is not None and not _is_int(value):
        raise TypeError("cursor value must be an integer or null")
    return ValuedCursor(value=value, ts=ts, id=row_id)


def _is_int(value: Any) -> bool:
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and _INT_MIN <= value <= _INT_MAX
    )


def _parse_ts(value: Any) -> datetime | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise TypeError("cursor timestamp must be a string or null")
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
