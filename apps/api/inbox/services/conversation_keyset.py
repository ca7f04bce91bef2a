"""Keyset ("rows strictly after this cursor") predicates for conversation lists."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from inbox.services.conversation_filters import (
    AllOf,
    AnyOf,
    Compare,
    Comparison,
    Equals,
    IsNull,
    Predicate,
)
from inbox.services.conversation_ordering import OrderingStrategy, SortKey
from inbox.utils.cursor import Cursor, PlainCursor, ValuedCursor, decode_cursor


def cursor_values(ordering: OrderingStrategy, cursor: Cursor) -> tuple[Any, ...]:
    """Line the cursor's fields up with the ordering's sort keys."""
    if ordering.value_prefix:
        if not isinstance(cursor, ValuedCursor):
            raise TypeError("value-prefixed ordering needs a ValuedCursor")
        return (cursor.value, cursor.ts, cursor.id)
    return (cursor.ts, cursor.id)


def decode_for_ordering(token: str | None, ordering: OrderingStrategy) -> Cursor | None:
    return decode_cursor(token, valued=ordering.value_prefix)


def cursor_for_row(
    ordering: OrderingStrategy,
    *,
    conversation_id: int,
    sort_ts: datetime | None,
    customer_value: int | None,
) -> Cursor:
    """Build the resume point from the last row of a page."""
    if ordering.value_prefix:
        return ValuedCursor(value=customer_value, ts=sort_ts, id=conversation_id)
    return PlainCursor(ts=sort_ts, id=conversation_id)


def _after(key: SortKey, value: Any) -> Predicate | None:
    """Rows that sort strictly after ``value`` on this key alone (NULLs last)."""
    if value is None:
        # Nothing sorts after NULL when NULLs come last.
        return None
    op = Comparison.LT if key.descending else Comparison.GT
    after = Compare(key.field, op, value)
    if key.nullable:
        return AnyOf((after, IsNull(key.field)))
    return after


def _tie(key: SortKey, value: Any) -> Predicate:
    if value is None:
        return IsNull(key.field)
    return Equals(key.field, value)


def keyset_predicate(ordering: OrderingStrategy, cursor: Cursor | None) -> Predicate | None:
    """
    Predicate selecting rows strictly after ``cursor`` in ``ordering``.

    For keys k1..kn and cursor values c1..cn this is the lexicographic
    expansion OR_i (k1 = c1 AND ... AND k(i-1) = c(i-1) AND ki after ci).
    Returns None (no restriction) without a cursor.
    """
    if cursor is None:
        return None

    keys = ordering.keys
    values = cursor_values(ordering, cursor)
    branches: list[Predicate] = []
    for index, key in enumerate(keys):
        after = _after(key, values[index])
        if after is None:
            continue
        ties = [_tie(k, v) for k, v in zip(keys[:index], values[:index])]
        branches.append(AllOf((*ties, after)) if ties else after)
    return AnyOf(tuple(branches))
