"""Tests for ordering selection and keyset predicates (no database)."""

from datetime import datetime, timezone

import pytest

from inbox.db.enums import ConversationSort, ConversationStatus
from inbox.schemas.conversation import ConversationSearchFilters
from inbox.services.conversation_filters import (
    AllOf,
    AnyOf,
    Compare,
    Comparison,
    Equals,
    Field,
    IsNull,
)
from inbox.services.conversation_keyset import (
    cursor_for_row,
    decode_for_ordering,
    keyset_predicate,
)
from inbox.services.conversation_ordering import OrderingStrategy, SortKey, select_ordering
from inbox.utils.cursor import PlainCursor, ValuedCursor, encode_cursor


T = datetime(2025, 1, 2, tzinfo=timezone.utc)

OPEN = [ConversationStatus.OPEN]
CLOSED = [ConversationStatus.CLOSED]


def _ordering(**filters) -> OrderingStrategy:
    metadata_enabled = filters.pop("metadata_enabled", False)
    return select_ordering(ConversationSearchFilters(**filters), metadata_enabled=metadata_enabled)


# =============================================================================
# Strategy selection
# =============================================================================


def test_default_is_newest_activity_first():
    ordering = _ordering()

    assert ordering == OrderingStrategy(
        time_field=Field.ACTIVITY_AT, descending=True, value_prefix=False
    )
    assert ordering.keys == (
        SortKey(Field.ACTIVITY_AT, descending=True, nullable=False),
        SortKey(Field.CONVERSATION_ID, descending=True, nullable=False),
    )


def test_oldest_sorts_ascending_on_every_key():
    ordering = _ordering(sort=ConversationSort.OLDEST)

    assert [key.descending for key in ordering.keys] == [False, False]


def test_closed_only_lists_sort_by_closed_at_nulls_last():
    ordering = _ordering(status=CLOSED)

    assert ordering.keys[0] == SortKey(Field.CLOSED_AT, descending=True, nullable=True)


def test_closed_among_other_statuses_keeps_activity_ordering():
    ordering = _ordering(status=[ConversationStatus.CLOSED, ConversationStatus.SPAM])

    assert ordering.time_field == Field.ACTIVITY_AT


@pytest.mark.parametrize("sort", [None, ConversationSort.HIGHEST_VALUE])
def test_value_prefix_for_open_lists_with_metadata(sort):
    ordering = _ordering(status=OPEN, sort=sort, metadata_enabled=True)

    assert ordering.value_prefix is True
    assert ordering.keys[0] == SortKey(Field.CUSTOMER_VALUE, descending=True, nullable=True)
    assert len(ordering.keys) == 3


@pytest.mark.parametrize(
    "filters",
    [
        {"status": OPEN, "metadata_enabled": False},
        {"status": OPEN, "sort": ConversationSort.NEWEST, "metadata_enabled": True},
        {"status": [ConversationStatus.OPEN, ConversationStatus.SPAM], "metadata_enabled": True},
        {"metadata_enabled": True},
    ],
)
def test_value_prefix_requires_open_only_metadata_and_value_sort(filters):
    assert _ordering(**filters).value_prefix is False


def test_value_prefix_stays_descending_for_oldest_time_tiebreak():
    ordering = OrderingStrategy(time_field=Field.ACTIVITY_AT, descending=False, value_prefix=True)

    assert [key.descending for key in ordering.keys] == [True, False, False]


# =============================================================================
# Keyset predicates
# =============================================================================


def test_no_cursor_means_no_restriction():
    assert keyset_predicate(_ordering(), None) is None


def test_descending_keyset_is_lexicographic():
    predicate = keyset_predicate(_ordering(), PlainCursor(ts=T, id=3))

    assert predicate == AnyOf(
        (
            Compare(Field.ACTIVITY_AT, Comparison.LT, T),
            AllOf(
                (
                    Equals(Field.ACTIVITY_AT, T),
                    Compare(Field.CONVERSATION_ID, Comparison.LT, 3),
                )
            ),
        )
    )


def test_ascending_keyset_uses_greater_than():
    predicate = keyset_predicate(_ordering(sort=ConversationSort.OLDEST), PlainCursor(ts=T, id=3))

    assert predicate.predicates[0] == Compare(Field.ACTIVITY_AT, Comparison.GT, T)
    assert predicate.predicates[1].predicates[1] == Compare(
        Field.CONVERSATION_ID, Comparison.GT, 3
    )


def test_nullable_key_treats_null_rows_as_after_a_value():
    predicate = keyset_predicate(_ordering(status=CLOSED), PlainCursor(ts=T, id=3))

    assert predicate.predicates[0] == AnyOf(
        (Compare(Field.CLOSED_AT, Comparison.LT, T), IsNull(Field.CLOSED_AT))
    )


def test_null_cursor_value_only_continues_within_the_null_group():
    predicate = keyset_predicate(_ordering(status=CLOSED), PlainCursor(ts=None, id=3))

    assert predicate == AnyOf(
        (
            AllOf(
                (
                    IsNull(Field.CLOSED_AT),
                    Compare(Field.CONVERSATION_ID, Comparison.LT, 3),
                )
            ),
        )
    )


def test_valued_keyset_leads_with_customer_value():
    ordering = _ordering(status=OPEN, metadata_enabled=True)
    predicate = keyset_predicate(ordering, ValuedCursor(value=5000, ts=T, id=3))

    assert predicate.predicates[0] == AnyOf(
        (Compare(Field.CUSTOMER_VALUE, Comparison.LT, 5000), IsNull(Field.CUSTOMER_VALUE))
    )
    assert predicate.predicates[2] == AllOf(
        (
            Equals(Field.CUSTOMER_VALUE, 5000),
            Equals(Field.ACTIVITY_AT, T),
            Compare(Field.CONVERSATION_ID, Comparison.LT, 3),
        )
    )


def test_plain_cursor_is_rejected_by_value_ordering():
    ordering = _ordering(status=OPEN, metadata_enabled=True)

    with pytest.raises(TypeError):
        keyset_predicate(ordering, PlainCursor(ts=T, id=3))


def test_cursor_shape_follows_ordering():
    plain = _ordering()
    valued = _ordering(status=OPEN, metadata_enabled=True)

    assert cursor_for_row(plain, conversation_id=3, sort_ts=T, customer_value=10) == PlainCursor(
        ts=T, id=3
    )
    assert cursor_for_row(valued, conversation_id=3, sort_ts=T, customer_value=None) == (
        ValuedCursor(value=None, ts=T, id=3)
    )


def test_decode_for_ordering_discards_wrong_shape():
    valued = _ordering(status=OPEN, metadata_enabled=True)
    token = encode_cursor(PlainCursor(ts=T, id=3))

    assert decode_for_ordering(token, valued) is None
    assert decode_for_ordering(token, _ordering()) == PlainCursor(ts=T, id=3)

    valued_token = encode_cursor(ValuedCursor(value=5000, ts=T, id=3))
    assert decode_for_ordering(valued_token, _ordering()) is None
