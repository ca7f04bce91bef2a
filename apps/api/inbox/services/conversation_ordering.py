"""Conversation list ordering strategies."""

from __future__ import annotations

from dataclasses import dataclass

from inbox.db.enums import ConversationSort, ConversationStatus
from inbox.schemas.conversation import ConversationSearchFilters
from inbox.services.conversation_filters import Field


@dataclass(frozen=True)
class SortKey:
    """One ORDER BY term. Nullable keys always place NULLs last."""

    field: Field
    descending: bool
    nullable: bool


@dataclass(frozen=True)
class OrderingStrategy:
    """
    Composite ordering for a conversation list.

    Keys, in order: customer value (only with value_prefix, always DESC
    NULLS LAST), the time field in the requested direction, then conversation
    id in the same direction so that no two rows compare equal.
    """

    time_field: Field
    descending: bool
    value_prefix: bool

    @property
    def keys(self) -> tuple[SortKey, ...]:
        keys: list[SortKey] = []
        if self.value_prefix:
            keys.append(SortKey(Field.CUSTOMER_VALUE, descending=True, nullable=True))
        keys.append(
            SortKey(
                self.time_field,
                descending=self.descending,
                nullable=self.time_field == Field.CLOSED_AT,
            )
        )
        keys.append(SortKey(Field.CONVERSATION_ID, descending=self.descending, nullable=False))
        return tuple(keys)


def _status_is_exactly(filters: ConversationSearchFilters, status: ConversationStatus) -> bool:
    return filters.status is not None and list(filters.status) == [status]


def select_ordering(
    filters: ConversationSearchFilters, *, metadata_enabled: bool
) -> OrderingStrategy:
    """
    Pick the ordering for a normalized request.

    ``metadata_enabled`` must already be false when free-text search is
    active; value ordering then never applies.
    """
    if _status_is_exactly(filters, ConversationStatus.CLOSED):
        time_field = Field.CLOSED_AT
    else:
        time_field = Field.ACTIVITY_AT

    descending = filters.sort != ConversationSort.OLDEST
    value_prefix = (
        metadata_enabled
        and _status_is_exactly(filters, ConversationStatus.OPEN)
        and filters.sort in (None, ConversationSort.HIGHEST_VALUE)
    )
    return OrderingStrategy(time_field=time_field, descending=descending, value_prefix=value_prefix)
