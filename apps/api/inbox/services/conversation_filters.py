"""Conversation filter compiler.

Turns a ``ConversationSearchFilters`` request into a ``FilterSet``: an
ordered mapping of filter name to a typed predicate. Predicates reference
symbolic ``Field``s rather than ORM columns, so the same set can be
rendered to SQL (see ``predicate_sql``), scoped down to conversation-level
checks for the keyword pre-pass, and reused for count/id-list queries.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Iterator, Union
from uuid import UUID

from inbox.db.enums import (
    CLOSED_BY_AGENT_REASON,
    MARKED_AS_SPAM_BY_AGENT_REASON,
    REOPENED_BY_AGENT_REASON,
    ConversationCategory,
    ConversationStatus,
    MessageRole,
    StatusChangeActor,
)
from inbox.schemas.conversation import ConversationSearchFilters, StatusChangeFilter
from inbox.utils.normalization import normalize_search_text


# =============================================================================
# Fields and predicate variants
# =============================================================================


class Field(str, Enum):
    """Columns (and derived expressions) a predicate may reference."""

    CONVERSATION_ID = "conversation.id"
    STATUS = "conversation.status"
    ASSIGNED_TO_ID = "conversation.assigned_to_id"
    MERGED_INTO_ID = "conversation.merged_into_id"
    IS_PROMPT = "conversation.is_prompt"
    EMAIL_FROM = "conversation.email_from"
    ANONYMOUS_SESSION_ID = "conversation.anonymous_session_id"
    ISSUE_GROUP_ID = "conversation.issue_group_id"
    CREATED_AT = "conversation.created_at"
    CLOSED_AT = "conversation.closed_at"
    # COALESCE(last_message_at, created_at)
    ACTIVITY_AT = "conversation.activity_at"
    # COALESCE(last_read_by_assignee_at, created_at)
    READ_MARK_AT = "conversation.read_mark_at"

    CUSTOMER_VALUE = "customer.value"

    MESSAGE_ROLE = "message.role"
    MESSAGE_USER_ID = "message.user_id"
    MESSAGE_CREATED_AT = "message.created_at"
    MESSAGE_DELETED_AT = "message.deleted_at"
    MESSAGE_REACTION_TYPE = "message.reaction_type"
    MESSAGE_REACTION_CREATED_AT = "message.reaction_created_at"

    EVENT_TYPE = "event.type"
    EVENT_STATUS = "event.changes.status"
    EVENT_BY_USER_ID = "event.by_user_id"
    EVENT_REASON = "event.reason"
    EVENT_CREATED_AT = "event.created_at"

    @property
    def scope(self) -> str:
        return self.value.split(".", 1)[0]


class Comparison(str, Enum):
    LT = "<"
    LTE = "<="
    GT = ">"
    GTE = ">="


class Relation(str, Enum):
    """Child tables an existential check can correlate against."""

    MESSAGES = "message"
    EVENTS = "event"


@dataclass(frozen=True)
class IsNull:
    field: Field
    negated: bool = False


@dataclass(frozen=True)
class Equals:
    field: Field
    value: Any


@dataclass(frozen=True)
class InList:
    field: Field
    values: tuple[Any, ...]


@dataclass(frozen=True)
class Compare:
    """``field <op> value``; value may itself be a Field."""

    field: Field
    op: Comparison
    value: Any


@dataclass(frozen=True)
class Contains:
    """Case-insensitive substring match."""

    field: Field
    text: str


@dataclass(frozen=True)
class Exists:
    """At least one related row (correlated on conversation id) satisfies all conditions."""

    relation: Relation
    conditions: tuple["Predicate", ...]


@dataclass(frozen=True)
class AllOf:
    predicates: tuple["Predicate", ...]


@dataclass(frozen=True)
class AnyOf:
    predicates: tuple["Predicate", ...]


Predicate = Union[IsNull, Equals, InList, Compare, Contains, Exists, AllOf, AnyOf]


def referenced_scopes(predicate: Predicate) -> set[str]:
    """Return the table scopes ("conversation", "customer", ...) a predicate touches."""
    if isinstance(predicate, Exists):
        scopes = {predicate.relation.value}
        for condition in predicate.conditions:
            scopes |= referenced_scopes(condition)
        return scopes
    if isinstance(predicate, (AllOf, AnyOf)):
        scopes: set[str] = set()
        for child in predicate.predicates:
            scopes |= referenced_scopes(child)
        return scopes
    scopes = {predicate.field.scope}
    if isinstance(predicate, Compare) and isinstance(predicate.value, Field):
        scopes.add(predicate.value.scope)
    return scopes


class FilterSet:
    """Ordered, name-keyed conjunction of predicates."""

    def __init__(self, predicates: dict[str, Predicate] | None = None):
        self._predicates: dict[str, Predicate] = dict(predicates or {})

    def __iter__(self) -> Iterator[str]:
        return iter(self._predicates)

    def __len__(self) -> int:
        return len(self._predicates)

    def __contains__(self, name: object) -> bool:
        return name in self._predicates

    def __getitem__(self, name: str) -> Predicate:
        return self._predicates[name]

    def __eq__(self, other: object) -> bool:
        return isinstance(other, FilterSet) and self._predicates == other._predicates

    def __repr__(self) -> str:
        return f"FilterSet({list(self._predicates)})"

    def names(self) -> list[str]:
        return list(self._predicates)

    def predicates(self) -> list[Predicate]:
        return list(self._predicates.values())

    def with_predicate(self, name: str, predicate: Predicate) -> "FilterSet":
        updated = dict(self._predicates)
        updated[name] = predicate
        return FilterSet(updated)

    def conversation_level(self) -> "FilterSet":
        """Subset that only touches the conversations table (no joins or sub-queries)."""
        return FilterSet(
            {
                name: predicate
                for name, predicate in self._predicates.items()
                if referenced_scopes(predicate) == {"conversation"}
            }
        )


# =============================================================================
# Normalization
# =============================================================================


def normalize_filters(
    filters: ConversationSearchFilters, current_user_id: UUID | None = None
) -> ConversationSearchFilters:
    """Apply category defaults. Returns a new request; the input is left untouched."""
    updates: dict[str, Any] = {}
    search = normalize_search_text(filters.search)
    if search != filters.search:
        updates["search"] = search
    if filters.category and not search and not filters.status:
        updates["status"] = [ConversationStatus.OPEN]
    if filters.category == ConversationCategory.MINE and current_user_id:
        updates["assignee"] = [current_user_id]
    if filters.category == ConversationCategory.UNASSIGNED:
        updates["is_assigned"] = False
    if filters.category == ConversationCategory.ASSIGNED:
        updates["is_assigned"] = True
    if not updates:
        return filters
    return filters.model_copy(update=updates)


# =============================================================================
# Compilation
# =============================================================================


_STATUS_CHANGE_FILTERS = (
    ("closed", ConversationStatus.CLOSED, CLOSED_BY_AGENT_REASON),
    ("reopened", ConversationStatus.OPEN, REOPENED_BY_AGENT_REASON),
    ("marked_as_spam", ConversationStatus.SPAM, MARKED_AS_SPAM_BY_AGENT_REASON),
)


def to_minor_units(dollars: float) -> int:
    """Customer values are stored in cents."""
    return int(round(dollars * 100))


def compile_filters(
    filters: ConversationSearchFilters, *, vip_threshold: int | None = None
) -> FilterSet:
    """
    Build the base predicate set for an already-normalized request.

    Free-text search is not included; it needs the keyword matches, which
    are computed from this set's conversation-level subset (see
    ``search_predicate``).
    """
    where: dict[str, Predicate] = {"notMerged": IsNull(Field.MERGED_INTO_ID)}

    if filters.status:
        where["status"] = InList(Field.STATUS, tuple(filters.status))
    if filters.is_assigned is not None:
        where["isAssigned"] = IsNull(Field.ASSIGNED_TO_ID, negated=filters.is_assigned)
    if filters.assignee:
        where["assignee"] = InList(Field.ASSIGNED_TO_ID, tuple(filters.assignee))
    if filters.is_prompt is not None:
        where["isPrompt"] = Equals(Field.IS_PROMPT, filters.is_prompt)
    if filters.created_after:
        where["createdAfter"] = Compare(Field.CREATED_AT, Comparison.GT, filters.created_after)
    if filters.created_before:
        where["createdBefore"] = Compare(Field.CREATED_AT, Comparison.LT, filters.created_before)
    if filters.customer:
        where["customer"] = InList(Field.EMAIL_FROM, tuple(filters.customer))
    if filters.anonymous_session_id:
        where["anonymousSessionId"] = Equals(Field.ANONYMOUS_SESSION_ID, filters.anonymous_session_id)
    if filters.issue_group_id is not None:
        where["issueGroup"] = Equals(Field.ISSUE_GROUP_ID, filters.issue_group_id)

    if filters.replied_by or filters.replied_after or filters.replied_before:
        where["reply"] = _reply_exists(filters)
    if filters.reaction_type:
        where["reaction"] = _reaction_exists(filters)
    if filters.events:
        where["events"] = Exists(
            Relation.EVENTS, (InList(Field.EVENT_TYPE, tuple(filters.events)),)
        )

    for attr, status, automated_reason in _STATUS_CHANGE_FILTERS:
        change_filter = getattr(filters, attr)
        if change_filter is not None:
            where[_camel(attr)] = _status_change_exists(status, change_filter, automated_reason)

    if filters.has_unread_messages:
        where["hasUnreadMessages"] = unread_messages_predicate()
    if filters.is_vip and vip_threshold is not None:
        where["isVip"] = Compare(
            Field.CUSTOMER_VALUE, Comparison.GTE, to_minor_units(vip_threshold)
        )
    if filters.min_value_dollars is not None:
        where["minValue"] = Compare(
            Field.CUSTOMER_VALUE, Comparison.GT, to_minor_units(filters.min_value_dollars)
        )
    if filters.max_value_dollars is not None:
        where["maxValue"] = Compare(
            Field.CUSTOMER_VALUE, Comparison.LT, to_minor_units(filters.max_value_dollars)
        )

    return FilterSet(where)


def unread_messages_predicate() -> Predicate:
    """Assigned, with a customer message newer than the assignee's last read (or creation)."""
    return AllOf(
        (
            IsNull(Field.ASSIGNED_TO_ID, negated=True),
            Exists(
                Relation.MESSAGES,
                (
                    Equals(Field.MESSAGE_ROLE, MessageRole.USER),
                    IsNull(Field.MESSAGE_DELETED_AT),
                    Compare(Field.MESSAGE_CREATED_AT, Comparison.GT, Field.READ_MARK_AT),
                ),
            ),
        )
    )


def search_predicate(text: str, matched_conversation_ids: list[int]) -> Predicate:
    """From-address substring match OR membership in the keyword matches."""
    return AnyOf(
        (
            Contains(Field.EMAIL_FROM, text),
            InList(Field.CONVERSATION_ID, tuple(matched_conversation_ids)),
        )
    )


def _reply_exists(filters: ConversationSearchFilters) -> Exists:
    conditions: list[Predicate] = [Equals(Field.MESSAGE_ROLE, MessageRole.STAFF)]
    if filters.replied_by:
        conditions.append(InList(Field.MESSAGE_USER_ID, tuple(filters.replied_by)))
    if filters.replied_after:
        conditions.append(Compare(Field.MESSAGE_CREATED_AT, Comparison.GT, filters.replied_after))
    if filters.replied_before:
        conditions.append(Compare(Field.MESSAGE_CREATED_AT, Comparison.LT, filters.replied_before))
    return Exists(Relation.MESSAGES, tuple(conditions))


def _reaction_exists(filters: ConversationSearchFilters) -> Exists:
    conditions: list[Predicate] = [
        Equals(Field.MESSAGE_REACTION_TYPE, filters.reaction_type),
        IsNull(Field.MESSAGE_DELETED_AT),
    ]
    if filters.reaction_after:
        conditions.append(
            Compare(Field.MESSAGE_REACTION_CREATED_AT, Comparison.GTE, filters.reaction_after)
        )
    if filters.reaction_before:
        conditions.append(
            Compare(Field.MESSAGE_REACTION_CREATED_AT, Comparison.LTE, filters.reaction_before)
        )
    return Exists(Relation.MESSAGES, tuple(conditions))


def _status_change_exists(
    status: ConversationStatus, change_filter: StatusChangeFilter, automated_reason: str
) -> Exists:
    conditions: list[Predicate] = []
    if change_filter.by == StatusChangeActor.AUTOMATED:
        conditions.append(Equals(Field.EVENT_REASON, automated_reason))
    else:
        conditions.append(IsNull(Field.EVENT_BY_USER_ID, negated=True))
    if change_filter.by_user_id:
        conditions.append(InList(Field.EVENT_BY_USER_ID, tuple(change_filter.by_user_id)))
    conditions.append(Equals(Field.EVENT_STATUS, status.value))
    if change_filter.before:
        conditions.append(Compare(Field.EVENT_CREATED_AT, Comparison.LT, change_filter.before))
    if change_filter.after:
        conditions.append(Compare(Field.EVENT_CREATED_AT, Comparison.GT, change_filter.after))
    return Exists(Relation.EVENTS, tuple(conditions))


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def describe(predicate: Predicate) -> str:
    """Human-readable rendering, used in debug logs."""
    if isinstance(predicate, IsNull):
        return f"{predicate.field.value} IS {'NOT ' if predicate.negated else ''}NULL"
    if isinstance(predicate, Equals):
        return f"{predicate.field.value} = {_describe_value(predicate.value)}"
    if isinstance(predicate, InList):
        values = ", ".join(_describe_value(v) for v in predicate.values)
        return f"{predicate.field.value} IN ({values})"
    if isinstance(predicate, Compare):
        return f"{predicate.field.value} {predicate.op.value} {_describe_value(predicate.value)}"
    if isinstance(predicate, Contains):
        return f"{predicate.field.value} ILIKE <text>"
    if isinstance(predicate, Exists):
        inner = " AND ".join(describe(c) for c in predicate.conditions)
        return f"EXISTS {predicate.relation.value}({inner})"
    if isinstance(predicate, AllOf):
        return "(" + " AND ".join(describe(p) for p in predicate.predicates) + ")"
    return "(" + " OR ".join(describe(p) for p in predicate.predicates) + ")"


def _describe_value(value: Any) -> str:
    if isinstance(value, Field):
        return value.value
    if isinstance(value, Enum):
        return repr(value.value)
    if isinstance(value, datetime):
        return value.isoformat()
    return repr(value)
