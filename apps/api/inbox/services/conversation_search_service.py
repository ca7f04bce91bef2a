"""Conversation search with keyset pagination.

Flow per call: normalize the filter request, compile it into a FilterSet,
run the keyword pre-pass (when free text is given) scoped by the
conversation-level predicates, pick an ordering, then fetch one page with
``limit + 1`` rows to detect whether another page exists.

Nothing is cached between calls; every function here is read-only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from inbox.db.enums import MessageRole
from inbox.db.models import Conversation, Message, PlatformCustomer
from inbox.schemas.conversation import ConversationSearchFilters
from inbox.services import keyword_search_service, mailbox_settings_service
from inbox.services.conversation_filters import (
    FilterSet,
    compile_filters,
    describe,
    normalize_filters,
    search_predicate,
    unread_messages_predicate,
)
from inbox.services.conversation_keyset import (
    cursor_for_row,
    decode_for_ordering,
    keyset_predicate,
)
from inbox.services.conversation_ordering import OrderingStrategy, select_ordering
from inbox.services.predicate_sql import (
    field_expression,
    render_filters,
    render_order_by,
    render_predicate,
)
from inbox.utils.cursor import encode_cursor


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversationSearch:
    """A compiled search: everything needed to fetch pages, count, or list ids."""

    filters: ConversationSearchFilters
    where: FilterSet
    ordering: OrderingStrategy
    metadata_enabled: bool
    vip_threshold: int | None
    matched_text: dict[int, str | None] = field(default_factory=dict)


@dataclass(frozen=True)
class ConversationSearchResult:
    """One list row plus the per-row extras shown in the inbox."""

    conversation: Conversation
    platform_customer: PlatformCustomer | None
    matched_message_text: str | None
    recent_message_text: str | None
    recent_message_at: datetime | None
    has_unread_messages: bool


@dataclass(frozen=True)
class ConversationSearchPage:
    """List page result with cursor."""

    results: list[ConversationSearchResult]
    next_cursor: str | None


# =============================================================================
# Search compilation
# =============================================================================


def build_search(
    db: Session,
    filters: ConversationSearchFilters,
    *,
    current_user_id: UUID | None = None,
) -> ConversationSearch:
    """
    Compile a filter request.

    Calls the keyword search backend when free text is given; its errors
    propagate so a failed text search never yields an unfiltered page.
    """
    normalized = normalize_filters(filters, current_user_id)
    vip_threshold = mailbox_settings_service.get_vip_threshold()
    where = compile_filters(normalized, vip_threshold=vip_threshold)

    matched_text: dict[int, str | None] = {}
    if normalized.search:
        matches = keyword_search_service.search_by_keywords(
            db, normalized.search, where.conversation_level()
        )
        matched_text = {match.conversation_id: match.matched_text for match in matches}
        where = where.with_predicate(
            "search", search_predicate(normalized.search, list(matched_text))
        )

    metadata_enabled = (
        not normalized.search and mailbox_settings_service.is_customer_value_metadata_enabled()
    )
    ordering = select_ordering(normalized, metadata_enabled=metadata_enabled)

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "Compiled conversation search: %s",
            {name: describe(where[name]) for name in where},
        )

    return ConversationSearch(
        filters=normalized,
        where=where,
        ordering=ordering,
        metadata_enabled=metadata_enabled,
        vip_threshold=vip_threshold,
        matched_text=matched_text,
    )


# =============================================================================
# Page assembly
# =============================================================================


def _recent_message(column):
    return (
        select(column)
        .where(
            Message.conversation_id == Conversation.id,
            Message.role.in_([MessageRole.USER, MessageRole.STAFF]),
            Message.deleted_at.is_(None),
        )
        .order_by(Message.created_at.desc(), Message.id.desc())
        .limit(1)
        .correlate(Conversation)
        .scalar_subquery()
    )


def fetch_page(db: Session, search: ConversationSearch) -> ConversationSearchPage:
    """Fetch the page after ``search.filters.cursor`` (first page without one)."""
    ordering = search.ordering
    limit = search.filters.limit

    conditions = render_filters(search.where)
    cursor = decode_for_ordering(search.filters.cursor, ordering)
    after_cursor = keyset_predicate(ordering, cursor)
    if after_cursor is not None:
        conditions.append(render_predicate(after_cursor))

    rows = (
        db.query(
            Conversation,
            PlatformCustomer,
            field_expression(ordering.time_field).label("sort_ts"),
            _recent_message(Message.cleaned_up_text).label("recent_message_text"),
            _recent_message(Message.created_at).label("recent_message_at"),
            render_predicate(unread_messages_predicate()).label("has_unread"),
        )
        .outerjoin(PlatformCustomer, Conversation.email_from == PlatformCustomer.email)
        .filter(*conditions)
        .order_by(*render_order_by(ordering))
        .limit(limit + 1)
        .all()
    )

    has_more = len(rows) > limit
    page_rows = rows[:limit]

    results = [
        ConversationSearchResult(
            conversation=conversation,
            platform_customer=customer,
            matched_message_text=search.matched_text.get(conversation.id),
            recent_message_text=recent_text or None,
            recent_message_at=recent_at,
            has_unread_messages=bool(has_unread),
        )
        for conversation, customer, _, recent_text, recent_at, has_unread in page_rows
    ]

    next_cursor = None
    if has_more and page_rows:
        last_conversation, last_customer, last_sort_ts, *_ = page_rows[-1]
        next_cursor = encode_cursor(
            cursor_for_row(
                ordering,
                conversation_id=last_conversation.id,
                sort_ts=last_sort_ts,
                customer_value=last_customer.value if last_customer is not None else None,
            )
        )

    return ConversationSearchPage(results=results, next_cursor=next_cursor)


def search_conversations(
    db: Session,
    filters: ConversationSearchFilters,
    *,
    current_user_id: UUID | None = None,
) -> tuple[ConversationSearch, ConversationSearchPage]:
    """Compile and fetch in one call; returns the compiled search for count/id reuse."""
    search = build_search(db, filters, current_user_id=current_user_id)
    return search, fetch_page(db, search)


# =============================================================================
# Aggregate views
# =============================================================================


def count_search_results(db: Session, where: FilterSet) -> int:
    """Total conversations matching ``where``, ignoring pagination."""
    total = (
        db.query(func.count(Conversation.id))
        .select_from(Conversation)
        .outerjoin(PlatformCustomer, Conversation.email_from == PlatformCustomer.email)
        .filter(*render_filters(where))
        .scalar()
    )
    return total or 0


def get_search_result_ids(db: Session, where: FilterSet) -> list[int]:
    """Ids of every conversation matching ``where`` (unordered)."""
    rows = (
        db.query(Conversation.id)
        .outerjoin(PlatformCustomer, Conversation.email_from == PlatformCustomer.email)
        .filter(*render_filters(where))
        .all()
    )
    return [row.id for row in rows]
