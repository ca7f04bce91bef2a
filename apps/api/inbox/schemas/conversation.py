"""Pydantic schemas for conversation search and list APIs."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from inbox.db.enums import (
    ConversationCategory,
    ConversationEventType,
    ConversationSort,
    ConversationStatus,
    ReactionType,
    StatusChangeActor,
)


DEFAULT_PAGE_LIMIT = 50
MAX_PAGE_LIMIT = 100


class StatusChangeFilter(BaseModel):
    """Match conversations with a recorded change into a given status."""

    model_config = ConfigDict(frozen=True)

    by: StatusChangeActor | None = None
    by_user_id: list[UUID] | None = None
    before: datetime | None = None
    after: datetime | None = None


class ConversationSearchFilters(BaseModel):
    """
    Structured filter request for the conversation list.

    Every field is optional; an unset field and an empty list both mean
    "no restriction".
    """

    model_config = ConfigDict(frozen=True)

    search: str | None = None
    status: list[ConversationStatus] | None = None
    assignee: list[UUID] | None = None
    is_assigned: bool | None = None
    is_prompt: bool | None = None
    created_after: datetime | None = None
    created_before: datetime | None = None
    replied_by: list[UUID] | None = None
    replied_after: datetime | None = None
    replied_before: datetime | None = None
    reaction_type: ReactionType | None = None
    reaction_after: datetime | None = None
    reaction_before: datetime | None = None
    events: list[ConversationEventType] | None = None
    closed: StatusChangeFilter | None = None
    reopened: StatusChangeFilter | None = None
    marked_as_spam: StatusChangeFilter | None = None
    customer: list[str] | None = None
    anonymous_session_id: str | None = None
    issue_group_id: int | None = None
    has_unread_messages: bool | None = None
    is_vip: bool | None = None
    min_value_dollars: float | None = Field(default=None, ge=0)
    max_value_dollars: float | None = Field(default=None, ge=0)
    category: ConversationCategory | None = None
    sort: ConversationSort | None = None
    cursor: str | None = None
    limit: int = Field(default=DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT)


class ConversationSearchRequest(ConversationSearchFilters):
    """Search request body; optionally asks for the total match count."""

    include_total: bool = False


class PlatformCustomerRead(BaseModel):
    """Customer value metadata attached to a list row."""

    email: str
    name: str | None = None
    value: int | None = None
    is_vip: bool = False


class ConversationListItem(BaseModel):
    """Inbox row for a conversation."""

    id: int
    slug: str
    subject: str | None = None
    status: str
    email_from: str | None = None
    assigned_to_id: UUID | None = None
    is_prompt: bool
    issue_group_id: int | None = None
    created_at: datetime
    updated_at: datetime
    last_message_at: datetime | None = None
    closed_at: datetime | None = None
    platform_customer: PlatformCustomerRead | None = None
    matched_message_text: str | None = None
    recent_message_text: str | None = None
    recent_message_at: datetime | None = None
    unread_message_count: int | None = None


class ConversationListResponse(BaseModel):
    """Conversation list response with cursor pagination."""

    items: list[ConversationListItem]
    next_cursor: str | None = None
    total: int | None = None


class ConversationIdsResponse(BaseModel):
    """Every conversation id matching a filter set (no pagination)."""

    ids: list[int]
    total: int
