"""Conversation, message, and conversation event ORM models."""

from __future__ import annotations

from typing import TYPE_CHECKING

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inbox.db.base import Base
from inbox.db.enums import (
    ConversationEventType,
    ConversationStatus,
    MessageRole,
    ReactionType,
)

if TYPE_CHECKING:
    from inbox.db.models import User


# SQLite only auto-increments INTEGER PRIMARY KEY columns.
BigIntegerId = BigInteger().with_variant(Integer, "sqlite")
JSONDocument = JSON().with_variant(JSONB(), "postgresql")


def _enum_type(enum_cls, *, name: str) -> Enum:
    """Store str-enums as their value strings, portable across backends."""
    return Enum(
        enum_cls,
        name=name,
        native_enum=False,
        length=40,
        values_callable=lambda members: [member.value for member in members],
    )


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class Conversation(Base):
    """
    A support conversation with one customer.

    A conversation merged into another keeps its row but points at the
    survivor through merged_into_id; it is hidden from every list view.
    """

    __tablename__ = "conversations"
    __table_args__ = (
        Index("idx_conversations_status_last_message", "status", "last_message_at"),
        Index("idx_conversations_merged_into", "merged_into_id"),
        Index("idx_conversations_email_from", "email_from"),
    )

    id: Mapped[int] = mapped_column(BigIntegerId, primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    subject: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[ConversationStatus] = mapped_column(
        _enum_type(ConversationStatus, name="conversation_status"),
        default=ConversationStatus.OPEN,
        nullable=False,
    )
    email_from: Mapped[str | None] = mapped_column(String(320), nullable=True)
    assigned_to_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    merged_into_id: Mapped[int | None] = mapped_column(
        BigIntegerId, ForeignKey("conversations.id", ondelete="SET NULL"), nullable=True
    )
    is_prompt: Mapped[bool] = mapped_column(
        Boolean, server_default=text("FALSE"), default=False, nullable=False
    )
    issue_group_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    anonymous_session_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        default=_now_utc, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=_now_utc, server_default=func.now(), onupdate=_now_utc, nullable=False
    )
    last_message_at: Mapped[datetime | None] = mapped_column(nullable=True)
    closed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    last_read_by_assignee_at: Mapped[datetime | None] = mapped_column(nullable=True)

    assigned_to: Mapped["User | None"] = relationship()
    messages: Mapped[list["Message"]] = relationship(
        back_populates="conversation", cascade="all, delete-orphan"
    )
    events: Mapped[list["ConversationEvent"]] = relationship(
        back_populates="conversation", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Conversation id={self.id} slug={self.slug} status={self.status}>"


class Message(Base):
    """A message on a conversation; deleted_at marks a soft delete."""

    __tablename__ = "messages"
    __table_args__ = (
        Index("idx_messages_conversation_created", "conversation_id", text("created_at DESC")),
    )

    id: Mapped[int] = mapped_column(BigIntegerId, primary_key=True, autoincrement=True)
    conversation_id: Mapped[int] = mapped_column(
        BigIntegerId, ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[MessageRole] = mapped_column(
        _enum_type(MessageRole, name="message_role"), nullable=False
    )
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    cleaned_up_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        default=_now_utc, server_default=func.now(), nullable=False
    )
    deleted_at: Mapped[datetime | None] = mapped_column(nullable=True)
    reaction_type: Mapped[ReactionType | None] = mapped_column(
        _enum_type(ReactionType, name="reaction_type"), nullable=True
    )
    reaction_created_at: Mapped[datetime | None] = mapped_column(nullable=True)

    conversation: Mapped["Conversation"] = relationship(back_populates="messages")


class ConversationEvent(Base):
    """Immutable timeline event; status changes carry {"status": ...} in changes."""

    __tablename__ = "conversation_events"
    __table_args__ = (
        Index("idx_conversation_events_conversation_type", "conversation_id", "type"),
    )

    id: Mapped[int] = mapped_column(BigIntegerId, primary_key=True, autoincrement=True)
    conversation_id: Mapped[int] = mapped_column(
        BigIntegerId, ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[ConversationEventType] = mapped_column(
        _enum_type(ConversationEventType, name="conversation_event_type"), nullable=False
    )
    changes: Mapped[dict] = mapped_column(JSONDocument, default=dict, nullable=False)
    by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        default=_now_utc, server_default=func.now(), nullable=False
    )

    conversation: Mapped["Conversation"] = relationship(back_populates="events")
