"""Baseline migration - users, conversations, messages, events, platform customers

Revision ID: 0001_inbox_baseline
Revises:
Create Date: 2026-10-19

Creates the inbox tables and the indexes the conversation list relies on:
most-recent message lookup, value ordering, and status/activity filtering.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "0001_inbox_baseline"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create inbox tables."""

    # ==========================================================================
    # Users
    # ==========================================================================
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("display_name", sa.Text(), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("TRUE"), nullable=False),
        sa.Column("token_version", sa.Integer(), server_default=sa.text("1"), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    # ==========================================================================
    # Conversations
    # ==========================================================================
    op.create_table(
        "conversations",
        sa.Column("id", sa.BigInteger(), sa.Identity(), nullable=False),
        sa.Column("slug", sa.String(64), nullable=False),
        sa.Column("subject", sa.Text(), nullable=True),
        sa.Column("status", sa.String(40), nullable=False, server_default="open"),
        sa.Column("email_from", sa.String(320), nullable=True),
        sa.Column("assigned_to_id", sa.Uuid(), nullable=True),
        sa.Column("merged_into_id", sa.BigInteger(), nullable=True),
        sa.Column("is_prompt", sa.Boolean(), server_default=sa.text("FALSE"), nullable=False),
        sa.Column("issue_group_id", sa.BigInteger(), nullable=True),
        sa.Column("anonymous_session_id", sa.String(255), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column("last_message_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("closed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_read_by_assignee_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_conversations"),
        sa.UniqueConstraint("slug", name="uq_conversations_slug"),
        sa.ForeignKeyConstraint(
            ["assigned_to_id"],
            ["users.id"],
            name="fk_conversations_assigned_to_id_users",
            ondelete="SET NULL",
        ),
        sa.ForeignKeyConstraint(
            ["merged_into_id"],
            ["conversations.id"],
            name="fk_conversations_merged_into_id_conversations",
            ondelete="SET NULL",
        ),
        sa.CheckConstraint(
            "status IN ('open', 'closed', 'spam')", name="ck_conversations_conversation_status"
        ),
    )
    op.create_index(
        "idx_conversations_status_last_message", "conversations", ["status", "last_message_at"]
    )
    op.create_index("idx_conversations_merged_into", "conversations", ["merged_into_id"])
    op.create_index("idx_conversations_email_from", "conversations", ["email_from"])

    # ==========================================================================
    # Messages
    # ==========================================================================
    op.create_table(
        "messages",
        sa.Column("id", sa.BigInteger(), sa.Identity(), nullable=False),
        sa.Column("conversation_id", sa.BigInteger(), nullable=False),
        sa.Column("role", sa.String(40), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=True),
        sa.Column("cleaned_up_text", sa.Text(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reaction_type", sa.String(40), nullable=True),
        sa.Column("reaction_created_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_messages"),
        sa.ForeignKeyConstraint(
            ["conversation_id"],
            ["conversations.id"],
            name="fk_messages_conversation_id_conversations",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], name="fk_messages_user_id_users", ondelete="SET NULL"
        ),
    )
    op.create_index(
        "idx_messages_conversation_created",
        "messages",
        ["conversation_id", sa.text("created_at DESC")],
    )
    # Full-text search over message bodies (keyword search)
    op.execute(
        "CREATE INDEX idx_messages_cleaned_up_text_fts ON messages "
        "USING gin (to_tsvector('simple', coalesce(cleaned_up_text, '')))"
    )

    # ==========================================================================
    # Conversation events
    # ==========================================================================
    op.create_table(
        "conversation_events",
        sa.Column("id", sa.BigInteger(), sa.Identity(), nullable=False),
        sa.Column("conversation_id", sa.BigInteger(), nullable=False),
        sa.Column("type", sa.String(40), nullable=False),
        sa.Column(
            "changes",
            postgresql.JSONB(),
            server_default=sa.text("'{}'::jsonb"),
            nullable=False,
        ),
        sa.Column("by_user_id", sa.Uuid(), nullable=True),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.PrimaryKeyConstraint("id", name="pk_conversation_events"),
        sa.ForeignKeyConstraint(
            ["conversation_id"],
            ["conversations.id"],
            name="fk_conversation_events_conversation_id_conversations",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["by_user_id"],
            ["users.id"],
            name="fk_conversation_events_by_user_id_users",
            ondelete="SET NULL",
        ),
    )
    op.create_index(
        "idx_conversation_events_conversation_type",
        "conversation_events",
        ["conversation_id", "type"],
    )

    # ==========================================================================
    # Platform customers
    # ==========================================================================
    op.create_table(
        "platform_customers",
        sa.Column("id", sa.BigInteger(), sa.Identity(), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("value", sa.BigInteger(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.PrimaryKeyConstraint("id", name="pk_platform_customers"),
        sa.UniqueConstraint("email", name="uq_platform_customers_email"),
    )
    op.execute(
        "CREATE INDEX idx_platform_customers_value ON platform_customers "
        "USING btree (value DESC NULLS LAST)"
    )


def downgrade() -> None:
    """Drop inbox tables."""
    op.drop_table("platform_customers")
    op.drop_table("conversation_events")
    op.execute("DROP INDEX IF EXISTS idx_messages_cleaned_up_text_fts")
    op.drop_table("messages")
    op.drop_table("conversations")
    op.drop_table("users")
