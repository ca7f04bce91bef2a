"""Enum definitions for application constants."""

from inbox.db.enums.conversations import (
    ConversationCategory,
    ConversationEventType,
    ConversationSort,
    ConversationStatus,
    MessageRole,
    ReactionType,
    StatusChangeActor,
)

# Event reasons written when the bot (not a person) changes a conversation's status.
CLOSED_BY_AGENT_REASON = "Closed by agent"
REOPENED_BY_AGENT_REASON = "Reopened by agent"
MARKED_AS_SPAM_BY_AGENT_REASON = "Marked as spam by agent"

__all__ = [
    "CLOSED_BY_AGENT_REASON",
    "ConversationCategory",
    "ConversationEventType",
    "ConversationSort",
    "ConversationStatus",
    "MARKED_AS_SPAM_BY_AGENT_REASON",
    "MessageRole",
    "REOPENED_BY_AGENT_REASON",
    "ReactionType",
    "StatusChangeActor",
]
