"""Conversation, message, and event enums."""

from enum import Enum


class ConversationStatus(str, Enum):
    """Conversation lifecycle status."""

    OPEN = "open"
    CLOSED = "closed"
    SPAM = "spam"


class MessageRole(str, Enum):
    """Author kind of a conversation message."""

    USER = "user"
    STAFF = "staff"
    AI_ASSISTANT = "ai_assistant"
    TOOL = "tool"


class ReactionType(str, Enum):
    """Customer reaction left on a message."""

    THUMBS_UP = "thumbs-up"
    THUMBS_DOWN = "thumbs-down"


class ConversationEventType(str, Enum):
    """Conversation timeline event type."""

    UPDATE = "update"
    REQUEST_HUMAN_SUPPORT = "request_human_support"
    REASONING_TOGGLED = "reasoning_toggled"
    RESOLVED_BY_AI = "resolved_by_ai"
    AUTO_CLOSED_DUE_TO_INACTIVITY = "auto_closed_due_to_inactivity"


class ConversationCategory(str, Enum):
    """Inbox category tabs; each implies status/assignee defaults."""

    ALL = "all"
    MINE = "mine"
    ASSIGNED = "assigned"
    UNASSIGNED = "unassigned"


class ConversationSort(str, Enum):
    """Requested list ordering."""

    NEWEST = "newest"
    OLDEST = "oldest"
    HIGHEST_VALUE = "highest_value"


class StatusChangeActor(str, Enum):
    """Who performed a status change recorded as an event."""

    AUTOMATED = "automated"
    HUMAN = "human"
