"""SQLAlchemy ORM models."""

from inbox.db.models.auth import User
from inbox.db.models.conversations import Conversation, ConversationEvent, Message
from inbox.db.models.customers import PlatformCustomer

__all__ = [
    "Conversation",
    "ConversationEvent",
    "Message",
    "PlatformCustomer",
    "User",
]
