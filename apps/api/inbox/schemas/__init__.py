"""Pydantic schemas for API request/response models."""

from inbox.schemas.conversation import (
    ConversationIdsResponse,
    ConversationListItem,
    ConversationListResponse,
    ConversationSearchFilters,
    ConversationSearchRequest,
    PlatformCustomerRead,
    StatusChangeFilter,
)

__all__ = [
    "ConversationIdsResponse",
    "ConversationListItem",
    "ConversationListResponse",
    "ConversationSearchFilters",
    "ConversationSearchRequest",
    "PlatformCustomerRead",
    "StatusChangeFilter",
]
