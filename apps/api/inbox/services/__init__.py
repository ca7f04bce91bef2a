"""Service layer modules."""

from inbox.services.conversation_search_service import (
    ConversationSearch,
    ConversationSearchPage,
    ConversationSearchResult,
    build_search,
    count_search_results,
    fetch_page,
    get_search_result_ids,
    search_conversations,
)

__all__ = [
    "ConversationSearch",
    "ConversationSearchPage",
    "ConversationSearchResult",
    "build_search",
    "count_search_results",
    "fetch_page",
    "get_search_result_ids",
    "search_conversations",
]
