"""Conversation search/list APIs."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from inbox.core.deps import get_current_user, get_db
from inbox.core.structured_logging import build_log_context
from inbox.db.models import User
from inbox.schemas.conversation import (
    ConversationIdsResponse,
    ConversationListItem,
    ConversationListResponse,
    ConversationSearchFilters,
    ConversationSearchRequest,
    PlatformCustomerRead,
)
from inbox.services import conversation_search_service, mailbox_settings_service
from inbox.services.conversation_search_service import ConversationSearchResult


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/conversations", tags=["Conversations"])


def _active_filter_names(filters: ConversationSearchFilters) -> list[str]:
    values = filters.model_dump(exclude={"cursor", "limit", "include_total"}, exclude_none=True)
    return [name for name, value in values.items() if value != []]


def _log_context(request: Request, user: User, filters: ConversationSearchFilters) -> dict:
    return build_log_context(
        user_id=str(user.id),
        request_id=request.headers.get("X-Request-ID"),
        route=request.url.path,
        method=request.method,
        filters=_active_filter_names(filters),
    )


def _to_list_item(result: ConversationSearchResult, vip_threshold: int | None) -> ConversationListItem:
    conversation = result.conversation
    customer = result.platform_customer
    platform_customer = None
    if customer is not None:
        platform_customer = PlatformCustomerRead(
            email=customer.email,
            name=customer.name,
            value=customer.value,
            is_vip=mailbox_settings_service.is_vip_customer(customer, vip_threshold),
        )
    return ConversationListItem(
        id=conversation.id,
        slug=conversation.slug,
        subject=conversation.subject,
        status=conversation.status.value,
        email_from=conversation.email_from,
        assigned_to_id=conversation.assigned_to_id,
        is_prompt=conversation.is_prompt,
        issue_group_id=conversation.issue_group_id,
        created_at=conversation.created_at,
        updated_at=conversation.updated_at,
        last_message_at=conversation.last_message_at,
        closed_at=conversation.closed_at,
        platform_customer=platform_customer,
        matched_message_text=result.matched_message_text,
        recent_message_text=result.recent_message_text,
        recent_message_at=result.recent_message_at,
        unread_message_count=1 if result.has_unread_messages else 0,
    )


@router.post("/search", response_model=ConversationListResponse)
def search_conversations(
    body: ConversationSearchRequest,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> ConversationListResponse:
    """List conversations matching the filters, one keyset page at a time."""
    try:
        search, page = conversation_search_service.search_conversations(
            db, body, current_user_id=user.id
        )
        total = (
            conversation_search_service.count_search_results(db, search.where)
            if body.include_total
            else None
        )
    except Exception:
        logger.exception(
            "Conversation search failed", extra=_log_context(request, user, body)
        )
        raise

    logger.debug(
        "Conversation search returned %d rows",
        len(page.results),
        extra=_log_context(request, user, body),
    )
    items = [_to_list_item(result, search.vip_threshold) for result in page.results]
    return ConversationListResponse(items=items, next_cursor=page.next_cursor, total=total)


@router.post("/search/ids", response_model=ConversationIdsResponse)
def search_conversation_ids(
    body: ConversationSearchFilters,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> ConversationIdsResponse:
    """Return every matching conversation id (for bulk actions); ignores cursor and limit."""
    try:
        search = conversation_search_service.build_search(db, body, current_user_id=user.id)
        ids = conversation_search_service.get_search_result_ids(db, search.where)
    except Exception:
        logger.exception(
            "Conversation id search failed", extra=_log_context(request, user, body)
        )
        raise
    return ConversationIdsResponse(ids=ids, total=len(ids))
