"""Keyword search over conversation messages.

Provides:
- PostgreSQL full-text matching (websearch_to_tsquery) with ts_headline snippets
- Escaped case-insensitive substring matching on other backends
- At most one match per conversation (its most recent matching message)
- Scoping by conversation-level predicates so unrelated rows are never scanned
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from inbox.core.config import settings
from inbox.db.enums import MessageRole
from inbox.db.models import Conversation, Message
from inbox.services.conversation_filters import FilterSet
from inbox.services.predicate_sql import render_filters
from inbox.utils.normalization import escape_like_string, normalize_search_text, snippet_around


logger = logging.getLogger(__name__)

_TS_DICTIONARY = "simple"
_HEADLINE_OPTIONS = "MaxFragments=1, MaxWords=30, MinWords=10, StartSel=, StopSel="


@dataclass(frozen=True)
class KeywordMatch:
    """A conversation whose messages matched the query, with the matching text."""

    conversation_id: int
    matched_text: str | None


def search_by_keywords(
    db: Session,
    query: str,
    predicates: FilterSet,
    *,
    max_matches: int | None = None,
) -> list[KeywordMatch]:
    """
    Find conversations with a non-deleted user/staff message matching ``query``.

    ``predicates`` must be conversation-level only (see
    ``FilterSet.conversation_level``). Database errors propagate.
    """
    text_query = normalize_search_text(query)
    if not text_query:
        return []
    limit = max_matches or settings.KEYWORD_SEARCH_MAX_MATCHES

    body = func.coalesce(Message.cleaned_up_text, "")
    use_full_text = db.get_bind().dialect.name == "postgresql"
    if use_full_text:
        tsquery = func.websearch_to_tsquery(_TS_DICTIONARY, text_query)
        match = func.to_tsvector(_TS_DICTIONARY, body).op("@@")(tsquery)
        snippet = func.ts_headline(_TS_DICTIONARY, body, tsquery, _HEADLINE_OPTIONS)
    else:
        match = Message.cleaned_up_text.ilike(
            f"%{escape_like_string(text_query)}%", escape="\\"
        )
        snippet = Message.cleaned_up_text

    ranked = (
        select(
            Message.conversation_id.label("conversation_id"),
            snippet.label("snippet"),
            func.row_number()
            .over(
                partition_by=Message.conversation_id,
                order_by=(Message.created_at.desc(), Message.id.desc()),
            )
            .label("rank"),
        )
        .join(Conversation, Conversation.id == Message.conversation_id)
        .where(
            match,
            Message.deleted_at.is_(None),
            Message.role.in_([MessageRole.USER, MessageRole.STAFF]),
            *render_filters(predicates),
        )
        .subquery()
    )
    rows = db.execute(
        select(ranked.c.conversation_id, ranked.c.snippet)
        .where(ranked.c.rank == 1)
        .order_by(ranked.c.conversation_id.desc())
        .limit(limit)
    ).all()

    if len(rows) >= limit:
        logger.info("Keyword search hit the match cap", extra={"max_matches": limit})

    return [
        KeywordMatch(
            conversation_id=row.conversation_id,
            matched_text=row.snippet if use_full_text else snippet_around(row.snippet, text_query),
        )
        for row in rows
    ]
