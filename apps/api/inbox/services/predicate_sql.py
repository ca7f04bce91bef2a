"""Render typed conversation predicates to SQLAlchemy expressions."""

from __future__ import annotations

from typing import Any

from sqlalchemy import and_, false, func, or_, select, true
from sqlalchemy.sql.elements import ColumnElement

from inbox.db.models import Conversation, ConversationEvent, Message, PlatformCustomer
from inbox.services.conversation_filters import (
    AllOf,
    AnyOf,
    Compare,
    Comparison,
    Contains,
    Equals,
    Exists,
    Field,
    FilterSet,
    InList,
    IsNull,
    Predicate,
    Relation,
)
from inbox.services.conversation_ordering import OrderingStrategy
from inbox.utils.normalization import escape_like_string


def field_expression(field: Field) -> ColumnElement:
    """SQL expression for a symbolic field."""
    if field == Field.ACTIVITY_AT:
        return func.coalesce(Conversation.last_message_at, Conversation.created_at)
    if field == Field.READ_MARK_AT:
        return func.coalesce(Conversation.last_read_by_assignee_at, Conversation.created_at)
    if field == Field.EVENT_STATUS:
        return ConversationEvent.changes["status"].as_string()
    return _COLUMNS[field]


_COLUMNS: dict[Field, Any] = {
    Field.CONVERSATION_ID: Conversation.id,
    Field.STATUS: Conversation.status,
    Field.ASSIGNED_TO_ID: Conversation.assigned_to_id,
    Field.MERGED_INTO_ID: Conversation.merged_into_id,
    Field.IS_PROMPT: Conversation.is_prompt,
    Field.EMAIL_FROM: Conversation.email_from,
    Field.ANONYMOUS_SESSION_ID: Conversation.anonymous_session_id,
    Field.ISSUE_GROUP_ID: Conversation.issue_group_id,
    Field.CREATED_AT: Conversation.created_at,
    Field.CLOSED_AT: Conversation.closed_at,
    Field.CUSTOMER_VALUE: PlatformCustomer.value,
    Field.MESSAGE_ROLE: Message.role,
    Field.MESSAGE_USER_ID: Message.user_id,
    Field.MESSAGE_CREATED_AT: Message.created_at,
    Field.MESSAGE_DELETED_AT: Message.deleted_at,
    Field.MESSAGE_REACTION_TYPE: Message.reaction_type,
    Field.MESSAGE_REACTION_CREATED_AT: Message.reaction_created_at,
    Field.EVENT_TYPE: ConversationEvent.type,
    Field.EVENT_BY_USER_ID: ConversationEvent.by_user_id,
    Field.EVENT_REASON: ConversationEvent.reason,
    Field.EVENT_CREATED_AT: ConversationEvent.created_at,
}

_RELATIONS = {
    Relation.MESSAGES: (Message.id, Message.conversation_id),
    Relation.EVENTS: (ConversationEvent.id, ConversationEvent.conversation_id),
}


def _operand(value: Any) -> Any:
    if isinstance(value, Field):
        return field_expression(value)
    return value


def _compare(expression: ColumnElement, op: Comparison, value: Any) -> ColumnElement:
    operand = _operand(value)
    if op == Comparison.LT:
        return expression < operand
    if op == Comparison.LTE:
        return expression <= operand
    if op == Comparison.GT:
        return expression > operand
    return expression >= operand


def render_predicate(predicate: Predicate) -> ColumnElement:
    if isinstance(predicate, IsNull):
        column = field_expression(predicate.field)
        return column.is_not(None) if predicate.negated else column.is_(None)
    if isinstance(predicate, Equals):
        return field_expression(predicate.field) == _operand(predicate.value)
    if isinstance(predicate, InList):
        return field_expression(predicate.field).in_(list(predicate.values))
    if isinstance(predicate, Compare):
        return _compare(field_expression(predicate.field), predicate.op, predicate.value)
    if isinstance(predicate, Contains):
        pattern = f"%{escape_like_string(predicate.text)}%"
        return field_expression(predicate.field).ilike(pattern, escape="\\")
    if isinstance(predicate, Exists):
        row_id, conversation_id = _RELATIONS[predicate.relation]
        return (
            select(row_id)
            .where(
                conversation_id == Conversation.id,
                *(render_predicate(c) for c in predicate.conditions),
            )
            .exists()
        )
    if isinstance(predicate, AllOf):
        if not predicate.predicates:
            return true()
        return and_(*(render_predicate(p) for p in predicate.predicates))
    if isinstance(predicate, AnyOf):
        if not predicate.predicates:
            return false()
        return or_(*(render_predicate(p) for p in predicate.predicates))
    raise TypeError(f"Unsupported predicate: {predicate!r}")


def render_filters(filter_set: FilterSet) -> list[ColumnElement]:
    return [render_predicate(predicate) for predicate in filter_set.predicates()]


def render_order_by(ordering: OrderingStrategy) -> list[ColumnElement]:
    clauses = []
    for key in ordering.keys:
        expression = field_expression(key.field)
        clause = expression.desc() if key.descending else expression.asc()
        if key.nullable:
            clause = clause.nulls_last()
        clauses.append(clause)
    return clauses
