"""Tests for structured logging helpers."""

from inbox.core.structured_logging import build_log_context


def test_build_log_context_includes_only_provided_fields():
    context = build_log_context(
        user_id="user-1",
        request_id="req-1",
        route="/conversations/search",
        method="POST",
        filters=["status", "assignee"],
    )

    assert context == {
        "user_id": "user-1",
        "request_id": "req-1",
        "route": "/conversations/search",
        "method": "POST",
        "filters": ["assignee", "status"],
    }


def test_build_log_context_ignores_empty_fields():
    context = build_log_context(
        user_id="",
        request_id="req-1",
        filters=[],
    )

    assert context == {"request_id": "req-1"}
