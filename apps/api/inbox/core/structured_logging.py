"""Structured logging helpers (PII-safe)."""

from typing import Any


def build_log_context(
    *,
    user_id: str | None = None,
    request_id: str | None = None,
    route: str | None = None,
    method: str | None = None,
    filters: list[str] | None = None,
) -> dict[str, Any]:
    """Return a PII-safe log context dict.

    ``filters`` carries only the names of active search filters, never their
    values (search text and customer emails stay out of logs).
    """
    context: dict[str, Any] = {}
    if user_id:
        context["user_id"] = user_id
    if request_id:
        context["request_id"] = request_id
    if route:
        context["route"] = route
    if method:
        context["method"] = method
    if filters:
        context["filters"] = sorted(filters)
    return context
