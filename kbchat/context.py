"""Correlation ids for outgoing requests.

A message send tags its request with an id and the conversation session it belongs
to. The values live in a ContextVar, so two sends running as separate tasks never see
each other's id. ``ApiClient`` reads the id for the ``X-Request-ID`` header and its
log lines; requests made outside any scope get a one-off id.
"""

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

_request_context: ContextVar[dict[str, Any]] = ContextVar("request_context", default={})


def generate_correlation_id() -> str:
    return str(uuid.uuid4())


def set_request_context(request_id: str, session_id: str | None = None, **extra: Any) -> None:
    """Replace the context of the current task.

    Extra keyword arguments are stored alongside ``request_id`` and ``session_id``.
    """
    _request_context.set({"request_id": request_id, "session_id": session_id, **extra})


def get_request_context() -> dict[str, Any]:
    return _request_context.get()


def current_request_id() -> str:
    """The scoped id, or a fresh one when no scope is active."""
    return _request_context.get().get("request_id") or generate_correlation_id()


def clear_request_context() -> None:
    _request_context.set({})


@contextmanager
def request_scope(session_id: str | None = None, **extra: Any) -> Iterator[str]:
    """Run the block under a new correlation id and yield it.

    The previous context is restored on exit, so scopes nest.
    """
    request_id = generate_correlation_id()
    token = _request_context.set({"request_id": request_id, "session_id": session_id, **extra})
    try:
        yield request_id
    finally:
        _request_context.reset(token)
