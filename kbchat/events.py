"""
Client Events

Centralized event names and the in-process bus they travel on.

Naming convention: {domain}_{action}. The transport only emits; listeners are owned by
the components that react (the session gate for authentication events).
"""

import logging
from collections import defaultdict
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

Listener = Callable[[dict[str, Any]], None]


class ClientEvents:
    """Centralized client event names."""

    # Authentication
    AUTH_EXPIRED = "auth_expired"
    AUTH_STATE_CHANGED = "auth_state_changed"

    # Requests
    REQUEST_FAILED = "request_failed"

    # Conversations
    CONVERSATION_MESSAGE_APPENDED = "conversation_message_appended"
    CONVERSATION_ENDED = "conversation_ended"


class EventBus:
    """Synchronous publish/subscribe bus.

    Listeners run in subscription order inside ``emit``, so their effects are visible
    to the emitter as soon as ``emit`` returns.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    def subscribe(self, event: str, listener: Listener) -> Callable[[], None]:
        """Register a listener.

        Returns:
            A callable that removes the listener again.
        """
        self._listeners[event].append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners[event]:
                self._listeners[event].remove(listener)

        return unsubscribe

    def emit(self, event: str, payload: dict[str, Any] | None = None) -> None:
        """Deliver an event to every listener.

        A failing listener is logged and does not stop delivery to the others.
        """
        payload = payload or {}
        for listener in list(self._listeners[event]):
            try:
                listener(payload)
            except Exception as e:
                logger.error(f"Listener for '{event}' failed: {e}", exc_info=True)

    def listener_count(self, event: str) -> int:
        return len(self._listeners[event])
