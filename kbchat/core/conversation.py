"""Conversation session machine for role-play chat."""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime

from ..api import RolePlayApi
from ..config import Settings, settings as default_settings
from ..context import request_scope
from ..errors import ValidationRejectedError
from ..events import ClientEvents, EventBus
from ..models import (
    ConversationMessage,
    ConversationSession,
    SendMessageRequest,
    SessionStatus,
    StartSessionRequest,
)

logger = logging.getLogger(__name__)


@dataclass
class _SessionSlot:
    """Local copy of one open session."""

    session: ConversationSession
    messages: list[ConversationMessage] = field(default_factory=list)
    sending: bool = False
    pending_text: str | None = None


class ConversationSessionMachine:
    """Tracks open conversation sessions against the server.

    The server is the source of truth. Counters and the message log only move when a
    response has been confirmed: a failed send leaves everything as it was, and the
    text being sent is exposed only as ``pending_text`` until the send settles.

    Lifecycle per session: ``active <-> paused``, ``active|paused -> ended``. Nothing
    leaves ``ended``.

    One send may be in flight per session. Results that arrive after a session was
    released (or the machine closed) are dropped without touching local state.
    """

    def __init__(
        self,
        roleplay_api: RolePlayApi,
        bus: EventBus | None = None,
        settings: Settings | None = None,
    ):
        self.api = roleplay_api
        self.bus = bus or EventBus()
        self.settings = settings or default_settings
        self._slots: dict[str, _SessionSlot] = {}
        self._closed = False

    # Read side

    def session(self, session_id: str) -> ConversationSession:
        return self._require_slot(session_id).session

    def messages(self, session_id: str) -> list[ConversationMessage]:
        return list(self._require_slot(session_id).messages)

    def is_open(self, session_id: str) -> bool:
        return session_id in self._slots

    def is_sending(self, session_id: str) -> bool:
        slot = self._slots.get(session_id)
        return bool(slot and slot.sending)

    def pending_text(self, session_id: str) -> str | None:
        """Text of the send in flight, for a transient "sending" bubble."""
        slot = self._slots.get(session_id)
        return slot.pending_text if slot else None

    @property
    def open_sessions(self) -> list[ConversationSession]:
        return [slot.session for slot in self._slots.values()]

    # Helpers

    def _ensure_open(self) -> None:
        if self._closed:
            raise ValidationRejectedError("Conversation view has been closed")

    def _require_slot(self, session_id: str) -> _SessionSlot:
        self._ensure_open()
        slot = self._slots.get(session_id)
        if slot is None:
            raise ValidationRejectedError(f"Session {session_id} is not open")
        return slot

    def _is_current(self, session_id: str, slot: _SessionSlot) -> bool:
        return not self._closed and self._slots.get(session_id) is slot

    @staticmethod
    def _number_history(
        session_id: str, history: list[ConversationMessage]
    ) -> list[ConversationMessage]:
        numbered = []
        for position, message in enumerate(history, start=1):
            if message.turn_index not in (None, position):
                logger.debug(
                    f"Server turn {message.turn_index} at position {position} "
                    f"in session {session_id}; using position"
                )
            numbered.append(
                message.model_copy(
                    update={
                        "turn_index": position,
                        "session_id": message.session_id or session_id,
                    }
                )
            )
        return numbered

    # Lifecycle

    async def start(
        self, subject_id: int, session_name: str | None = None
    ) -> ConversationSession:
        """Ask the server for a new session and open it locally.

        No local session exists until the server has assigned an id; if the request
        fails the error propagates and nothing is opened.
        """
        self._ensure_open()
        created = await self.api.start_session(
            StartSessionRequest(character_id=subject_id, session_name=session_name)
        )
        session = created.model_copy(
            update={
                "message_count": 0,
                "token_usage": 0,
                "subject_id": created.subject_id or subject_id,
            }
        )
        if self._closed:
            logger.info(f"Session {session.id} started after close; not tracking it")
            return session

        self._slots[session.id] = _SessionSlot(session=session)
        logger.info(f"Started session {session.id} with subject {session.subject_id}")
        return session

    async def open(self, session_id: str) -> ConversationSession:
        """Rehydrate an existing session (e.g. from a bookmark) with its history."""
        self._ensure_open()
        session = await self.api.get_session(session_id)
        history = await self.api.get_session_history(session_id)
        if self._closed:
            return session

        slot = _SessionSlot(session=session, messages=self._number_history(session.id, history))
        self._slots[session.id] = slot
        logger.info(f"Opened session {session.id} with {len(slot.messages)} message(s)")
        return session

    async def list_history(self, session_id: str) -> list[ConversationMessage]:
        """Fetch the full ordered log; it replaces the local log entirely."""
        self._ensure_open()
        slot = self._slots.get(session_id)
        history = self._number_history(
            session_id, await self.api.get_session_history(session_id)
        )
        if slot is not None and self._is_current(session_id, slot):
            slot.messages = list(history)
        return history

    async def list_sessions(self, subject_id: int | None = None) -> list[ConversationSession]:
        """List the user's sessions, optionally only those with one subject."""
        sessions = await self.api.get_sessions()
        if subject_id is None:
            return sessions
        return [s for s in sessions if s.subject_id == subject_id]

    def pause(self, session_id: str) -> ConversationSession:
        slot = self._require_slot(session_id)
        if slot.session.status == SessionStatus.ENDED:
            raise ValidationRejectedError(f"Session {session_id} has ended")
        if slot.session.status == SessionStatus.ACTIVE:
            slot.session = slot.session.model_copy(update={"status": SessionStatus.PAUSED})
            logger.info(f"Paused session {session_id}")
        return slot.session

    def resume(self, session_id: str) -> ConversationSession:
        slot = self._require_slot(session_id)
        if slot.session.status == SessionStatus.ENDED:
            raise ValidationRejectedError(f"Session {session_id} has ended")
        if slot.session.status == SessionStatus.PAUSED:
            slot.session = slot.session.model_copy(update={"status": SessionStatus.ACTIVE})
            logger.info(f"Resumed session {session_id}")
        return slot.session

    async def end(self, session_id: str) -> ConversationSession:
        """End a session on the server, then locally. Ended is terminal."""
        slot = self._require_slot(session_id)
        if slot.session.status == SessionStatus.ENDED:
            raise ValidationRejectedError(f"Session {session_id} has already ended")
        if slot.sending:
            raise ValidationRejectedError(
                f"Session {session_id} has a message in flight; wait for it to settle"
            )

        await self.api.end_session(session_id)
        if not self._is_current(session_id, slot):
            return slot.session.model_copy(update={"status": SessionStatus.ENDED})

        slot.session = slot.session.model_copy(update={"status": SessionStatus.ENDED})
        logger.info(f"Ended session {session_id}")
        self.bus.emit(ClientEvents.CONVERSATION_ENDED, {"session_id": session_id})
        return slot.session

    async def delete(self, session_id: str) -> None:
        """Delete a session on the server and release the local copy."""
        self._ensure_open()
        await self.api.delete_session(session_id)
        self.release(session_id)

    def release(self, session_id: str) -> None:
        """Forget the local copy; server state is untouched."""
        if self._slots.pop(session_id, None) is not None:
            logger.debug(f"Released session {session_id}")

    def close(self) -> None:
        """Release everything; late results are ignored from now on."""
        self._closed = True
        self._slots.clear()

    # Messages

    async def send_message(self, session_id: str, text: str) -> ConversationMessage:
        """Send one message and append the confirmed turn.

        Raises:
            ValidationRejectedError: Empty text, session not active, or another send
                still in flight. No request is made.
            ApiError: The send failed; log and counters are unchanged.
        """
        slot = self._require_slot(session_id)
        message_text = text.strip() if isinstance(text, str) else ""
        if not message_text:
            raise ValidationRejectedError("Message text must not be empty")
        if slot.session.status != SessionStatus.ACTIVE:
            raise ValidationRejectedError(
                f"Session {session_id} is {slot.session.status.value}; "
                "messages can only be sent to an active session"
            )
        if slot.sending:
            raise ValidationRejectedError(
                f"A message is already being sent in session {session_id}"
            )

        slot.sending = True
        slot.pending_text = message_text
        try:
            with request_scope(session_id=session_id):
                response = await self.api.send_message(
                    SendMessageRequest(session_id=session_id, message=message_text)
                )
        finally:
            slot.sending = False
            slot.pending_text = None

        now = datetime.now(UTC)
        previous_turn = max((m.turn_index or 0 for m in slot.messages), default=0)
        message = ConversationMessage(
            id=response.message_id,
            session_id=session_id,
            user_text=response.user_message or message_text,
            response_text=response.character_response,
            response_time_ms=response.response_time_ms,
            token_usage=response.token_usage,
            used_retrieval=response.used_rag,
            retrieved_count=response.retrieved_document_count,
            turn_index=previous_turn + 1,
            created_at=response.timestamp or now,
        )

        if not self._is_current(session_id, slot):
            logger.info(f"Session {session_id} was released; dropping confirmed reply")
            return message

        slot.messages.append(message)
        slot.session = slot.session.model_copy(
            update={
                "message_count": slot.session.message_count + 1,
                "token_usage": slot.session.token_usage + message.token_usage,
                "last_active_at": now,
            }
        )
        logger.debug(
            f"Session {session_id}: turn {message.turn_index}, "
            f"+{message.token_usage} tokens ({slot.session.token_usage} total)"
        )
        self.bus.emit(
            ClientEvents.CONVERSATION_MESSAGE_APPENDED,
            {"session_id": session_id, "turn_index": message.turn_index},
        )
        return message

    def _find_message(self, message_id: str) -> tuple[_SessionSlot, int] | None:
        for slot in self._slots.values():
            for index, message in enumerate(slot.messages):
                if message.id == message_id:
                    return slot, index
        return None

    async def rate(self, message_id: str | int | None, rating: int) -> ConversationMessage:
        """Record feedback on a message after the server accepts it.

        Re-rating overwrites the previous value. Ordering and counters are unaffected.
        """
        self._ensure_open()
        if message_id is None:
            raise ValidationRejectedError("Message has no server id and cannot be rated")
        low, high = self.settings.rating_min, self.settings.rating_max
        if isinstance(rating, bool) or not isinstance(rating, int) or not low <= rating <= high:
            raise ValidationRejectedError(f"Rating must be an integer from {low} to {high}")
        message_id = str(message_id)
        if self._find_message(message_id) is None:
            raise ValidationRejectedError(f"Message {message_id} is not in an open session")

        await self.api.rate_message(message_id, rating)

        # The log may have been replaced or released while the request was in flight
        found = self._find_message(message_id)
        if found is None or self._closed:
            logger.info(f"Message {message_id} no longer open; rating kept server-side only")
            return ConversationMessage(id=message_id, feedback_rating=rating)

        slot, index = found
        rated = slot.messages[index].model_copy(update={"feedback_rating": rating})
        slot.messages[index] = rated
        logger.info(f"Rated message {message_id}: {rating}")
        return rated
