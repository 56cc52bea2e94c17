"""Conversation session and message models."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import AliasChoices, Field, field_validator

from .base import CamelModel, coerce_token_usage


class SessionStatus(str, Enum):
    """Conversation session lifecycle.

    ``active`` and ``paused`` are interchangeable; ``ended`` is terminal.
    """

    ACTIVE = "active"
    PAUSED = "paused"
    ENDED = "ended"


# Server statuses that only follow an ended session
_TERMINAL_ALIASES = {"archived", "deleted"}


def _ms_to_datetime(value: Any) -> Any:
    if isinstance(value, int | float) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000, tz=UTC)
    return value


def _id_to_str(value: Any) -> Any:
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


class ConversationSession(CamelModel):
    """A server-tracked conversation with a character or knowledge base."""

    id: str = Field(..., validation_alias=AliasChoices("id", "sessionId", "session_id"))
    subject_id: int | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "subject_id", "subjectId", "characterId", "knowledgeBaseId", "characterOrKbId"
        ),
    )
    name: str | None = Field(
        default=None, validation_alias=AliasChoices("name", "sessionName", "session_name")
    )
    status: SessionStatus = SessionStatus.ACTIVE
    message_count: int = Field(default=0, ge=0)
    token_usage: int = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("token_usage", "tokenUsage", "totalTokens"),
    )
    last_active_at: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices("last_active_at", "lastActiveAt", "lastActivityAt"),
    )
    created_at: datetime | None = None

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v: Any) -> Any:
        return _id_to_str(v)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v: Any) -> Any:
        if isinstance(v, str):
            value = v.strip().lower()
            return SessionStatus.ENDED.value if value in _TERMINAL_ALIASES else value
        return v

    @field_validator("token_usage", mode="before")
    @classmethod
    def parse_token_usage(cls, v: Any) -> int:
        return coerce_token_usage(v)

    @field_validator("message_count", mode="before")
    @classmethod
    def default_message_count(cls, v: Any) -> Any:
        return 0 if v is None else v

    @property
    def is_ended(self) -> bool:
        return self.status == SessionStatus.ENDED


class ConversationMessage(CamelModel):
    """One confirmed turn: the user's text and the response to it."""

    id: str | None = Field(
        default=None, validation_alias=AliasChoices("id", "messageId", "historyId")
    )
    session_id: str | None = Field(
        default=None, validation_alias=AliasChoices("session_id", "sessionId")
    )
    user_text: str = Field(
        default="", validation_alias=AliasChoices("user_text", "userText", "userMessage")
    )
    response_text: str = Field(
        default="",
        validation_alias=AliasChoices("response_text", "responseText", "characterResponse"),
    )
    response_time_ms: int = Field(
        default=0, validation_alias=AliasChoices("response_time_ms", "responseTimeMs")
    )
    token_usage: int = Field(
        default=0, validation_alias=AliasChoices("token_usage", "tokenUsage")
    )
    used_retrieval: bool = Field(
        default=False, validation_alias=AliasChoices("used_retrieval", "usedRetrieval", "usedRag")
    )
    retrieved_count: int = Field(
        default=0,
        validation_alias=AliasChoices(
            "retrieved_count",
            "retrievedCount",
            "retrievedDocumentCount",
            "retrievedChunksCount",
        ),
    )
    turn_index: int | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "turn_index", "turnIndex", "turnNumber", "conversationTurn"
        ),
    )
    feedback_rating: int | None = Field(
        default=None,
        validation_alias=AliasChoices("feedback_rating", "feedbackRating", "userRating"),
    )
    created_at: datetime | None = None

    @field_validator("id", "session_id", mode="before")
    @classmethod
    def stringify_ids(cls, v: Any) -> Any:
        return _id_to_str(v)

    @field_validator("token_usage", mode="before")
    @classmethod
    def parse_token_usage(cls, v: Any) -> int:
        return coerce_token_usage(v)

    @field_validator("response_time_ms", "retrieved_count", mode="before")
    @classmethod
    def default_zero(cls, v: Any) -> Any:
        return 0 if v is None else v

    @field_validator("used_retrieval", mode="before")
    @classmethod
    def default_false(cls, v: Any) -> Any:
        return False if v is None else v


class StartSessionRequest(CamelModel):
    character_id: int
    session_name: str | None = None


class SendMessageRequest(CamelModel):
    session_id: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)


class RateMessageRequest(CamelModel):
    rating: int


class MessageResponse(CamelModel):
    """Server confirmation of one sent message."""

    message_id: str | None = Field(
        default=None, validation_alias=AliasChoices("message_id", "messageId", "historyId", "id")
    )
    session_id: str | None = None
    user_message: str = ""
    character_response: str = ""
    response_time_ms: int = 0
    token_usage: int = 0
    used_rag: bool = False
    retrieved_document_count: int = 0
    turn_number: int | None = None
    timestamp: datetime | None = None

    @field_validator("message_id", "session_id", mode="before")
    @classmethod
    def stringify_ids(cls, v: Any) -> Any:
        return _id_to_str(v)

    @field_validator("token_usage", mode="before")
    @classmethod
    def parse_token_usage(cls, v: Any) -> int:
        return coerce_token_usage(v)

    @field_validator("timestamp", mode="before")
    @classmethod
    def parse_epoch_millis(cls, v: Any) -> Any:
        return _ms_to_datetime(v)

    @field_validator("response_time_ms", "retrieved_document_count", mode="before")
    @classmethod
    def default_zero(cls, v: Any) -> Any:
        return 0 if v is None else v

    @field_validator("used_rag", mode="before")
    @classmethod
    def default_false(cls, v: Any) -> Any:
        return False if v is None else v
