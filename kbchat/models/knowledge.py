"""Knowledge base, document, character and RAG models."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import ConfigDict, Field, field_validator

from .base import CamelModel


class KnowledgeBase(CamelModel):
    id: int
    name: str
    description: str | None = None
    user_id: int | None = None
    document_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


class KnowledgeBaseCreateRequest(CamelModel):
    name: str = Field(..., min_length=1)
    description: str | None = None

    def to_form(self) -> dict[str, str]:
        form = {"name": self.name}
        if self.description:
            form["description"] = self.description
        return form


class ProcessStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class Document(CamelModel):
    id: int
    file_name: str | None = None
    original_file_name: str | None = None
    file_size: int | None = None
    content_type: str | None = None
    process_status: ProcessStatus = ProcessStatus.PENDING
    knowledge_base_id: int | None = None
    chunk_count: int = 0
    uploaded_at: datetime | None = None
    processed_at: datetime | None = None


class CharacterStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class Character(CamelModel):
    """A role-play character; unknown server fields are kept."""

    model_config = ConfigDict(extra="allow")

    id: int
    name: str
    description: str | None = None
    avatar_url: str | None = None
    status: CharacterStatus | None = None
    is_public: bool | None = None
    knowledge_base_id: int | None = None
    knowledge_base_name: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v: Any) -> Any:
        return v.strip().upper() if isinstance(v, str) else v

    @property
    def is_active(self) -> bool:
        return self.status == CharacterStatus.ACTIVE


class CharacterCreateRequest(CamelModel):
    """Character payload; profile fields beyond the basics pass through unchanged."""

    model_config = ConfigDict(extra="allow")

    name: str = Field(..., min_length=1)
    knowledge_base_id: int
    description: str | None = None
    avatar_url: str | None = None
    is_public: bool | None = None


class CharacterUpdateRequest(CamelModel):
    model_config = ConfigDict(extra="allow")

    name: str | None = None
    description: str | None = None
    avatar_url: str | None = None
    is_public: bool | None = None
    knowledge_base_id: int | None = None


class AskQuestionRequest(CamelModel):
    question: str = Field(..., min_length=1)
    knowledge_base_id: int

    def to_form(self) -> dict[str, str]:
        return {"question": self.question, "knowledgeBaseId": str(self.knowledge_base_id)}


class AskQuestionResponse(CamelModel):
    question: str | None = None
    answer: str
    knowledge_base_id: int | None = None
    response_time_ms: int = 0
    timestamp: datetime | None = None

    @field_validator("timestamp", mode="before")
    @classmethod
    def parse_epoch_millis(cls, v: Any) -> Any:
        if isinstance(v, int | float) and not isinstance(v, bool):
            return datetime.fromtimestamp(v / 1000, tz=UTC)
        return v


class ApiMessage(CamelModel):
    """Generic acknowledgement body (``{"message": ...}``)."""

    model_config = ConfigDict(extra="allow")

    message: str | None = None
    success: bool | None = None
    data: Any = None
