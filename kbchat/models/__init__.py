"""Data models for the console client."""

from .auth import (
    AuthSessionState,
    AuthStatus,
    CachedUser,
    JwtResponse,
    LoginRequest,
    RegisterRequest,
    UserRole,
)
from .base import CamelModel, coerce_token_usage
from .conversation import (
    ConversationMessage,
    ConversationSession,
    MessageResponse,
    RateMessageRequest,
    SendMessageRequest,
    SessionStatus,
    StartSessionRequest,
)
from .knowledge import (
    ApiMessage,
    AskQuestionRequest,
    AskQuestionResponse,
    Character,
    CharacterCreateRequest,
    CharacterStatus,
    CharacterUpdateRequest,
    Document,
    KnowledgeBase,
    KnowledgeBaseCreateRequest,
    ProcessStatus,
)

__all__ = [
    # Base
    "CamelModel",
    "coerce_token_usage",
    # Auth models
    "AuthSessionState",
    "AuthStatus",
    "CachedUser",
    "JwtResponse",
    "LoginRequest",
    "RegisterRequest",
    "UserRole",
    # Conversation models
    "ConversationMessage",
    "ConversationSession",
    "MessageResponse",
    "RateMessageRequest",
    "SendMessageRequest",
    "SessionStatus",
    "StartSessionRequest",
    # Knowledge models
    "ApiMessage",
    "AskQuestionRequest",
    "AskQuestionResponse",
    "Character",
    "CharacterCreateRequest",
    "CharacterStatus",
    "CharacterUpdateRequest",
    "Document",
    "KnowledgeBase",
    "KnowledgeBaseCreateRequest",
    "ProcessStatus",
]
