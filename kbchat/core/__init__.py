"""Core client logic: authentication state, routing and conversations."""

from .conversation import ConversationSessionMachine
from .navigator import Location, Navigator
from .rag_chat import RagChat, RagExchange
from .route_guard import DEFAULT_ROUTES, Route, RouteAction, RouteDecision, RouteGuard, decide
from .session_gate import AuthContext, SessionGate

__all__ = [
    "AuthContext",
    "ConversationSessionMachine",
    "DEFAULT_ROUTES",
    "Location",
    "Navigator",
    "RagChat",
    "RagExchange",
    "Route",
    "RouteAction",
    "RouteDecision",
    "RouteGuard",
    "SessionGate",
    "decide",
]
