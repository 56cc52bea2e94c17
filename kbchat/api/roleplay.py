"""Role-play session endpoints."""

from ..models import (
    ApiMessage,
    ConversationMessage,
    ConversationSession,
    MessageResponse,
    RateMessageRequest,
    SendMessageRequest,
    StartSessionRequest,
)
from .client import ApiClient


class RolePlayApi:
    """``/roleplay`` endpoints."""

    def __init__(self, client: ApiClient):
        self.client = client

    async def start_session(self, request: StartSessionRequest) -> ConversationSession:
        data = await self.client.post("/roleplay/start", json=request.to_wire())
        return ConversationSession.model_validate(data)

    async def send_message(self, request: SendMessageRequest) -> MessageResponse:
        data = await self.client.post("/roleplay/message", json=request.to_wire())
        return MessageResponse.model_validate(data)

    async def get_sessions(self) -> list[ConversationSession]:
        data = await self.client.get("/roleplay/sessions")
        return [ConversationSession.model_validate(item) for item in data or []]

    async def get_session(self, session_id: str) -> ConversationSession:
        data = await self.client.get(f"/roleplay/sessions/{session_id}")
        return ConversationSession.model_validate(data)

    async def get_session_history(self, session_id: str) -> list[ConversationMessage]:
        """Return the session's messages in server order."""
        data = await self.client.get(f"/roleplay/sessions/{session_id}/history")
        return [ConversationMessage.model_validate(item) for item in data or []]

    async def end_session(self, session_id: str) -> ApiMessage:
        data = await self.client.patch(f"/roleplay/sessions/{session_id}/end")
        return ApiMessage.model_validate(data or {})

    async def delete_session(self, session_id: str) -> ApiMessage:
        data = await self.client.delete(f"/roleplay/sessions/{session_id}")
        return ApiMessage.model_validate(data or {})

    async def rate_message(self, message_id: str, rating: int) -> ApiMessage:
        data = await self.client.patch(
            f"/roleplay/messages/{message_id}/rate",
            json=RateMessageRequest(rating=rating).to_wire(),
        )
        return ApiMessage.model_validate(data or {})
