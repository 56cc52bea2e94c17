"""Authentication endpoints."""

from ..models import ApiMessage, CachedUser, JwtResponse, LoginRequest, RegisterRequest
from .client import ApiClient


class AuthApi:
    """``/auth`` endpoints."""

    def __init__(self, client: ApiClient):
        self.client = client

    async def login(self, request: LoginRequest) -> JwtResponse:
        data = await self.client.post("/auth/login", json=request.to_wire())
        return JwtResponse.model_validate(data)

    async def register(self, request: RegisterRequest) -> ApiMessage:
        data = await self.client.post("/auth/register", json=request.to_wire())
        return ApiMessage.model_validate(data or {})

    async def get_current_user(self) -> CachedUser:
        """Ask the backend who the current credential belongs to."""
        data = await self.client.get("/auth/me")
        return CachedUser.model_validate(data)
