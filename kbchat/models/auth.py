"""Authentication models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .base import CamelModel


class UserRole(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class AuthStatus(str, Enum):
    """Process-wide authentication status."""

    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


class CachedUser(CamelModel):
    """Denormalized user snapshot kept next to the credential.

    Advisory only: it may be stale and never grants authorization by itself.
    """

    id: int
    username: str
    email: str | None = None
    full_name: str | None = None
    role: UserRole = UserRole.USER
    created_at: datetime | None = None

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, v: object) -> object:
        """Accept ``ADMIN``, ``admin`` and Spring-style ``ROLE_ADMIN``."""
        if isinstance(v, str):
            value = v.strip().upper()
            if value.startswith("ROLE_"):
                value = value[len("ROLE_") :]
            return value
        return v

    def has_role(self, role: UserRole) -> bool:
        """Admins satisfy every role check."""
        return self.role == role or self.role == UserRole.ADMIN


class LoginRequest(CamelModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class RegisterRequest(CamelModel):
    username: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)
    full_name: str = Field(..., min_length=1)


class JwtResponse(CamelModel):
    """Login response: the credential plus the user's identity."""

    token: str
    id: int
    username: str
    email: str | None = None
    full_name: str | None = None
    roles: list[str] = Field(default_factory=list)

    def to_cached_user(self) -> CachedUser:
        roles = {role.upper() for role in self.roles}
        is_admin = "ADMIN" in roles or "ROLE_ADMIN" in roles
        return CachedUser(
            id=self.id,
            username=self.username,
            email=self.email,
            full_name=self.full_name,
            role=UserRole.ADMIN if is_admin else UserRole.USER,
        )


class AuthSessionState(BaseModel):
    """Snapshot of the session gate's state."""

    model_config = ConfigDict(frozen=True)

    status: AuthStatus = AuthStatus.UNAUTHENTICATED
    user: CachedUser | None = None

    @model_validator(mode="after")
    def authenticated_requires_user(self) -> "AuthSessionState":
        if self.status == AuthStatus.AUTHENTICATED and self.user is None:
            raise ValueError("an authenticated state must carry a user")
        return self

    @property
    def is_authenticated(self) -> bool:
        return self.status == AuthStatus.AUTHENTICATED
