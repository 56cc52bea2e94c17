"""Client configuration using pydantic-settings."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings loaded from environment variables (prefix ``KBCHAT_``)."""

    model_config = SettingsConfigDict(
        env_prefix="KBCHAT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Backend
    api_base_url: str = Field(
        default="http://localhost:8080/api", description="Base URL of the REST API"
    )
    request_timeout_seconds: float = Field(default=30.0, description="Per-request timeout")

    # Durable client-local storage
    storage_path: Path = Field(
        default=Path.home() / ".kbchat" / "storage.json",
        description="JSON file holding the credential and cached user",
    )
    token_key: str = Field(default="token", description="Storage key for the credential")
    user_key: str = Field(default="user", description="Storage key for the cached user")

    # Navigation
    login_path: str = Field(default="/login", description="Path of the login surface")
    landing_path: str = Field(
        default="/dashboard", description="Default page for authenticated users"
    )

    # Feedback bounds
    rating_min: int = Field(default=1, description="Lowest accepted message rating")
    rating_max: int = Field(default=5, description="Highest accepted message rating")

    log_level: str = Field(default="info", description="Logging level")

    # Hold state-changing requests while the startup credential check is outstanding
    block_mutations_until_confirmed: bool = Field(
        default=True,
        description="Delay non-GET requests until the cached credential is confirmed",
    )


# Global settings instance
settings = Settings()
