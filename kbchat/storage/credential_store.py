"""Credential store: the bearer token and cached user, kept together."""

import logging
import time
from dataclasses import dataclass

import jwt
from pydantic import ValidationError

from ..config import Settings, settings as default_settings
from ..models import CachedUser
from .local_storage import KeyValueStorage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredCredential:
    credential: str
    user: CachedUser


def decode_expiry(credential: str) -> float | None:
    """Read the ``exp`` claim without verifying the signature.

    Returns:
        The expiry as a UNIX timestamp, or None if it cannot be read.
    """
    if not isinstance(credential, str) or not credential:
        return None
    try:
        claims = jwt.decode(
            credential,
            options={"verify_signature": False, "verify_exp": False},
            algorithms=["HS256", "HS384", "HS512", "RS256", "ES256"],
        )
    except (jwt.PyJWTError, ValueError, TypeError):
        return None

    exp = claims.get("exp")
    if isinstance(exp, bool) or not isinstance(exp, int | float):
        return None
    return float(exp)


class CredentialStore:
    """Persists the credential and cached user under two fixed keys.

    Both values are written in a single storage call and removed in a single storage
    call, so a reader never observes one without the other. Nothing else writes these
    keys.
    """

    def __init__(self, storage: KeyValueStorage, settings: Settings | None = None):
        self.storage = storage
        self.settings = settings or default_settings

    @property
    def token_key(self) -> str:
        return self.settings.token_key

    @property
    def user_key(self) -> str:
        return self.settings.user_key

    def save(self, credential: str, user: CachedUser) -> None:
        """Persist the credential and user together."""
        self.storage.set_items(
            {
                self.token_key: credential,
                self.user_key: user.model_dump(by_alias=True, mode="json"),
            }
        )
        logger.info(f"Credential stored for user '{user.username}'")

    def load(self) -> StoredCredential | None:
        """Read the stored pair without touching the network.

        Returns:
            The pair, or None when either half is missing or unreadable.
        """
        credential = self.storage.get_item(self.token_key)
        raw_user = self.storage.get_item(self.user_key)
        if not credential or raw_user is None:
            return None
        if not isinstance(credential, str):
            logger.warning("Stored credential is not a string; ignoring it")
            return None

        try:
            user = CachedUser.model_validate(raw_user)
        except ValidationError as e:
            logger.warning(f"Stored user record is unreadable: {e.error_count()} error(s)")
            return None
        return StoredCredential(credential=credential, user=user)

    def get_credential(self) -> str | None:
        """Return the credential to attach to requests, if any."""
        credential = self.storage.get_item(self.token_key)
        return credential if isinstance(credential, str) and credential else None

    def is_valid(self, credential: str | None, now: float | None = None) -> bool:
        """Check the credential's embedded expiry; fails closed on any decode error."""
        if not credential:
            return False
        expiry = decode_expiry(credential)
        if expiry is None:
            return False
        return expiry > (time.time() if now is None else now)

    def update_user(self, user: CachedUser) -> None:
        """Refresh the cached user while a credential is stored."""
        credential = self.get_credential()
        if credential is None:
            logger.debug("No credential stored; not caching user")
            return
        self.save(credential, user)

    def clear(self) -> None:
        """Remove both values. Safe to call repeatedly."""
        self.storage.remove_items(self.token_key, self.user_key)
        logger.info("Credential cleared")
