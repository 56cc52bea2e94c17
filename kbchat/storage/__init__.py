"""Client-local storage for the credential and cached user."""

from .credential_store import CredentialStore, StoredCredential, decode_expiry
from .local_storage import KeyValueStorage, LocalStorage, MemoryStorage

__all__ = [
    "CredentialStore",
    "StoredCredential",
    "decode_expiry",
    "KeyValueStorage",
    "LocalStorage",
    "MemoryStorage",
]
