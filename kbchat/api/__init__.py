"""Backend API access: the shared transport and its endpoint groups."""

from .auth import AuthApi
from .characters import CharacterApi
from .client import ApiClient
from .documents import DocumentApi
from .knowledge_bases import KnowledgeBaseApi
from .rag import RagApi
from .roleplay import RolePlayApi

__all__ = [
    "ApiClient",
    "AuthApi",
    "CharacterApi",
    "DocumentApi",
    "KnowledgeBaseApi",
    "RagApi",
    "RolePlayApi",
]
