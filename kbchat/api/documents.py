"""Document endpoints."""

from pathlib import Path
from typing import BinaryIO

from ..models import ApiMessage, Document
from .client import ApiClient


class DocumentApi:
    def __init__(self, client: ApiClient):
        self.client = client

    async def upload(
        self,
        file_name: str,
        content: bytes | BinaryIO,
        knowledge_base_id: int,
        content_type: str = "application/octet-stream",
    ) -> Document:
        """Upload one file into a knowledge base."""
        data = await self.client.post(
            "/documents/upload",
            data={"knowledgeBaseId": str(knowledge_base_id)},
            files={"file": (file_name, content, content_type)},
        )
        return Document.model_validate(data)

    async def upload_path(self, path: Path, knowledge_base_id: int) -> Document:
        path = Path(path)
        with open(path, "rb") as f:
            return await self.upload(path.name, f.read(), knowledge_base_id)

    async def get_by_knowledge_base(self, knowledge_base_id: int) -> list[Document]:
        data = await self.client.get(
            "/documents", params={"knowledgeBaseId": knowledge_base_id}
        )
        return [Document.model_validate(item) for item in data or []]

    async def delete(self, document_id: int) -> ApiMessage:
        data = await self.client.delete(f"/documents/{document_id}")
        return ApiMessage.model_validate(data or {})
