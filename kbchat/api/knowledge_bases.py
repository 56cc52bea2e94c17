"""Knowledge base CRUD endpoints."""

from ..models import ApiMessage, KnowledgeBase, KnowledgeBaseCreateRequest
from .client import ApiClient


class KnowledgeBaseApi:
    """``/knowledge-bases`` endpoints. Create and update are sent as form data."""

    def __init__(self, client: ApiClient):
        self.client = client

    async def create(self, request: KnowledgeBaseCreateRequest) -> KnowledgeBase:
        data = await self.client.post("/knowledge-bases", data=request.to_form())
        return KnowledgeBase.model_validate(data)

    async def get_all(self) -> list[KnowledgeBase]:
        data = await self.client.get("/knowledge-bases")
        return [KnowledgeBase.model_validate(item) for item in data or []]

    async def get_by_id(self, knowledge_base_id: int) -> KnowledgeBase:
        data = await self.client.get(f"/knowledge-bases/{knowledge_base_id}")
        return KnowledgeBase.model_validate(data)

    async def update(
        self, knowledge_base_id: int, request: KnowledgeBaseCreateRequest
    ) -> KnowledgeBase:
        data = await self.client.put(
            f"/knowledge-bases/{knowledge_base_id}", data=request.to_form()
        )
        return KnowledgeBase.model_validate(data)

    async def delete(self, knowledge_base_id: int) -> ApiMessage:
        data = await self.client.delete(f"/knowledge-bases/{knowledge_base_id}")
        return ApiMessage.model_validate(data or {})
