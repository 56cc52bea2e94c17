"""Character endpoints."""

from ..models import ApiMessage, Character, CharacterCreateRequest, CharacterUpdateRequest
from .client import ApiClient


class CharacterApi:
    """``/characters`` endpoints."""

    def __init__(self, client: ApiClient):
        self.client = client

    async def create(self, request: CharacterCreateRequest) -> Character:
        data = await self.client.post("/characters", json=request.to_wire())
        return Character.model_validate(data)

    async def get_all(self) -> list[Character]:
        data = await self.client.get("/characters")
        return [Character.model_validate(item) for item in data or []]

    async def get_by_knowledge_base(self, knowledge_base_id: int) -> list[Character]:
        data = await self.client.get(f"/characters/knowledge-base/{knowledge_base_id}")
        return [Character.model_validate(item) for item in data or []]

    async def get_by_id(self, character_id: int) -> Character:
        data = await self.client.get(f"/characters/{character_id}")
        return Character.model_validate(data)

    async def update(self, character_id: int, request: CharacterUpdateRequest) -> Character:
        data = await self.client.put(f"/characters/{character_id}", json=request.to_wire())
        return Character.model_validate(data)

    async def delete(self, character_id: int) -> ApiMessage:
        data = await self.client.delete(f"/characters/{character_id}")
        return ApiMessage.model_validate(data or {})

    async def toggle_status(self, character_id: int) -> Character:
        """Activate an inactive character or deactivate an active one."""
        data = await self.client.patch(f"/characters/{character_id}/toggle-status")
        return Character.model_validate(data)

    async def generate_profile(self, character_id: int) -> ApiMessage:
        data = await self.client.post(f"/characters/{character_id}/generate-profile")
        return ApiMessage.model_validate(data or {})

    async def search(
        self, query: str, knowledge_base_id: int | None = None
    ) -> list[Character]:
        params: dict[str, object] = {"query": query}
        if knowledge_base_id:
            params["knowledgeBaseId"] = knowledge_base_id
        data = await self.client.get("/characters/search", params=params)
        return [Character.model_validate(item) for item in data or []]
