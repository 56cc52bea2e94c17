"""Knowledge-base question answering endpoint."""

from ..models import AskQuestionRequest, AskQuestionResponse
from .client import ApiClient


class RagApi:
    def __init__(self, client: ApiClient):
        self.client = client

    async def ask(self, request: AskQuestionRequest) -> AskQuestionResponse:
        """Ask a question against one knowledge base (multipart form)."""
        data = await self.client.post("/rag/ask", data=request.to_form())
        return AskQuestionResponse.model_validate(data)
