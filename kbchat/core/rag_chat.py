"""Knowledge-base question answering chat."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from ..api import KnowledgeBaseApi, RagApi
from ..errors import ValidationRejectedError
from ..models import AskQuestionRequest, KnowledgeBase

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RagExchange:
    """A confirmed question/answer pair."""

    question: str
    answer: str
    knowledge_base_id: int
    response_time_ms: int
    answered_at: datetime


class RagChat:
    """Question/answer log against one selected knowledge base.

    Same rule as role-play: an exchange is recorded only once the answer arrives; a
    failed ask records nothing and the question can be resubmitted.
    """

    def __init__(self, rag_api: RagApi, knowledge_base_api: KnowledgeBaseApi | None = None):
        self.rag_api = rag_api
        self.knowledge_base_api = knowledge_base_api
        self.knowledge_base_id: int | None = None
        self.knowledge_bases: list[KnowledgeBase] = []
        self._exchanges: list[RagExchange] = []
        self._pending_question: str | None = None

    @property
    def exchanges(self) -> list[RagExchange]:
        return list(self._exchanges)

    @property
    def pending_question(self) -> str | None:
        return self._pending_question

    @property
    def is_asking(self) -> bool:
        return self._pending_question is not None

    def select_knowledge_base(self, knowledge_base_id: int) -> None:
        if knowledge_base_id != self.knowledge_base_id:
            logger.info(f"Selected knowledge base {knowledge_base_id}")
        self.knowledge_base_id = knowledge_base_id

    async def load_knowledge_bases(self) -> list[KnowledgeBase]:
        """Fetch the user's knowledge bases; selects the first when none is selected."""
        if self.knowledge_base_api is None:
            raise RuntimeError("RagChat was created without a knowledge base API")
        self.knowledge_bases = await self.knowledge_base_api.get_all()
        if self.knowledge_base_id is None and self.knowledge_bases:
            self.select_knowledge_base(self.knowledge_bases[0].id)
        return list(self.knowledge_bases)

    async def ask(self, question: str) -> RagExchange:
        text = question.strip() if isinstance(question, str) else ""
        if not text:
            raise ValidationRejectedError("Question must not be empty")
        if self.knowledge_base_id is None:
            raise ValidationRejectedError("Select a knowledge base first")
        if self.is_asking:
            raise ValidationRejectedError("A question is already being answered")

        knowledge_base_id = self.knowledge_base_id
        self._pending_question = text
        try:
            response = await self.rag_api.ask(
                AskQuestionRequest(question=text, knowledge_base_id=knowledge_base_id)
            )
        finally:
            self._pending_question = None

        exchange = RagExchange(
            question=text,
            answer=response.answer,
            knowledge_base_id=knowledge_base_id,
            response_time_ms=response.response_time_ms,
            answered_at=response.timestamp or datetime.now(UTC),
        )
        self._exchanges.append(exchange)
        return exchange

    def clear(self) -> None:
        self._exchanges.clear()
