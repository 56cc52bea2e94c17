"""Tests for knowledge-base question answering."""

import pytest

from kbchat.errors import NotFoundError, ServerError, ValidationRejectedError
from kbchat.models import KnowledgeBaseCreateRequest


@pytest.fixture
def chat(signed_in_app):
    return signed_in_app.new_rag_chat()


@pytest.mark.asyncio
async def test_load_selects_first_knowledge_base(signed_in_app, chat):
    """Test loading knowledge bases picks one when none is selected."""
    kbs = signed_in_app.knowledge_base_api
    first = await kbs.create(KnowledgeBaseCreateRequest(name="Manuals"))
    await kbs.create(KnowledgeBaseCreateRequest(name="Policies"))

    loaded = await chat.load_knowledge_bases()
    assert [kb.name for kb in loaded] == ["Manuals", "Policies"]
    assert chat.knowledge_base_id == first.id


@pytest.mark.asyncio
async def test_ask_records_exchange(signed_in_app, chat):
    """Test an answered question is recorded."""
    kb = await signed_in_app.knowledge_base_api.create(KnowledgeBaseCreateRequest(name="Docs"))
    chat.select_knowledge_base(kb.id)

    exchange = await chat.ask("  How do I reset?  ")
    assert exchange.question == "How do I reset?"
    assert exchange.answer == "Answer to: How do I reset?"
    assert exchange.knowledge_base_id == kb.id
    assert chat.exchanges == [exchange]
    assert not chat.is_asking


@pytest.mark.asyncio
async def test_ask_requires_question_and_selection(chat, backend):
    """Test asks are refused locally without text or a knowledge base."""
    with pytest.raises(ValidationRejectedError):
        await chat.ask("Anything?")
    chat.select_knowledge_base(1)
    with pytest.raises(ValidationRejectedError):
        await chat.ask("   ")
    assert backend.calls_to("/api/rag") == []


@pytest.mark.asyncio
async def test_failed_ask_records_nothing(signed_in_app, chat, backend):
    """Test a failed ask can be resubmitted and leaves no exchange."""
    kb = await signed_in_app.knowledge_base_api.create(KnowledgeBaseCreateRequest(name="Docs"))
    chat.select_knowledge_base(kb.id)
    backend.fail_next("POST", "/rag/ask", 500)

    with pytest.raises(ServerError):
        await chat.ask("Why?")
    assert chat.exchanges == []
    assert chat.pending_question is None

    await chat.ask("Why?")
    assert len(chat.exchanges) == 1


@pytest.mark.asyncio
async def test_unknown_knowledge_base(chat):
    """Test asking against a missing knowledge base surfaces not-found."""
    chat.select_knowledge_base(404)
    with pytest.raises(NotFoundError):
        await chat.ask("Hello?")
    assert chat.exchanges == []


@pytest.mark.asyncio
async def test_clear(signed_in_app, chat):
    """Test the log can be cleared."""
    kb = await signed_in_app.knowledge_base_api.create(KnowledgeBaseCreateRequest(name="Docs"))
    chat.select_knowledge_base(kb.id)
    await chat.ask("One?")
    chat.clear()
    assert chat.exchanges == []
