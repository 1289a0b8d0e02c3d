"""Tests for the retrieval-augmented chat flow."""

import pytest

from rag_chatbot.config import DEFAULT_FALLBACK_REPLY, RetrievalSettings, Settings
from rag_chatbot.services.chat_service import ChatService
from rag_chatbot.utils.errors import CompletionError, EmbeddingError, VectorIndexError


@pytest.fixture
def chat(settings, embedding_service, vector_index, completion_service):
    return ChatService(embedding_service, vector_index, completion_service, settings)


def _user_message(completion_service):
    messages = completion_service.calls[-1]
    assert [m["role"] for m in messages] == ["system", "user"]
    return messages[1]["content"]


class TestAnswer:
    """Test the answer flow end to end with in-memory providers."""

    @pytest.mark.asyncio
    async def test_relevant_record_reaches_prompt(self, chat, vector_index, completion_service):
        vector_index.add_text("refund policy")
        vector_index.add_text("shipping takes five days")

        reply = await chat.answer("What is your refund policy?")

        assert reply == "Our refund policy allows returns within 30 days."
        assert _user_message(completion_service) == (
            "Context:\nrefund policy\n\nQuestion: What is your refund policy?"
        )

    @pytest.mark.asyncio
    async def test_search_text_is_normalized(self, chat, embedding_service):
        await chat.answer("  What Is Your REFUND Policy?  ")
        assert embedding_service.calls == [["what is your refund policy?"]]

    @pytest.mark.asyncio
    async def test_requests_configured_top_k(self, chat, vector_index):
        await chat.answer("hello")
        assert vector_index.query_calls == [5]

    @pytest.mark.asyncio
    async def test_no_relevant_records_uses_placeholder(self, chat, vector_index, completion_service):
        vector_index.add_text("shipping takes five days")

        await chat.answer("refund policy")

        assert _user_message(completion_service) == "Context:\nNone found\n\nQuestion: refund policy"

    @pytest.mark.asyncio
    async def test_empty_index_uses_placeholder(self, chat, completion_service):
        await chat.answer("anything at all")
        assert "Context:\nNone found\n\n" in _user_message(completion_service)

    @pytest.mark.asyncio
    async def test_empty_reply_returns_fallback(self, chat, completion_service):
        completion_service.reply = None
        assert await chat.answer("hello") == DEFAULT_FALLBACK_REPLY

    @pytest.mark.asyncio
    async def test_custom_fallback(self, embedding_service, vector_index, completion_service):
        completion_service.reply = None
        settings = Settings(retrieval=RetrievalSettings(fallback_reply="Try again later."))
        chat = ChatService(embedding_service, vector_index, completion_service, settings)

        assert await chat.answer("hello") == "Try again later."

    @pytest.mark.asyncio
    async def test_repeated_question_builds_same_prompt(self, chat, vector_index, completion_service):
        vector_index.add_text("refund policy")

        await chat.answer("refund policy")
        await chat.answer("refund policy")

        assert completion_service.calls[0] == completion_service.calls[1]

    @pytest.mark.asyncio
    async def test_chat_does_not_write_to_index(self, chat, vector_index):
        vector_index.add_text("refund policy")
        await chat.answer("refund policy")
        assert vector_index.upsert_calls == []
        assert len(vector_index.records) == 1


class TestAnswerFailures:
    """Test that provider failures stop the flow."""

    @pytest.mark.asyncio
    async def test_embedding_failure(self, chat, embedding_service, vector_index, completion_service, embedding_failure):
        embedding_service.error = embedding_failure

        with pytest.raises(EmbeddingError):
            await chat.answer("hello")

        assert vector_index.query_calls == []
        assert completion_service.calls == []

    @pytest.mark.asyncio
    async def test_index_failure(self, chat, vector_index, completion_service, index_failure):
        vector_index.error = index_failure

        with pytest.raises(VectorIndexError):
            await chat.answer("hello")

        assert completion_service.calls == []

    @pytest.mark.asyncio
    async def test_completion_failure(self, chat, completion_service, completion_failure):
        completion_service.error = completion_failure

        with pytest.raises(CompletionError) as exc_info:
            await chat.answer("hello")

        assert exc_info.value.message == "rate limited"
