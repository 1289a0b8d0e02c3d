"""Chat service: retrieval-augmented question answering."""

from __future__ import annotations

from typing import Optional

from rag_chatbot.config import Settings, get_settings
from rag_chatbot.services.completion_service import CompletionService
from rag_chatbot.services.embedding_service import EmbeddingService
from rag_chatbot.services.prompt_builder import PromptBuilder
from rag_chatbot.services.qdrant_service import VectorIndexService
from rag_chatbot.services.text import normalize_text
from rag_chatbot.utils.logging import get_logger

logger = get_logger("chat_service")


class ChatService:
    """
    Answer a question from the knowledge stored in the vector index.

    Flow:
        1. Normalize the query (same rule as ingestion)
        2. Embed it
        3. Retrieve top-K neighbours
        4. Build the context block from matches above the threshold
        5. Ask the completion provider with a system + user message
        6. Return the reply, or the canned fallback when it is empty
    """

    def __init__(
        self,
        embedding_service: EmbeddingService,
        vector_index: VectorIndexService,
        completion_service: CompletionService,
        settings: Optional[Settings] = None,
    ) -> None:
        self.embedding_service = embedding_service
        self.vector_index = vector_index
        self.completion_service = completion_service
        self.settings = settings or get_settings()
        self.prompt_builder = PromptBuilder(self.settings.retrieval)

    async def answer(self, query: str) -> str:
        retrieval = self.settings.retrieval
        search_text = normalize_text(query) if retrieval.normalize_text else query

        vector = await self.embedding_service.embed_text(search_text)
        matches = await self.vector_index.query(vector, top_k=retrieval.top_k)

        context = self.prompt_builder.build_context(matches)
        # The model sees the question as the user typed it
        messages = self.prompt_builder.build_messages(context, query)

        reply = await self.completion_service.complete(messages)
        logger.info(
            f"Chat answered: matches={len(matches)}, "
            f"context_chars={len(context)}, fallback={reply is None}"
        )
        return reply or retrieval.fallback_reply
