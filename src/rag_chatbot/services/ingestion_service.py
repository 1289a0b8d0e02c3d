"""Ingestion service: normalize, embed and store text items."""

from __future__ import annotations

from typing import List, Optional, Sequence

from rag_chatbot.config import Settings, get_settings
from rag_chatbot.models.ingestion import EmbeddedText, TextItem
from rag_chatbot.models.vector import EmbeddingRecord
from rag_chatbot.services.embedding_service import EmbeddingService
from rag_chatbot.services.qdrant_service import VectorIndexService
from rag_chatbot.services.text import normalize_text
from rag_chatbot.utils.logging import get_logger

logger = get_logger("ingestion_service")


class IngestionService:
    """
    Embed validated text items and add them to the vector index.

    Every embedding is computed before anything is written, and all records go
    out in one upsert, so a provider failure leaves the index unchanged.
    Re-ingesting the same text adds a new record; there is no dedup.
    """

    def __init__(
        self,
        embedding_service: EmbeddingService,
        vector_index: VectorIndexService,
        settings: Optional[Settings] = None,
    ) -> None:
        self.embedding_service = embedding_service
        self.vector_index = vector_index
        self.settings = settings or get_settings()

    def _prepare(self, text: str) -> str:
        if self.settings.retrieval.normalize_text:
            return normalize_text(text)
        return text

    async def ingest(self, items: Sequence[TextItem]) -> List[EmbeddedText]:
        """
        Embed and store text items.

        Args:
            items: Validated, non-empty list of text items

        Returns:
            One ``EmbeddedText`` per item, in input order
        """
        texts = [self._prepare(item.text) for item in items]
        logger.info(f"Ingesting {len(texts)} text items")

        vectors = await self.embedding_service.embed_texts(texts)

        records = [EmbeddingRecord.for_text(text, vector) for text, vector in zip(texts, vectors)]
        await self.vector_index.upsert(records)

        return [EmbeddedText(text=text, embedding=vector) for text, vector in zip(texts, vectors)]
