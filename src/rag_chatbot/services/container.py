"""Provider client handles shared by the request handlers.

Built once per process by the application lifespan and kept on
``app.state.services``. Tests build their own container with fakes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from rag_chatbot.config import Settings, get_settings
from rag_chatbot.services.completion_service import CompletionService
from rag_chatbot.services.embedding_service import EmbeddingService
from rag_chatbot.services.qdrant_service import VectorIndexService
from rag_chatbot.utils.logging import get_logger

logger = get_logger("container")


@dataclass
class ServiceContainer:
    embedding: EmbeddingService
    vector_index: VectorIndexService
    completion: CompletionService

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "ServiceContainer":
        settings = settings or get_settings()
        return cls(
            embedding=EmbeddingService(settings),
            vector_index=VectorIndexService(settings, vector_size=settings.openai.embedding_dimension),
            completion=CompletionService(settings),
        )

    async def close(self) -> None:
        """Close provider clients; errors are logged so the others still close."""
        for name, service in (
            ("embedding", self.embedding),
            ("vector_index", self.vector_index),
            ("completion", self.completion),
        ):
            try:
                await service.close()
            except Exception as e:
                logger.error(f"Error closing {name} client: {e}", exc_info=True)
