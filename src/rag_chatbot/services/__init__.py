"""Services package."""

from rag_chatbot.services.chat_service import ChatService
from rag_chatbot.services.completion_service import CompletionService
from rag_chatbot.services.container import ServiceContainer
from rag_chatbot.services.embedding_service import EmbeddingService
from rag_chatbot.services.ingestion_service import IngestionService
from rag_chatbot.services.prompt_builder import PromptBuilder
from rag_chatbot.services.qdrant_service import VectorIndexService

__all__ = [
    "ChatService",
    "CompletionService",
    "EmbeddingService",
    "IngestionService",
    "PromptBuilder",
    "ServiceContainer",
    "VectorIndexService",
]
