"""Pytest configuration and fixtures for chatbot tests."""

import math
import zlib
from typing import Dict, List, Optional

import pytest

from rag_chatbot.config import OpenAISettings, QdrantSettings, RetrievalSettings, Settings
from rag_chatbot.models.vector import EmbeddingRecord, Match
from rag_chatbot.services.container import ServiceContainer
from rag_chatbot.utils.errors import CompletionError, EmbeddingError, VectorIndexError

DIMENSION = 512

# Ignored by the fake embedder so that questions match stored statements
_STOPWORDS = {"what", "is", "your", "the", "a", "an", "do", "you", "how", "of"}


def fake_vector(text: str, dimension: int = DIMENSION) -> List[float]:
    """Deterministic bag-of-words vector, unit length."""
    vec = [0.0] * dimension
    for word in text.lower().replace("?", " ").split():
        if word in _STOPWORDS:
            continue
        vec[zlib.crc32(word.encode("utf-8")) % dimension] += 1.0
    norm = math.sqrt(sum(v * v for v in vec))
    if norm == 0:
        vec[0] = 1.0
        return vec
    return [v / norm for v in vec]


class FakeEmbeddingService:
    """Stands in for EmbeddingService."""

    def __init__(self, dimension: int = DIMENSION):
        self.dimension = dimension
        self.calls: List[List[str]] = []
        self.error: Optional[Exception] = None
        self.closed = False

    async def embed_texts(self, texts: List[str]) -> List[List[float]]:
        self.calls.append(list(texts))
        if self.error is not None:
            raise self.error
        return [fake_vector(t, self.dimension) for t in texts]

    async def embed_text(self, text: str) -> List[float]:
        return (await self.embed_texts([text]))[0]

    async def close(self) -> None:
        self.closed = True


class FakeVectorIndex:
    """In-memory stand-in for VectorIndexService (cosine similarity)."""

    def __init__(self):
        self.records: Dict[str, EmbeddingRecord] = {}
        self.upsert_calls: List[List[EmbeddingRecord]] = []
        self.query_calls: List[int] = []
        self.error: Optional[Exception] = None
        self.closed = False

    async def upsert(self, records: List[EmbeddingRecord]) -> List[str]:
        if self.error is not None:
            raise self.error
        self.upsert_calls.append(list(records))
        for record in records:
            self.records[record.id] = record
        return [r.id for r in records]

    async def query(self, vector: List[float], top_k: int) -> List[Match]:
        self.query_calls.append(top_k)
        if self.error is not None:
            raise self.error
        scored = [
            Match(score=sum(a * b for a, b in zip(vector, r.values)), metadata=dict(r.metadata))
            for r in self.records.values()
        ]
        scored.sort(key=lambda m: m.score, reverse=True)
        return scored[:top_k]

    async def ping(self) -> bool:
        return self.error is None

    async def close(self) -> None:
        self.closed = True

    def add_text(self, text: str) -> EmbeddingRecord:
        record = EmbeddingRecord.for_text(text, fake_vector(text))
        self.records[record.id] = record
        return record


class FakeCompletionService:
    """Stands in for CompletionService; records every message list it receives."""

    def __init__(self, reply: Optional[str] = "Our refund policy allows returns within 30 days."):
        self.reply = reply
        self.calls: List[List[Dict[str, str]]] = []
        self.error: Optional[Exception] = None
        self.closed = False

    async def complete(self, messages: List[Dict[str, str]]) -> Optional[str]:
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        return self.reply

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def settings():
    """Clean settings; provider calls are attempted once."""
    return Settings(
        openai=OpenAISettings(api_key="test-openai-key"),
        qdrant=QdrantSettings(url="http://qdrant.test:6333", collection_name="test-knowledge"),
        retrieval=RetrievalSettings(),
    )


@pytest.fixture
def embedding_service():
    return FakeEmbeddingService()


@pytest.fixture
def vector_index():
    return FakeVectorIndex()


@pytest.fixture
def completion_service():
    return FakeCompletionService()


@pytest.fixture
def services(embedding_service, vector_index, completion_service):
    return ServiceContainer(
        embedding=embedding_service,
        vector_index=vector_index,
        completion=completion_service,
    )


@pytest.fixture
def embedding_failure():
    return EmbeddingError("provider exploded", model="text-embedding-3-small", details={"operation": "embeddings.create"})


@pytest.fixture
def index_failure():
    return VectorIndexError("connection refused", details={"operation": "upsert"})


@pytest.fixture
def completion_failure():
    return CompletionError("rate limited", model="gpt-3.5-turbo", details={"operation": "chat.completions.create"})
