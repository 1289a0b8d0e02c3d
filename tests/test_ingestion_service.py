"""Tests for the ingestion service."""

import pytest

from rag_chatbot.config import RetrievalSettings, Settings
from rag_chatbot.models.ingestion import TextItem
from rag_chatbot.services.ingestion_service import IngestionService
from rag_chatbot.utils.errors import EmbeddingError, VectorIndexError


@pytest.fixture
def ingestion(settings, embedding_service, vector_index):
    return IngestionService(embedding_service, vector_index, settings)


@pytest.mark.asyncio
async def test_ingest_normalizes_and_stores(ingestion, embedding_service, vector_index):
    items = [TextItem(text="  Refund Policy  "), TextItem(text="Shipping takes 5 days")]

    result = await ingestion.ingest(items)

    assert [r.text for r in result] == ["refund policy", "shipping takes 5 days"]
    assert all(len(r.embedding) == 512 for r in result)
    assert embedding_service.calls == [["refund policy", "shipping takes 5 days"]]
    assert len(vector_index.upsert_calls) == 1
    stored = vector_index.upsert_calls[0]
    assert [r.metadata for r in stored] == [{"text": "refund policy"}, {"text": "shipping takes 5 days"}]
    assert [r.values for r in stored] == [r.embedding for r in result]


@pytest.mark.asyncio
async def test_ingest_same_text_twice_adds_two_records(ingestion, vector_index):
    await ingestion.ingest([TextItem(text="refund policy")])
    await ingestion.ingest([TextItem(text="refund policy")])

    assert len(vector_index.records) == 2


@pytest.mark.asyncio
async def test_normalization_can_be_disabled(embedding_service, vector_index):
    settings = Settings(retrieval=RetrievalSettings(normalize_text=False))
    ingestion = IngestionService(embedding_service, vector_index, settings)

    result = await ingestion.ingest([TextItem(text=" Mixed Case ")])

    assert result[0].text == " Mixed Case "


@pytest.mark.asyncio
async def test_embedding_failure_writes_nothing(ingestion, embedding_service, vector_index, embedding_failure):
    embedding_service.error = embedding_failure

    with pytest.raises(EmbeddingError):
        await ingestion.ingest([TextItem(text="a"), TextItem(text="b")])

    assert vector_index.upsert_calls == []
    assert vector_index.records == {}


@pytest.mark.asyncio
async def test_index_failure_propagates(ingestion, vector_index, index_failure):
    vector_index.error = index_failure

    with pytest.raises(VectorIndexError) as exc_info:
        await ingestion.ingest([TextItem(text="a")])

    assert exc_info.value.message == "connection refused"
