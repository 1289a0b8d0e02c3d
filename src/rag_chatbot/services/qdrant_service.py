"""Qdrant integration service for storing and querying embeddings."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

from qdrant_client import QdrantClient
from qdrant_client.http.exceptions import UnexpectedResponse
from qdrant_client.models import Distance, PointStruct, VectorParams

from rag_chatbot.config import Settings, get_settings
from rag_chatbot.models.vector import EmbeddingRecord, Match
from rag_chatbot.utils.errors import VectorIndexError, upstream_message
from rag_chatbot.utils.logging import get_logger

logger = get_logger("qdrant_service")


def _is_not_found(error: Exception) -> bool:
    if isinstance(error, UnexpectedResponse):
        return getattr(error, "status_code", None) == 404
    # Some client versions throw generic Exception on 404
    msg = str(error).lower()
    return "not found" in msg or "404" in msg


def _already_exists(error: Exception) -> bool:
    if isinstance(error, UnexpectedResponse):
        return getattr(error, "status_code", None) == 409
    return "already exists" in str(error).lower()


class VectorIndexService:
    """
    Store and search knowledge records in a single Qdrant collection.

    Strategy:
    - One collection per deployment (`QDRANT_COLLECTION_NAME`)
    - Ensure the collection exists with vector size matching the embedding dimension
      before the first write or read
    - Payload is the record metadata (`{"text": ...}`)

    The client is blocking, so every call runs in a worker thread.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[QdrantClient] = None,
        vector_size: Optional[int] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.collection_name = self.settings.qdrant.collection_name
        self.vector_size = vector_size or self.settings.openai.embedding_dimension
        self._client = client
        self._collection_ready = False
        self._ensure_lock = asyncio.Lock()

    def _get_client(self) -> QdrantClient:
        if self._client is not None:
            return self._client

        self._client = QdrantClient(
            url=self.settings.qdrant.url,
            api_key=self.settings.qdrant.api_key,
            timeout=self.settings.qdrant.timeout,
        )
        return self._client

    async def ensure_collection(self) -> None:
        """
        Ensure the Qdrant collection exists with the right vector size.

        Concurrent first requests share one check; a collection created by
        another process in the meantime counts as success.
        """
        if self._collection_ready:
            return

        async with self._ensure_lock:
            if self._collection_ready:
                return
            await self._ensure_collection()
            self._collection_ready = True

        logger.debug(f"Qdrant collection ensured: {self.collection_name}")

    async def _ensure_collection(self) -> None:
        collection_name = self.collection_name
        vector_size = self.vector_size

        def _ensure() -> None:
            client = self._get_client()
            try:
                info = client.get_collection(collection_name)
            except Exception as e:
                if not _is_not_found(e):
                    raise
                try:
                    client.create_collection(
                        collection_name=collection_name,
                        vectors_config=VectorParams(size=vector_size, distance=Distance.COSINE),
                    )
                except Exception as create_error:
                    if not _already_exists(create_error):
                        raise
                    logger.info(f"Qdrant collection created concurrently: {collection_name}")
                    return
                logger.info(f"Created Qdrant collection: {collection_name} (vector_size={vector_size})")
                return

            # Only the default (unnamed) vector is supported
            current_size = getattr(getattr(info.config.params, "vectors", None), "size", None)
            if current_size is not None and int(current_size) != int(vector_size):
                raise VectorIndexError(
                    "Qdrant collection vector size mismatch",
                    details={
                        "collection": collection_name,
                        "expected": vector_size,
                        "actual": int(current_size),
                    },
                )

        try:
            await asyncio.to_thread(_ensure)
        except VectorIndexError:
            raise
        except Exception as e:
            raise VectorIndexError(
                upstream_message(e),
                details={"operation": "ensure_collection", "collection": collection_name},
            ) from e

    async def upsert(self, records: List[EmbeddingRecord]) -> List[str]:
        """
        Upsert records in a single call and return their point IDs.

        Either every record is written or the call fails as a whole.
        """
        if not records:
            return []

        for record in records:
            if len(record.values) != self.vector_size:
                raise VectorIndexError(
                    "Record vector size does not match the collection",
                    details={"record_id": record.id, "expected": self.vector_size, "actual": len(record.values)},
                )

        await self.ensure_collection()

        points = [
            PointStruct(id=record.id, vector=record.values, payload=dict(record.metadata))
            for record in records
        ]

        def _upsert() -> None:
            self._get_client().upsert(collection_name=self.collection_name, points=points, wait=True)

        try:
            await asyncio.to_thread(_upsert)
        except Exception as e:
            raise VectorIndexError(
                upstream_message(e),
                details={"operation": "upsert", "collection": self.collection_name, "points": len(points)},
            ) from e

        logger.info(f"Qdrant upsert complete: collection={self.collection_name}, points={len(points)}")
        return [record.id for record in records]

    async def query(self, vector: List[float], top_k: int) -> List[Match]:
        """Return up to ``top_k`` nearest records, best first, with payload."""
        await self.ensure_collection()

        def _query():
            return self._get_client().query_points(
                collection_name=self.collection_name,
                query=vector,
                limit=top_k,
                with_payload=True,
                with_vectors=False,
            )

        try:
            response = await asyncio.to_thread(_query)
        except Exception as e:
            raise VectorIndexError(
                upstream_message(e),
                details={"operation": "query_points", "collection": self.collection_name, "top_k": top_k},
            ) from e

        matches = [
            Match(score=float(point.score), metadata=_text_payload(point.payload))
            for point in response.points
        ]
        logger.debug(f"Qdrant query returned {len(matches)} matches")
        return matches

    async def ping(self) -> bool:
        """Connectivity check used by the readiness probe."""
        try:
            await asyncio.to_thread(self._get_client().get_collections)
            return True
        except Exception as e:
            logger.warning(f"Qdrant connection check failed: {e}")
            return False

    async def close(self) -> None:
        if self._client is not None:
            await asyncio.to_thread(self._client.close)
            self._client = None


def _text_payload(payload: Optional[Dict[str, Any]]) -> Dict[str, str]:
    text = (payload or {}).get("text")
    return {"text": text} if isinstance(text, str) else {}
