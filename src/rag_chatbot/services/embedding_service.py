"""Embedding generation service (OpenAI)."""

from __future__ import annotations

from typing import List, Optional

from openai import AsyncOpenAI
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from rag_chatbot.config import Settings, get_settings
from rag_chatbot.utils.errors import EmbeddingError, upstream_message
from rag_chatbot.utils.logging import get_logger

logger = get_logger("embedding_service")


class EmbeddingService:
    """
    Turn text into fixed-length vectors with the OpenAI embeddings API.

    The model and dimension are fixed per deployment; queries and stored
    records must go through the same instance settings or scores are
    meaningless.
    """

    def __init__(self, settings: Optional[Settings] = None, client: Optional[AsyncOpenAI] = None) -> None:
        self.settings = settings or get_settings()
        self._model_name = self.settings.openai.embedding_model
        self._dimension = self.settings.openai.embedding_dimension
        self._client = client  # lazy

    @property
    def dimension(self) -> int:
        return self._dimension

    def _get_client(self) -> AsyncOpenAI:
        """Create the OpenAI client on first use."""
        if self._client is not None:
            return self._client

        if not self.settings.openai.api_key:
            raise EmbeddingError("OPENAI_API_KEY is not configured", model=self._model_name)

        self._client = AsyncOpenAI(
            api_key=self.settings.openai.api_key,
            base_url=self.settings.openai.base_url,
            timeout=self.settings.openai.timeout,
            max_retries=0,
        )
        return self._client

    async def _embed_batch(self, inputs: List[str]) -> List[List[float]]:
        """Embed one batch of texts."""
        client = self._get_client()
        try:
            resp = await client.embeddings.create(
                model=self._model_name,
                input=inputs,
                dimensions=self._dimension,
            )
            return [d.embedding for d in resp.data]
        except Exception as e:
            logger.warning(
                f"Embedding call failed: operation=embeddings.create, model={self._model_name}, "
                f"batch={len(inputs)}, error={type(e).__name__}"
            )
            raise EmbeddingError(
                upstream_message(e),
                model=self._model_name,
                details={"operation": "embeddings.create", "error_type": type(e).__name__},
            ) from e

    async def _embed_batch_with_retry(self, inputs: List[str]) -> List[List[float]]:
        """Embed a batch, retrying up to OPENAI_MAX_RETRIES attempts (one by default)."""
        async for attempt in AsyncRetrying(
            reraise=True,
            stop=stop_after_attempt(self.settings.openai.max_retries),
            wait=wait_exponential(multiplier=1, min=1, max=30),
            retry=retry_if_exception_type(EmbeddingError),
        ):
            with attempt:
                return await self._embed_batch(inputs)
        # unreachable due to reraise=True, but keeps type checkers happy
        raise EmbeddingError("Embedding retries exhausted", model=self._model_name)

    async def embed_texts(self, texts: List[str]) -> List[List[float]]:
        """
        Embed a list of texts.

        Args:
            texts: Texts to embed, already normalized by the caller

        Returns:
            One vector per input, in input order
        """
        if not texts:
            return []

        # Fail fast on missing credentials instead of retrying them
        self._get_client()

        batch_size = self.settings.openai.embedding_batch_size
        logger.info(
            f"Generating embeddings: model={self._model_name}, texts={len(texts)}, "
            f"batch_size={batch_size}, dimension={self._dimension}"
        )

        out: List[List[float]] = []
        for start in range(0, len(texts), batch_size):
            batch = texts[start : start + batch_size]
            vectors = await self._embed_batch_with_retry(batch)
            if len(vectors) != len(batch):
                raise EmbeddingError(
                    "Embedding response size mismatch",
                    model=self._model_name,
                    details={"expected": len(batch), "got": len(vectors)},
                )
            for vector in vectors:
                if len(vector) != self._dimension:
                    raise EmbeddingError(
                        "Embedding dimension mismatch",
                        model=self._model_name,
                        details={
                            "expected_dimension": self._dimension,
                            "actual_dimension": len(vector),
                        },
                    )
            out.extend(vectors)

        logger.debug(f"Embeddings generated successfully: count={len(out)}")
        return out

    async def embed_text(self, text: str) -> List[float]:
        """Embed a single text."""
        vectors = await self.embed_texts([text])
        return vectors[0]

    async def close(self) -> None:
        """Close the underlying HTTP client, if one was created."""
        if self._client is not None:
            await self._client.close()
            self._client = None
