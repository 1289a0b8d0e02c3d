"""Vector index record models."""

import uuid
from typing import Dict, List

from pydantic import BaseModel, Field


def new_record_id() -> str:
    """Random point id; Qdrant accepts UUID strings or unsigned ints."""
    return str(uuid.uuid4())


class EmbeddingRecord(BaseModel):
    """A vector + metadata record persisted in the index."""

    id: str = Field(default_factory=new_record_id, description="Unique point id (UUID4)")
    values: List[float] = Field(..., description="Embedding vector")
    metadata: Dict[str, str] = Field(..., description="Payload; always carries 'text'")

    @classmethod
    def for_text(cls, text: str, values: List[float]) -> "EmbeddingRecord":
        """Build a record whose payload holds the embedded text."""
        return cls(values=values, metadata={"text": text})


class Match(BaseModel):
    """A retrieval hit returned by the index."""

    score: float
    metadata: Dict[str, str] = Field(default_factory=dict)

    @property
    def text(self) -> str:
        return self.metadata.get("text", "")
