"""Ingestion API models."""

from typing import List

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator


class TextItem(BaseModel):
    """A single text to embed and store."""

    model_config = ConfigDict(extra="ignore")

    text: StrictStr = Field(..., description="Raw text; must not be blank")

    @field_validator("text")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject empty and whitespace-only texts."""
        if not v.strip():
            raise ValueError("text must be a non-empty string")
        return v


class EmbeddedText(BaseModel):
    """Text as stored, with the vector computed for it."""

    text: str = Field(..., description="Stored (normalized) text")
    embedding: List[float] = Field(..., description="Embedding vector")


class EmbedResponse(BaseModel):
    """Response model for the embed endpoint."""

    message: str = "Texts embedded successfully"
    embeddings: List[EmbeddedText] = Field(default_factory=list)
