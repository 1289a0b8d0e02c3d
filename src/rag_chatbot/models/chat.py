"""Chat API models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator


class ChatRequest(BaseModel):
    """Request model for the chat endpoint."""

    model_config = ConfigDict(extra="ignore")

    query: StrictStr = Field(..., description="User question")

    @field_validator("query")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        """Reject empty questions."""
        if not v:
            raise ValueError("query must be a non-empty string")
        return v


class ChatResponse(BaseModel):
    """Response model for the chat endpoint."""

    response: str
