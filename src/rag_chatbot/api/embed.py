"""Ingestion endpoint."""

from typing import Any

from fastapi import APIRouter, Body, Depends, status

from rag_chatbot.dependencies import get_ingestion_service
from rag_chatbot.models.ingestion import EmbedResponse
from rag_chatbot.services.ingestion_service import IngestionService
from rag_chatbot.utils.errors import InvalidInputError
from rag_chatbot.validation import Invalid, validate_text_items

router = APIRouter(tags=["ingestion"])


@router.post(
    "/embed",
    response_model=EmbedResponse,
    status_code=status.HTTP_200_OK,
    summary="Embed and store texts",
    responses={400: {"description": "Malformed input"}, 500: {"description": "Upstream failure"}},
)
async def embed(
    payload: Any = Body(...),
    ingestion: IngestionService = Depends(get_ingestion_service),
) -> EmbedResponse:
    """
    Embed a JSON array of ``{"text": ...}`` objects and add them to the index.

    Returns the stored (normalized) text and vector for every item.
    """
    result = validate_text_items(payload)
    if isinstance(result, Invalid):
        raise InvalidInputError(result.message, errors=result.errors)

    embeddings = await ingestion.ingest(result.value)
    return EmbedResponse(embeddings=embeddings)
