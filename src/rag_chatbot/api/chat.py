"""Chat endpoint."""

from typing import Any

from fastapi import APIRouter, Body, Depends, status

from rag_chatbot.dependencies import get_chat_service
from rag_chatbot.models.chat import ChatResponse
from rag_chatbot.services.chat_service import ChatService
from rag_chatbot.utils.errors import InvalidInputError
from rag_chatbot.validation import Invalid, validate_chat_query

router = APIRouter(tags=["chat"])


@router.post(
    "/chat",
    response_model=ChatResponse,
    status_code=status.HTTP_200_OK,
    summary="Ask a question against the stored knowledge",
    responses={400: {"description": "Malformed input"}, 500: {"description": "Upstream failure"}},
)
async def chat(
    payload: Any = Body(...),
    chat_service: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    """Answer ``{"query": ...}`` using retrieved context."""
    result = validate_chat_query(payload)
    if isinstance(result, Invalid):
        raise InvalidInputError(result.message, errors=result.errors)

    reply = await chat_service.answer(result.value.query)
    return ChatResponse(response=reply)
