"""Request body validation.

Routes take the raw JSON body and run it through these validators before
touching any provider, so a malformed request never reaches the embedding
or index services. Each validator returns a tagged result instead of
raising; routes turn ``Invalid`` into a 400.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, List, TypeVar, Union

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from rag_chatbot.models.chat import ChatRequest
from rag_chatbot.models.ingestion import TextItem

T = TypeVar("T")

EMBED_INPUT_ERROR = "Invalid input format, expected an array of objects with a 'text' field."
CHAT_INPUT_ERROR = "Invalid query input"

_text_items_adapter = TypeAdapter(List[TextItem])


@dataclass(frozen=True)
class Valid(Generic[T]):
    value: T


@dataclass(frozen=True)
class Invalid:
    message: str
    errors: list


ValidationResult = Union[Valid[T], Invalid]


def validate_text_items(payload: Any) -> ValidationResult[List[TextItem]]:
    """Validate an /embed body: a non-empty JSON array of ``{"text": str}``."""
    if not isinstance(payload, list) or not payload:
        return Invalid(EMBED_INPUT_ERROR, errors=[])
    try:
        items = _text_items_adapter.validate_python(payload)
    except PydanticValidationError as e:
        return Invalid(EMBED_INPUT_ERROR, errors=e.errors(include_url=False, include_context=False))
    return Valid(items)


def validate_chat_query(payload: Any) -> ValidationResult[ChatRequest]:
    """Validate a /chat body: an object with a non-empty string ``query``."""
    if not isinstance(payload, dict):
        return Invalid(CHAT_INPUT_ERROR, errors=[])
    try:
        request = ChatRequest.model_validate(payload)
    except PydanticValidationError as e:
        return Invalid(CHAT_INPUT_ERROR, errors=e.errors(include_url=False, include_context=False))
    return Valid(request)
