"""Custom exception classes for the chatbot service."""

from typing import Any, Dict, Optional


def upstream_message(error: Exception) -> str:
    """The provider's own error text, unchanged; the type name if it has none."""
    return str(error) or type(error).__name__


class ChatbotException(Exception):
    """Base exception for all chatbot errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        return {"error": self.message}


class InvalidInputError(ChatbotException):
    """Exception raised for malformed request bodies."""

    def __init__(
        self,
        message: str = "Invalid input",
        errors: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        error_details = details or {}
        if errors:
            error_details["validation_errors"] = errors
        super().__init__(
            message=message,
            status_code=400,
            code="INVALID_INPUT",
            details=error_details,
        )


class UpstreamError(ChatbotException):
    """Exception raised when an external provider call fails.

    ``message`` is the upstream text as-is and is returned to the client;
    which call failed goes in ``details["operation"]``.
    """

    def __init__(
        self,
        service: str,
        message: Optional[str] = None,
        code: str = "UPSTREAM_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        error_message = message or f"External service '{service}' unavailable"
        error_details = details or {}
        error_details["service"] = service
        super().__init__(
            message=error_message,
            status_code=500,
            code=code,
            details=error_details,
        )


class EmbeddingError(UpstreamError):
    """Exception raised for embedding generation errors."""

    def __init__(
        self,
        message: str = "Embedding generation failed",
        model: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        error_details = details or {}
        if model:
            error_details["model"] = model
        super().__init__(
            service="embeddings",
            message=message,
            code="EMBEDDING_ERROR",
            details=error_details,
        )


class VectorIndexError(UpstreamError):
    """Exception raised for vector index (Qdrant) errors."""

    def __init__(
        self,
        message: str = "Vector index operation failed",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            service="vector_index",
            message=message,
            code="VECTOR_INDEX_ERROR",
            details=details,
        )


class CompletionError(UpstreamError):
    """Exception raised for chat completion errors."""

    def __init__(
        self,
        message: str = "Completion request failed",
        model: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        error_details = details or {}
        if model:
            error_details["model"] = model
        super().__init__(
            service="completions",
            message=message,
            code="COMPLETION_ERROR",
            details=error_details,
        )
