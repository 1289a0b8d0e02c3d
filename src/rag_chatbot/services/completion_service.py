"""Completion service for generating chatbot replies.

Wraps the OpenAI chat completions API behind a single ``complete`` call
that takes a message history and returns the reply text.
"""

from typing import Dict, List, Optional

from openai import AsyncOpenAI
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from rag_chatbot.config import Settings, get_settings
from rag_chatbot.utils.errors import CompletionError, upstream_message
from rag_chatbot.utils.logging import get_logger

logger = get_logger("completion_service")


class CompletionService:
    """Service for chat completion requests.

    Handles:
    - Lazy client construction from settings
    - Optional retries with exponential backoff (OPENAI_MAX_RETRIES > 1)
    - Extracting the reply text from the provider response
    """

    def __init__(self, settings: Optional[Settings] = None, client: Optional[AsyncOpenAI] = None):
        """Initialize completion service with configuration."""
        self.settings = settings or get_settings()
        self.model = self.settings.openai.chat_model
        self._client = client

    def _get_client(self) -> AsyncOpenAI:
        if self._client is not None:
            return self._client

        if not self.settings.openai.api_key:
            raise CompletionError("OPENAI_API_KEY is not configured", model=self.model)

        self._client = AsyncOpenAI(
            api_key=self.settings.openai.api_key,
            base_url=self.settings.openai.base_url,
            timeout=self.settings.openai.timeout,
            max_retries=0,
        )
        return self._client

    async def _call_llm(self, messages: List[Dict[str, str]]):
        """Call the chat completions endpoint once.

        Raises:
            CompletionError: If the provider call fails.
        """
        client = self._get_client()
        try:
            logger.debug(f"Calling chat model: {self.model}, messages={len(messages)}")
            return await client.chat.completions.create(model=self.model, messages=messages)
        except Exception as e:
            logger.warning(
                f"Completion call failed: operation=chat.completions.create, model={self.model}, "
                f"error={type(e).__name__}"
            )
            raise CompletionError(
                message=upstream_message(e),
                model=self.model,
                details={"operation": "chat.completions.create", "error_type": type(e).__name__},
            ) from e

    @staticmethod
    def _extract_content(response) -> Optional[str]:
        """Pull the first choice's text out of a provider response, if any."""
        choices = getattr(response, "choices", None) or []
        if not choices:
            return None
        message = getattr(choices[0], "message", None)
        content = getattr(message, "content", None)
        if not isinstance(content, str):
            return None
        return content.strip() or None

    async def complete(self, messages: List[Dict[str, str]]) -> Optional[str]:
        """Generate a reply for a message history.

        Args:
            messages: List of message dictionaries with 'role' and 'content'.

        Returns:
            The trimmed reply text, or None when the provider returned nothing usable.

        Raises:
            CompletionError: If the call fails (every attempt, when retries are enabled).
        """
        self._get_client()

        async for attempt in AsyncRetrying(
            reraise=True,
            stop=stop_after_attempt(self.settings.openai.max_retries),
            wait=wait_exponential(multiplier=1, min=2, max=10),
            retry=retry_if_exception_type(CompletionError),
        ):
            with attempt:
                response = await self._call_llm(messages)

        content = self._extract_content(response)
        if content is None:
            logger.warning(f"Completion returned no content: model={self.model}")
        return content

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
