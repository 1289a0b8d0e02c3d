"""Unit tests for the completion service."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from rag_chatbot.config import OpenAISettings, Settings
from rag_chatbot.services.completion_service import CompletionService
from rag_chatbot.utils.errors import CompletionError


def _response(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest.fixture
def mock_client():
    client = MagicMock()
    client.chat.completions.create = AsyncMock()
    return client


@pytest.fixture
def mock_messages():
    return [
        {"role": "system", "content": "Be helpful."},
        {"role": "user", "content": "Context:\nNone found\n\nQuestion: hi"},
    ]


class TestComplete:
    """Test completion calls."""

    @pytest.mark.asyncio
    async def test_returns_trimmed_content(self, settings, mock_client, mock_messages):
        mock_client.chat.completions.create.return_value = _response("  Hello there!  \n")
        service = CompletionService(settings, client=mock_client)

        assert await service.complete(mock_messages) == "Hello there!"
        mock_client.chat.completions.create.assert_called_once_with(
            model="gpt-3.5-turbo", messages=mock_messages
        )

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            _response(None),
            _response("   "),
            SimpleNamespace(choices=[]),
            SimpleNamespace(choices=None),
        ],
    )
    async def test_empty_reply_is_none(self, settings, mock_client, mock_messages, response):
        mock_client.chat.completions.create.return_value = response
        service = CompletionService(settings, client=mock_client)

        assert await service.complete(mock_messages) is None

    @pytest.mark.asyncio
    async def test_failure_raises_completion_error(self, settings, mock_client, mock_messages):
        mock_client.chat.completions.create.side_effect = Exception("API Error")
        service = CompletionService(settings, client=mock_client)

        with pytest.raises(CompletionError) as exc_info:
            await service.complete(mock_messages)

        assert exc_info.value.message == "API Error"
        assert exc_info.value.details["operation"] == "chat.completions.create"
        assert mock_client.chat.completions.create.call_count == 1

    @pytest.mark.asyncio
    async def test_default_settings_call_provider_once(self, mock_client, mock_messages):
        service = CompletionService(Settings(openai=OpenAISettings(api_key="k")), client=mock_client)
        mock_client.chat.completions.create.side_effect = RuntimeError("401 invalid api key")

        with pytest.raises(CompletionError) as exc_info:
            await service.complete(mock_messages)

        assert mock_client.chat.completions.create.await_count == 1
        assert exc_info.value.message == "401 invalid api key"

    @pytest.mark.asyncio
    async def test_missing_api_key(self, mock_messages):
        service = CompletionService(Settings(openai=OpenAISettings(api_key=None)))

        with pytest.raises(CompletionError) as exc_info:
            await service.complete(mock_messages)

        assert "OPENAI_API_KEY" in exc_info.value.message

    def test_uses_configured_model(self):
        settings = Settings(openai=OpenAISettings(api_key="k", chat_model="gpt-4o-mini"))
        assert CompletionService(settings).model == "gpt-4o-mini"
