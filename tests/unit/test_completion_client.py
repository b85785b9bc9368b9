"""Unit tests for the Gemini completion client."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, PropertyMock, patch

import pytest

from app.domains.assistant.completion import CompletionClient
from app.exceptions.ai import (
    AIConfigurationError,
    AIContentFilterError,
    AIQuotaExceededError,
    AIRateLimitError,
    AIServiceError,
    AITimeoutError,
)


def _response(text="Hello there"):
    response = MagicMock()
    response.candidates = [MagicMock()]
    response.text = text
    return response


@pytest.mark.asyncio
class TestCompletionClient:
    """Test cases for CompletionClient."""

    @pytest.fixture
    def mock_genai(self):
        """Mock google.generativeai module."""
        with patch("app.domains.assistant.completion.genai") as mock:
            mock_model = MagicMock()
            mock_model.generate_content_async = AsyncMock(return_value=_response())
            mock.GenerativeModel.return_value = mock_model
            yield mock

    async def test_complete_returns_text(self, mock_genai):
        client = CompletionClient(api_key="test_api_key")

        reply = await client.complete("system prompt", "user message")

        assert reply == "Hello there"
        mock_genai.configure.assert_called_once_with(api_key="test_api_key")
        mock_genai.GenerativeModel.return_value.generate_content_async.assert_awaited_once_with("user message")

    async def test_model_gets_system_instruction_and_generation_config(self, mock_genai):
        client = CompletionClient(api_key="k", model_name="gemini-test", temperature=0.7, max_tokens=800)

        await client.complete("be helpful", "hi")

        kwargs = mock_genai.GenerativeModel.call_args.kwargs
        assert kwargs["model_name"] == "gemini-test"
        assert kwargs["system_instruction"] == "be helpful"
        mock_genai.types.GenerationConfig.assert_called_once_with(
            candidate_count=1, max_output_tokens=800, temperature=0.7
        )

    async def test_missing_key_fails_per_call(self, mock_genai):
        client = CompletionClient(api_key="")

        with pytest.raises(AIConfigurationError):
            await client.complete("system", "hello")

        mock_genai.configure.assert_not_called()
        mock_genai.GenerativeModel.assert_not_called()

    async def test_timeout(self, mock_genai):
        async def hang(_message):
            await asyncio.sleep(5)

        mock_genai.GenerativeModel.return_value.generate_content_async = hang
        client = CompletionClient(api_key="k", timeout=0.01)

        with pytest.raises(AITimeoutError):
            await client.complete("system", "hello")

    @pytest.mark.parametrize(
        "message,expected",
        [
            ("429 Rate limit exceeded", AIRateLimitError),
            ("RESOURCE_EXHAUSTED: quota", AIQuotaExceededError),
            ("API key not valid", AIConfigurationError),
        ],
    )
    async def test_provider_errors_are_mapped(self, mock_genai, message, expected):
        mock_genai.GenerativeModel.return_value.generate_content_async.side_effect = Exception(message)
        client = CompletionClient(api_key="k")

        with pytest.raises(expected):
            await client.complete("system", "hello")

    async def test_unrecognized_provider_error(self, mock_genai):
        mock_genai.GenerativeModel.return_value.generate_content_async.side_effect = RuntimeError("socket closed")
        client = CompletionClient(api_key="k")

        with pytest.raises(AIServiceError) as exc_info:
            await client.complete("system", "hello")

        assert "socket closed" in str(exc_info.value)

    async def test_no_candidates_is_content_filter(self, mock_genai):
        response = MagicMock()
        response.candidates = []
        mock_genai.GenerativeModel.return_value.generate_content_async.return_value = response
        client = CompletionClient(api_key="k")

        with pytest.raises(AIContentFilterError):
            await client.complete("system", "hello")

    async def test_text_accessor_error_is_content_filter(self, mock_genai):
        response = MagicMock()
        response.candidates = [MagicMock()]
        type(response).text = PropertyMock(side_effect=ValueError("no parts"))
        mock_genai.GenerativeModel.return_value.generate_content_async.return_value = response
        client = CompletionClient(api_key="k")

        with pytest.raises(AIContentFilterError):
            await client.complete("system", "hello")

    async def test_blank_reply_is_service_error(self, mock_genai):
        mock_genai.GenerativeModel.return_value.generate_content_async.return_value = _response("   ")
        client = CompletionClient(api_key="k")

        with pytest.raises(AIServiceError) as exc_info:
            await client.complete("system", "hello")

        assert not isinstance(exc_info.value, AIContentFilterError)
