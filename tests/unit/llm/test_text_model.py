"""
Unit tests for LiteLLMTextModel.

LiteLLM is patched at the module level (tarkovguide.llm.client.acompletion),
so no network calls are made.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from tarkovguide.config.settings import LLMSettings
from tarkovguide.llm.client import LiteLLMTextModel
from tarkovguide.llm.models import LLMError, LLMResponse, TokenUsage


def _make_text_response(text: str | None, model: str = "gemini/gemini-2.5-flash") -> MagicMock:
    """Build a mock LiteLLM response with a single text choice."""
    choice = MagicMock()
    choice.message.content = text

    response = MagicMock()
    response.choices = [choice]
    response.model = model
    response.usage.prompt_tokens = 120
    response.usage.completion_tokens = 480
    return response


@pytest.fixture
def settings():
    return LLMSettings(
        model="gemini/gemini-2.5-flash",
        max_tokens=2048,
        temperature=0.4,
        api_key="test-api-key",
    )


@pytest.fixture
def model(settings):
    return LiteLLMTextModel(settings)


class TestComplete:
    """Tests for LiteLLMTextModel.complete."""

    @pytest.mark.asyncio
    async def test_returns_text_and_usage(self, model):
        with patch(
            "tarkovguide.llm.client.acompletion",
            new=AsyncMock(return_value=_make_text_response("## Brief Overview\nGo.")),
        ):
            response = await model.complete("Write a guide")

        assert isinstance(response, LLMResponse)
        assert response.text == "## Brief Overview\nGo."
        assert response.model == "gemini/gemini-2.5-flash"
        assert response.usage.prompt_tokens == 120
        assert response.usage.completion_tokens == 480
        assert response.usage.total_tokens == 600

    @pytest.mark.asyncio
    async def test_passes_settings_to_litellm(self, model):
        mock = AsyncMock(return_value=_make_text_response("ok"))
        with patch("tarkovguide.llm.client.acompletion", new=mock):
            await model.complete("Write a guide")

        kwargs = mock.call_args.kwargs
        assert kwargs["model"] == "gemini/gemini-2.5-flash"
        assert kwargs["messages"] == [{"role": "user", "content": "Write a guide"}]
        assert kwargs["temperature"] == 0.4
        assert kwargs["max_tokens"] == 2048
        assert kwargs["api_key"] == "test-api-key"

    @pytest.mark.asyncio
    async def test_none_content_becomes_empty_string(self, model):
        with patch(
            "tarkovguide.llm.client.acompletion",
            new=AsyncMock(return_value=_make_text_response(None)),
        ):
            response = await model.complete("Write a guide")

        assert response.text == ""


class TestErrors:
    """Tests for error handling."""

    @pytest.mark.asyncio
    async def test_missing_api_key_raises(self):
        model = LiteLLMTextModel(LLMSettings(api_key=""))
        with patch("tarkovguide.llm.client.acompletion", new=AsyncMock()) as mock:
            with pytest.raises(LLMError, match="API key"):
                await model.complete("Write a guide")
        mock.assert_not_called()

    @pytest.mark.asyncio
    async def test_api_failure_wrapped(self, model):
        failure = RuntimeError("503 Service Unavailable")
        with patch("tarkovguide.llm.client.acompletion", new=AsyncMock(side_effect=failure)):
            with pytest.raises(LLMError) as exc_info:
                await model.complete("Write a guide")

        assert exc_info.value.cause is failure
        assert "503" in str(exc_info.value)


class TestModels:
    def test_token_usage_total(self):
        assert TokenUsage(prompt_tokens=3, completion_tokens=4).total_tokens == 7

    def test_response_defaults(self):
        response = LLMResponse(text="hi")
        assert response.model == ""
        assert response.usage.total_tokens == 0
