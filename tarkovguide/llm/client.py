"""
LiteLLM-backed text model.

Uses LiteLLM for provider abstraction: the default is Gemini, but any
LiteLLM model string (Anthropic, OpenAI, a local Ollama model, ...) works by
changing ``LLM_MODEL``.

Failures are raised as LLMError. Retrying is the caller's decision; the
guide generator retries a bounded number of times and then falls back.
"""

from __future__ import annotations

from typing import Protocol

from litellm import acompletion

from tarkovguide.config.logging import get_logger
from tarkovguide.config.settings import LLMSettings
from tarkovguide.llm.models import LLMError, LLMResponse, TokenUsage

logger = get_logger(__name__)


class TextModel(Protocol):
    """Anything that turns a prompt into a completion."""

    async def complete(self, prompt: str) -> LLMResponse: ...


class LiteLLMTextModel:
    """
    Single-prompt text completion through ``litellm.acompletion``.

    Args:
        settings: LLM configuration (model, temperature, max_tokens, api_key)
    """

    def __init__(self, settings: LLMSettings):
        self._settings = settings

    async def complete(self, prompt: str) -> LLMResponse:
        """
        Send ``prompt`` as a single user message and return the completion.

        Raises:
            LLMError: If the API key is missing or the API call fails
        """
        # Validate API key early — better error message than a cryptic 401
        if not self._settings.api_key:
            raise LLMError("API key not configured. Set LLM_API_KEY in your environment.")

        try:
            response = await acompletion(
                model=self._settings.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self._settings.temperature,
                max_tokens=self._settings.max_tokens,
                api_key=self._settings.api_key,
            )
        except Exception as e:
            raise LLMError(f"LLM API call failed: {e}", cause=e) from e

        usage = getattr(response, "usage", None)
        return LLMResponse(
            text=response.choices[0].message.content or "",
            model=response.model or self._settings.model,
            usage=TokenUsage(
                prompt_tokens=getattr(usage, "prompt_tokens", 0) or 0,
                completion_tokens=getattr(usage, "completion_tokens", 0) or 0,
            ),
        )
