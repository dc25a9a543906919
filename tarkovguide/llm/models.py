"""
Response and error types for the LLM layer.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class LLMError(Exception):
    """Raised when the LLM API call fails or is misconfigured."""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class TokenUsage(BaseModel):
    """Token counts reported by the provider."""

    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


class LLMResponse(BaseModel):
    """A single text completion."""

    text: str = Field(description="Completion text")
    model: str = Field(default="", description="Model that produced the completion")
    usage: TokenUsage = Field(default_factory=TokenUsage)
