"""
LLM Layer.

Provider-agnostic text completion via LiteLLM. The guide generator only
needs "prompt in, text out", so this layer is deliberately small:

    build_quest_prompt(quest)           →  prompt string
                                               ↓
    LiteLLMTextModel.complete(prompt)    →  LLMResponse
"""

from tarkovguide.llm.client import LiteLLMTextModel, TextModel
from tarkovguide.llm.models import LLMError, LLMResponse, TokenUsage

__all__ = [
    "LiteLLMTextModel",
    "TextModel",
    "LLMError",
    "LLMResponse",
    "TokenUsage",
]
