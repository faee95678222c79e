"""Language-model provider contract and the OpenAI-compatible implementation."""

from .base import ChatMessage, ChatOptions, LLMProvider
from .openai_compatible import OpenAICompatibleProvider

__all__ = [
    "ChatMessage",
    "ChatOptions",
    "LLMProvider",
    "OpenAICompatibleProvider",
]
