"""Language-model provider contract.

The actuator core treats the model as a black box that turns a list of chat
messages into raw text; parsing that text into an intent happens in
``actuator_ai.agent_core.pipeline.parser``.
"""

from __future__ import annotations

from typing import List, Literal, Optional, Protocol

from pydantic import Field

from ..schemas.base import BaseSchema


class ChatMessage(BaseSchema):
    role: Literal["system", "user", "assistant", "tool"]
    content: str


class ChatOptions(BaseSchema):
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: Optional[int] = Field(default=None, ge=1)
    stop: Optional[List[str]] = None


class LLMProvider(Protocol):
    async def chat(self, messages: List[ChatMessage], options: Optional[ChatOptions] = None) -> str:
        """Return the assistant's reply text; raises ``LLMProviderError`` on failure."""
        ...

    async def embed(self, text: str) -> List[float]: ...

    async def health_check(self) -> bool: ...
