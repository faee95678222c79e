"""OpenAI-compatible chat provider over httpx.

Works with any server exposing the OpenAI REST shape (LM Studio, vLLM,
Ollama's compatibility layer, OpenAI itself):

- ``POST {base_url}/chat/completions`` -> ``choices[0].message.content``
- ``POST {base_url}/embeddings`` -> ``data[0].embedding``
- ``GET {base_url}/models`` for health checks
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..errors import LLMProviderError
from .base import ChatMessage, ChatOptions

logger = logging.getLogger(__name__)


class OpenAICompatibleProvider:
    """``LLMProvider`` backed by an OpenAI-compatible HTTP API.

    No retry is attempted here; a failed request raises ``LLMProviderError``
    and the caller decides how to degrade.
    """

    def __init__(
        self,
        base_url: str,
        *,
        model: str,
        api_key: Optional[str] = None,
        embedding_model: Optional[str] = None,
        timeout_seconds: float = 60.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._embedding_model = embedding_model or model
        self._headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)
        self._owns_client = client is None

    @property
    def model(self) -> str:
        return self._model

    async def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = await self._client.post(f"{self._base_url}{path}", json=payload, headers=self._headers)
        except httpx.HTTPError as exc:
            raise LLMProviderError(f"{path} unreachable: {exc}") from exc
        if response.status_code >= 400:
            raise LLMProviderError(
                f"{path} answered {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise LLMProviderError(f"{path} returned invalid JSON") from exc

    async def chat(self, messages: List[ChatMessage], options: Optional[ChatOptions] = None) -> str:
        opts = options or ChatOptions()
        payload: Dict[str, Any] = {
            "model": self._model,
            "messages": [m.model_dump() for m in messages],
            "temperature": opts.temperature,
            "stream": False,
        }
        if opts.max_tokens is not None:
            payload["max_tokens"] = opts.max_tokens
        if opts.stop:
            payload["stop"] = opts.stop

        data = await self._post("/chat/completions", payload)
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise LLMProviderError("chat completion without choices") from exc
        logger.debug("Chat completion from %s: %d chars", self._model, len(content or ""))
        return content or ""

    async def embed(self, text: str) -> List[float]:
        data = await self._post("/embeddings", {"model": self._embedding_model, "input": text})
        try:
            return [float(v) for v in data["data"][0]["embedding"]]
        except (KeyError, IndexError, TypeError) as exc:
            raise LLMProviderError("embedding response without data") from exc

    async def health_check(self) -> bool:
        try:
            response = await self._client.get(f"{self._base_url}/models", headers=self._headers)
        except httpx.HTTPError as exc:
            logger.warning(f"LLM health check failed: {exc}")
            return False
        return response.is_success

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
