from __future__ import annotations
from typing import Any, Dict, List, Optional, Sequence

import httpx

from .config import HTTP_TIMEOUT, LLM_TEMPERATURE, OLLAMA_HOST, OLLAMA_MODEL
from .errors import BackendError


class OllamaClient:
    """Blocking client for Ollama's /api/chat

    Streaming is always off: each call returns one complete message, which may carry tool_calls
    """

    def __init__(
        self,
        host: str = OLLAMA_HOST,
        model: str = OLLAMA_MODEL,
        temperature: float = LLM_TEMPERATURE,
        timeout: float = HTTP_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.host = host.rstrip("/")
        self.model = model
        self.temperature = temperature
        self._http = httpx.Client(timeout=timeout, transport=transport)

    def chat(self, messages: List[Dict[str, Any]], tools: Optional[Sequence[Dict[str, Any]]] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "think": False,  # tool args are fine without thinking and it keeps replies fast
            "stream": False,
            "options": {"temperature": self.temperature},
        }
        if tools:
            payload["tools"] = list(tools)

        try:
            resp = self._http.post(f"{self.host}/api/chat", json=payload)
        except httpx.HTTPError as e:
            raise BackendError("Ollama", str(e)) from e
        if resp.status_code >= 400:
            raise BackendError("Ollama", resp.text, resp.status_code)
        try:
            data = resp.json()
        except ValueError as e:
            raise BackendError("Ollama", "invalid JSON in response") from e
        if not isinstance(data, dict) or not isinstance(data.get("message"), dict):
            raise BackendError("Ollama", "response has no message")
        return data

    def close(self) -> None:
        self._http.close()
