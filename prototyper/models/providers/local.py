from __future__ import annotations
from typing import Any, Dict, List, Optional
import logging

import httpx

from .base import ModelProvider, BackendConfig, NetworkError, chat_messages

logger = logging.getLogger(__name__)

DEFAULT_HOST = "http://localhost:11434"


class LocalProvider(ModelProvider):
    """Loopback model server (Ollama layout): `/api/tags` and `/api/chat`, no auth."""

    def __init__(self, timeout: Optional[float] = None, transport: Optional[httpx.BaseTransport] = None):
        self.timeout = timeout
        self.transport = transport

    def _request(self, config: BackendConfig, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        base_url = (config.base_url or DEFAULT_HOST).rstrip("/")
        try:
            with httpx.Client(base_url=base_url, timeout=self.timeout, transport=self.transport) as client:
                response = client.request(method, path, json=json)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            raise NetworkError(f"Local backend returned HTTP {e.response.status_code} for {path}") from e
        except httpx.HTTPError as e:
            raise NetworkError(f"Local backend request failed: {e}") from e
        except ValueError as e:
            raise NetworkError(f"Local backend returned an unreadable body for {path}: {e}") from e

        if not isinstance(data, dict):
            raise NetworkError(f"Local backend returned an unexpected body for {path}")
        return data

    def list_models(self, config: BackendConfig) -> List[str]:
        data = self._request(config, "GET", "/api/tags")
        try:
            models = [model["name"] for model in data["models"]]
        except (KeyError, TypeError) as e:
            raise NetworkError(f"Unexpected model list from local backend: {e}") from e
        logger.info(f"local backend returned {len(models)} models")
        return models

    def complete(self, config: BackendConfig, system_prompt: str, user_content: str, model: str) -> str:
        body = {
            "model": model,
            "messages": chat_messages(system_prompt, user_content),
        }
        data = self._request(config, "POST", "/api/chat", json=body)

        if "generated_text" in data:
            return data["generated_text"] or ""
        # plain Ollama replies carry the text under message.content
        message = data.get("message")
        if isinstance(message, dict):
            return message.get("content") or ""
        return ""
