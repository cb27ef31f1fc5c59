from __future__ import annotations
from typing import Any, Dict, List, Optional
import logging

import httpx
from openai import OpenAI
from openai import APIError, APIConnectionError, APIStatusError

from .base import ModelProvider, BackendConfig, NetworkError, chat_messages

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"


class HostedProvider(ModelProvider):
    """OpenAI-compatible backend: bearer credential, `data[*].id` model list,
    `choices[0].message.content` completions."""

    def __init__(self, timeout: Optional[float] = 600.0, params: Optional[Dict[str, Any]] = None, http_client: Optional[httpx.Client] = None):
        self.timeout = timeout
        self.params = dict(params or {"max_tokens": 4096, "temperature": 0.5})
        self.http_client = http_client

    def _client(self, config: BackendConfig) -> OpenAI:
        # credential is read per call, the session may have changed it since the last one
        api_key = config.require_credential()
        kwargs: Dict[str, Any] = {
            "api_key": api_key,
            "base_url": config.base_url or DEFAULT_BASE_URL,
            "timeout": self.timeout,
            "max_retries": 0,
        }
        if self.http_client is not None:
            kwargs["http_client"] = self.http_client
        return OpenAI(**kwargs)

    def list_models(self, config: BackendConfig) -> List[str]:
        client = self._client(config)
        try:
            page = client.models.list()
        except APIStatusError as e:
            raise NetworkError(f"Failed to fetch models: HTTP {e.status_code}") from e
        except (APIConnectionError, APIError) as e:
            raise NetworkError(f"Failed to fetch models: {e}") from e

        models = [model.id for model in page.data]
        logger.info(f"hosted backend returned {len(models)} models")
        return models

    def complete(self, config: BackendConfig, system_prompt: str, user_content: str, model: str) -> str:
        client = self._client(config)
        try:
            response = client.chat.completions.create(
                model=model,
                messages=chat_messages(system_prompt, user_content),
                **self.params
            )
        except APIStatusError as e:
            raise NetworkError(f"Failed to complete API call: HTTP {e.status_code}") from e
        except (APIConnectionError, APIError) as e:
            raise NetworkError(f"Failed to complete API call: {e}") from e

        try:
            return response.choices[0].message.content or ""
        except (IndexError, AttributeError) as e:
            raise NetworkError(f"Invalid response structure from hosted backend: {e}") from e
