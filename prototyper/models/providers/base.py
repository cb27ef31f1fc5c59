from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

#unified backend errors
class BackendError(RuntimeError): ...
class ConfigError(BackendError): ...
class NetworkError(BackendError): ...


class BackendKind(str, Enum):
    LOCAL = "local"
    HOSTED = "hosted"


@dataclass(frozen=True)
class BackendConfig:
    kind: BackendKind
    base_url: str
    credential: Optional[str] = None #required for hosted, ignored for local

    def require_credential(self) -> str:
        if not self.credential:
            raise ConfigError("Please provide an API key for the hosted backend.")
        return self.credential


def chat_messages(system_prompt: str, user_content: str) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": user_content},
    ]


class ModelProvider(ABC):
    @abstractmethod
    def list_models(self, config: BackendConfig) -> List[str]:
        raise NotImplementedError

    @abstractmethod
    def complete(self, config: BackendConfig, system_prompt: str, user_content: str, model: str) -> str:
        raise NotImplementedError
