from __future__ import annotations
from enum import Enum
from typing import Dict, List, Optional
import logging

from .manager import BackendManager
from .providers.base import BackendConfig

logger = logging.getLogger(__name__)


class SelectionError(RuntimeError): ...


class Role(str, Enum):
    OPTIMIZE = "optimize"
    GENERATE = "generate"
    VALIDATE = "validate"


class ModelRegistry:
    """Models offered by the active backend, and the model bound to each pipeline role."""

    def __init__(self):
        self._models: List[str] = []
        self._selection: Dict[Role, Optional[str]] = {role: None for role in Role}

    @property
    def models(self) -> List[str]:
        return list(self._models)

    def refresh(self, manager: BackendManager, config: BackendConfig) -> List[str]:
        """Replace the model list from the backend; errors leave the current list untouched."""
        models = manager.list_models(config)
        self.populate(models)
        return self.models

    def populate(self, models: List[str]):
        self._models = list(models)
        #every role gets the same list and starts on its first entry
        first = self._models[0] if self._models else None
        for role in Role:
            self._selection[role] = first
        logger.info(f"model registry now holds {len(self._models)} models")

    def select(self, role: Role, model: str):
        if model not in self._models:
            raise SelectionError(f"Model '{model}' is not available for {Role(role).value}")
        self._selection[Role(role)] = model

    def selected(self, role: Role) -> str:
        model = self._selection.get(Role(role))
        if not model:
            raise SelectionError(f"Please select a model for {Role(role).value}")
        return model

    def selections(self) -> Dict[str, Optional[str]]:
        return {role.value: model for role, model in self._selection.items()}
