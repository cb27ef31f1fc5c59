from __future__ import annotations
from typing import Optional, Dict, Any, List, Union
from pathlib import Path
from os import getenv
import yaml
import time
import logging
from contextlib import contextmanager

from .providers.base import ModelProvider, BackendConfig, BackendKind, BackendError
from .providers.hosted import HostedProvider
from .providers.local import LocalProvider

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parents[1] / "config" / "config.yaml"


class BackendManager:
    """Routes list-models and chat-completion calls to the backend named by a BackendConfig."""

    def __init__(self, config_path: Union[Path, str, None] = None):
        self.config_path = Path(config_path or getenv("PROTOTYPER_CONFIG") or DEFAULT_CONFIG_PATH)
        self.config = self._load_config()
        self._providers: Dict[BackendKind, ModelProvider] = {}
        self._stats: Dict[str, Dict[str, Any]] = {} #performance tracking

    def _load_config(self) -> Dict:
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config not found: {self.config_path}")
        with open(self.config_path) as f:
            config = yaml.safe_load(f) or {}

        if 'backends' not in config:
            raise ValueError("Config missing 'backends'")

        for name in config['backends']:
            if name not in {kind.value for kind in BackendKind}:
                raise ValueError(f"Config references unknown backend '{name}'")

        default = config.get('default_backend', BackendKind.LOCAL.value)
        if default not in config['backends']:
            raise ValueError(f"Default backend '{default}' is not configured")
        return config

    @property
    def default_kind(self) -> BackendKind:
        return BackendKind(self.config.get('default_backend', BackendKind.LOCAL.value))

    def _backend_cfg(self, kind: BackendKind) -> Dict[str, Any]:
        backend_cfg = self.config['backends'].get(kind.value)
        if backend_cfg is None:
            raise ValueError(f"Backend '{kind.value}' is not configured")
        return backend_cfg

    def backend_config(self, kind: Union[BackendKind, str], credential: Optional[str] = None, base_url: Optional[str] = None) -> BackendConfig:
        kind = BackendKind(kind)
        if kind is BackendKind.HOSTED and credential is None:
            credential = getenv("OPENAI_API_KEY")
        return BackendConfig(
            kind=kind,
            base_url=base_url or self._backend_cfg(kind)['base_url'],
            credential=credential if kind is BackendKind.HOSTED else None,
        )

    def _get_provider(self, kind: BackendKind) -> ModelProvider:
        if kind in self._providers:
            return self._providers[kind]

        settings = self._backend_cfg(kind).get('settings') or {}
        if kind is BackendKind.HOSTED:
            provider = HostedProvider(**settings)
        elif kind is BackendKind.LOCAL:
            provider = LocalProvider(**settings)
        else:
            raise ValueError(f"Unknown backend type: {kind}")
        self._providers[kind] = provider
        logger.info(f"initialized backend provider: {kind.value}")
        return provider

    def list_models(self, config: BackendConfig) -> List[str]:
        provider = self._get_provider(config.kind)
        with self._timed(f"{config.kind.value}.list_models"):
            return provider.list_models(config)

    def complete(self, config: BackendConfig, system_prompt: str, user_content: str, model: str) -> str:
        provider = self._get_provider(config.kind)
        with self._timed(f"{config.kind.value}.complete"):
            return provider.complete(config, system_prompt, user_content, model)

    @contextmanager
    def _timed(self, operation: str):
        start_time = time.perf_counter()
        try:
            yield
        except BackendError:
            self._track_stats(operation, (time.perf_counter() - start_time) * 1000, success=False)
            raise
        self._track_stats(operation, (time.perf_counter() - start_time) * 1000, success=True)

    def _track_stats(self, operation: str, latency_ms: float, success: bool):
        if operation not in self._stats:
            self._stats[operation] = {
                'total_calls': 0,
                'successful_calls': 0,
                'total_latency_ms': 0
            }

        stats = self._stats[operation]
        stats['total_calls'] += 1
        if success:
            stats['successful_calls'] += 1
            stats['total_latency_ms'] += latency_ms

    def get_stats(self, operation: Optional[str] = None) -> Dict:
        if operation:
            return self._stats.get(operation, {})
        return self._stats

    def cleanup(self):
        self._providers.clear()
        logger.info("Cleaned up backend providers")
