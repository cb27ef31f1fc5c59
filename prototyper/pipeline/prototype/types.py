import re
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from prototyper.models.prompts import PromptKind, PromptStore
from prototyper.models.providers.base import BackendConfig
from prototyper.models.registry import ModelRegistry

DEFAULT_ARTIFACT_NAME = "improved_prototype"
READY_STATUS = "Prototype improved and ready for download."
NO_DOCUMENT_STATUS = "Validation returned no HTML document; no prototype produced."


def artifact_filename(project_name: Optional[str]) -> str:
    # each run of whitespace becomes one underscore
    stem = re.sub(r"\s+", "_", project_name or "")
    return f"{stem or DEFAULT_ARTIFACT_NAME}.html"


# Input types
@dataclass
class PipelineRequest:
    requirements_text: str
    selected_model: str
    prompt_template: str


# Output types
@dataclass
class Artifact:
    filename: str
    content: str
    media_type: str = "text/html"
    created_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class PrototypeSession:
    """Everything one open page holds: read fresh by every stage, never persisted."""
    backend: BackendConfig
    prompts: PromptStore
    registry: ModelRegistry = field(default_factory=ModelRegistry)
    requirements: str = ""
    project_name: str = ""
    credential: Optional[str] = field(default=None, repr=False) #the key field, kept across backend switches
    artifacts: List[Artifact] = field(default_factory=list)
    status: str = ""
    notifications: List[str] = field(default_factory=list)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)
    # stages append while holding `lock`, responses drain without it
    _notify_lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def notify(self, message: str):
        with self._notify_lock:
            self.notifications.append(message)

    def drain_notifications(self) -> List[str]:
        with self._notify_lock:
            pending, self.notifications = self.notifications, []
        return pending

    def request(self, kind: PromptKind, model: str, requirements_text: Optional[str] = None) -> PipelineRequest:
        return PipelineRequest(
            requirements_text=self.requirements if requirements_text is None else requirements_text,
            selected_model=model,
            prompt_template=self.prompts.get(kind),
        )
