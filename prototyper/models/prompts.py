from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Dict, Union
import jinja2
import logging

logger = logging.getLogger(__name__)

DEFAULT_PROMPTS_DIR = Path(__file__).parents[1] / "prompts"
DEFAULT_VERSION = "v1"


class PromptKind(str, Enum):
    OPTIMIZATION = "optimization"
    GENERATION = "generation"
    VALIDATION = "validation"


@dataclass(frozen=True)
class PromptConfig:
    #immutable default prompt as shipped on disk
    name: str
    version: str
    system_template: str
    user_template: Optional[str] = None

    @property
    def ref(self) -> str:
        return f"{self.name}@{self.version}"


class PromptLibrary:
    """Loads the packaged default prompts (`<kind>/<version>/system.j2`, optional `user.j2`)."""

    def __init__(self, prompts_dir: Union[Path, str, None] = None, version: str = DEFAULT_VERSION):
        self.prompts_dir = Path(prompts_dir or DEFAULT_PROMPTS_DIR)
        if not self.prompts_dir.exists():
            raise FileNotFoundError(f"Prompts dir not found: {self.prompts_dir}")
        self.version = version

        # autoescape stays off: prototype code is passed through as-is
        self.jinja_env = jinja2.Environment(
            undefined=jinja2.StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
            autoescape=False,
        )
        self._cache: Dict[str, PromptConfig] = {}

    def load_prompt(self, kind: PromptKind) -> PromptConfig:
        kind = PromptKind(kind)
        ref = f"{kind.value}@{self.version}"
        if ref in self._cache:
            return self._cache[ref]

        prompt_path = self.prompts_dir / kind.value / self.version
        if not prompt_path.exists():
            raise FileNotFoundError(f"Prompt not found: {prompt_path}")

        user_path = prompt_path / "user.j2"
        prompt_config = PromptConfig(
            name=kind.value,
            version=self.version,
            system_template=self._load_template(prompt_path, "system.j2").strip(),
            user_template=user_path.read_text() if user_path.exists() else None,
        )

        self._cache[ref] = prompt_config
        logger.info(f"Loaded prompt: {ref}")
        return prompt_config

    def default(self, kind: PromptKind) -> str:
        return self.load_prompt(kind).system_template

    def compose_validation_content(self, requirements: str, prototype_code: str) -> str:
        config = self.load_prompt(PromptKind.VALIDATION)
        if config.user_template is None:
            raise FileNotFoundError(f"Validation prompt {config.ref} has no user.j2")
        try:
            return self.jinja_env.from_string(config.user_template).render(
                requirements=requirements,
                prototype_code=prototype_code,
            )
        except jinja2.UndefinedError as e:
            raise ValueError(f"Missing required variable in prompt {config.ref}: {e}")

    def _load_template(self, prompt_path: Path, template_name: str) -> str:
        template_path = prompt_path / template_name
        if not template_path.exists():
            raise FileNotFoundError(f"Template file not found: {template_path}")
        return template_path.read_text()

    def clear_cache(self):
        self._cache.clear()
        logger.info("Cleared prompt library cache")


class PromptStore:
    """The three editable instruction templates of one session."""

    def __init__(self, library: PromptLibrary):
        self.library = library
        self._templates: Dict[PromptKind, str] = {kind: library.default(kind) for kind in PromptKind}

    def get(self, kind: PromptKind) -> str:
        return self._templates[PromptKind(kind)]

    def set(self, kind: PromptKind, text: str):
        self._templates[PromptKind(kind)] = text

    def reset(self, kind: PromptKind) -> str:
        kind = PromptKind(kind)
        self._templates[kind] = self.library.default(kind)
        return self._templates[kind]

    def as_dict(self) -> Dict[str, str]:
        return {kind.value: text for kind, text in self._templates.items()}
