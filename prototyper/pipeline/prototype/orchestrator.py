import logging
from typing import Optional

from prototyper.models.manager import BackendManager
from prototyper.models.prompts import PromptKind
from prototyper.models.providers.base import BackendError, ConfigError
from prototyper.models.registry import Role, SelectionError
from .extraction import extract_html_document
from .types import (
    Artifact,
    PipelineRequest,
    PrototypeSession,
    artifact_filename,
    READY_STATUS,
    NO_DOCUMENT_STATUS,
)

logger = logging.getLogger(__name__)


class PrototypePipeline:
    """
    Optimize -> generate -> validate, one backend call per stage.

    Every stage re-reads the session when it starts and reports its own failures
    as session notifications; nothing raised by the backend escapes a stage.
    Triggers on the same session are serialized through the session lock.
    """

    def __init__(self, manager: BackendManager):
        self.backend_manager = manager

    def refresh_models(self, session: PrototypeSession) -> list:
        with session.lock:
            try:
                return session.registry.refresh(self.backend_manager, session.backend)
            except ConfigError as e:
                session.notify(str(e))
            except BackendError as e:
                session.notify(f"Error loading models: {e}")
            return session.registry.models

    def optimize(self, session: PrototypeSession) -> str:
        """Rewrite the session's requirements with the optimization model's answer."""
        with session.lock:
            model = self._selected(session, Role.OPTIMIZE)
            if model is None:
                return session.requirements

            request = session.request(PromptKind.OPTIMIZATION, model)
            optimized = self._complete(session, request, request.requirements_text)
            session.requirements = optimized
            logger.info(f"optimize stage finished with {len(optimized)} chars")
            return optimized

    def generate(self, session: PrototypeSession) -> Optional[Artifact]:
        """Generate a prototype, run one validation pass over it and store the result as an artifact."""
        with session.lock:
            requirements = session.requirements
            filename = artifact_filename(session.project_name)

            model = self._selected(session, Role.GENERATE)
            if model is None:
                return None

            request = session.request(PromptKind.GENERATION, model, requirements)
            prototype_code = self._complete(session, request, requirements)
            if not prototype_code:
                return None
            html_content = extract_html_document(prototype_code)
            if not html_content:
                logger.info("generation output holds no HTML document, validating an empty prototype")

            improved = self._validate(session, requirements, html_content)
            if improved is None:
                return None

            if not improved:
                session.status = NO_DOCUMENT_STATUS
                return None

            artifact = Artifact(filename=filename, content=improved)
            session.artifacts.append(artifact)
            session.status = READY_STATUS
            logger.info(f"produced artifact {filename} ({len(improved)} chars)")
            return artifact

    def _validate(self, session: PrototypeSession, requirements: str, prototype_code: str) -> Optional[str]:
        model = self._selected(session, Role.VALIDATE)
        if model is None:
            return None

        request = session.request(PromptKind.VALIDATION, model, requirements)
        content = session.prompts.library.compose_validation_content(requirements, prototype_code)
        improved_code = self._complete(session, request, content)
        return extract_html_document(improved_code)

    def _selected(self, session: PrototypeSession, role: Role) -> Optional[str]:
        try:
            return session.registry.selected(role)
        except SelectionError as e:
            session.notify(str(e))
            return None

    def _complete(self, session: PrototypeSession, request: PipelineRequest, user_content: str) -> str:
        try:
            return self.backend_manager.complete(
                session.backend,
                request.prompt_template,
                user_content,
                request.selected_model,
            )
        except ConfigError as e:
            session.notify(str(e))
        except BackendError as e:
            session.notify(f"API error: {e}")
        return ""
