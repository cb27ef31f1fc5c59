"""
Session management for prototype pipelines.

Each session stands in for one open page: its backend choice, prompts,
model selections, requirements text and produced artifacts live here
in memory and disappear when the session expires or the server stops.
"""

import uuid
import logging
import threading
from typing import Dict, Optional, Any
from datetime import datetime, timedelta
from dataclasses import dataclass

from fastapi import Depends, HTTPException

from prototyper.models.manager import BackendManager
from prototyper.models.prompts import PromptLibrary, PromptStore
from prototyper.models.providers.base import BackendKind
from prototyper.pipeline.prototype.orchestrator import PrototypePipeline
from prototyper.pipeline.prototype.types import PrototypeSession

logger = logging.getLogger(__name__)


@dataclass
class SessionEntry:
    """A prototype session plus its bookkeeping."""
    session_id: str
    session: PrototypeSession
    created_at: datetime
    last_accessed: datetime


class SessionManager:
    """
    Thread-safe in-memory session storage.

    Sessions expire after a period without access; nothing is written to disk.
    """

    def __init__(self, session_timeout_minutes: int = 120):
        self._sessions: Dict[str, SessionEntry] = {}
        self._lock = threading.Lock()
        self.session_timeout = timedelta(minutes=session_timeout_minutes)

    def create_session(
        self,
        backend_manager: BackendManager,
        prompt_library: PromptLibrary,
        backend: Optional[BackendKind] = None,
        credential: Optional[str] = None,
        project_name: str = "",
        requirements: str = "",
    ) -> str:
        """Create a new prototype session and return its ID."""
        session_id = str(uuid.uuid4())
        now = datetime.utcnow()

        session = PrototypeSession(
            backend=backend_manager.backend_config(backend or backend_manager.default_kind, credential),
            prompts=PromptStore(prompt_library),
            project_name=project_name,
            requirements=requirements,
            credential=credential,
        )

        with self._lock:
            # Clean up expired sessions before adding new one
            self._cleanup_expired_sessions()
            self._sessions[session_id] = SessionEntry(
                session_id=session_id,
                session=session,
                created_at=now,
                last_accessed=now,
            )

        logger.info(f"created session {session_id} on {session.backend.kind.value} backend")
        return session_id

    def get_session(self, session_id: str) -> Optional[PrototypeSession]:
        """Retrieve a session by ID, refreshing its last-access time."""
        with self._lock:
            entry = self._sessions.get(session_id)
            if entry is None:
                return None

            now = datetime.utcnow()
            if now - entry.last_accessed > self.session_timeout:
                del self._sessions[session_id]
                return None

            entry.last_accessed = now
            return entry.session

    def delete_session(self, session_id: str) -> bool:
        """Delete a session."""
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def _cleanup_expired_sessions(self):
        """Remove expired sessions (called with lock held)."""
        now = datetime.utcnow()
        expired_ids = [
            session_id for session_id, entry in self._sessions.items()
            if now - entry.last_accessed > self.session_timeout
        ]

        for session_id in expired_ids:
            del self._sessions[session_id]

        if expired_ids:
            logger.info(f"Cleaned up {len(expired_ids)} expired prototype sessions")

    def get_stats(self) -> Dict[str, Any]:
        """Get session manager statistics."""
        with self._lock:
            return {
                "active_sessions": len(self._sessions),
                "timeout_minutes": self.session_timeout.total_seconds() / 60,
            }


# Global session manager instance
session_manager = SessionManager()


# FastAPI dependency functions
def get_session_manager() -> SessionManager:
    """FastAPI dependency to get the session manager."""
    return session_manager


def get_backend_manager() -> BackendManager:
    """FastAPI dependency to get the backend manager from app state."""
    from ..main import app_state
    return app_state["backend_manager"]


def get_prompt_library() -> PromptLibrary:
    """FastAPI dependency to get the default prompt library from app state."""
    from ..main import app_state
    return app_state["prompt_library"]


def get_pipeline(backend_manager: BackendManager = Depends(get_backend_manager)) -> PrototypePipeline:
    return PrototypePipeline(backend_manager)


def get_prototype_session(
    session_id: str,
    session_manager: SessionManager = Depends(get_session_manager)
) -> PrototypeSession:
    """FastAPI dependency resolving the `session_id` path parameter, 404 when unknown."""
    session = session_manager.get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
    return session
