"""
API models for session, prompt and model-selection endpoints.
"""

from pydantic import BaseModel, Field
from typing import Dict, List, Optional

from prototyper.models.providers.base import BackendKind
from prototyper.pipeline.prototype.types import PrototypeSession
from .common import APIResponse

# API Request Models
class SessionCreateRequest(BaseModel):
    """Request for opening a new prototype session."""
    backend: Optional[BackendKind] = Field(None, description="Backend to use, defaults to the configured one")
    credential: Optional[str] = Field(None, description="API key for the hosted backend")
    project_name: str = Field("", description="Used to name downloaded prototypes")
    requirements: str = Field("", description="Product requirements text")

    class Config:
        json_schema_extra = {
            "example": {
                "backend": "local",
                "project_name": "Todo App",
                "requirements": "a todo list app"
            }
        }

class SessionUpdateRequest(BaseModel):
    """Partial update of a session's fields; omitted fields stay as they are."""
    backend: Optional[BackendKind] = None
    credential: Optional[str] = None
    base_url: Optional[str] = None
    project_name: Optional[str] = None
    requirements: Optional[str] = None

class PromptUpdateRequest(BaseModel):
    text: str = Field(..., description="New instruction template")

class ModelSelectionRequest(BaseModel):
    model: str = Field(..., description="Model identifier from the refreshed list")

# API Response Models
class SessionData(BaseModel):
    """Snapshot of a session. The credential itself is never echoed back."""
    session_id: str
    backend: BackendKind
    base_url: str
    has_credential: bool
    project_name: str
    requirements: str
    models: List[str]
    selected_models: Dict[str, Optional[str]]
    prompts: Dict[str, str]
    artifact_count: int
    status: str

    @classmethod
    def from_session(cls, session_id: str, session: PrototypeSession) -> "SessionData":
        return cls(
            session_id=session_id,
            backend=session.backend.kind,
            base_url=session.backend.base_url,
            has_credential=bool(session.backend.credential),
            project_name=session.project_name,
            requirements=session.requirements,
            models=session.registry.models,
            selected_models=session.registry.selections(),
            prompts=session.prompts.as_dict(),
            artifact_count=len(session.artifacts),
            status=session.status,
        )

class SessionResponse(APIResponse):
    data: Optional[SessionData] = None

class PromptsResponse(APIResponse):
    prompts: Dict[str, str] = Field(default_factory=dict)

class ModelsResponse(APIResponse):
    models: List[str] = Field(default_factory=list)
    selected_models: Dict[str, Optional[str]] = Field(default_factory=dict)
