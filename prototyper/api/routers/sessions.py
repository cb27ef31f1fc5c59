"""
Session endpoints: backend choice, prompt templates and model selection.
"""

from fastapi import APIRouter, Depends, HTTPException

from ..models.sessions import (
    SessionCreateRequest,
    SessionUpdateRequest,
    SessionResponse,
    SessionData,
    PromptUpdateRequest,
    PromptsResponse,
    ModelSelectionRequest,
    ModelsResponse,
)
from ..models.common import APIResponse
from ..dependencies.session import (
    SessionManager,
    get_session_manager,
    get_backend_manager,
    get_prompt_library,
    get_pipeline,
    get_prototype_session,
)
from prototyper.models.manager import BackendManager
from prototyper.models.prompts import PromptKind, PromptLibrary
from prototyper.models.registry import Role, SelectionError
from prototyper.pipeline.prototype.orchestrator import PrototypePipeline
from prototyper.pipeline.prototype.types import PrototypeSession

router = APIRouter()

@router.post("", response_model=SessionResponse, status_code=201)
def create_session(
    request: SessionCreateRequest,
    session_manager: SessionManager = Depends(get_session_manager),
    backend_manager: BackendManager = Depends(get_backend_manager),
    prompt_library: PromptLibrary = Depends(get_prompt_library)
):
    """Open a session with default prompts and an empty model list."""
    session_id = session_manager.create_session(
        backend_manager,
        prompt_library,
        backend=request.backend,
        credential=request.credential,
        project_name=request.project_name,
        requirements=request.requirements,
    )
    session = session_manager.get_session(session_id)
    return SessionResponse(
        success=True,
        message="Session created.",
        data=SessionData.from_session(session_id, session)
    )

@router.get("/{session_id}", response_model=SessionResponse)
def get_session(
    session_id: str,
    session: PrototypeSession = Depends(get_prototype_session)
):
    return SessionResponse(
        success=True,
        data=SessionData.from_session(session_id, session),
        notifications=session.drain_notifications()
    )

@router.patch("/{session_id}", response_model=SessionResponse)
def update_session(
    session_id: str,
    request: SessionUpdateRequest,
    session: PrototypeSession = Depends(get_prototype_session),
    backend_manager: BackendManager = Depends(get_backend_manager)
):
    """
    Update the fields a user edits on the page.

    Changes take effect for the next stage that runs; a stage already in
    flight keeps what it read when it started.
    """
    current = session.backend
    if request.backend is not None or request.credential is not None or request.base_url is not None:
        kind = request.backend or current.kind
        if request.base_url is not None:
            base_url = request.base_url
        elif kind == current.kind:
            base_url = current.base_url
        else:
            base_url = None
        if request.credential is not None:
            session.credential = request.credential
        session.backend = backend_manager.backend_config(kind, session.credential, base_url)

    if request.project_name is not None:
        session.project_name = request.project_name
    if request.requirements is not None:
        session.requirements = request.requirements

    return SessionResponse(
        success=True,
        message="Session updated.",
        data=SessionData.from_session(session_id, session),
        notifications=session.drain_notifications()
    )

@router.delete("/{session_id}", response_model=APIResponse)
def delete_session(
    session_id: str,
    session_manager: SessionManager = Depends(get_session_manager)
):
    if not session_manager.delete_session(session_id):
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
    return APIResponse(success=True, message="Session deleted.")

@router.get("/{session_id}/prompts", response_model=PromptsResponse)
def get_prompts(session: PrototypeSession = Depends(get_prototype_session)):
    return PromptsResponse(
        success=True,
        prompts=session.prompts.as_dict(),
        notifications=session.drain_notifications()
    )

@router.put("/{session_id}/prompts/{kind}", response_model=PromptsResponse)
def update_prompt(
    kind: PromptKind,
    request: PromptUpdateRequest,
    session: PrototypeSession = Depends(get_prototype_session)
):
    session.prompts.set(kind, request.text)
    return PromptsResponse(
        success=True,
        message=f"{kind.value} prompt updated.",
        prompts=session.prompts.as_dict(),
        notifications=session.drain_notifications()
    )

@router.delete("/{session_id}/prompts/{kind}", response_model=PromptsResponse)
def reset_prompt(
    kind: PromptKind,
    session: PrototypeSession = Depends(get_prototype_session)
):
    session.prompts.reset(kind)
    return PromptsResponse(
        success=True,
        message=f"{kind.value} prompt reset to default.",
        prompts=session.prompts.as_dict(),
        notifications=session.drain_notifications()
    )

@router.post("/{session_id}/models/refresh", response_model=ModelsResponse)
def refresh_models(
    session: PrototypeSession = Depends(get_prototype_session),
    pipeline: PrototypePipeline = Depends(get_pipeline)
):
    """Fetch the model list from the session's backend and reset every role to its first entry."""
    models = pipeline.refresh_models(session)
    notifications = session.drain_notifications()
    return ModelsResponse(
        success=not notifications,
        models=models,
        selected_models=session.registry.selections(),
        notifications=notifications
    )

@router.put("/{session_id}/models/{role}", response_model=ModelsResponse)
def select_model(
    role: Role,
    request: ModelSelectionRequest,
    session: PrototypeSession = Depends(get_prototype_session)
):
    try:
        session.registry.select(role, request.model)
    except SelectionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ModelsResponse(
        success=True,
        models=session.registry.models,
        selected_models=session.registry.selections(),
        notifications=session.drain_notifications()
    )
