"""
Prototype pipeline API endpoints: optimize, generate + validate, artifact download.
"""

from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from ..models.pipeline import OptimizeResponse, GenerateResponse, ArtifactsResponse, ArtifactInfo
from ..dependencies.session import get_pipeline, get_prototype_session
from prototyper.pipeline.prototype.orchestrator import PrototypePipeline
from prototyper.pipeline.prototype.types import PrototypeSession

router = APIRouter()

@router.post("/{session_id}/optimize", response_model=OptimizeResponse)
def optimize_requirements(
    session: PrototypeSession = Depends(get_prototype_session),
    pipeline: PrototypePipeline = Depends(get_pipeline)
):
    """
    Run the optimization prompt over the session's requirements and store the answer in their place.
    """
    requirements = pipeline.optimize(session)
    notifications = session.drain_notifications()
    return OptimizeResponse(
        success=not notifications,
        requirements=requirements,
        notifications=notifications
    )

@router.post("/{session_id}/generate", response_model=GenerateResponse)
def generate_prototype(
    session_id: str,
    session: PrototypeSession = Depends(get_prototype_session),
    pipeline: PrototypePipeline = Depends(get_pipeline)
):
    """
    Generate a prototype from the current requirements, validate it once and
    publish the improved document as a downloadable artifact.
    """
    artifact = pipeline.generate(session)
    notifications = session.drain_notifications()

    info = None
    if artifact is not None:
        info = ArtifactInfo.from_artifact(session_id, len(session.artifacts) - 1, artifact)

    return GenerateResponse(
        success=artifact is not None,
        # message describes this run only, status is the session's line
        message=session.status if artifact is not None else None,
        status=session.status,
        artifact=info,
        notifications=notifications
    )

@router.get("/{session_id}/artifacts", response_model=ArtifactsResponse)
def list_artifacts(
    session_id: str,
    session: PrototypeSession = Depends(get_prototype_session)
):
    return ArtifactsResponse(
        success=True,
        artifacts=[
            ArtifactInfo.from_artifact(session_id, index, artifact)
            for index, artifact in enumerate(session.artifacts)
        ],
        notifications=session.drain_notifications()
    )

@router.get("/{session_id}/artifacts/{index}")
def download_artifact(
    index: int,
    session: PrototypeSession = Depends(get_prototype_session)
):
    """Serve an artifact's HTML verbatim as a file download."""
    if index < 0 or index >= len(session.artifacts):
        raise HTTPException(status_code=404, detail=f"Artifact {index} not found")
    artifact = session.artifacts[index]
    return Response(
        content=artifact.content.encode("utf-8"),
        media_type=artifact.media_type,
        headers={"Content-Disposition": _content_disposition(artifact.filename)}
    )

def _content_disposition(filename: str) -> str:
    if filename.isascii():
        escaped = filename.replace("\\", "\\\\").replace('"', '\\"')
        return f'attachment; filename="{escaped}"'
    # header values are latin-1, non-ascii names go through RFC 5987
    return f"attachment; filename*=UTF-8''{quote(filename)}"
