"""
API models for the prototype pipeline endpoints.

These Pydantic models define the responses of the optimize and generate
stages and the artifact listing.
"""

from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from prototyper.pipeline.prototype.types import Artifact
from .common import APIResponse

class ArtifactInfo(BaseModel):
    """A produced prototype, addressable by its index in the session."""
    index: int = Field(..., description="Position in the session's artifact list")
    filename: str = Field(..., description="Download file name")
    media_type: str = Field(..., description="Content type of the download")
    size: int = Field(..., description="Length of the document in characters")
    created_at: datetime
    download_url: str = Field(..., description="Relative URL serving the file")

    @classmethod
    def from_artifact(cls, session_id: str, index: int, artifact: Artifact) -> "ArtifactInfo":
        return cls(
            index=index,
            filename=artifact.filename,
            media_type=artifact.media_type,
            size=len(artifact.content),
            created_at=artifact.created_at,
            download_url=f"/api/v1/sessions/{session_id}/artifacts/{index}",
        )

class OptimizeResponse(APIResponse):
    """Result of the optimize stage."""
    requirements: str = Field(..., description="Requirements text after the stage, empty when the call failed")

class GenerateResponse(APIResponse):
    """Result of the generate + validate stage."""
    status: str = Field("", description="Status line of the session after the stage")
    artifact: Optional[ArtifactInfo] = None

    class Config:
        json_schema_extra = {
            "example": {
                "success": True,
                "status": "Prototype improved and ready for download.",
                "artifact": {
                    "index": 0,
                    "filename": "Todo_App.html",
                    "media_type": "text/html",
                    "size": 2048,
                    "created_at": "2026-01-01T00:00:00",
                    "download_url": "/api/v1/sessions/<id>/artifacts/0"
                }
            }
        }

class ArtifactsResponse(APIResponse):
    artifacts: List[ArtifactInfo] = Field(default_factory=list)
