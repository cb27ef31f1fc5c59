"""
Health check endpoints for monitoring and diagnostics.
"""

import time
from fastapi import APIRouter, Depends
from datetime import datetime

from ..models.common import HealthStatus
from ..dependencies.session import get_session_manager, get_backend_manager, SessionManager
from prototyper.models.manager import BackendManager

router = APIRouter()

# Track server start time for uptime calculation
_server_start_time = time.time()

@router.get("/", response_model=HealthStatus)
def health_check(
    session_manager: SessionManager = Depends(get_session_manager),
    backend_manager: BackendManager = Depends(get_backend_manager)
):
    """
    Basic health check endpoint.

    Reports the API status and the state of its in-process dependencies.
    The model backends are not contacted here.
    """
    uptime = time.time() - _server_start_time

    dependencies = {}

    try:
        session_stats = session_manager.get_stats()
        dependencies["session_manager"] = f"Active ({session_stats['active_sessions']} sessions)"
    except Exception as e:
        dependencies["session_manager"] = f"Error: {str(e)}"

    backends = ", ".join(sorted(backend_manager.config["backends"]))
    dependencies["backends"] = f"Configured: {backends} (default {backend_manager.default_kind.value})"

    return HealthStatus(
        status="healthy",
        version="1.0.0",
        uptime=uptime,
        dependencies=dependencies
    )

@router.get("/detailed")
def detailed_health_check(
    session_manager: SessionManager = Depends(get_session_manager),
    backend_manager: BackendManager = Depends(get_backend_manager)
):
    """Session counts and per-operation backend call statistics."""
    uptime = time.time() - _server_start_time
    session_stats = session_manager.get_stats()

    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "uptime_seconds": uptime,
        "uptime_human": f"{uptime//3600:.0f}h {(uptime%3600)//60:.0f}m {uptime%60:.0f}s",
        "sessions": {
            "active_count": session_stats["active_sessions"],
            "timeout_minutes": session_stats["timeout_minutes"],
        },
        "backend_calls": backend_manager.get_stats(),
    }
