"""Health check endpoints for liveness and readiness checks."""
import os
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

if TYPE_CHECKING:
    from livepdf.events.hub import BroadcastHub
    from livepdf.events.watcher import FileWatcher

router = APIRouter(prefix="/health", tags=["health"])


class LivenessResponse(BaseModel):
    """Response model for liveness check.

    Attributes:
        status: Always 'alive' when process is running.
    """

    status: Literal["alive"]


class ReadinessCheck(BaseModel):
    """Individual dependency check result.

    Attributes:
        name: Identifier for the dependency being checked.
        status: Result of the check ('ok' or 'failed').
        message: Error details when status is 'failed'.
    """

    name: str
    status: Literal["ok", "failed"]
    message: str | None = None


class ReadinessResponse(BaseModel):
    """Response model for readiness check.

    Attributes:
        status: Overall readiness ('ready' or 'not_ready').
        subscribers: Number of connected event streams.
        checks: List of individual dependency check results.
    """

    status: Literal["ready", "not_ready"]
    subscribers: int
    checks: list[ReadinessCheck]


def _check_document(path: Path) -> ReadinessCheck:
    """Verify the document exists and is readable.

    Args:
        path: Absolute path to the document.

    Returns:
        Check result with status and optional error message.
    """
    name = f"document:{path}"
    if not path.is_file():
        return ReadinessCheck(name=name, status="failed", message="File not found")
    if not os.access(path, os.R_OK):
        return ReadinessCheck(name=name, status="failed", message="Permission denied")
    return ReadinessCheck(name=name, status="ok")


def _check_watcher(hub: "BroadcastHub", watcher: "FileWatcher | None") -> ReadinessCheck:
    """Verify live reload notifications can still arrive.

    Args:
        hub: Application broadcast hub.
        watcher: Application file watcher, None if never started.

    Returns:
        Check result with status and optional error message.
    """
    if not hub.available or watcher is None:
        return ReadinessCheck(name="watcher", status="failed", message="Live reload unavailable")
    if not watcher.is_running:
        return ReadinessCheck(name="watcher", status="failed", message="Watcher stopped")
    return ReadinessCheck(name="watcher", status="ok")


@router.get("/live", response_model=LivenessResponse)
async def liveness() -> LivenessResponse:
    """Liveness check endpoint.

    Returns:
        Liveness status response.
    """
    return LivenessResponse(status="alive")


@router.get("/ready", response_model=ReadinessResponse)
async def readiness(request: Request) -> JSONResponse:
    """Readiness check endpoint.

    Validates that the document is readable and that the file watcher
    is delivering change notifications. Returns 200 if all checks pass,
    503 if any fail.

    Args:
        request: FastAPI request object.

    Returns:
        Readiness status with individual check results.
    """
    state = request.app.state
    hub: BroadcastHub = state.broadcast_hub
    checks = [
        _check_document(state.settings.watch_target.path),
        _check_watcher(hub, getattr(state, "watcher", None)),
    ]
    all_ok = all(c.status == "ok" for c in checks)
    response = ReadinessResponse(
        status="ready" if all_ok else "not_ready",
        subscribers=hub.subscriber_count,
        checks=checks,
    )
    code = status.HTTP_200_OK if all_ok else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(content=response.model_dump(), status_code=code)
