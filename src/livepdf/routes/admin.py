"""Administrative endpoints."""

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

logger = structlog.get_logger()

router = APIRouter(tags=["admin"])


@router.post("/stop", response_class=PlainTextResponse)
async def stop(request: Request) -> str:
    """Ask the server to shut down gracefully.

    Open event streams are closed and the process exits once in-flight
    requests finish.

    Args:
        request: FastAPI request object.

    Returns:
        Confirmation message.
    """
    client = request.client.host if request.client else None
    logger.info("stop_requested", client=client)
    request.app.state.shutdown.trigger(reason="stop_endpoint")
    return "Server stopped"
