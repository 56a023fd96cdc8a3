"""SSE streaming endpoint for document change notifications."""

from typing import TYPE_CHECKING

import structlog
from fastapi import APIRouter, HTTPException, Request, status
from sse_starlette.sse import EventSourceResponse

if TYPE_CHECKING:
    from livepdf.events.hub import BroadcastHub

logger = structlog.get_logger()

router = APIRouter(tags=["events"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


@router.get("/listen")
async def listen(request: Request) -> EventSourceResponse:
    """Stream document change notifications via Server-Sent Events.

    Sends ``connected`` once, then ``update`` each time the document's
    content changes. When live reload is unavailable the stream says so
    and ends instead of waiting for updates that will never come.

    Args:
        request: FastAPI request object.

    Returns:
        SSE response stream.

    Raises:
        HTTPException: 503 if too many clients are connected.
    """
    hub: BroadcastHub = request.app.state.broadcast_hub

    if not hub.available:
        return EventSourceResponse(hub.create_unavailable_generator(), headers=SSE_HEADERS)

    # the subscriber itself is registered by the generator once streaming starts
    if not hub.has_capacity():
        logger.warning("sse_client_rejected", reason="Maximum subscribers reached")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Too many listeners",
        )

    return EventSourceResponse(hub.create_sse_generator(), headers=SSE_HEADERS)
