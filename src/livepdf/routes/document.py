"""Endpoint serving the watched document."""

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import FileResponse

router = APIRouter(tags=["document"])


@router.get("/pdf", response_class=FileResponse)
async def get_pdf(request: Request) -> FileResponse:
    """Return the current bytes of the document.

    Raises:
        HTTPException: 404 if the document does not exist right now, for
            example mid-way through a rename-on-save.
    """
    path = request.app.state.settings.watch_target.path
    if not path.is_file():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found")

    return FileResponse(
        path,
        media_type="application/pdf",
        filename=path.name,
        content_disposition_type="inline",
        headers={"Cache-Control": "no-store"},
    )
