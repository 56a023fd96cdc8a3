"""Browser viewer page."""
from functools import cache
from importlib import resources

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

router = APIRouter(tags=["viewer"])


@cache
def _index_html() -> str:
    return resources.files("livepdf").joinpath("index.html").read_text(encoding="utf-8")


@router.get("/", response_class=HTMLResponse)
async def index() -> HTMLResponse:
    """Serve the viewer that reloads the document on every update."""
    return HTMLResponse(_index_html())
