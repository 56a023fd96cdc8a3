"""Pytest configuration and fixtures."""

import sys
from collections.abc import Iterator
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sse_starlette.sse import AppStatus

from livepdf.app import create_app
from livepdf.config import Settings
from livepdf.events.types import WatchTarget

PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\ntrailer\n<< /Root 1 0 R >>\n%%EOF\n"


@pytest.fixture
def pdf_file(tmp_path: Path) -> Path:
    """Create a small PDF in its own directory."""
    path = tmp_path / "doc.pdf"
    path.write_bytes(PDF_BYTES)
    return path


@pytest.fixture
def target(pdf_file: Path) -> WatchTarget:
    """Watch target for the test PDF."""
    return WatchTarget(path=pdf_file)


@pytest.fixture
def settings(pdf_file: Path) -> Settings:
    """Create test settings."""
    return Settings(
        pdf_path=pdf_file,
        host="127.0.0.1",
        port=8999,
        debug=True,
        sse_heartbeat_interval=0.05,
    )


@pytest.fixture
def app(settings: Settings) -> FastAPI:
    """Create configured app."""
    return create_app(settings)


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    """Create test client with the app lifespan running."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(autouse=True)
def reset_sse_app_status() -> Iterator[None]:
    """sse-starlette caches an exit event bound to the first test's loop."""
    AppStatus.should_exit_event = None
    yield
    AppStatus.should_exit_event = None
