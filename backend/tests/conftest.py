"""
Pytest configuration and fixtures for artifact runner backend tests.
"""

from __future__ import annotations

import httpx
import pytest
import pytest_asyncio

from backend.main import app
from backend.routes import render as render_routes
from backend.services.artifact_source import MemoryArtifactSource
from runner.kernel.diagram import check_diagram_header, set_root_id


class StubDiagramCompiler:
    """Compiles any text with a known header to an svg with one <text> per line."""

    async def parse(self, code):
        check_diagram_header(code)

    async def render(self, diagram_id, code):
        texts = "".join(f"<text>{line.strip()}</text>" for line in code.splitlines()[1:])
        return set_root_id(f'<svg id="my-svg" xmlns="http://www.w3.org/2000/svg">{texts}</svg>', diagram_id)


@pytest.fixture
def artifacts():
    """Artifact records served to GET /api/artifacts/{id}/render."""
    return MemoryArtifactSource()


@pytest_asyncio.fixture
async def async_client(artifacts):
    """Async HTTP client against the ASGI app, with the diagram compiler stubbed."""
    app.dependency_overrides[render_routes.get_diagram_compiler] = StubDiagramCompiler
    app.dependency_overrides[render_routes.get_artifact_source] = lambda: artifacts
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
    app.dependency_overrides.clear()
