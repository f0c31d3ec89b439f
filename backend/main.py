"""
Artifact runner FastAPI application.

Entry point for the API server.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from backend import config
from backend.routes import render as render_routes

logging.basicConfig(
    level=config.settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Artifact Runner",
    docs_url=None,
    redoc_url=None,
)

# Register routes
app.include_router(render_routes.router)


@app.get("/health")
async def health():
    """Health check endpoint for uptime monitoring."""
    return {"status": "ok", "diagram_compiler": config.settings.DIAGRAM_COMPILER}
