"""Render routes - classify, render, preview and export artifacts."""

from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse

from backend import config
from backend.models.render import (
    ClassifyRequest,
    DetectionResponse,
    ExportRequest,
    PreviewRequest,
    RenderRequest,
    RenderResponse,
)
from backend.services.artifact_source import ArtifactSource, artifact_source
from backend.services.diagram_compiler import build_diagram_compiler
from runner.kernel.classifier import classify
from runner.kernel.diagram import DiagramCompiler, DiagramRenderer
from runner.kernel.dispatch import RenderDispatcher
from runner.kernel.errors import ExportError
from runner.kernel.executor import ComponentExecutor, V8Runtime
from runner.kernel.exports import DEFAULT_BASENAME, export_raster, export_vector
from runner.kernel.preview import render_preview_page
from runner.kernel.types import ArtifactKind, Snippet

logger = logging.getLogger(__name__)

router = APIRouter(tags=["render"])


@lru_cache(maxsize=1)
def get_executor() -> ComponentExecutor:
    """Shared executor; its transpile cache outlives single requests."""
    return ComponentExecutor(runtime=V8Runtime(timeout=config.settings.EXECUTION_TIMEOUT_SECONDS))


@lru_cache(maxsize=1)
def get_diagram_compiler() -> DiagramCompiler:
    return build_diagram_compiler()


def get_dispatcher(
    executor: ComponentExecutor = Depends(get_executor),
    compiler: DiagramCompiler = Depends(get_diagram_compiler),
) -> RenderDispatcher:
    # One diagram renderer per request: concurrent requests must not supersede each other.
    return RenderDispatcher(executor=executor, diagram_renderer=DiagramRenderer(compiler))


def get_artifact_source() -> ArtifactSource:
    return artifact_source


def _snippet(req: RenderRequest) -> Snippet:
    try:
        kind = ArtifactKind.parse(req.kind)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e
    return Snippet(declared_kind=kind, code=req.code)


@router.post("/api/classify", status_code=200)
async def classify_code(req: ClassifyRequest) -> DetectionResponse:
    """Detect what kind of artifact the code is, without rendering it."""
    detection = classify(req.code)
    return DetectionResponse(
        inferred_kind=detection.inferred_kind.value,
        matched_signals=list(detection.matched_signals),
        confident=detection.confident,
    )


@router.post("/api/render", status_code=200)
async def render_code(
    req: RenderRequest,
    dispatcher: RenderDispatcher = Depends(get_dispatcher),
) -> RenderResponse:
    """
    Run one render pass.

    Render failures are part of the response (state "failed" plus category,
    message and hint), not HTTP errors.
    """
    outcome = await dispatcher.render(_snippet(req))
    return RenderResponse.from_outcome(outcome)


@router.post("/api/preview", response_class=HTMLResponse)
async def preview_code(
    req: PreviewRequest,
    dispatcher: RenderDispatcher = Depends(get_dispatcher),
) -> HTMLResponse:
    """Render and wrap the result in a standalone HTML page."""
    outcome = await dispatcher.render(_snippet(req))
    return HTMLResponse(content=render_preview_page(outcome, title=req.title))


@router.get("/api/artifacts/{artifact_id}/render", status_code=200)
async def render_artifact(
    artifact_id: str,
    source: ArtifactSource = Depends(get_artifact_source),
    dispatcher: RenderDispatcher = Depends(get_dispatcher),
) -> RenderResponse:
    """Render a stored artifact by id."""
    record = await source.get(artifact_id)
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Artifact not found.")
    try:
        snippet = Snippet.from_record(record)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e
    outcome = await dispatcher.render(snippet)
    return RenderResponse.from_outcome(outcome)


@router.post("/api/export/{fmt}")
async def export_markup(fmt: str, req: ExportRequest) -> Response:
    """Download rendered markup as .svg or as a .png at RASTER_SCALE."""
    basename = req.filename or DEFAULT_BASENAME
    try:
        if fmt == "svg":
            blob = export_vector(req.markup, basename=basename)
        elif fmt == "png":
            blob = await run_in_threadpool(
                export_raster, req.markup, config.settings.RASTER_SCALE, basename
            )
        else:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown export format.")
    except ExportError as e:
        logger.info("Export to %s failed: %s", fmt, e)
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    return Response(
        content=blob.data,
        media_type=blob.mime_type,
        headers={"Content-Disposition": f'attachment; filename="{blob.filename}"'},
    )
