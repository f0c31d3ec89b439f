"""
Runner Kernel - the artifact rendering pipeline.

  classifier    snippet text → detected kind
  transformer   module imports/exports → loader-free source
  jsx           JSX and type syntax → plain JavaScript
  capabilities  curated names offered in place of imports
  executor      runs component source and mounts it
  markup        svg validation and sanitizing
  diagram       async two-phase diagram compilation
  dispatch      the per-snippet state machine with one fallback
  failures      any exception → closed failure taxonomy
"""

from runner.kernel.capabilities import CAPABILITY_VERSION, CapabilityNamespace, CapabilityRegistry, default_registry
from runner.kernel.classifier import classify
from runner.kernel.diagram import DiagramRenderer, check_diagram_header
from runner.kernel.dispatch import RenderDispatcher
from runner.kernel.executor import ComponentExecutor, JsxTranspiler, V8Runtime
from runner.kernel.exports import copy_as_image, export_raster, export_vector
from runner.kernel.failures import classify_failure
from runner.kernel.markup import MarkupRenderer, SvgSanitizer
from runner.kernel.preview import render_preview_page
from runner.kernel.transformer import transform
from runner.kernel.types import ArtifactKind, RenderOutcome, RenderState, Snippet

__all__ = [
    "CAPABILITY_VERSION",
    "ArtifactKind",
    "CapabilityNamespace",
    "CapabilityRegistry",
    "ComponentExecutor",
    "DiagramRenderer",
    "JsxTranspiler",
    "MarkupRenderer",
    "RenderDispatcher",
    "RenderOutcome",
    "RenderState",
    "Snippet",
    "SvgSanitizer",
    "V8Runtime",
    "check_diagram_header",
    "classify",
    "classify_failure",
    "copy_as_image",
    "default_registry",
    "export_raster",
    "export_vector",
    "render_preview_page",
    "transform",
]
