"""
Runner Kernel - Renderer Dispatch

The per-snippet state machine:

  DETECTING → {EXECUTING_COMPONENT, RENDERING_MARKUP, RENDERING_DIAGRAM} → RENDERED | FAILED

The declared kind always runs first. When it fails and the classifier is
confident about a different kind, that kind gets exactly one try. Every
pass ends in exactly one RenderOutcome; no exception leaves `render()`.
A diagram pass overtaken by a newer one ends SUPERSEDED.
"""

from __future__ import annotations

import logging

from runner.kernel.capabilities import CapabilityRegistry, default_registry
from runner.kernel.classifier import classify
from runner.kernel.diagram import DiagramRenderer
from runner.kernel.errors import (
    DiagramParseError,
    DiagramRenderError,
    MarkupValidationError,
    NoComponentFoundError,
)
from runner.kernel.executor import ComponentExecutor
from runner.kernel.failures import classify_failure
from runner.kernel.markup import MarkupRenderer
from runner.kernel.transformer import transform
from runner.kernel.types import (
    PATH_STATES,
    ArtifactKind,
    PathAttempt,
    RenderableHandle,
    RenderFailure,
    RenderOutcome,
    RenderState,
    Snippet,
)

logger = logging.getLogger(__name__)

_EMPTY_SNIPPET_ERRORS = {
    ArtifactKind.COMPONENT: lambda: NoComponentFoundError("No component found in the artifact code"),
    ArtifactKind.MARKUP: lambda: MarkupValidationError("Invalid SVG: Missing <svg> tags"),
    ArtifactKind.DIAGRAM: lambda: DiagramParseError("No diagram code provided"),
}


class _Superseded(Exception):
    """A diagram pass was overtaken by a newer one."""
    pass


class RenderDispatcher:
    """
    Drives one render pass per call over the three renderer strategies.

    The executor and markup renderer default to the built-in ones. Without a
    diagram renderer, the diagram path fails with DiagramRenderError.
    """

    def __init__(
        self,
        executor: ComponentExecutor | None = None,
        markup_renderer: MarkupRenderer | None = None,
        diagram_renderer: DiagramRenderer | None = None,
        registry: CapabilityRegistry | None = None,
    ) -> None:
        self.registry = registry or default_registry()
        self._executor = executor
        self.markup_renderer = markup_renderer or MarkupRenderer()
        self.diagram_renderer = diagram_renderer

    @property
    def executor(self) -> ComponentExecutor:
        if self._executor is None:
            self._executor = ComponentExecutor(registry=self.registry)
        return self._executor

    async def render(self, snippet: Snippet) -> RenderOutcome:
        """Run one render pass. Never raises."""
        detection = classify(snippet.code)
        outcome = RenderOutcome(state=RenderState.DETECTING, detection=detection)
        outcome.transitions.append(RenderState.DETECTING)
        declared = snippet.declared_kind

        if not snippet.code.strip():
            failure = classify_failure(_EMPTY_SNIPPET_ERRORS[declared](), declared)
            outcome.attempts.append(PathAttempt(declared, failure))
            return self._finish(outcome, RenderState.FAILED, failure=failure)

        try:
            output, failure = await self._attempt(declared, snippet.code, outcome)
        except _Superseded:
            return self._finish(outcome, RenderState.SUPERSEDED)
        if failure is None:
            return self._finish(outcome, RenderState.RENDERED, kind=declared, output=output)

        alternative = detection.inferred_kind.as_artifact_kind()
        if alternative is None or alternative is declared:
            return self._finish(outcome, RenderState.FAILED, failure=failure)

        logger.info(
            "Declared %s failed (%s), falling back to %s",
            declared.value,
            failure.category.value,
            alternative.value,
        )
        try:
            output, fallback_failure = await self._attempt(alternative, snippet.code, outcome)
        except _Superseded:
            return self._finish(outcome, RenderState.SUPERSEDED)
        if fallback_failure is None:
            return self._finish(outcome, RenderState.RENDERED, kind=alternative, output=output)
        return self._finish(outcome, RenderState.FAILED, failure=failure)

    # -- paths ---------------------------------------------------------------

    async def _attempt(
        self,
        kind: ArtifactKind,
        code: str,
        outcome: RenderOutcome,
    ) -> tuple[RenderableHandle | str | None, RenderFailure | None]:
        outcome.transitions.append(PATH_STATES[kind])
        try:
            output = await self._run_path(kind, code)
        except _Superseded:
            raise
        except Exception as e:
            failure = classify_failure(e, kind)
            logger.info("Render path %s failed: %s: %s", kind.value, failure.category.value, failure.message)
            outcome.attempts.append(PathAttempt(kind, failure))
            return None, failure
        outcome.attempts.append(PathAttempt(kind))
        return output, None

    async def _run_path(self, kind: ArtifactKind, code: str) -> RenderableHandle | str:
        if kind is ArtifactKind.COMPONENT:
            result = transform(code)
            namespace = self.registry.build(result.icon_bindings)
            return self.executor.execute(result.rewritten_source, namespace, original_source=code)

        if kind is ArtifactKind.MARKUP:
            return self.markup_renderer.render(code)

        if self.diagram_renderer is None:
            raise DiagramRenderError("No diagram compiler configured")
        svg = await self.diagram_renderer.render(code)
        if svg is None:
            raise _Superseded()
        return svg

    @staticmethod
    def _finish(
        outcome: RenderOutcome,
        state: RenderState,
        *,
        kind: ArtifactKind | None = None,
        output: RenderableHandle | str | None = None,
        failure: RenderFailure | None = None,
    ) -> RenderOutcome:
        outcome.state = state
        outcome.kind = kind
        outcome.output = output
        outcome.failure = failure
        outcome.transitions.append(state)
        return outcome
