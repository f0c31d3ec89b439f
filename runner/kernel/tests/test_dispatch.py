"""
Runner Kernel -- Renderer Dispatch Tests

End to end through the state machine: declared path first, at most one
fallback to a confidently detected kind, exactly one outcome per pass.
"""

import asyncio

import pytest

from runner.kernel.diagram import DiagramRenderer
from runner.kernel.dispatch import RenderDispatcher
from runner.kernel.types import (
    ArtifactKind,
    FailureCategory,
    RenderableHandle,
    RenderState,
    Snippet,
)

COMPONENT = """import React, { useState } from 'react';
export default function Hello() {
  const [name] = useState('world');
  return <p>Hello {name}</p>;
}
"""
SVG = '<svg width="10" height="10"><circle cx="5" cy="5" r="2"/></svg>'
DIAGRAM = "flowchart TD\nA-->B"


class TestDeclaredPath:
    async def test_component_renders_without_fallback(self, dispatcher):
        outcome = await dispatcher.render(Snippet(ArtifactKind.COMPONENT, COMPONENT))
        assert outcome.state is RenderState.RENDERED
        assert outcome.kind is ArtifactKind.COMPONENT
        assert not outcome.fallback_taken
        assert isinstance(outcome.output, RenderableHandle)
        assert outcome.markup == "<p>Hello world</p>"
        assert outcome.transitions == [
            RenderState.DETECTING,
            RenderState.EXECUTING_COMPONENT,
            RenderState.RENDERED,
        ]

    async def test_markup_renders(self, dispatcher):
        outcome = await dispatcher.render(Snippet(ArtifactKind.MARKUP, SVG))
        assert outcome.state is RenderState.RENDERED
        assert outcome.output == SVG

    async def test_diagram_renders(self, dispatcher):
        outcome = await dispatcher.render(Snippet(ArtifactKind.DIAGRAM, DIAGRAM))
        assert outcome.state is RenderState.RENDERED
        assert outcome.kind is ArtifactKind.DIAGRAM
        assert "<svg" in outcome.markup


class TestFallback:
    async def test_svg_declared_as_component_falls_back_to_markup(self, dispatcher):
        outcome = await dispatcher.render(Snippet(ArtifactKind.COMPONENT, SVG))
        assert outcome.state is RenderState.RENDERED
        assert outcome.kind is ArtifactKind.MARKUP
        assert outcome.fallback_taken
        assert outcome.transitions == [
            RenderState.DETECTING,
            RenderState.EXECUTING_COMPONENT,
            RenderState.RENDERING_MARKUP,
            RenderState.RENDERED,
        ]
        assert outcome.attempts[0].failure.category is FailureCategory.NO_COMPONENT
        assert outcome.attempts[1].succeeded

    async def test_diagram_declared_as_markup_falls_back(self, dispatcher):
        outcome = await dispatcher.render(Snippet(ArtifactKind.MARKUP, DIAGRAM))
        assert outcome.state is RenderState.RENDERED
        assert outcome.kind is ArtifactKind.DIAGRAM

    async def test_component_declared_as_diagram_falls_back(self, dispatcher):
        outcome = await dispatcher.render(Snippet(ArtifactKind.DIAGRAM, COMPONENT))
        assert outcome.state is RenderState.RENDERED
        assert outcome.kind is ArtifactKind.COMPONENT
        assert outcome.attempts[0].failure.category is FailureCategory.DIAGRAM_PARSE

    async def test_both_paths_fail_reports_declared_failure(self, dispatcher):
        """Markup detected, but the markup path fails too; the declared failure is shown."""
        code = "<!-- chart -->\n<g><path d='M0 0'/></g>"
        outcome = await dispatcher.render(Snippet(ArtifactKind.DIAGRAM, code))
        assert outcome.state is RenderState.FAILED
        assert outcome.failure.category is FailureCategory.DIAGRAM_PARSE
        assert [a.kind for a in outcome.attempts] == [ArtifactKind.DIAGRAM, ArtifactKind.MARKUP]
        assert outcome.attempts[1].failure.category is FailureCategory.MARKUP_VALIDATION
        assert outcome.transitions[-1] is RenderState.FAILED
        assert len(outcome.transitions) == 4

    async def test_no_fallback_when_detection_agrees(self, dispatcher):
        code = "import { Nope } from 'lucide-react';\nexport default () => <Nope />;\n"
        outcome = await dispatcher.render(Snippet(ArtifactKind.COMPONENT, code))
        assert outcome.state is RenderState.FAILED
        assert outcome.failure.category is FailureCategory.MISSING_CAPABILITY
        assert not outcome.fallback_taken

    async def test_no_fallback_when_detection_is_unknown(self, dispatcher):
        outcome = await dispatcher.render(Snippet(ArtifactKind.DIAGRAM, "hello there"))
        assert outcome.state is RenderState.FAILED
        assert outcome.failure.category is FailureCategory.DIAGRAM_PARSE
        assert outcome.detection.inferred_kind.value == "unknown"
        assert len(outcome.attempts) == 1


class TestEmpty:
    @pytest.mark.parametrize(
        "kind,category",
        [
            (ArtifactKind.COMPONENT, FailureCategory.NO_COMPONENT),
            (ArtifactKind.MARKUP, FailureCategory.MARKUP_VALIDATION),
            (ArtifactKind.DIAGRAM, FailureCategory.DIAGRAM_PARSE),
        ],
    )
    async def test_empty_snippet_fails_with_declared_category(self, dispatcher, kind, category):
        outcome = await dispatcher.render(Snippet(kind, "   "))
        assert outcome.state is RenderState.FAILED
        assert outcome.failure.category is category
        assert outcome.transitions == [RenderState.DETECTING, RenderState.FAILED]


class TestNeverRaises:
    async def test_broken_collaborator_becomes_a_failure(self):
        class Exploding:
            def render(self, code):
                raise MemoryError("out of memory")

        dispatcher = RenderDispatcher(markup_renderer=Exploding())
        outcome = await dispatcher.render(Snippet(ArtifactKind.MARKUP, "plain words"))
        assert outcome.state is RenderState.FAILED
        assert outcome.failure.category is FailureCategory.MARKUP_VALIDATION
        assert outcome.failure.message == "out of memory"

    async def test_no_diagram_renderer_configured(self):
        outcome = await RenderDispatcher().render(Snippet(ArtifactKind.DIAGRAM, DIAGRAM))
        assert outcome.state is RenderState.FAILED
        assert outcome.failure.category is FailureCategory.DIAGRAM_RENDER


async def test_superseded_diagram_pass(compiler_factory):
    dispatcher = RenderDispatcher(diagram_renderer=DiagramRenderer(compiler_factory(delay=0.05)))
    first = asyncio.create_task(dispatcher.render(Snippet(ArtifactKind.DIAGRAM, "graph TD\nold")))
    await asyncio.sleep(0)
    second = asyncio.create_task(dispatcher.render(Snippet(ArtifactKind.DIAGRAM, "graph TD\nnew")))
    old, new = await asyncio.gather(first, second)
    assert old.state is RenderState.SUPERSEDED
    assert old.failure is None
    assert old.transitions[-1] is RenderState.SUPERSEDED
    assert new.state is RenderState.RENDERED
