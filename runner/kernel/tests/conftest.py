"""
Runner kernel test configuration.

Shared fixtures: a fake two-phase diagram compiler and a dispatcher wired to it.
"""

from __future__ import annotations

import asyncio

import pytest

from runner.kernel.diagram import DiagramRenderer, check_diagram_header, set_root_id
from runner.kernel.dispatch import RenderDispatcher
from runner.kernel.errors import DiagramSyntaxError


class FakeDiagramCompiler:
    """
    Stands in for Kroki / mmdc.

    parse checks the header; render draws one <text> per line. Lines reading
    `explode` fail inside render; `syntax!` fails there as a late syntax error.
    An optional delay lets tests overlap renders.
    """

    def __init__(self, delay: float = 0.0) -> None:
        self.delay = delay
        self.parsed: list[str] = []
        self.rendered_ids: list[str] = []

    async def parse(self, code: str) -> None:
        self.parsed.append(code)
        check_diagram_header(code)

    async def render(self, diagram_id: str, code: str) -> str:
        self.rendered_ids.append(diagram_id)
        if self.delay:
            await asyncio.sleep(self.delay)
        lines = [line.strip() for line in code.splitlines() if line.strip()]
        if "explode" in lines:
            raise RuntimeError("renderer crashed")
        if "syntax!" in lines:
            raise DiagramSyntaxError("Parse error on line 2: syntax!")
        body = "".join(f'<text y="{20 * (i + 1)}">{line}</text>' for i, line in enumerate(lines))
        svg = f'<svg id="my-svg" xmlns="http://www.w3.org/2000/svg" width="200" height="100"><style>#my-svg{{fill:#333}}</style>{body}</svg>'
        return set_root_id(svg, diagram_id)


@pytest.fixture
def fake_compiler():
    return FakeDiagramCompiler()


@pytest.fixture
def diagram_renderer(fake_compiler):
    return DiagramRenderer(fake_compiler)


@pytest.fixture
def dispatcher(diagram_renderer):
    return RenderDispatcher(diagram_renderer=diagram_renderer)


@pytest.fixture
def compiler_factory():
    """The fake compiler class, for tests that need their own instance or subclass."""
    return FakeDiagramCompiler
