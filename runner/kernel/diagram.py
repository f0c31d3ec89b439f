"""
Runner Kernel - Diagram Renderer

Async, two-phase rendering against a DiagramCompiler collaborator:

  parse    the compiler checks the text; any failure is a DiagramParseError
  render   the compiler draws svg under a fresh id; any failure is a
           DiagramRenderError, except late syntax errors (DiagramSyntaxError),
           which stay DiagramParseError

Each renderer keeps a generation counter. Starting a new render supersedes
every render still in flight on that instance; a superseded render returns
None instead of its result.
"""

from __future__ import annotations

import logging
import re
import uuid
from typing import Protocol

from runner.kernel.errors import DiagramParseError, DiagramRenderError, DiagramSyntaxError

logger = logging.getLogger(__name__)

# Every diagram type the compiler understands, as the first word of the header line
DIAGRAM_TYPES: tuple[str, ...] = (
    "flowchart-elk",
    "flowchart",
    "graph",
    "sequenceDiagram",
    "classDiagram-v2",
    "classDiagram",
    "stateDiagram-v2",
    "stateDiagram",
    "erDiagram",
    "journey",
    "gantt",
    "pie",
    "quadrantChart",
    "requirementDiagram",
    "gitGraph",
    "C4Context",
    "C4Container",
    "C4Component",
    "C4Dynamic",
    "C4Deployment",
    "mindmap",
    "timeline",
    "zenuml",
    "sankey-beta",
    "xychart-beta",
    "block-beta",
    "packet-beta",
    "architecture-beta",
    "kanban",
    "radar-beta",
)

_HEADER = re.compile(
    r"^(" + "|".join(re.escape(t) for t in DIAGRAM_TYPES) + r")(?![\w-])",
    re.IGNORECASE,
)
_FENCE = re.compile(r"^\s*```[\w-]*\s*\n(.*?)\n\s*```\s*$", re.DOTALL)
_ROOT_TAG = re.compile(r"<svg\b[^>]*>", re.IGNORECASE)
_ID_ATTR = re.compile(r'\sid\s*=\s*(["\'])(.*?)\1')


class DiagramCompiler(Protocol):
    """Two-phase diagram compiler. Raises DiagramSyntaxError for invalid text."""

    async def parse(self, code: str) -> None: ...

    async def render(self, diagram_id: str, code: str) -> str: ...


# ---------------------------------------------------------------------------
# Helpers shared with compilers
# ---------------------------------------------------------------------------


def strip_fences(code: str) -> str:
    """Drop a surrounding ```mermaid fence if the text is wrapped in one."""
    m = _FENCE.match(code)
    return m.group(1) if m else code


def diagram_header(code: str) -> str | None:
    """
    The first line that declares the diagram, or None.

    Skips blank lines, YAML front-matter, `%%` comments and `%%{init}%%` directives.
    """
    lines = code.splitlines()
    i = 0
    if lines and lines[0].strip() == "---":
        i = 1
        while i < len(lines) and lines[i].strip() != "---":
            i += 1
        i += 1
    for line in lines[i:]:
        stripped = line.strip()
        if not stripped or stripped.startswith("%%"):
            continue
        return stripped
    return None


def check_diagram_header(code: str) -> str:
    """
    Return the diagram type the text declares.

    Raises:
        DiagramSyntaxError: no known diagram type heads the text
    """
    header = diagram_header(code)
    m = _HEADER.match(header) if header else None
    if not m:
        snippet = (header or code.strip())[:60]
        raise DiagramSyntaxError(f"No diagram type detected matching given configuration for text: {snippet}")
    return m.group(1)


def new_diagram_id() -> str:
    return f"diagram-{uuid.uuid4().hex[:12]}"


def set_root_id(svg: str, diagram_id: str) -> str:
    """
    Give the root svg element `diagram_id`, renaming references to its old id.

    Compilers scope their embedded CSS under the root id (`#my-svg .node`).
    """
    m = _ROOT_TAG.search(svg)
    if not m:
        return svg
    tag = m.group(0)
    id_match = _ID_ATTR.search(tag)
    if not id_match:
        new_tag = tag[:4] + f' id="{diagram_id}"' + tag[4:]
        return svg[: m.start()] + new_tag + svg[m.end() :]

    old_id = id_match.group(2)
    new_tag = tag[: id_match.start()] + f' id="{diagram_id}"' + tag[id_match.end() :]
    rest = svg[m.end() :]
    if old_id:
        rest = re.sub(r"#" + re.escape(old_id) + r"(?![\w-])", "#" + diagram_id, rest)
    return svg[: m.start()] + new_tag + rest


# ---------------------------------------------------------------------------
# Renderer
# ---------------------------------------------------------------------------


class DiagramRenderer:
    """Runs the parse and render phases, discarding superseded results."""

    def __init__(self, compiler: DiagramCompiler) -> None:
        self.compiler = compiler
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def supersede(self) -> None:
        """Invalidate every render currently in flight."""
        self._generation += 1

    async def render(self, code: str) -> str | None:
        """
        Compile diagram text to svg markup.

        Returns None when a newer render started on this instance meanwhile.

        Raises:
            DiagramParseError: empty text, or the compiler rejected its syntax
            DiagramRenderError: the compiler failed to draw valid text
        """
        self._generation += 1
        generation = self._generation

        text = strip_fences(code).strip()
        if not text:
            raise DiagramParseError("No diagram code provided")

        try:
            await self.compiler.parse(text)
        except Exception as e:
            if generation != self._generation:
                return None
            raise DiagramParseError(str(e) or "Failed to parse diagram") from e
        if generation != self._generation:
            logger.debug("Diagram render %d superseded after parse", generation)
            return None

        diagram_id = new_diagram_id()
        try:
            svg = await self.compiler.render(diagram_id, text)
        except DiagramSyntaxError as e:
            if generation != self._generation:
                return None
            raise DiagramParseError(str(e) or "Failed to parse diagram") from e
        except Exception as e:
            if generation != self._generation:
                return None
            raise DiagramRenderError(str(e) or "Failed to render diagram") from e
        if generation != self._generation:
            logger.debug("Diagram render %d superseded after render", generation)
            return None

        if not svg or "<svg" not in svg.lower():
            raise DiagramRenderError("Diagram compiler returned no svg")
        return svg
