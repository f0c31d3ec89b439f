"""
Runner Kernel - Type Classifier

Pure function: snippet text → DetectionResult.
No IO. Deterministic. Shared by the editor preview and the runner.

Priority, highest first:
  markup     svg root tags, or svg elements next to a tag pair / markup comment
  diagram    first non-blank line starts with a mermaid diagram keyword
  component  no markup comment, plus component-shaped tokens

Markup wins over diagram, and both win over component: markup comments are
fatal to the code transformer, so they must be spotted before transformation.
"""

from __future__ import annotations

import re

from runner.kernel.types import DetectionResult, InferredKind

# ---------------------------------------------------------------------------
# Markup rules
# ---------------------------------------------------------------------------

_SVG_OPEN_RE = re.compile(r"<svg[\s>/]", re.IGNORECASE)
_SVG_CLOSE_RE = re.compile(r"</svg\s*>", re.IGNORECASE)
_SVG_ROOT_TAG_RE = re.compile(r"<svg\s+[^>]*>", re.IGNORECASE)
_SVG_ELEMENT_RE = re.compile(r"<(circle|rect|path|polygon|g)[\s>/]", re.IGNORECASE)
_TAG_PAIR_RE = re.compile(r"<([A-Za-z][\w:-]*)\b[^>]*>.*?</\1\s*>", re.DOTALL)
_MARKUP_COMMENT = "<!--"


def _markup_signals(code: str) -> list[str]:
    signals = []
    if _SVG_OPEN_RE.search(code) and _SVG_CLOSE_RE.search(code):
        signals.append("svg_root_pair")
    if _SVG_ROOT_TAG_RE.search(code):
        signals.append("svg_root_tag")
    if _SVG_ELEMENT_RE.search(code) and (_MARKUP_COMMENT in code or _TAG_PAIR_RE.search(code)):
        signals.append("svg_elements")
    return signals


# ---------------------------------------------------------------------------
# Diagram rules (anchored at the first non-blank line, case-insensitive)
# ---------------------------------------------------------------------------

DIAGRAM_KEYWORDS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("graph", re.compile(r"^graph\s+[A-Za-z0-9]", re.IGNORECASE)),
    ("flowchart", re.compile(r"^flowchart\s+[A-Za-z0-9]", re.IGNORECASE)),
    ("sequenceDiagram", re.compile(r"^sequenceDiagram\b", re.IGNORECASE)),
    ("classDiagram", re.compile(r"^classDiagram\b", re.IGNORECASE)),
    ("stateDiagram-v2", re.compile(r"^stateDiagram-v2\b", re.IGNORECASE)),
    ("stateDiagram", re.compile(r"^stateDiagram\b", re.IGNORECASE)),
    ("erDiagram", re.compile(r"^erDiagram\b", re.IGNORECASE)),
    ("journey", re.compile(r"^journey\b", re.IGNORECASE)),
    ("gantt", re.compile(r"^gantt\b", re.IGNORECASE)),
    ("pie", re.compile(r"^pie\b", re.IGNORECASE)),
    ("mindmap", re.compile(r"^mindmap\b", re.IGNORECASE)),
)


def first_content_line(code: str) -> str:
    """First non-blank line, stripped. Empty string when there is none."""
    for line in code.splitlines():
        stripped = line.strip()
        if stripped:
            return stripped
    return ""


def match_diagram_keyword(line: str) -> str | None:
    """Return the diagram keyword the line starts with, or None."""
    for name, pattern in DIAGRAM_KEYWORDS:
        if pattern.match(line):
            return name
    return None


# ---------------------------------------------------------------------------
# Component rules
# ---------------------------------------------------------------------------

_JSX_SELF_CLOSING_RE = re.compile(r"<[A-Za-z][\w.]*\b[^<>]*/>")
_COMPONENT_RULES: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("react_import", re.compile(r"\bimport\s+React\b")),
    ("function_with_return", re.compile(r"\bfunction\b[\s\S]*\breturn\b")),
    ("class_extends", re.compile(r"\bclass\s+\w+\s+extends\b")),
    ("state_hook", re.compile(r"\buseState\b")),
    ("effect_hook", re.compile(r"\buseEffect\b")),
    ("default_export", re.compile(r"\bexport\s+default\b")),
)


def _component_signals(code: str) -> list[str]:
    if _MARKUP_COMMENT in code:
        return []
    signals = [name for name, pattern in _COMPONENT_RULES if pattern.search(code)]
    if _JSX_SELF_CLOSING_RE.search(code) or _TAG_PAIR_RE.search(code):
        signals.append("jsx_markup")
    return signals


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def classify(code: str) -> DetectionResult:
    """
    Infer the content kind of a snippet.

    Returns InferredKind.UNKNOWN with no signals when nothing matches
    confidently; the caller then keeps the declared kind.
    """
    text = code.strip()
    if not text:
        return DetectionResult(InferredKind.UNKNOWN)

    markup = _markup_signals(text)
    if markup:
        return DetectionResult(InferredKind.MARKUP, tuple(markup))

    keyword = match_diagram_keyword(first_content_line(text))
    if keyword:
        return DetectionResult(InferredKind.DIAGRAM, (f"diagram_keyword:{keyword}",))

    component = _component_signals(text)
    if component:
        return DetectionResult(InferredKind.COMPONENT, tuple(component))

    return DetectionResult(InferredKind.UNKNOWN)
