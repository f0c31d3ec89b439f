"""
Runner Kernel - Error Classifier

Pure function: (exception, path kind) → RenderFailure.

  1. typed      pipeline exceptions map straight onto their category
  2. shape      anything else is matched on message shape
  3. default    otherwise the category is the stage default for the path

The message shown to the user is the first line of the raw message, capped.
"""

from __future__ import annotations

import re

from runner.kernel.errors import (
    DiagramParseError,
    DiagramRenderError,
    DiagramSyntaxError,
    MarkupValidationError,
    MissingCapabilityError,
    NoComponentFoundError,
    RuntimeExecutionError,
    TransformSyntaxError,
)
from runner.kernel.types import ArtifactKind, FailureCategory, RenderFailure

MAX_MESSAGE_LENGTH = 500

HINTS: dict[FailureCategory, str] = {
    FailureCategory.TRANSFORM_SYNTAX: "Check the code for a syntax error near the reported position.",
    FailureCategory.MISSING_CAPABILITY: "Import the icon from 'lucide-react' and use a name from the available list.",
    FailureCategory.NO_COMPONENT: "Export a component with `export default`, or define a function that returns JSX.",
    FailureCategory.RUNTIME_EXECUTION: (
        "The component threw while rendering. Only React, its hooks, recharts and "
        "imported lucide-react icons are available."
    ),
    FailureCategory.MARKUP_VALIDATION: "Wrap the image in a single <svg> ... </svg> element.",
    FailureCategory.DIAGRAM_PARSE: "Start with a diagram type such as `flowchart TD` and check the diagram syntax.",
    FailureCategory.DIAGRAM_RENDER: "The diagram parsed but could not be drawn. Simplify it or try again.",
}

# Checked in order; subclasses before their bases
_TYPED: tuple[tuple[type[BaseException], FailureCategory], ...] = (
    (TransformSyntaxError, FailureCategory.TRANSFORM_SYNTAX),
    (MissingCapabilityError, FailureCategory.MISSING_CAPABILITY),
    (NoComponentFoundError, FailureCategory.NO_COMPONENT),
    (RuntimeExecutionError, FailureCategory.RUNTIME_EXECUTION),
    (MarkupValidationError, FailureCategory.MARKUP_VALIDATION),
    (DiagramParseError, FailureCategory.DIAGRAM_PARSE),
    (DiagramSyntaxError, FailureCategory.DIAGRAM_PARSE),
    (DiagramRenderError, FailureCategory.DIAGRAM_RENDER),
)

_PATTERNS: tuple[tuple[re.Pattern[str], FailureCategory], ...] = (
    (re.compile(r"SyntaxError|Unexpected token", re.IGNORECASE), FailureCategory.TRANSFORM_SYNTAX),
    (re.compile(r"No component found", re.IGNORECASE), FailureCategory.NO_COMPONENT),
    (re.compile(r"Missing <svg>|Invalid SVG", re.IGNORECASE), FailureCategory.MARKUP_VALIDATION),
    (
        re.compile(r"Parse error|Lexical error|No diagram type detected", re.IGNORECASE),
        FailureCategory.DIAGRAM_PARSE,
    ),
    (
        re.compile(r"is not defined|identifier '[^']+' undefined", re.IGNORECASE),
        FailureCategory.RUNTIME_EXECUTION,
    ),
)

STAGE_DEFAULTS: dict[ArtifactKind, FailureCategory] = {
    ArtifactKind.COMPONENT: FailureCategory.RUNTIME_EXECUTION,
    ArtifactKind.MARKUP: FailureCategory.MARKUP_VALIDATION,
    ArtifactKind.DIAGRAM: FailureCategory.DIAGRAM_RENDER,
}


def summarize_message(raw: str, limit: int = MAX_MESSAGE_LENGTH) -> str:
    """First non-blank line, without stack frames, at most `limit` characters."""
    line = ""
    for candidate in raw.splitlines():
        candidate = candidate.strip()
        if candidate and not candidate.startswith("at "):
            line = candidate
            break
    if len(line) > limit:
        line = line[: limit - 3].rstrip() + "..."
    return line


def categorize(exc: BaseException, kind: ArtifactKind) -> FailureCategory:
    for exc_type, category in _TYPED:
        if isinstance(exc, exc_type):
            return category
    message = str(exc)
    for pattern, category in _PATTERNS:
        if pattern.search(message):
            return category
    return STAGE_DEFAULTS[kind]


def classify_failure(exc: BaseException, kind: ArtifactKind) -> RenderFailure:
    """
    Convert any exception raised on a render path into a RenderFailure.

    Never raises. The category is always one of FailureCategory.
    """
    category = categorize(exc, kind)
    message = summarize_message(str(exc)) or type(exc).__name__
    return RenderFailure(category=category, message=message, hint=HINTS[category])
