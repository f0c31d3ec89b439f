"""
Runner Kernel - Pipeline Exceptions

One exception per stage failure. The failure classifier maps each of these
onto the closed taxonomy in types.FailureCategory; anything that is not an
ArtifactError is matched by message shape instead.
"""

from __future__ import annotations

from collections.abc import Iterable


class ArtifactError(Exception):
    """Base class for failures raised by the render pipeline."""

    def __init__(self, message: str, *, symbol: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.symbol = symbol


class TransformSyntaxError(ArtifactError):
    """Transpiler rejected the rewritten source."""
    pass


class ExecutionError(ArtifactError):
    """
    Raw failure from the script runtime.

    Carries the engine's message and, when the message names an undefined
    identifier, that symbol.
    """
    pass


class RuntimeExecutionError(ExecutionError):
    """Executed code threw while building or rendering the component."""
    pass


class MissingCapabilityError(RuntimeExecutionError):
    """Code referenced an icon that is not in the capability namespace."""

    def __init__(self, symbol: str, available: Iterable[str], *, source: str = "lucide-react") -> None:
        self.available = tuple(available)
        message = (
            f'Missing icon: "{symbol}". Make sure it\'s properly imported from \'{source}\'. '
            f"Available icons: {', '.join(self.available)}"
        )
        super().__init__(message, symbol=symbol)


class NoComponentFoundError(ExecutionError):
    """Executed code bound neither a default export nor anything component-shaped."""
    pass


class MarkupValidationError(ArtifactError):
    """Markup failed the root-tag precondition or could not be parsed."""
    pass


class DiagramParseError(ArtifactError):
    """Diagram compiler rejected the text during the parse phase."""
    pass


class DiagramRenderError(ArtifactError):
    """Diagram compiler failed internally during the render phase."""
    pass


class DiagramSyntaxError(Exception):
    """Raised by diagram compilers when the diagram text is invalid, whichever phase found it."""
    pass


class ExportError(ArtifactError):
    """An export action could not produce its file."""
    pass
