"""
Runner Kernel - Shared Types

Data classes used across the classifier, transformer, executor, renderers
and dispatch. These are the contracts that bind the kernel together.

Every value here is created at the start of a render pass and discarded at
its end. Nothing in this module is persisted; the artifact record itself
belongs to the storage collaborator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Kinds
# ---------------------------------------------------------------------------


class ArtifactKind(str, Enum):
    """Declared content kind of a snippet. Values match the stored artifact record."""

    COMPONENT = "react"
    MARKUP = "svg"
    DIAGRAM = "mermaid"

    @classmethod
    def parse(cls, value: str | ArtifactKind) -> ArtifactKind:
        """Accept stored values ("react") as well as descriptive aliases ("component")."""
        if isinstance(value, ArtifactKind):
            return value
        key = value.strip().lower()
        for kind, aliases in _KIND_ALIASES.items():
            if key == kind.value or key in aliases:
                return kind
        raise ValueError(f"Unknown artifact kind: {value!r}")


_KIND_ALIASES: dict[ArtifactKind, set[str]] = {
    ArtifactKind.COMPONENT: {"component", "jsx", "tsx"},
    ArtifactKind.MARKUP: {"markup", "image"},
    ArtifactKind.DIAGRAM: {"diagram"},
}


class InferredKind(str, Enum):
    """Classifier output. UNKNOWN means no confident match."""

    COMPONENT = "react"
    MARKUP = "svg"
    DIAGRAM = "mermaid"
    UNKNOWN = "unknown"

    def as_artifact_kind(self) -> ArtifactKind | None:
        if self is InferredKind.UNKNOWN:
            return None
        return ArtifactKind(self.value)


class RenderState(str, Enum):
    """Dispatch state machine states."""

    DETECTING = "detecting"
    EXECUTING_COMPONENT = "executing_component"
    RENDERING_MARKUP = "rendering_markup"
    RENDERING_DIAGRAM = "rendering_diagram"
    RENDERED = "rendered"
    FAILED = "failed"
    SUPERSEDED = "superseded"


PATH_STATES: dict[ArtifactKind, RenderState] = {
    ArtifactKind.COMPONENT: RenderState.EXECUTING_COMPONENT,
    ArtifactKind.MARKUP: RenderState.RENDERING_MARKUP,
    ArtifactKind.DIAGRAM: RenderState.RENDERING_DIAGRAM,
}


class FailureCategory(str, Enum):
    """Closed failure taxonomy shown to the UI shell."""

    TRANSFORM_SYNTAX = "TransformSyntaxError"
    MISSING_CAPABILITY = "MissingCapabilityError"
    NO_COMPONENT = "NoComponentFoundError"
    RUNTIME_EXECUTION = "RuntimeExecutionError"
    MARKUP_VALIDATION = "MarkupValidationError"
    DIAGRAM_PARSE = "DiagramParseError"
    DIAGRAM_RENDER = "DiagramRenderError"


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Snippet:
    """Raw authored text plus its declared kind. Immutable for the length of a render pass."""

    declared_kind: ArtifactKind
    code: str

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Snippet:
        """Build from an artifact record. Only the kind and the code are read."""
        kind = record.get("declared_kind", record.get("type", ArtifactKind.COMPONENT.value))
        return cls(declared_kind=ArtifactKind.parse(kind), code=record.get("code") or "")


@dataclass(frozen=True)
class DetectionResult:
    """What the classifier believes the snippet is, and which rules said so."""

    inferred_kind: InferredKind
    matched_signals: tuple[str, ...] = ()

    @property
    def confident(self) -> bool:
        return self.inferred_kind is not InferredKind.UNKNOWN


@dataclass(frozen=True)
class ResolvedImport:
    """One (specifier, source) pair found by the transformer, with its provider."""

    specifier: str  # imported name, "default", or "*"
    local: str  # binding name in the artifact's scope
    source: str
    provider: str | None  # registry provider id, None when unsupported


@dataclass(frozen=True)
class TransformResult:
    """
    Output of the code transformer.

    Deterministic function of the input code: same input, same output.
    """

    rewritten_source: str
    referenced_capabilities: frozenset[str] = frozenset()
    imports: tuple[ResolvedImport, ...] = ()

    @property
    def icon_bindings(self) -> dict[str, str]:
        """`local → imported` for every icon specifier; a namespace import maps to "*"."""
        bindings: dict[str, str] = {}
        for imp in self.imports:
            if imp.provider != "icons":
                continue
            bindings[imp.local] = imp.local if imp.specifier == "default" else imp.specifier
        return bindings


@dataclass(frozen=True)
class RenderableHandle:
    """
    A mountable unit produced by the executor.

    markup:  static render of the component with no props
    program: executable unit; re-mounting it against a browser host gives
             the interactive version
    """

    component_name: str
    markup: str
    program: str


@dataclass(frozen=True)
class RenderFailure:
    """Terminal failure shown to the user: category, readable message, fixed hint."""

    category: FailureCategory
    message: str
    hint: str

    def to_dict(self) -> dict[str, str]:
        return {"category": self.category.value, "message": self.message, "hint": self.hint}


@dataclass
class PathAttempt:
    """One path tried during a render pass."""

    kind: ArtifactKind
    failure: RenderFailure | None = None

    @property
    def succeeded(self) -> bool:
        return self.failure is None


@dataclass
class RenderOutcome:
    """
    Terminal value of a render pass.

    Exactly one is produced per pass. `output` is a RenderableHandle for the
    component path and a markup string for the markup and diagram paths.
    """

    state: RenderState
    detection: DetectionResult
    kind: ArtifactKind | None = None
    output: RenderableHandle | str | None = None
    failure: RenderFailure | None = None
    transitions: list[RenderState] = field(default_factory=list)
    attempts: list[PathAttempt] = field(default_factory=list)

    @property
    def fallback_taken(self) -> bool:
        return len(self.attempts) > 1

    @property
    def rendered(self) -> bool:
        return self.state is RenderState.RENDERED

    @property
    def markup(self) -> str | None:
        if isinstance(self.output, RenderableHandle):
            return self.output.markup
        return self.output


@dataclass(frozen=True)
class ExportBlob:
    """A file produced by an export action."""

    filename: str
    mime_type: str
    data: bytes
