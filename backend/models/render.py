"""Render models: what the classify, render, preview and export routes accept and return."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from runner.kernel.types import RenderableHandle, RenderOutcome

MAX_CODE_LENGTH = 200_000


class ClassifyRequest(BaseModel):
    """What the client sends to POST /api/classify."""

    model_config = {"extra": "forbid"}

    code: str = Field(max_length=MAX_CODE_LENGTH)


class DetectionResponse(BaseModel):
    """Detected kind and the rules that fired."""

    inferred_kind: Literal["react", "svg", "mermaid", "unknown"]
    matched_signals: list[str]
    confident: bool


class RenderRequest(BaseModel):
    """What the client sends to POST /api/render."""

    model_config = {"extra": "forbid"}

    kind: str = Field(default="react", description="Declared kind: react, svg or mermaid (aliases accepted)")
    code: str = Field(max_length=MAX_CODE_LENGTH)


class PreviewRequest(RenderRequest):
    """What the client sends to POST /api/preview."""

    title: str | None = Field(default=None, max_length=200)


class FailureResponse(BaseModel):
    category: str
    message: str
    hint: str


class RenderResponse(BaseModel):
    """Terminal outcome of one render pass."""

    state: Literal["rendered", "failed", "superseded"]
    kind: str | None = None
    inferred_kind: str
    fallback_taken: bool
    transitions: list[str]
    component_name: str | None = None
    markup: str | None = None
    failure: FailureResponse | None = None

    @classmethod
    def from_outcome(cls, outcome: RenderOutcome) -> RenderResponse:
        handle = outcome.output if isinstance(outcome.output, RenderableHandle) else None
        return cls(
            state=outcome.state.value,
            kind=outcome.kind.value if outcome.kind else None,
            inferred_kind=outcome.detection.inferred_kind.value,
            fallback_taken=outcome.fallback_taken,
            transitions=[s.value for s in outcome.transitions],
            component_name=handle.component_name if handle else None,
            markup=outcome.markup,
            failure=FailureResponse(**outcome.failure.to_dict()) if outcome.failure else None,
        )


class ExportRequest(BaseModel):
    """What the client sends to POST /api/export/{fmt}."""

    model_config = {"extra": "forbid"}

    markup: str = Field(min_length=1, max_length=MAX_CODE_LENGTH)
    filename: str | None = Field(default=None, max_length=100, pattern=r"^[\w-]+$")
