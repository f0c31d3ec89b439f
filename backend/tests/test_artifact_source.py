"""Tests for the artifact sources."""

from __future__ import annotations

import pytest

from backend.services.artifact_source import ArtifactSource, MemoryArtifactSource
from runner.kernel.types import ArtifactKind, Snippet


async def test_base_source_is_abstract():
    with pytest.raises(NotImplementedError):
        await ArtifactSource().get("anything")


async def test_memory_source_put_and_get():
    source = MemoryArtifactSource()
    source.put("a1", "mermaid", "graph TD\nA-->B", title="Flow")
    record = await source.get("a1")
    assert record == {"declared_kind": "mermaid", "code": "graph TD\nA-->B", "title": "Flow"}
    assert await source.get("missing") is None


async def test_records_become_snippets():
    """Only the declared kind and the code are read from a record."""
    source = MemoryArtifactSource({"a2": {"type": "image", "code": "<svg></svg>", "owner": "x"}})
    snippet = Snippet.from_record(await source.get("a2"))
    assert snippet == Snippet(ArtifactKind.MARKUP, "<svg></svg>")
