"""Artifact source - where render-by-id requests read `{declared_kind, code}` from."""

from __future__ import annotations

from typing import Any


class ArtifactSource:
    """
    Abstract artifact lookup.
    Implement against the real store in production, or in-memory for tests.
    """

    async def get(self, artifact_id: str) -> dict[str, Any] | None:
        """Fetch an artifact record. Returns None if not found."""
        raise NotImplementedError


class MemoryArtifactSource(ArtifactSource):
    """In-memory artifact records for tests and local development."""

    def __init__(self, records: dict[str, dict[str, Any]] | None = None) -> None:
        self.records: dict[str, dict[str, Any]] = dict(records or {})

    async def get(self, artifact_id: str) -> dict[str, Any] | None:
        return self.records.get(artifact_id)

    def put(self, artifact_id: str, declared_kind: str, code: str, **extra: Any) -> None:
        self.records[artifact_id] = {"declared_kind": declared_kind, "code": code, **extra}


# Singleton instance used by the routes
artifact_source = MemoryArtifactSource()
