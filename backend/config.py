"""
Artifact runner configuration - all environment variables in one place.

Read from environment at runtime.
"""

from __future__ import annotations

import os


class Settings:
    """Application settings from environment variables."""

    # Application
    ENVIRONMENT: str = os.environ.get("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")

    # Diagram compilation
    DIAGRAM_COMPILER: str = os.environ.get("DIAGRAM_COMPILER", "kroki")  # "kroki" or "mmdc"
    KROKI_URL: str = os.environ.get("KROKI_URL", "https://kroki.io")
    MMDC_PATH: str = os.environ.get("MMDC_PATH", "mmdc")
    DIAGRAM_TIMEOUT_SECONDS: float = float(os.environ.get("DIAGRAM_TIMEOUT_SECONDS", "15"))

    # Component execution
    EXECUTION_TIMEOUT_SECONDS: float = float(os.environ.get("EXECUTION_TIMEOUT_SECONDS", "5"))

    # Exports
    RASTER_SCALE: float = float(os.environ.get("RASTER_SCALE", "2"))


# Singleton instance
settings = Settings()

if settings.DIAGRAM_COMPILER not in ("kroki", "mmdc"):
    raise RuntimeError(f"DIAGRAM_COMPILER must be 'kroki' or 'mmdc', got {settings.DIAGRAM_COMPILER!r}")
