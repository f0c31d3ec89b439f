"""
Runner Kernel - Export Actions

Turns rendered svg markup (from the markup or the diagram path) into files:

  export_vector    image/svg+xml, with xmlns and a viewBox guaranteed
  export_raster    image/png on a white background, upscaled ×RASTER_SCALE
  copy_as_image    svg to the clipboard, png when svg is refused

Every action is a pure function of the markup: calling it twice gives the
same blob.
"""

from __future__ import annotations

import logging
import re
from typing import Protocol

from runner.kernel.errors import ExportError
from runner.kernel.types import ExportBlob

logger = logging.getLogger(__name__)

RASTER_SCALE = 2
SVG_MIME = "image/svg+xml"
PNG_MIME = "image/png"
DEFAULT_BASENAME = "mermaid-diagram"

COPY_VECTOR_OK = "Diagram copied to clipboard!"
COPY_RASTER_OK = "Image copied to clipboard!"
COPY_FAILED = "Copy failed. Try downloading instead."

_ROOT_TAG = re.compile(r"<svg\b[^>]*>", re.IGNORECASE)
_LENGTH = re.compile(r"^\s*([0-9]*\.?[0-9]+)\s*(px)?\s*$")


class Clipboard(Protocol):
    """Destination of copy_as_image. Raises when it refuses the blob's type."""

    def write(self, blob: ExportBlob) -> None: ...


def _attr(tag: str, name: str) -> str | None:
    m = re.search(rf'\s{re.escape(name)}\s*=\s*(["\'])(.*?)\1', tag)
    return m.group(2) if m else None


def normalize_svg(markup: str) -> str:
    """Add xmlns and, when width and height are plain lengths, a viewBox to the root tag."""
    m = _ROOT_TAG.search(markup)
    if not m:
        raise ExportError("Invalid SVG: Missing <svg> tags")
    tag = m.group(0)
    additions = []
    if _attr(tag, "xmlns") is None:
        additions.append('xmlns="http://www.w3.org/2000/svg"')
    if _attr(tag, "viewBox") is None:
        width = _LENGTH.match(_attr(tag, "width") or "")
        height = _LENGTH.match(_attr(tag, "height") or "")
        if width and height:
            additions.append(f'viewBox="0 0 {width.group(1)} {height.group(1)}"')
    if not additions:
        return markup
    new_tag = tag[:4] + " " + " ".join(additions) + tag[4:]
    return markup[: m.start()] + new_tag + markup[m.end() :]


def export_vector(markup: str, basename: str = DEFAULT_BASENAME) -> ExportBlob:
    """The markup as a standalone .svg file."""
    data = normalize_svg(markup).encode("utf-8")
    return ExportBlob(filename=f"{basename}.svg", mime_type=SVG_MIME, data=data)


def export_raster(markup: str, scale: float = RASTER_SCALE, basename: str = DEFAULT_BASENAME) -> ExportBlob:
    """
    Rasterize to PNG at `scale` × the intrinsic size, on white.

    Raises:
        ExportError: cairo could not load or could not draw the markup
    """
    vector = normalize_svg(markup)
    try:
        # cairosvg loads libcairo at import time
        import cairosvg

        data = cairosvg.svg2png(bytestring=vector.encode("utf-8"), scale=scale, background_color="white")
    except Exception as e:
        raise ExportError(f"Raster export failed: {e}") from e
    if not data:
        raise ExportError("Raster export failed: empty image")
    return ExportBlob(filename=f"{basename}.png", mime_type=PNG_MIME, data=data)


def copy_as_image(markup: str, clipboard: Clipboard) -> str:
    """
    Put the image on the clipboard. Returns a status message, never raises.

    The svg blob goes first; when the clipboard refuses it, a png is tried.
    """
    try:
        clipboard.write(export_vector(markup))
        return COPY_VECTOR_OK
    except Exception as e:
        logger.info("Clipboard refused svg, trying png: %s", e)

    try:
        clipboard.write(export_raster(markup))
        return COPY_RASTER_OK
    except Exception as e:
        logger.warning("Clipboard copy failed: %s", e)
        return COPY_FAILED
