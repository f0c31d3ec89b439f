"""
Runner Kernel -- Export Action Tests

Vector export normalizes the root tag; raster export needs libcairo and is
skipped where the system library is missing.
"""

import pytest

from runner.kernel.errors import ExportError
from runner.kernel.exports import (
    COPY_FAILED,
    COPY_RASTER_OK,
    COPY_VECTOR_OK,
    PNG_MIME,
    SVG_MIME,
    copy_as_image,
    export_raster,
    export_vector,
    normalize_svg,
)

SVG = '<svg width="40" height="20"><rect width="40" height="20" fill="#09c"/></svg>'
PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def cairo_available():
    try:
        import cairosvg  # noqa: F401
    except OSError:
        return False
    return True


needs_cairo = pytest.mark.skipif(not cairo_available(), reason="libcairo not installed")


class RecordingClipboard:
    def __init__(self, refuse=()):
        self.refuse = set(refuse)
        self.written = []

    def write(self, blob):
        if blob.mime_type in self.refuse:
            raise PermissionError(f"{blob.mime_type} not allowed")
        self.written.append(blob)


class TestVector:
    def test_adds_namespace_and_view_box(self):
        out = normalize_svg(SVG)
        assert out.startswith('<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 40 20" width="40"')

    def test_keeps_existing_view_box(self):
        code = '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 1 1" width="9" height="9"></svg>'
        assert normalize_svg(code) == code

    def test_no_view_box_from_relative_sizes(self):
        out = normalize_svg('<svg width="100%" height="50%"></svg>')
        assert "viewBox" not in out

    def test_px_lengths(self):
        out = normalize_svg('<svg width="30px" height="10px"></svg>')
        assert 'viewBox="0 0 30 10"' in out

    def test_blob(self):
        blob = export_vector(SVG)
        assert blob.mime_type == SVG_MIME
        assert blob.filename == "mermaid-diagram.svg"
        assert blob.data.startswith(b"<svg")

    def test_repeat_calls_are_identical(self):
        assert export_vector(SVG) == export_vector(SVG)

    def test_not_svg(self):
        with pytest.raises(ExportError):
            export_vector("<div></div>")


@needs_cairo
class TestRaster:
    def test_png_blob(self):
        blob = export_raster(SVG)
        assert blob.mime_type == PNG_MIME
        assert blob.filename == "mermaid-diagram.png"
        assert blob.data.startswith(PNG_SIGNATURE)

    def test_scale_doubles_the_size(self):
        blob = export_raster(SVG)
        # IHDR width and height follow the 8-byte signature and 8-byte chunk header
        width = int.from_bytes(blob.data[16:20], "big")
        height = int.from_bytes(blob.data[20:24], "big")
        assert (width, height) == (80, 40)

    def test_broken_markup(self):
        with pytest.raises(ExportError):
            export_raster("<svg><rect width=</svg>")


class TestClipboard:
    def test_vector_first(self):
        clipboard = RecordingClipboard()
        assert copy_as_image(SVG, clipboard) == COPY_VECTOR_OK
        assert [b.mime_type for b in clipboard.written] == [SVG_MIME]

    @needs_cairo
    def test_falls_back_to_png(self):
        clipboard = RecordingClipboard(refuse={SVG_MIME})
        assert copy_as_image(SVG, clipboard) == COPY_RASTER_OK
        assert [b.mime_type for b in clipboard.written] == [PNG_MIME]

    def test_total_failure_is_a_status_not_an_exception(self):
        clipboard = RecordingClipboard(refuse={SVG_MIME, PNG_MIME})
        assert copy_as_image(SVG, clipboard) == COPY_FAILED
        assert clipboard.written == []
