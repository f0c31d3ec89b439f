"""Tests for the Kroki and mermaid-cli diagram compilers."""

from __future__ import annotations

import stat
import sys

import httpx
import pytest

from backend.services.diagram_compiler import KrokiDiagramCompiler, MermaidCliCompiler
from runner.kernel.diagram import DiagramRenderer
from runner.kernel.errors import DiagramParseError, DiagramRenderError, DiagramSyntaxError

KROKI_SVG = '<svg id="my-svg" xmlns="http://www.w3.org/2000/svg"><style>#my-svg .node{fill:red}</style></svg>'


def kroki(handler):
    return KrokiDiagramCompiler(base_url="http://kroki.test/", timeout=5, transport=httpx.MockTransport(handler))


# ── Kroki ───────────────────────────────────────────────────────────────────


class TestKroki:
    async def test_render_posts_text_and_sets_root_id(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["body"] = request.content.decode()
            seen["type"] = request.headers["content-type"]
            return httpx.Response(200, text=KROKI_SVG)

        svg = await kroki(handler).render("diagram-abc", "graph TD\nA-->B")
        assert seen == {"url": "http://kroki.test/mermaid/svg", "body": "graph TD\nA-->B", "type": "text/plain"}
        assert 'id="diagram-abc"' in svg
        assert "#diagram-abc .node" in svg

    async def test_bad_request_is_a_syntax_error(self):
        def handler(request):
            return httpx.Response(400, text="Error 400: Parse error on line 2:\n...A-->\n---^")

        with pytest.raises(DiagramSyntaxError, match="Parse error on line 2"):
            await kroki(handler).render("d", "graph TD\nA-->")

    async def test_server_error(self):
        def handler(request):
            return httpx.Response(503, text="busy")

        with pytest.raises(RuntimeError, match="HTTP 503"):
            await kroki(handler).render("d", "graph TD\nA-->B")

    async def test_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused")

        with pytest.raises(RuntimeError, match="unavailable"):
            await kroki(handler).render("d", "graph TD\nA-->B")

    async def test_parse_rejects_unknown_header(self):
        with pytest.raises(DiagramSyntaxError, match="No diagram type detected"):
            await kroki(lambda r: httpx.Response(200)).parse("hello\nA-->B")


class TestKrokiThroughRenderer:
    async def test_syntax_error_maps_to_parse_error(self):
        renderer = DiagramRenderer(kroki(lambda r: httpx.Response(400, text="Parse error on line 1")))
        with pytest.raises(DiagramParseError):
            await renderer.render("graph TD\n!!")

    async def test_outage_maps_to_render_error(self):
        renderer = DiagramRenderer(kroki(lambda r: httpx.Response(500, text="oops")))
        with pytest.raises(DiagramRenderError):
            await renderer.render("graph TD\nA-->B")


# ── mermaid-cli ─────────────────────────────────────────────────────────────

FAKE_MMDC = """#!/bin/sh
while [ $# -gt 0 ]; do
  case "$1" in
    -i) src="$2"; shift ;;
    -o) out="$2"; shift ;;
  esac
  shift
done
if grep -q 'syntax!' "$src"; then
  echo 'Error: Parse error on line 2:' >&2
  exit 1
fi
if grep -q 'crash' "$src"; then
  echo 'Error: Failed to launch the browser process' >&2
  exit 1
fi
printf '<svg id="my-svg"><style>#my-svg .edge{}</style></svg>' > "$out"
"""


@pytest.fixture
def fake_mmdc(tmp_path):
    script = tmp_path / "mmdc"
    script.write_text(FAKE_MMDC)
    script.chmod(script.stat().st_mode | stat.S_IEXEC)
    return str(script)


@pytest.mark.skipif(sys.platform == "win32", reason="shell script stand-in for mmdc")
class TestMermaidCli:
    async def test_render_reads_output_file(self, fake_mmdc):
        svg = await MermaidCliCompiler(mmdc_path=fake_mmdc, timeout=10).render("diagram-1", "graph TD\nA-->B")
        assert svg == '<svg id="diagram-1"><style>#diagram-1 .edge{}</style></svg>'

    async def test_parse_error(self, fake_mmdc):
        with pytest.raises(DiagramSyntaxError, match="Parse error on line 2"):
            await MermaidCliCompiler(mmdc_path=fake_mmdc, timeout=10).render("d", "graph TD\nsyntax!")

    async def test_other_failure(self, fake_mmdc):
        with pytest.raises(RuntimeError, match="mmdc failed: Error: Failed to launch"):
            await MermaidCliCompiler(mmdc_path=fake_mmdc, timeout=10).render("d", "graph TD\ncrash")

    async def test_missing_binary(self, tmp_path):
        compiler = MermaidCliCompiler(mmdc_path=str(tmp_path / "no-such-mmdc"), timeout=10)
        with pytest.raises(RuntimeError, match="mmdc not available"):
            await compiler.render("d", "graph TD\nA-->B")
