"""
Diagram compilers - the DiagramCompiler collaborators behind the diagram path.

  KrokiDiagramCompiler   POST {KROKI_URL}/mermaid/svg over httpx
  MermaidCliCompiler     mermaid-cli (mmdc) in a subprocess

Both run the local header check as their parse phase, report invalid text
as DiagramSyntaxError, and give the root svg the id they are handed.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
import tempfile
from pathlib import Path

import httpx

from backend import config
from runner.kernel.diagram import DiagramCompiler, check_diagram_header, set_root_id
from runner.kernel.errors import DiagramSyntaxError

logger = logging.getLogger(__name__)

_SYNTAX_MESSAGE = re.compile(r"Parse error|Lexical error|No diagram type detected|Syntax error", re.IGNORECASE)


def _first_line(text: str) -> str:
    for line in text.splitlines():
        if line.strip():
            return line.strip()
    return ""


class KrokiDiagramCompiler:
    """Compiles mermaid text with a Kroki server."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = (base_url or config.settings.KROKI_URL).rstrip("/")
        self._timeout = timeout if timeout is not None else config.settings.DIAGRAM_TIMEOUT_SECONDS
        self._transport = transport

    async def parse(self, code: str) -> None:
        check_diagram_header(code)

    async def render(self, diagram_id: str, code: str) -> str:
        """
        Compile to svg.

        Raises:
            DiagramSyntaxError: Kroki rejected the text (HTTP 400)
            RuntimeError: Kroki unreachable or failing
        """
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(
                    f"{self._base_url}/mermaid/svg",
                    content=code.encode("utf-8"),
                    headers={"Content-Type": "text/plain"},
                )
        except httpx.TimeoutException as e:
            raise RuntimeError("Diagram render timeout") from e
        except httpx.HTTPError as e:
            raise RuntimeError(f"Diagram service unavailable: {e}") from e

        if response.status_code == 400:
            raise DiagramSyntaxError(_first_line(response.text) or "Parse error")
        if response.status_code != 200:
            logger.warning("Kroki returned %s: %r", response.status_code, response.text[:200])
            raise RuntimeError(f"Diagram service error: HTTP {response.status_code}")
        return set_root_id(response.text, diagram_id)


class MermaidCliCompiler:
    """Compiles mermaid text with mermaid-cli (`mmdc`), which drives a headless browser."""

    def __init__(self, mmdc_path: str | None = None, timeout: float | None = None) -> None:
        self._mmdc = mmdc_path or config.settings.MMDC_PATH
        self._timeout = timeout if timeout is not None else config.settings.DIAGRAM_TIMEOUT_SECONDS

    async def parse(self, code: str) -> None:
        check_diagram_header(code)

    async def render(self, diagram_id: str, code: str) -> str:
        """
        Compile to svg.

        Raises:
            DiagramSyntaxError: mmdc reported a parse or lexical error
            RuntimeError: mmdc missing, timed out, or failed otherwise
        """
        with tempfile.TemporaryDirectory(prefix="diagram-") as tmp:
            source = Path(tmp) / "diagram.mmd"
            output = Path(tmp) / "diagram.svg"
            puppeteer_config = Path(tmp) / "puppeteer.json"
            source.write_text(code, encoding="utf-8")
            puppeteer_config.write_text(
                json.dumps({"args": ["--no-sandbox", "--disable-setuid-sandbox"]}),
                encoding="utf-8",
            )

            try:
                proc = await asyncio.create_subprocess_exec(
                    self._mmdc,
                    "-i",
                    str(source),
                    "-o",
                    str(output),
                    "--quiet",
                    "--puppeteerConfigFile",
                    str(puppeteer_config),
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                )
            except FileNotFoundError as e:
                raise RuntimeError(f"mmdc not available at {self._mmdc!r}") from e

            try:
                stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self._timeout)
            except asyncio.TimeoutError as e:
                proc.kill()
                await proc.wait()
                raise RuntimeError("Diagram render timeout") from e

            if proc.returncode != 0:
                error = (stderr or stdout).decode("utf-8", errors="replace").strip() or "mmdc render failed"
                match = _SYNTAX_MESSAGE.search(error)
                if match:
                    raise DiagramSyntaxError(_first_line(error[match.start() :]))
                raise RuntimeError(f"mmdc failed: {_first_line(error)}")
            if not output.exists():
                raise RuntimeError("mmdc did not produce output")
            svg = output.read_text(encoding="utf-8")

        return set_root_id(svg, diagram_id)


def build_diagram_compiler() -> DiagramCompiler:
    """The compiler selected by DIAGRAM_COMPILER."""
    if config.settings.DIAGRAM_COMPILER == "mmdc":
        return MermaidCliCompiler()
    return KrokiDiagramCompiler()
