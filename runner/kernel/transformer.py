"""
Runner Kernel - Code Transformer

Pure function: component source → TransformResult.
No IO. Deterministic. Cannot fail: anything it cannot make sense of is left
for the transpiler, and syntax errors are reported by the executor.

Restricted module resolution. Every top-level import is resolved against
the capability registry:

  runtime source  statement removed; renamed hooks and other React exports
                  become `var` bindings
  icon source     specifiers recorded as referenced, statement replaced by a marker
                  comment (the namespace binds each icon under its local name)
  chart source    statement removed (every chart export is always offered)
  anything else   statement commented out, never silently dropped

A default export becomes an assignment to SENTINEL_EXPORT. Every rewrite
keeps the original line count, so engine line numbers still point at the
author's code.

The output is a fixed point: transforming it again finds no recognized
import or export statements.
"""

from __future__ import annotations

from runner.kernel.capabilities import (
    CHART_NAMES,
    CHART_PROVIDER,
    CHART_SOURCE,
    ICON_PROVIDER,
    ICON_SOURCE,
    RUNTIME_PRIMITIVES,
    RUNTIME_PROVIDER,
    RUNTIME_SOURCES,
)
from runner.kernel.ts_parser import ParsedExport, ParsedImport, parse_module
from runner.kernel.types import ResolvedImport, TransformResult

SENTINEL_EXPORT = "__artifactDefault"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def resolve_provider(source: str) -> str | None:
    """Map an import source onto a registry provider id. None when unsupported."""
    if source in RUNTIME_SOURCES:
        return RUNTIME_PROVIDER
    if source == ICON_SOURCE or source.startswith(ICON_SOURCE + "/"):
        return ICON_PROVIDER
    if source == CHART_SOURCE or source.startswith(CHART_SOURCE + "/"):
        return CHART_PROVIDER
    return None


def transform(code: str) -> TransformResult:
    """
    Rewrite an artifact's imports and exports so it can run without a module loader.

    Returns the rewritten source, the icon names it referenced, and every
    resolved (specifier, source) pair in source order.
    """
    module = parse_module(code)
    data = code.encode()

    edits: list[tuple[int, int, str]] = []
    referenced: set[str] = set()
    resolved: list[ResolvedImport] = []

    for stmt in module.imports:
        provider = resolve_provider(stmt.source)
        for spec in stmt.specifiers:
            resolved.append(ResolvedImport(spec.imported, spec.local, stmt.source, provider))
        replacement = _rewrite_import(stmt, provider, referenced)
        edits.append((stmt.start, stmt.end, _keep_line_count(replacement, stmt.text)))

    for stmt in module.exports:
        edits.append((stmt.start, stmt.end, _keep_line_count(_rewrite_export(stmt), stmt.text)))

    rewritten = _apply_edits(data, edits)
    return TransformResult(
        rewritten_source=rewritten,
        referenced_capabilities=frozenset(referenced),
        imports=tuple(resolved),
    )


# ---------------------------------------------------------------------------
# Imports
# ---------------------------------------------------------------------------


def _rewrite_import(stmt: ParsedImport, provider: str | None, referenced: set[str]) -> str:
    if provider is None:
        return f"/* unsupported import: {_comment_safe(stmt.text)} */"

    if provider == RUNTIME_PROVIDER:
        return _runtime_bindings(stmt)

    if provider == CHART_PROVIDER:
        return _chart_bindings(stmt)

    # Icons are bound under their local names by the namespace; only a marker stays
    names: list[str] = []
    for spec in stmt.specifiers:
        if spec.imported == "*":
            names.append(f"* as {spec.local}")
            continue
        imported = spec.local if spec.imported == "default" else spec.imported
        referenced.add(imported)
        names.append(imported if imported == spec.local else f"{imported} as {spec.local}")
    return f'/* icons from "{ICON_SOURCE}": {", ".join(names)} */'


def _runtime_bindings(stmt: ParsedImport) -> str:
    """
    Bind runtime imports onto the React object.

    Hooks are namespace parameters of their own; any other named export
    (Fragment, createContext, memo, ...) is read off React.
    """
    if stmt.type_only:
        return ""
    bindings: list[str] = []
    for spec in stmt.specifiers:
        if spec.imported in ("*", "default"):
            if spec.local != "React":
                bindings.append(f"var {spec.local} = React;")
        elif spec.imported in RUNTIME_PRIMITIVES:
            if spec.imported != spec.local:
                bindings.append(f"var {spec.local} = {spec.imported};")
        else:
            bindings.append(f"var {spec.local} = React.{spec.imported};")
    return " ".join(bindings)


def _chart_bindings(stmt: ParsedImport) -> str:
    """`var local = name;` for renamed chart parts; a namespace import becomes an object over all of them."""
    if stmt.type_only:
        return ""
    bindings: list[str] = []
    for spec in stmt.specifiers:
        if spec.imported == "*":
            members = ", ".join(f"{name}: {name}" for name in CHART_NAMES)
            bindings.append(f"var {spec.local} = {{{members}}};")
        elif spec.imported != "default" and spec.imported != spec.local:
            bindings.append(f"var {spec.local} = {spec.imported};")
    return " ".join(bindings)


# ---------------------------------------------------------------------------
# Exports
# ---------------------------------------------------------------------------


def _rewrite_export(stmt: ParsedExport) -> str:
    if stmt.kind == "default_declaration":
        return f"{stmt.declaration_text} var {SENTINEL_EXPORT} = {stmt.name};"
    if stmt.kind == "default_value":
        value = (stmt.value_text or "undefined").rstrip().rstrip(";")
        return f"var {SENTINEL_EXPORT} = {value};"
    if stmt.kind == "default_clause":
        return f"var {SENTINEL_EXPORT} = {stmt.name};"
    if stmt.kind == "declaration":
        return stmt.declaration_text or ""
    return f"/* unsupported export: {_comment_safe(stmt.text)} */"


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------


def _comment_safe(text: str) -> str:
    return text.replace("*/", "* /")


def _keep_line_count(replacement: str, original: str) -> str:
    """Pad the replacement with newlines so the statement keeps its line count."""
    missing = original.count("\n") - replacement.count("\n")
    if missing > 0:
        return replacement + "\n" * missing
    return replacement


def _apply_edits(data: bytes, edits: list[tuple[int, int, str]]) -> str:
    """Apply byte-span replacements back to front so earlier offsets stay valid."""
    out = data
    for start, end, replacement in sorted(edits, key=lambda e: e[0], reverse=True):
        out = out[:start] + replacement.encode() + out[end:]
    return out.decode()
