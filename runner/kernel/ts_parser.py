"""
Runner Kernel - Module Parser

Uses tree-sitter (TSX grammar) to find the module statements of an artifact:
import declarations, export declarations and top-level bindings.
The transformer rewrites what this finds; the executor uses the binding list
to look for a component when there is no default export.

Only statements at the top level of the program are reported. Statements
that tree-sitter could only recover inside an ERROR node are still reported
when the ERROR node itself sits at the top level.
"""

from __future__ import annotations

from typing import Any

import tree_sitter_typescript as _ts_mod
from tree_sitter import Language, Parser

_LANG = Language(_ts_mod.language_tsx())
_PARSER = Parser(_LANG)


# ---------------------------------------------------------------------------
# Public types
# ---------------------------------------------------------------------------


class ParsedSpecifier:
    """One imported name: `{ imported as local }`, a default import, or `* as local`."""

    __slots__ = ("imported", "local")

    def __init__(self, imported: str, local: str) -> None:
        self.imported = imported  # exported name, "default" or "*"
        self.local = local  # name bound in the module scope

    def __repr__(self) -> str:
        return f"ParsedSpecifier({self.imported!r} as {self.local!r})"


class ParsedImport:
    """A top-level import statement and the byte span it occupies."""

    __slots__ = ("source", "specifiers", "start", "end", "text", "type_only")

    def __init__(
        self,
        source: str,
        specifiers: list[ParsedSpecifier],
        start: int,
        end: int,
        text: str,
        type_only: bool = False,
    ) -> None:
        self.source = source
        self.specifiers = specifiers
        self.start = start
        self.end = end
        self.text = text
        self.type_only = type_only

    def __repr__(self) -> str:
        return f"ParsedImport({self.source!r}, specifiers={self.specifiers!r})"


class ParsedExport:
    """
    A top-level export statement.

    kind:
      "default_declaration"  export default function App() {} (name set)
      "default_value"        export default <expression> (value_text set)
      "default_clause"       export { App as default } (name set)
      "declaration"          export const x = ... / export function f() {}
      "other"                export { a, b } / export * from "x"
    """

    __slots__ = ("kind", "name", "declaration_text", "value_text", "start", "end", "text")

    def __init__(
        self,
        kind: str,
        start: int,
        end: int,
        text: str,
        name: str | None = None,
        declaration_text: str | None = None,
        value_text: str | None = None,
    ) -> None:
        self.kind = kind
        self.start = start
        self.end = end
        self.text = text
        self.name = name
        self.declaration_text = declaration_text
        self.value_text = value_text

    def __repr__(self) -> str:
        return f"ParsedExport({self.kind!r}, name={self.name!r})"


class ParsedBinding:
    """A name declared at the top level of a program, with its declaration text."""

    __slots__ = ("name", "text")

    def __init__(self, name: str, text: str) -> None:
        self.name = name
        self.text = text

    def __repr__(self) -> str:
        return f"ParsedBinding({self.name!r})"


class ParsedModule:
    """Module statements of one source text, in source order."""

    __slots__ = ("imports", "exports", "has_error")

    def __init__(self, imports: list[ParsedImport], exports: list[ParsedExport], has_error: bool) -> None:
        self.imports = imports
        self.exports = exports
        self.has_error = has_error

    def __repr__(self) -> str:
        return f"ParsedModule(imports={len(self.imports)}, exports={len(self.exports)})"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_module(code: str) -> ParsedModule:
    """
    Parse an artifact and collect its top-level import and export statements.

    Byte offsets refer to the UTF-8 encoding of `code`.
    """
    tree = _PARSER.parse(code.encode())
    root = tree.root_node

    imports: list[ParsedImport] = []
    exports: list[ParsedExport] = []
    for node in _top_level_statements(root):
        if node.type == "import_statement":
            parsed = _extract_import(node)
            if parsed is not None:
                imports.append(parsed)
        elif node.type == "export_statement":
            exports.append(_extract_export(node))

    return ParsedModule(imports=imports, exports=exports, has_error=root.has_error)


def parse_tree(code: str) -> Any:
    """The raw tree-sitter tree of `code`, for passes that rewrite expressions."""
    return _PARSER.parse(code.encode())


def find_top_level_bindings(code: str) -> list[ParsedBinding]:
    """
    List the names bound at the top level of a program, in source order.

    Covers function and class declarations and var/let/const declarators
    with a plain identifier on the left. Destructuring patterns are skipped.
    """
    tree = _PARSER.parse(code.encode())
    bindings: list[ParsedBinding] = []

    for node in _top_level_statements(tree.root_node):
        if node.type in ("function_declaration", "generator_function_declaration", "class_declaration"):
            name = node.child_by_field_name("name")
            if name is not None:
                bindings.append(ParsedBinding(_text(name), _text(node)))
        elif node.type in ("variable_declaration", "lexical_declaration"):
            for declarator in node.named_children:
                if declarator.type != "variable_declarator":
                    continue
                name = declarator.child_by_field_name("name")
                if name is not None and name.type == "identifier":
                    bindings.append(ParsedBinding(_text(name), _text(declarator)))

    return bindings


# ---------------------------------------------------------------------------
# Tree walking
# ---------------------------------------------------------------------------


def _top_level_statements(root: Any) -> list[Any]:
    """Children of the program node, descending into top-level ERROR nodes."""
    statements = []
    for node in root.children:
        if node.type == "ERROR":
            statements.extend(child for child in node.children if child.is_named)
        else:
            statements.append(node)
    return statements


def _text(node: Any) -> str:
    return node.text.decode()


def _string_value(node: Any) -> str:
    """Strip the quotes from a string literal node."""
    text = _text(node)
    if len(text) >= 2 and text[0] in "'\"`" and text[-1] == text[0]:
        return text[1:-1]
    return text


def _extract_import(node: Any) -> ParsedImport | None:
    """Extract source and specifiers from an import_statement node."""
    source_node = node.child_by_field_name("source")
    if source_node is None:
        for child in node.children:
            if child.type == "string":
                source_node = child
                break
    if source_node is None:
        # import x = require("y") and other TS forms; nothing to resolve
        return None

    specifiers: list[ParsedSpecifier] = []
    type_only = False
    for child in node.children:
        if child.type == "type":
            type_only = True
        elif child.type == "import_clause":
            specifiers.extend(_extract_import_clause(child))

    return ParsedImport(
        source=_string_value(source_node),
        specifiers=specifiers,
        start=node.start_byte,
        end=node.end_byte,
        text=_text(node),
        type_only=type_only,
    )


def _extract_import_clause(node: Any) -> list[ParsedSpecifier]:
    specifiers: list[ParsedSpecifier] = []
    for child in node.children:
        if child.type == "identifier":
            specifiers.append(ParsedSpecifier("default", _text(child)))
        elif child.type == "namespace_import":
            for sub in child.children:
                if sub.type == "identifier":
                    specifiers.append(ParsedSpecifier("*", _text(sub)))
        elif child.type == "named_imports":
            for spec in child.named_children:
                if spec.type != "import_specifier":
                    continue
                name = spec.child_by_field_name("name")
                alias = spec.child_by_field_name("alias")
                if name is None:
                    continue
                imported = _string_value(name) if name.type == "string" else _text(name)
                local = _text(alias) if alias is not None else imported
                specifiers.append(ParsedSpecifier(imported, local))
    return specifiers


def _extract_export(node: Any) -> ParsedExport:
    """Classify an export_statement node into one of the ParsedExport kinds."""
    start, end, text = node.start_byte, node.end_byte, _text(node)
    is_default = any(child.type == "default" for child in node.children)

    declaration = node.child_by_field_name("declaration")
    if declaration is None:
        for child in node.children:
            if child.type.endswith("_declaration") or child.type in ("lexical_declaration", "variable_declaration"):
                declaration = child
                break

    if is_default:
        if declaration is not None:
            name = declaration.child_by_field_name("name")
            if name is not None:
                return ParsedExport(
                    "default_declaration",
                    start,
                    end,
                    text,
                    name=_text(name),
                    declaration_text=_text(declaration),
                )
            return ParsedExport("default_value", start, end, text, value_text=_text(declaration))

        value = node.child_by_field_name("value")
        if value is None:
            value = _first_named_after_default(node)
        value_text = _text(value) if value is not None else "undefined"
        return ParsedExport("default_value", start, end, text, value_text=value_text)

    if declaration is not None:
        return ParsedExport("declaration", start, end, text, declaration_text=_text(declaration))

    has_source = node.child_by_field_name("source") is not None
    for child in node.children:
        if child.type == "export_clause" and not has_source:
            for spec in child.named_children:
                if spec.type != "export_specifier":
                    continue
                name = spec.child_by_field_name("name")
                alias = spec.child_by_field_name("alias")
                if name is not None and alias is not None and _text(alias) == "default":
                    return ParsedExport("default_clause", start, end, text, name=_text(name))

    return ParsedExport("other", start, end, text)


def _first_named_after_default(node: Any) -> Any | None:
    seen_default = False
    for child in node.children:
        if child.type == "default":
            seen_default = True
        elif seen_default and child.is_named and child.type != "comment":
            return child
    return None
