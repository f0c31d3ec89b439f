"""
Runner Kernel - JSX Lowering

Pure function: TSX source → JavaScript the engine runs as is.

  JSX element     React.createElement(type, props | null, ...children)
  fragment        React.Fragment as the element type
  type syntax     annotations, interfaces, type aliases, generics, `as`,
                  `satisfies` and non-null assertions are erased

Everything else is left exactly as written: object spread, optional
chaining, nullish coalescing, classes and async functions all reach the
engine unchanged. Element text follows the usual JSX whitespace rules
(lines trimmed, blank lines dropped, the rest joined by one space).

Lowered elements and erased declarations are padded with the newlines they
replaced, so engine line numbers still point at the author's code.
"""

from __future__ import annotations

import html
import json
import re
from typing import Any

from runner.kernel.errors import TransformSyntaxError
from runner.kernel.ts_parser import parse_tree

JSX_FACTORY = "React.createElement"
JSX_FRAGMENT = "React.Fragment"

_ELEMENTS = frozenset({"jsx_element", "jsx_self_closing_element"})
_CHILD_NODES = frozenset({"jsx_element", "jsx_self_closing_element", "jsx_expression"})

# Type-only syntax, removed with its whole subtree
_ERASED = frozenset(
    {
        "type_annotation",
        "type_arguments",
        "type_parameters",
        "interface_declaration",
        "type_alias_declaration",
        "function_signature",
        "ambient_declaration",
        "accessibility_modifier",
        "override_modifier",
        "asserts_annotation",
        "type_predicate_annotation",
    }
)
# Type assertions: only the asserted expression stays
_UNWRAPPED = frozenset({"as_expression", "satisfies_expression", "non_null_expression"})
# Type-only tokens inside parameters and class fields
_MARKED = frozenset({"optional_parameter", "public_field_definition", "required_parameter"})
_MARKER_TOKENS = frozenset({"?", "!", "readonly", "declare", "abstract"})

_INTRINSIC_TAG = re.compile(r"^[a-z]|-")


def lower(source: str) -> str:
    """
    Lower JSX and erase TypeScript-only syntax.

    Raises:
        TransformSyntaxError: the source does not parse
    """
    tree = parse_tree(source)
    root = tree.root_node
    if root.has_error:
        raise TransformSyntaxError(_syntax_message(root))
    return _Lowering(source.encode()).emit(root)


# ---------------------------------------------------------------------------
# Syntax errors
# ---------------------------------------------------------------------------


def _first_error(node: Any) -> Any | None:
    if node.type == "ERROR" or node.is_missing:
        return node
    for child in node.children:
        if child.has_error:
            found = _first_error(child)
            if found is not None:
                return found
    return None


def _syntax_message(root: Any) -> str:
    node = _first_error(root) or root
    row, column = node.start_point
    if node.is_missing:
        return f'SyntaxError: Expected "{node.type}" ({row + 1}:{column})'
    return f"SyntaxError: Unexpected token ({row + 1}:{column})"


# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------


def clean_jsx_text(raw: str) -> str:
    """
    Whitespace rules for text between JSX tags.

    Tabs count as spaces. Every line but the first loses its leading spaces,
    every line but the last its trailing ones, and the non-empty lines that
    remain are joined by single spaces.
    """
    lines = html.unescape(raw).replace("\r\n", "\n").replace("\r", "\n").split("\n")
    last_non_empty = 0
    for i, line in enumerate(lines):
        if line.strip(" \t"):
            last_non_empty = i

    out = []
    for i, line in enumerate(lines):
        line = line.replace("\t", " ")
        if i != 0:
            line = line.lstrip(" ")
        if i != len(lines) - 1:
            line = line.rstrip(" ")
        if line:
            if i != last_non_empty:
                line += " "
            out.append(line)
    return "".join(out)


# ---------------------------------------------------------------------------
# Lowering
# ---------------------------------------------------------------------------


class _Lowering:
    """Re-emits a parse tree, replacing JSX and type syntax along the way."""

    def __init__(self, data: bytes) -> None:
        self.data = data

    def slice(self, start: int, end: int) -> str:
        return self.data[start:end].decode()

    def text(self, node: Any) -> str:
        return self.slice(node.start_byte, node.end_byte)

    def emit(self, node: Any) -> str:
        kind = node.type
        if kind in _ELEMENTS:
            out = self.element(node)
            missing = self.text(node).count("\n") - out.count("\n")
            return out + "\n" * missing if missing > 0 else out
        if kind in _ERASED:
            return "\n" * self.text(node).count("\n")
        if kind in _UNWRAPPED:
            return self.emit(node.named_children[0])
        if not node.children:
            return self.text(node)

        parts = []
        cursor = node.start_byte
        for child in node.children:
            parts.append(self.slice(cursor, child.start_byte))
            if kind in _MARKED and not child.is_named and child.type in _MARKER_TOKENS:
                parts.append("")
            else:
                parts.append(self.emit(child))
            cursor = child.end_byte
        parts.append(self.slice(cursor, node.end_byte))
        return "".join(parts)

    # -- elements ------------------------------------------------------------

    def element(self, node: Any) -> str:
        if node.type == "jsx_self_closing_element":
            opening = node
            children: list[str] = []
        else:
            opening = node.children[0]
            children = self.children(node, opening, node.children[-1])

        name = opening.child_by_field_name("name")
        args = [JSX_FRAGMENT if name is None else self.tag(name), self.props(opening), *children]
        return f"{JSX_FACTORY}({', '.join(args)})"

    def tag(self, name: Any) -> str:
        """Lowercase and dashed names are host elements, passed as strings."""
        text = self.text(name)
        if name.type == "jsx_namespace_name" or (name.type == "identifier" and _INTRINSIC_TAG.search(text)):
            return json.dumps(text)
        return text

    def props(self, opening: Any) -> str:
        parts = []
        for child in opening.named_children:
            if child.type == "jsx_attribute":
                parts.append(self.attribute(child))
            elif child.type == "jsx_expression":
                spread = _expression_node(child)
                if spread is None or spread.type != "spread_element":
                    raise TransformSyntaxError(_at(child, "SyntaxError: Expected a spread attribute"))
                parts.append(self.emit(spread))
        if not parts:
            return "null"
        return "{" + ", ".join(parts) + "}"

    def attribute(self, node: Any) -> str:
        named = [c for c in node.named_children if c.type != "comment"]
        key = json.dumps(self.text(named[0]))
        if len(named) == 1:
            return f"{key}: true"

        value = named[1]
        if value.type == "string":
            text = re.sub(r"\n\s+", " ", html.unescape(self.text(value)[1:-1]))
            return f"{key}: {json.dumps(text)}"
        if value.type == "jsx_expression":
            expr = _expression_node(value)
            if expr is None:
                raise TransformSyntaxError(
                    _at(value, "SyntaxError: JSX attributes must only be assigned a non-empty expression")
                )
            return f"{key}: {self.expression(expr)}"
        return f"{key}: {self.emit(value)}"

    def children(self, node: Any, opening: Any, closing: Any) -> list[str]:
        out = []
        cursor = opening.end_byte
        for child in node.named_children:
            if child.start_byte < opening.end_byte or child.type not in _CHILD_NODES:
                continue
            if child.start_byte >= closing.start_byte:
                break
            self._text_child(out, cursor, child.start_byte)
            if child.type == "jsx_expression":
                expr = _expression_node(child)
                if expr is not None:
                    out.append(self.expression(expr))
            else:
                out.append(self.emit(child))
            cursor = child.end_byte
        self._text_child(out, cursor, closing.start_byte)
        return out

    def _text_child(self, out: list[str], start: int, end: int) -> None:
        if end > start:
            text = clean_jsx_text(self.slice(start, end))
            if text:
                out.append(json.dumps(text))

    def expression(self, node: Any) -> str:
        out = self.emit(node)
        if node.type == "sequence_expression":
            return f"({out})"
        return out


def _expression_node(container: Any) -> Any | None:
    """The expression inside `{...}`; None when it holds nothing but comments."""
    for child in container.named_children:
        if child.type != "comment":
            return child
    return None


def _at(node: Any, message: str) -> str:
    row, column = node.start_point
    return f"{message} ({row + 1}:{column})"
