"""
Runner Kernel - Sandboxed Executor

Executes transformed component source against an explicit capability
namespace and returns a RenderableHandle.

  1. transpile   TSX → plain JavaScript via the Transpiler collaborator (cached by source)
  2. build       factory whose parameters are exactly the namespace keys;
                 returns the sentinel export, else the last component-shaped binding
  3. invoke      factory applied to the namespace references, nothing else bound
  4. mount       createElement(component) with no props, rendered by the host runtime

Not a sandbox: no isolation and no memory quota. Each program runs in a
fresh V8 context (mini-racer), optionally under a time budget; without one,
runaway author code blocks the caller.
"""

from __future__ import annotations

import hashlib
import json
import re
from collections import OrderedDict
from typing import Any, Protocol

from py_mini_racer import JSEvalException, JSParseException, JSTimeoutException, MiniRacer

from runner.kernel import jsx
from runner.kernel.capabilities import (
    HOST_OBJECT,
    ICON_SOURCE,
    CapabilityNamespace,
    CapabilityRegistry,
    default_registry,
)
from runner.kernel.errors import (
    MissingCapabilityError,
    NoComponentFoundError,
    RuntimeExecutionError,
    TransformSyntaxError,
)
from runner.kernel.host_runtime import host_prelude
from runner.kernel.transformer import SENTINEL_EXPORT
from runner.kernel.ts_parser import find_top_level_bindings
from runner.kernel.types import RenderableHandle

# Engine message shapes for an undefined identifier: V8, Duktape, QuickJS
_UNDEFINED_SYMBOL_PATTERNS = (
    re.compile(r"\b([A-Za-z_$][\w$]*) is not defined"),
    re.compile(r"identifier '([A-Za-z_$][\w$]*)' undefined"),
    re.compile(r"'([A-Za-z_$][\w$]*)' is not defined"),
)
# V8 prefixes messages with the script location, e.g. `<anonymous>:3: `
_LOCATION_PREFIX = re.compile(r"^\S*:\d+:\s+(?:Uncaught\s+)?")
_ELEMENT_MARKER = "React.createElement"


def undefined_symbol(message: str) -> str | None:
    """Name of the undefined identifier an engine error message complains about."""
    for pattern in _UNDEFINED_SYMBOL_PATTERNS:
        m = pattern.search(message)
        if m:
            return m.group(1)
    return None


def first_line(message: str) -> str:
    """Engine messages carry a location before and stack frames after the first line."""
    for line in message.strip().splitlines():
        if line.strip():
            return _LOCATION_PREFIX.sub("", line.strip())
    return message.strip()


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------


class Transpiler(Protocol):
    """Turns TSX into directly executable JavaScript."""

    def transpile(self, source: str) -> str: ...


class ScriptRuntime(Protocol):
    """Evaluates a program and returns the JSON value of its last expression."""

    def evaluate(self, program: str) -> Any: ...


class JsxTranspiler:
    """tree-sitter based JSX lowering and type erasure, with an LRU cache keyed by source hash."""

    def __init__(self, cache_size: int = 128) -> None:
        self._cache: OrderedDict[str, str] = OrderedDict()
        self._cache_size = cache_size

    def transpile(self, source: str) -> str:
        key = hashlib.sha256(source.encode()).hexdigest()
        if key in self._cache:
            self._cache.move_to_end(key)
            return self._cache[key]
        compiled = jsx.lower(source)
        self._cache[key] = compiled
        if len(self._cache) > self._cache_size:
            self._cache.popitem(last=False)
        return compiled


class V8Runtime:
    """V8 through mini-racer: a fresh context per program, host prelude loaded first."""

    def __init__(self, registry: CapabilityRegistry | None = None, timeout: float | None = None) -> None:
        registry = registry or default_registry()
        self._prelude = host_prelude(registry.icon_names, registry.chart_names)
        self.timeout = timeout

    def evaluate(self, program: str) -> Any:
        """
        Run the prelude, then the program; return its completion value as JSON data.

        Raises:
            TransformSyntaxError: the engine could not parse the program
            RuntimeExecutionError: the program threw, or ran past the time budget
        """
        ctx = MiniRacer()
        try:
            ctx.eval(self._prelude)
            raw = ctx.eval(f"JSON.stringify(eval({json.dumps(program)}))", timeout_sec=self.timeout)
        except JSTimeoutException as e:
            raise RuntimeExecutionError(f"Execution timed out after {self.timeout:g}s") from e
        except JSParseException as e:
            raise TransformSyntaxError(first_line(str(e))) from e
        except JSEvalException as e:
            message = str(e)
            line = first_line(message)
            if line.startswith("SyntaxError"):
                raise TransformSyntaxError(line) from e
            raise RuntimeExecutionError(line, symbol=undefined_symbol(message)) from e
        return json.loads(raw) if isinstance(raw, str) else raw


# ---------------------------------------------------------------------------
# Program construction
# ---------------------------------------------------------------------------


def build_program(compiled: str, namespace: CapabilityNamespace) -> str:
    """
    Wrap transpiled code into a factory bound to the namespace, then mount its result.

    The factory's parameter list is exactly the namespace keys, in order,
    and the call supplies their references positionally.
    """
    params = ", ".join(namespace.keys())
    args = ", ".join(namespace.values())

    candidates = []
    for binding in find_top_level_bindings(compiled):
        if binding.name == SENTINEL_EXPORT:
            continue
        produces = "true" if _ELEMENT_MARKER in binding.text else "false"
        candidates.append(f"[typeof {binding.name} !== 'undefined' ? {binding.name} : undefined, {produces}]")

    return (
        f"{HOST_OBJECT}.mount((function ({params}) {{\n"
        f"{compiled}\n"
        f"if (typeof {SENTINEL_EXPORT} !== 'undefined') {{ return {SENTINEL_EXPORT}; }}\n"
        f"var __candidates = [{', '.join(candidates)}];\n"
        "for (var __i = __candidates.length - 1; __i >= 0; __i--) {\n"
        f"  if ({HOST_OBJECT}.isComponentShaped(__candidates[__i][0], __candidates[__i][1])) "
        "{ return __candidates[__i][0]; }\n"
        "}\n"
        "return null;\n"
        f"}}).apply(undefined, [{args}]));\n"
    )


# ---------------------------------------------------------------------------
# Executor
# ---------------------------------------------------------------------------


class ComponentExecutor:
    """Compiles and runs component source; see the module docstring for the steps."""

    def __init__(
        self,
        transpiler: Transpiler | None = None,
        runtime: ScriptRuntime | None = None,
        registry: CapabilityRegistry | None = None,
    ) -> None:
        self.registry = registry or default_registry()
        self.transpiler = transpiler or JsxTranspiler()
        self.runtime = runtime or V8Runtime(self.registry)

    def execute(
        self,
        rewritten_source: str,
        namespace: CapabilityNamespace,
        *,
        original_source: str | None = None,
    ) -> RenderableHandle:
        """
        Run rewritten component source and mount what it produces.

        Raises:
            TransformSyntaxError: the transpiler rejected the source
            MissingCapabilityError: an icon the code uses is not in the namespace
            RuntimeExecutionError: the code threw while running or rendering
            NoComponentFoundError: nothing component-shaped was bound
        """
        try:
            compiled = self.transpiler.transpile(rewritten_source)
        except TransformSyntaxError:
            raise
        except Exception as e:
            raise TransformSyntaxError(first_line(str(e))) from e

        program = build_program(compiled, namespace)
        try:
            result = self.runtime.evaluate(program)
        except RuntimeExecutionError as e:
            enriched = self._enrich(e, namespace, original_source or rewritten_source)
            if enriched is e:
                raise
            raise enriched from e

        if not isinstance(result, dict) or not result.get("ok"):
            raise NoComponentFoundError("No component found in the artifact code")

        return RenderableHandle(
            component_name=str(result.get("component") or "Component"),
            markup=str(result.get("markup") or ""),
            program=program,
        )

    def _enrich(
        self,
        error: RuntimeExecutionError,
        namespace: CapabilityNamespace,
        source: str,
    ) -> RuntimeExecutionError:
        """Turn an undefined icon into a MissingCapabilityError listing the icon set."""
        symbol = error.symbol
        if not symbol:
            return error
        if symbol in namespace.unresolved:
            imported = namespace.unresolved[symbol]
            return MissingCapabilityError(imported, self.registry.icon_names, source=ICON_SOURCE)
        if symbol not in namespace and ICON_SOURCE in source:
            return MissingCapabilityError(symbol, self.registry.icon_names, source=ICON_SOURCE)
        return error
