"""Script hosts that execute user transforms with a narrow capability set."""

from __future__ import annotations

import ast
import builtins
import re
import sys
import time
from types import CodeType, FrameType
from typing import Any, Callable, Dict, Mapping, Optional, Protocol

from rewrite_engine.errors import ScriptFailure
from rewrite_engine.runtime import telemetry

SCRIPT_FILENAME = "<rewrite-script>"

SAFE_BUILTIN_NAMES = (
    "abs",
    "all",
    "any",
    "bool",
    "chr",
    "dict",
    "enumerate",
    "filter",
    "float",
    "int",
    "isinstance",
    "len",
    "list",
    "map",
    "max",
    "min",
    "ord",
    "range",
    "repr",
    "reversed",
    "round",
    "set",
    "sorted",
    "str",
    "sum",
    "tuple",
    "zip",
    "Exception",
    "IndexError",
    "KeyError",
    "RuntimeError",
    "StopIteration",
    "TypeError",
    "ValueError",
    "ZeroDivisionError",
)

# Largest range, repeated sequence or formatted width a single operation may build.
MAX_ITEMS = 1_000_000
MAX_INT_BITS = 100_000

# format strings reach dunders; padding methods allocate whatever width they are given
_BLOCKED_ATTRIBUTES = frozenset(
    {"format", "format_map", "ljust", "rjust", "center", "zfill", "expandtabs"}
)
# generator, coroutine, frame, code and traceback internals lead back to host globals
_INTROSPECTION_PREFIXES = ("gi_", "cr_", "ag_", "f_", "co_", "tb_")

_WIDE_SPEC = re.compile(r"\d{7,}")
_WIDE_PERCENT = re.compile(r"%(?:\([^)]*\))?[^%a-zA-Z]*(?:\*|\d{7,})")

_GUARDED_OPERATORS = {
    ast.Mult: "__rewrite_mul__",
    ast.Pow: "__rewrite_pow__",
    ast.LShift: "__rewrite_lshift__",
    ast.Mod: "__rewrite_mod__",
}


class ScriptHost(Protocol):
    """Runs a script with ``capabilities`` as its only reachable globals."""

    def run(
        self,
        source: str,
        capabilities: Mapping[str, Callable[..., Any]],
        time_limit: float,
    ) -> None:
        ...


class _DeadlineExceeded(BaseException):
    """Raised inside script frames once the wall-clock budget is spent."""


class _LimitExceeded(BaseException):
    """Raised before a single builtin operation would outgrow the budget."""


def _bounded_range(*args: int) -> range:
    items = range(*args)
    try:
        size = len(items)
    except OverflowError:
        size = MAX_ITEMS + 1
    if size > MAX_ITEMS:
        raise _LimitExceeded(f"range of {size} items")
    return items


def _sequence_length(value: Any) -> Optional[int]:
    if isinstance(value, (str, bytes, list, tuple)):
        return len(value)
    return None


def _guarded_mul(left: Any, right: Any) -> Any:
    for sequence, count in ((left, right), (right, left)):
        size = _sequence_length(sequence)
        if size is not None and isinstance(count, int) and size * count > MAX_ITEMS:
            raise _LimitExceeded(f"repeating {size} items {count} times")
    if isinstance(left, int) and isinstance(right, int):
        if left.bit_length() + right.bit_length() > MAX_INT_BITS:
            raise _LimitExceeded("integer product too large")
    return left * right


def _guarded_pow(base: Any, exponent: Any) -> Any:
    if (
        isinstance(base, int)
        and isinstance(exponent, int)
        and abs(base) > 1
        and base.bit_length() * exponent > MAX_INT_BITS
    ):
        raise _LimitExceeded(f"{base} ** {exponent} too large")
    return base**exponent


def _guarded_lshift(value: Any, shift: Any) -> Any:
    if isinstance(value, int) and isinstance(shift, int):
        if value.bit_length() + shift > MAX_INT_BITS:
            raise _LimitExceeded(f"shift by {shift} too large")
    return value << shift


def _guarded_mod(left: Any, right: Any) -> Any:
    if isinstance(left, str) and _WIDE_PERCENT.search(left):
        raise _LimitExceeded("percent format with unbounded width")
    return left % right


_GUARDS: Dict[str, Callable[..., Any]] = {
    "__rewrite_mul__": _guarded_mul,
    "__rewrite_pow__": _guarded_pow,
    "__rewrite_lshift__": _guarded_lshift,
    "__rewrite_mod__": _guarded_mod,
}


class _ScriptValidator(ast.NodeVisitor):
    def _reject(self, node: ast.AST, what: str) -> None:
        line = getattr(node, "lineno", "?")
        raise ScriptFailure(f"{what} is not allowed (line {line})", reason="rejected")

    def visit_Import(self, node: ast.Import) -> None:
        self._reject(node, "import")

    def visit_ImportFrom(self, node: ast.ImportFrom) -> None:
        self._reject(node, "import")

    def visit_Global(self, node: ast.Global) -> None:
        self._reject(node, "global")

    def visit_Nonlocal(self, node: ast.Nonlocal) -> None:
        self._reject(node, "nonlocal")

    def visit_ExceptHandler(self, node: ast.ExceptHandler) -> None:
        if node.type is None:
            self._reject(node, "bare except")
        self.generic_visit(node)

    def visit_Attribute(self, node: ast.Attribute) -> None:
        attr = node.attr
        if (
            attr.startswith("_")
            or attr.startswith(_INTROSPECTION_PREFIXES)
            or attr in _BLOCKED_ATTRIBUTES
        ):
            self._reject(node, f"attribute '{attr}'")
        self.generic_visit(node)

    def visit_Name(self, node: ast.Name) -> None:
        if node.id.startswith("__"):
            self._reject(node, f"name '{node.id}'")
        self.generic_visit(node)

    def visit_AugAssign(self, node: ast.AugAssign) -> None:
        guarded = type(node.op) in _GUARDED_OPERATORS
        if guarded and not isinstance(node.target, ast.Name):
            self._reject(node, "augmented assignment to an attribute or item")
        self.generic_visit(node)

    def visit_FormattedValue(self, node: ast.FormattedValue) -> None:
        spec = node.format_spec
        if spec is not None:
            for part in getattr(spec, "values", [spec]):
                if not isinstance(part, ast.Constant):
                    self._reject(node, "computed format spec")
                if _WIDE_SPEC.search(str(part.value)):
                    self._reject(node, "format width")
        self.generic_visit(node)


class _OperatorGuards(ast.NodeTransformer):
    """Routes size-sensitive operators through the ``_guarded_*`` helpers."""

    def _guard_call(
        self, op: ast.operator, left: ast.expr, right: ast.expr
    ) -> ast.Call:
        return ast.Call(
            func=ast.Name(id=_GUARDED_OPERATORS[type(op)], ctx=ast.Load()),
            args=[left, right],
            keywords=[],
        )

    def visit_BinOp(self, node: ast.BinOp) -> ast.AST:
        self.generic_visit(node)
        if type(node.op) not in _GUARDED_OPERATORS:
            return node
        return ast.copy_location(self._guard_call(node.op, node.left, node.right), node)

    def visit_AugAssign(self, node: ast.AugAssign) -> ast.AST:
        self.generic_visit(node)
        if type(node.op) not in _GUARDED_OPERATORS:
            return node
        name = node.target.id  # type: ignore[attr-defined]
        current = ast.Name(id=name, ctx=ast.Load())
        assign = ast.Assign(
            targets=[ast.Name(id=name, ctx=ast.Store())],
            value=self._guard_call(node.op, current, node.value),
        )
        return ast.copy_location(assign, node)


class PythonScriptHost:
    """Executes Python transform scripts under a restricted namespace.

    Sources are parsed and screened before execution: imports, scope escapes,
    bare ``except`` clauses, underscore and introspection attributes are
    refused. Operators and builtins that can build arbitrarily large values in
    one step are bounded up front, since no trace event fires inside them.
    The time limit is enforced by a trace hook installed only on script
    frames, so engine code called from a script is never interrupted
    mid-edit.
    """

    def __init__(self, *, builtin_names: tuple[str, ...] = SAFE_BUILTIN_NAMES) -> None:
        self._builtins: Dict[str, Any] = {
            name: getattr(builtins, name) for name in builtin_names
        }
        if "range" in self._builtins:
            self._builtins["range"] = _bounded_range

    def compile(self, source: str) -> CodeType:
        try:
            tree = ast.parse(source, filename=SCRIPT_FILENAME, mode="exec")
        except SyntaxError as exc:
            raise ScriptFailure(
                f"Syntax error on line {exc.lineno}: {exc.msg}", reason="syntax"
            ) from exc
        _ScriptValidator().visit(tree)
        tree = ast.fix_missing_locations(_OperatorGuards().visit(tree))
        return compile(tree, SCRIPT_FILENAME, "exec")

    def run(
        self,
        source: str,
        capabilities: Mapping[str, Callable[..., Any]],
        time_limit: float,
    ) -> None:
        code = self.compile(source)
        namespace: Dict[str, Any] = {"__builtins__": dict(self._builtins)}
        namespace.update(_GUARDS)
        namespace.update(capabilities)
        deadline = time.monotonic() + time_limit

        def local_trace(frame: FrameType, event: str, arg: Any) -> Any:
            if time.monotonic() > deadline:
                raise _DeadlineExceeded()
            return local_trace

        def global_trace(frame: FrameType, event: str, arg: Any) -> Optional[Any]:
            if frame.f_code.co_filename != SCRIPT_FILENAME:
                return None
            return local_trace(frame, event, arg)

        previous = sys.gettrace()
        sys.settrace(global_trace)
        try:
            with telemetry.span(
                "sandbox::run",
                component="sandbox",
                metadata={"time_limit": time_limit},
            ):
                exec(code, namespace)
        except _DeadlineExceeded:
            raise ScriptFailure(
                f"Script exceeded its {time_limit:g}s time limit", reason="timeout"
            ) from None
        except _LimitExceeded as exc:
            raise ScriptFailure(
                f"Script exceeded its resource limits: {exc}", reason="limit"
            ) from None
        except Exception as exc:
            raise ScriptFailure(
                f"Script raised {type(exc).__name__}: {exc}", reason="error"
            ) from exc
        finally:
            sys.settrace(previous)


__all__ = [
    "ScriptHost",
    "PythonScriptHost",
    "SAFE_BUILTIN_NAMES",
    "SCRIPT_FILENAME",
    "MAX_ITEMS",
    "MAX_INT_BITS",
]
