"""visitors: LibCST collectors, one per structural guideline.

Each collector walks the tree held by ``SourceAnalyzer.wrapper`` and
accumulates violation dicts (``line`` plus template variables such as
``name`` or ``replacement``).  Collectors never read raw source text;
``SourceAnalyzer`` attaches the offending source line afterwards.

Design notes:
    Collectors that need "am I inside an except block" or "am I inside a
    main guard" keep an explicit stack and reset it on entering a nested
    function, so a handler in an outer function never leaks into the
    body of a closure defined inside it.
"""

from __future__ import annotations

import re
from typing import Any, Optional, Union

import libcst as cst
from libcst.helpers import get_full_name_for_node
from libcst.metadata import PositionProvider, QualifiedNameProvider


_STRING_NODES = (cst.SimpleString, cst.FormattedString, cst.ConcatenatedString)

_Handler = Union[cst.ExceptHandler, cst.ExceptStarHandler]

# Used only for code generation of detached expression nodes.
_EMPTY_MODULE = cst.Module(body=[])


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def is_main_guard(test: cst.BaseExpression) -> bool:
    """Return True for ``__name__ == "__main__"`` in either operand order."""
    if not isinstance(test, cst.Comparison) or len(test.comparisons) != 1:
        return False
    target = test.comparisons[0]
    if not isinstance(target.operator, cst.Equal):
        return False
    pair = (test.left, target.comparator)
    for left, right in (pair, pair[::-1]):
        if (
            isinstance(left, cst.Name)
            and left.value == "__name__"
            and isinstance(right, cst.SimpleString)
            and right.evaluated_value == "__main__"
        ):
            return True
    return False


def _split_args(
    call: cst.Call,
) -> Optional[tuple[list[cst.BaseExpression], dict[str, cst.BaseExpression]]]:
    """Split call arguments into positional values and keyword values.

    Returns None when the call uses ``*args`` or ``**kwargs`` unpacking,
    since the actual arguments cannot be known statically.
    """
    positional: list[cst.BaseExpression] = []
    keywords: dict[str, cst.BaseExpression] = {}
    for arg in call.args:
        if arg.star:
            return None
        if arg.keyword is not None:
            keywords[arg.keyword.value] = arg.value
        else:
            positional.append(arg.value)
    return positional, keywords


def _has_formatted_part(node: cst.BaseExpression) -> bool:
    if isinstance(node, cst.FormattedString):
        return True
    if isinstance(node, cst.ConcatenatedString):
        return _has_formatted_part(node.left) or _has_formatted_part(node.right)
    return False


def eager_format_kind(expr: cst.BaseExpression) -> str:
    """Classify a log message expression that is formatted before the call.

    Returns:
        'f-string', '%-formatting', 'str.format', 'concatenation', or ''
        when the message is a plain literal or an opaque expression.
    """
    if _has_formatted_part(expr):
        return "f-string"
    if isinstance(expr, cst.BinaryOperation):
        if isinstance(expr.operator, cst.Modulo) and isinstance(expr.left, _STRING_NODES):
            return "%-formatting"
        if isinstance(expr.operator, cst.Add) and (
            isinstance(expr.left, _STRING_NODES) or isinstance(expr.right, _STRING_NODES)
        ):
            return "concatenation"
    if (
        isinstance(expr, cst.Call)
        and isinstance(expr.func, cst.Attribute)
        and expr.func.attr.value == "format"
        and isinstance(expr.func.value, _STRING_NODES)
    ):
        return "str.format"
    return ""


def looks_like_logger(receiver: cst.BaseExpression, logger_names: list[str]) -> bool:
    """Return True if the receiver's last name segment is a logger name.

    Matching is case-insensitive and ignores leading underscores, and a
    ``_<name>`` suffix also counts: ``self._logger``, ``LOGGER`` and
    ``audit_log`` match, ``catalog`` and ``dialog`` do not.
    """
    full = get_full_name_for_node(receiver)
    if not full:
        return False
    last = full.rsplit(".", 1)[-1].lower().lstrip("_")
    names = {name.lower() for name in logger_names}
    return last in names or any(last.endswith(f"_{name}") for name in names)


def _suite_statements(body: cst.BaseSuite) -> list[Any]:
    """Flatten a suite into its small statements and compound statements."""
    items: list[Any] = []
    if isinstance(body, cst.SimpleStatementSuite):
        return list(body.body)
    for stmt in body.body:
        if isinstance(stmt, cst.SimpleStatementLine):
            items.extend(stmt.body)
        else:
            items.append(stmt)
    return items


# ---------------------------------------------------------------------------
# Base collector
# ---------------------------------------------------------------------------


class _Collector(cst.CSTVisitor):
    """Base class that records a violation at the start line of a node.

    Attributes:
        violations: Accumulated violation dicts found during traversal.
    """

    METADATA_DEPENDENCIES = (PositionProvider,)

    def __init__(self) -> None:
        self.violations: list[dict[str, Any]] = []

    def record(self, node: cst.CSTNode, **extra: Any) -> None:
        """Append a violation for *node* with extra template variables."""
        pos = self.get_metadata(PositionProvider, node, None)
        entry: dict[str, Any] = {"line": pos.start.line if pos else 0}
        entry.update(extra)
        self.violations.append(entry)


class _HandlerTrackingCollector(_Collector):
    """Collector that knows whether traversal is inside an except block.

    ``_handlers`` holds the bound exception name ('' when unbound) of every
    enclosing handler in the current function.
    """

    def __init__(self) -> None:
        super().__init__()
        self._handlers: list[str] = []
        self._saved: list[list[str]] = []

    def _enter_handler(self, node: _Handler) -> None:
        bound = ""
        if node.name is not None and isinstance(node.name.name, cst.Name):
            bound = node.name.name.value
        self._handlers.append(bound)

    def visit_ExceptHandler(self, node: cst.ExceptHandler) -> None:
        self._enter_handler(node)

    def leave_ExceptHandler(self, original_node: cst.ExceptHandler) -> None:
        self._handlers.pop()

    def visit_ExceptStarHandler(self, node: cst.ExceptStarHandler) -> None:
        self._enter_handler(node)

    def leave_ExceptStarHandler(self, original_node: cst.ExceptStarHandler) -> None:
        self._handlers.pop()

    def visit_FunctionDef(self, node: cst.FunctionDef) -> None:
        self._saved.append(self._handlers)
        self._handlers = []

    def leave_FunctionDef(self, original_node: cst.FunctionDef) -> None:
        self._handlers = self._saved.pop()


# ---------------------------------------------------------------------------
# Strings
# ---------------------------------------------------------------------------


_STRIP_REPLACEMENTS = {
    "lstrip": "removeprefix",
    "rstrip": "removesuffix",
    "strip": "removeprefix/removesuffix",
}


class StripAffixCollector(_Collector):
    """Find ``.lstrip/.rstrip/.strip`` called with a multi-character literal."""

    def __init__(self, min_length: int, allowed_values: list[str]) -> None:
        super().__init__()
        self.min_length = min_length
        self.allowed_values = set(allowed_values)

    def visit_Call(self, node: cst.Call) -> None:
        if not isinstance(node.func, cst.Attribute):
            return
        method = node.func.attr.value
        if method not in _STRIP_REPLACEMENTS or len(node.args) != 1:
            return
        arg = node.args[0]
        if arg.keyword is not None or arg.star or not isinstance(arg.value, cst.SimpleString):
            return
        value = arg.value.evaluated_value
        if not isinstance(value, str) or len(value) < self.min_length:
            return
        if value.isspace() or value in self.allowed_values:
            return
        self.record(
            node,
            method=method,
            value=value,
            replacement=_STRIP_REPLACEMENTS[method],
        )


# ---------------------------------------------------------------------------
# Typing
# ---------------------------------------------------------------------------


class QualifiedNameCollector(_Collector):
    """Flag references whose fully qualified name is in *names*.

    Import statements themselves are skipped; only uses are reported.
    """

    METADATA_DEPENDENCIES = (PositionProvider, QualifiedNameProvider)

    def __init__(self, names: dict[str, str]) -> None:
        super().__init__()
        self.names = names

    def _match(self, node: cst.CSTNode) -> Optional[str]:
        for qname in self.get_metadata(QualifiedNameProvider, node, set()):
            if qname.name in self.names:
                return qname.name
        return None

    def visit_Import(self, node: cst.Import) -> bool:
        return False

    def visit_ImportFrom(self, node: cst.ImportFrom) -> bool:
        return False

    def visit_Attribute(self, node: cst.Attribute) -> bool:
        found = self._match(node)
        if found is None:
            return True
        self.record(node, name=found, replacement=self.names[found])
        return False

    def visit_Name(self, node: cst.Name) -> None:
        found = self._match(node)
        if found is not None:
            self.record(node, name=found, replacement=self.names[found])


class AnnotationCollector(_Collector):
    """Find public functions with unannotated parameters or return type."""

    def __init__(self, require_return: bool, implicit_first: list[str]) -> None:
        super().__init__()
        self.require_return = require_return
        self.implicit_first = set(implicit_first)
        self._scopes: list[str] = []

    def visit_ClassDef(self, node: cst.ClassDef) -> None:
        self._scopes.append("class")

    def leave_ClassDef(self, original_node: cst.ClassDef) -> None:
        self._scopes.pop()

    def visit_FunctionDef(self, node: cst.FunctionDef) -> None:
        in_class = bool(self._scopes) and self._scopes[-1] == "class"
        self._scopes.append("function")
        name = node.name.value
        if name.startswith("_") and not (name.startswith("__") and name.endswith("__")):
            return

        params = node.params
        ordered = list(params.posonly_params) + list(params.params)
        missing: list[str] = []
        for index, param in enumerate(ordered):
            if index == 0 and in_class and param.name.value in self.implicit_first:
                continue
            if param.annotation is None:
                missing.append(param.name.value)
        if isinstance(params.star_arg, cst.Param) and params.star_arg.annotation is None:
            missing.append("*" + params.star_arg.name.value)
        for param in params.kwonly_params:
            if param.annotation is None:
                missing.append(param.name.value)
        if params.star_kwarg is not None and params.star_kwarg.annotation is None:
            missing.append("**" + params.star_kwarg.name.value)
        if self.require_return and node.returns is None:
            missing.append("return")

        if missing:
            self.record(node, function_name=name, missing=", ".join(missing))

    def leave_FunctionDef(self, original_node: cst.FunctionDef) -> None:
        self._scopes.pop()


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


class EagerLogFormatCollector(_Collector):
    """Find logging calls whose message is formatted before the call."""

    def __init__(self, methods: list[str], logger_names: list[str]) -> None:
        super().__init__()
        self.methods = set(methods)
        self.logger_names = logger_names

    def visit_Call(self, node: cst.Call) -> None:
        func = node.func
        if not isinstance(func, cst.Attribute) or func.attr.value not in self.methods:
            return
        if not looks_like_logger(func.value, self.logger_names):
            return
        split = _split_args(node)
        if split is None:
            return
        positional, keywords = split
        index = 1 if func.attr.value == "log" else 0
        if len(positional) > index:
            message = positional[index]
        elif "msg" in keywords:
            message = keywords["msg"]
        else:
            return
        kind = eager_format_kind(message)
        if kind:
            self.record(node, method=func.attr.value, kind=kind)


class PrintCallCollector(_Collector):
    """Find ``print()`` calls outside an ``if __name__ == "__main__"`` block.

    Only the guarded body is exempt; ``elif`` and ``else`` branches of the
    guard are checked like any other code.
    """

    def __init__(self, allow_in_main_guard: bool) -> None:
        super().__init__()
        self.allow_in_main_guard = allow_in_main_guard
        self._guard_bodies: set[int] = set()
        self._depth = 0

    def visit_If(self, node: cst.If) -> None:
        if is_main_guard(node.test):
            self._guard_bodies.add(id(node.body))

    def on_visit(self, node: cst.CSTNode) -> bool:
        if id(node) in self._guard_bodies:
            self._depth += 1
        return super().on_visit(node)

    def on_leave(self, original_node: cst.CSTNode) -> None:
        super().on_leave(original_node)
        if id(original_node) in self._guard_bodies:
            self._depth -= 1

    def visit_Call(self, node: cst.Call) -> None:
        if not isinstance(node.func, cst.Name) or node.func.value != "print":
            return
        if self.allow_in_main_guard and self._depth:
            return
        self.record(node)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class BareExceptCollector(_Collector):
    """Find ``except:`` clauses without an exception type."""

    def visit_ExceptHandler(self, node: cst.ExceptHandler) -> None:
        if node.type is None:
            self.record(node)


class SwallowedExceptionCollector(_Collector):
    """Find handlers whose body only passes, continues, or is ``...``."""

    def _check(self, node: _Handler) -> None:
        statements = _suite_statements(node.body)
        if not statements:
            return
        for stmt in statements:
            if isinstance(stmt, (cst.Pass, cst.Continue)):
                continue
            if isinstance(stmt, cst.Expr) and isinstance(stmt.value, cst.Ellipsis):
                continue
            return
        caught = _EMPTY_MODULE.code_for_node(node.type) if node.type is not None else ""
        self.record(node, exception=caught or "BaseException")

    def visit_ExceptHandler(self, node: cst.ExceptHandler) -> None:
        self._check(node)

    def visit_ExceptStarHandler(self, node: cst.ExceptStarHandler) -> None:
        self._check(node)


class RaiseWithoutFromCollector(_HandlerTrackingCollector):
    """Find ``raise NewError(...)`` inside an except block without ``from``."""

    def visit_Raise(self, node: cst.Raise) -> None:
        if not self._handlers or node.exc is None or node.cause is not None:
            return
        exc = node.exc
        if isinstance(exc, cst.Name) and exc.value in self._handlers:
            return
        raised = get_full_name_for_node(exc) or ""
        self.record(node, exception=raised)


class ErrorLogInHandlerCollector(_HandlerTrackingCollector):
    """Find ``logger.error(...)`` inside an except block without ``exc_info``."""

    def __init__(self, logger_names: list[str]) -> None:
        super().__init__()
        self.logger_names = logger_names

    def visit_Call(self, node: cst.Call) -> None:
        if not self._handlers:
            return
        func = node.func
        if not isinstance(func, cst.Attribute) or func.attr.value != "error":
            return
        if not looks_like_logger(func.value, self.logger_names):
            return
        for arg in node.args:
            if arg.star == "**":
                return
            if arg.keyword is not None and arg.keyword.value == "exc_info":
                return
        receiver = get_full_name_for_node(func.value) or "logger"
        self.record(node, receiver=receiver)


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


# Positional index of the ``encoding`` parameter for each checked call.
_ENCODING_POSITIONS = {"open": 3, "read_text": 0, "write_text": 1}


class OpenEncodingCollector(_Collector):
    """Find text-mode file access that relies on the locale encoding."""

    def __init__(self, path_methods: list[str]) -> None:
        super().__init__()
        self.path_methods = set(path_methods)

    def visit_Call(self, node: cst.Call) -> None:
        func = node.func
        if isinstance(func, cst.Name) and func.value == "open":
            call_name = "open"
        elif isinstance(func, cst.Attribute) and func.attr.value in self.path_methods:
            call_name = func.attr.value
        else:
            return
        split = _split_args(node)
        if split is None:
            return
        positional, keywords = split
        if "encoding" in keywords:
            return
        if len(positional) > _ENCODING_POSITIONS.get(call_name, 0):
            return
        if call_name == "open":
            mode = keywords.get("mode", positional[1] if len(positional) > 1 else None)
            if mode is not None:
                if not isinstance(mode, cst.SimpleString):
                    return
                mode_value = mode.evaluated_value
                if not isinstance(mode_value, str) or "b" in mode_value:
                    return
        self.record(node, call=call_name)


class JsonStringRoundTripCollector(_Collector):
    """Find ``fh.write(json.dumps(x))`` and ``json.loads(fh.read())``."""

    METADATA_DEPENDENCIES = (PositionProvider, QualifiedNameProvider)

    def _qualified(self, node: cst.CSTNode) -> set[str]:
        return {q.name for q in self.get_metadata(QualifiedNameProvider, node, set())}

    def visit_Call(self, node: cst.Call) -> None:
        func = node.func
        if (
            isinstance(func, cst.Attribute)
            and func.attr.value == "write"
            and len(node.args) == 1
            and isinstance(node.args[0].value, cst.Call)
            and "json.dumps" in self._qualified(node.args[0].value.func)
        ):
            self.record(node, found="write(json.dumps(...))", replacement="json.dump(obj, fh)")
            return
        if "json.loads" not in self._qualified(func) or not node.args:
            return
        inner = node.args[0].value
        if (
            isinstance(inner, cst.Call)
            and isinstance(inner.func, cst.Attribute)
            and inner.func.attr.value == "read"
            and not inner.args
        ):
            self.record(node, found="json.loads(fh.read())", replacement="json.load(fh)")


# ---------------------------------------------------------------------------
# Defaults and naming
# ---------------------------------------------------------------------------


_MUTABLE_LITERALS = (
    cst.List,
    cst.Dict,
    cst.Set,
    cst.ListComp,
    cst.DictComp,
    cst.SetComp,
)


class MutableDefaultCollector(_Collector):
    """Find parameters whose default value is a mutable container."""

    def __init__(self, mutable_calls: list[str]) -> None:
        super().__init__()
        self.mutable_calls = set(mutable_calls)

    def _is_mutable(self, default: cst.BaseExpression) -> bool:
        if isinstance(default, _MUTABLE_LITERALS):
            return True
        if isinstance(default, cst.Call):
            name = get_full_name_for_node(default.func)
            return name in self.mutable_calls
        return False

    def visit_FunctionDef(self, node: cst.FunctionDef) -> None:
        params = node.params
        every = list(params.posonly_params) + list(params.params) + list(params.kwonly_params)
        for param in every:
            if param.default is not None and self._is_mutable(param.default):
                self.record(
                    param,
                    function_name=node.name.value,
                    param_name=param.name.value,
                )


class NamingCollector(_Collector):
    """Check function and class names against configurable patterns."""

    def __init__(
        self,
        function_pattern: str,
        class_pattern: str,
        ignore_names: list[str],
        ignore_prefixes: list[str],
    ) -> None:
        super().__init__()
        self.function_re = re.compile(function_pattern)
        self.class_re = re.compile(class_pattern)
        self.ignore_names = set(ignore_names)
        self.ignore_prefixes = tuple(ignore_prefixes)

    def _ignored(self, name: str) -> bool:
        return name in self.ignore_names or name.startswith(self.ignore_prefixes)

    def visit_FunctionDef(self, node: cst.FunctionDef) -> None:
        name = node.name.value
        if not self._ignored(name) and not self.function_re.match(name):
            self.record(node, kind="function", name=name, convention="snake_case")

    def visit_ClassDef(self, node: cst.ClassDef) -> None:
        name = node.name.value
        if not self._ignored(name) and not self.class_re.match(name):
            self.record(node, kind="class", name=name, convention="CapWords")


# ---------------------------------------------------------------------------
# Imports
# ---------------------------------------------------------------------------


class WildcardImportCollector(_Collector):
    """Find ``from module import *``."""

    def visit_ImportFrom(self, node: cst.ImportFrom) -> None:
        if isinstance(node.names, cst.ImportStar):
            module = get_full_name_for_node(node.module) if node.module else ""
            self.record(node, module="." * len(node.relative) + (module or ""))


class RelativeImportCollector(_Collector):
    """Find ``from .module import name``."""

    def visit_ImportFrom(self, node: cst.ImportFrom) -> None:
        if node.relative:
            module = get_full_name_for_node(node.module) if node.module else ""
            self.record(node, module="." * len(node.relative) + (module or ""))
