"""SourceAnalyzer: single-parse, single-metadata-resolve analysis of Python source.

Every guideline check queries this object.  No check touches raw source
text except for attaching the offending line to a violation.  Each file is
parsed exactly once into a LibCST concrete syntax tree, and a shared
MetadataWrapper resolves position, scope and qualified-name metadata that
all collectors (see ``lib/visitors``) reuse.
"""

from __future__ import annotations

import io
import os
import re
import tokenize
from typing import Any, Iterator, Mapping, Optional

import libcst as cst
from libcst.metadata import CodeRange, MetadataWrapper, PositionProvider

from guidelint.lib import config
from guidelint.lib import visitors


class SourceAnalyzer:
    """Single parse and metadata resolution for a Python source file.

    Created once per file in ``scan_file()``.  Plugins receive the same
    object and may walk ``module`` directly, using ``line_of`` for
    positions.

    Attributes:
        source: Raw source text of the file.
        filepath: Absolute or relative path to the source file.
        source_lines: Source text split into individual lines.
        wrapper: MetadataWrapper providing resolved metadata for all visitors.
        module: The parsed Module owned by ``wrapper``.
    """

    def __init__(self, source: str, filepath: str) -> None:
        """Parse source and prepare the metadata wrapper."""
        self.source = source
        self.filepath = filepath
        self.source_lines = source.splitlines()
        self.wrapper = MetadataWrapper(cst.parse_module(source))
        # The wrapper deep-copies the tree; metadata is keyed on its copy.
        self.module = self.wrapper.module
        self._positions: Optional[Mapping[cst.CSTNode, CodeRange]] = None

    # ------------------------------------------------------------------
    # File-level queries
    # ------------------------------------------------------------------

    def line_count(self) -> int:
        """Return the number of lines in the source."""
        return len(self.source_lines)

    def source_line(self, line: int) -> str:
        """Return the stripped-right text of a 1-based line, or ''."""
        if 1 <= line <= len(self.source_lines):
            return self.source_lines[line - 1].rstrip()
        return ""

    def line_of(self, node: cst.CSTNode) -> int:
        """Return the 1-based start line of a node from ``module``."""
        if self._positions is None:
            self._positions = self.wrapper.resolve(PositionProvider)
        pos = self._positions.get(node)
        return pos.start.line if pos else 0

    def module_name(self) -> str:
        """Return the module name derived from the file name."""
        return os.path.splitext(os.path.basename(self.filepath))[0]

    def suppressions(self) -> dict[int, set[str]]:
        """Map line numbers to suppressed rule ids from inline comments.

        ``# guidelint: ignore`` suppresses every rule on the line (the set
        contains the wildcard); ``# guidelint: ignore[a, b]`` suppresses the
        named rules only.
        """
        return parse_suppressions(self.source_lines)

    # ------------------------------------------------------------------
    # Guideline queries
    # ------------------------------------------------------------------

    def _collect(self, collector: visitors._Collector) -> list[dict[str, Any]]:
        """Run a collector over the tree and attach source lines."""
        self.wrapper.visit(collector)
        for v in collector.violations:
            v.setdefault("source", self.source_line(v.get("line", 0)))
        return collector.violations

    def qualified_name_uses(self, names: dict[str, str]) -> list[dict[str, Any]]:
        """Return uses of any fully qualified name in *names*."""
        return self._collect(visitors.QualifiedNameCollector(names))

    def strip_affix_calls(
        self, min_length: int, allowed_values: list[str]
    ) -> list[dict[str, Any]]:
        """Return ``.strip``-family calls given a multi-character literal."""
        return self._collect(visitors.StripAffixCollector(min_length, allowed_values))

    def unannotated_functions(
        self, require_return: bool, implicit_first: list[str]
    ) -> list[dict[str, Any]]:
        """Return public functions missing parameter or return annotations."""
        return self._collect(
            visitors.AnnotationCollector(require_return, implicit_first)
        )

    def eager_log_formatting(
        self, methods: list[str], logger_names: list[str]
    ) -> list[dict[str, Any]]:
        """Return logging calls whose message is formatted eagerly."""
        return self._collect(visitors.EagerLogFormatCollector(methods, logger_names))

    def print_calls(
        self, allow_in_main_guard: bool, exempt_files: list[str]
    ) -> list[dict[str, Any]]:
        """Return ``print()`` calls, honouring the main-guard and file exemptions."""
        if os.path.basename(self.filepath) in exempt_files:
            return []
        return self._collect(visitors.PrintCallCollector(allow_in_main_guard))

    def bare_excepts(self) -> list[dict[str, Any]]:
        """Return ``except:`` clauses with no exception type."""
        return self._collect(visitors.BareExceptCollector())

    def swallowed_exceptions(self) -> list[dict[str, Any]]:
        """Return handlers whose body does nothing."""
        return self._collect(visitors.SwallowedExceptionCollector())

    def raises_without_from(self) -> list[dict[str, Any]]:
        """Return new exceptions raised in handlers without ``from``."""
        return self._collect(visitors.RaiseWithoutFromCollector())

    def error_logs_in_handlers(self, logger_names: list[str]) -> list[dict[str, Any]]:
        """Return ``logger.error`` calls in handlers that drop the traceback."""
        return self._collect(visitors.ErrorLogInHandlerCollector(logger_names))

    def open_without_encoding(self, path_methods: list[str]) -> list[dict[str, Any]]:
        """Return text-mode file access without an explicit encoding."""
        return self._collect(visitors.OpenEncodingCollector(path_methods))

    def json_string_round_trips(self) -> list[dict[str, Any]]:
        """Return JSON serialization through intermediate strings."""
        return self._collect(visitors.JsonStringRoundTripCollector())

    def mutable_defaults(self, mutable_calls: list[str]) -> list[dict[str, Any]]:
        """Return parameters with mutable default values."""
        return self._collect(visitors.MutableDefaultCollector(mutable_calls))

    def naming_violations(
        self,
        function_pattern: str,
        class_pattern: str,
        ignore_names: list[str],
        ignore_prefixes: list[str],
    ) -> list[dict[str, Any]]:
        """Return functions and classes whose names break the convention."""
        return self._collect(
            visitors.NamingCollector(
                function_pattern, class_pattern, ignore_names, ignore_prefixes
            )
        )

    def wildcard_imports(self) -> list[dict[str, Any]]:
        """Return ``from x import *`` statements."""
        return self._collect(visitors.WildcardImportCollector())

    def relative_imports(self) -> list[dict[str, Any]]:
        """Return relative ``from . import`` statements."""
        return self._collect(visitors.RelativeImportCollector())

    # ------------------------------------------------------------------
    # Variable injection helpers
    # ------------------------------------------------------------------

    def build_variables(self, extra: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """Build the variable dict for message template injection."""
        filename = os.path.basename(self.filepath)
        variables: dict[str, Any] = {
            "filename": filename,
            "filepath": self.filepath,
            "directory": os.path.dirname(self.filepath),
            "module_name": self.module_name(),
            "line_count": self.line_count(),
        }
        if extra:
            variables.update(extra)
        return variables


def _comments(source: str) -> Iterator[tuple[int, str]]:
    """Yield (line, text) for each comment token in *source*.

    Tokenizing stops quietly at the first error, keeping the comments
    already seen; the scan reports unparseable source separately.
    """
    tokens = tokenize.generate_tokens(io.StringIO(source).readline)
    try:
        for tok in tokens:
            if tok.type == tokenize.COMMENT:
                yield tok.start[0], tok.string
    except (tokenize.TokenError, SyntaxError, ValueError):
        return


def parse_suppressions(lines: list[str]) -> dict[int, set[str]]:
    """Parse inline suppression comments from source lines.

    Only real comments count: a marker inside a string literal does not
    suppress anything.

    Args:
        lines: Source lines (no trailing newlines required).

    Returns:
        Mapping of 1-based line number to suppressed rule ids.  A set
        containing the configured wildcard means every rule.
    """
    marker = config.get_str("suppression.marker")
    wildcard = config.get_str("suppression.wildcard")
    words = r"\s*".join(re.escape(word) for word in marker.split())
    pattern = re.compile(r"#\s*" + words + r"(?:\[([^\]]*)\])?")
    found: dict[int, set[str]] = {}
    for number, comment in _comments("\n".join(lines) + "\n"):
        if number > len(lines):
            continue
        match = pattern.search(comment)
        if match is None:
            continue
        listed = match.group(1)
        if listed is None:
            found[number] = {wildcard}
            continue
        ids = {part.strip() for part in listed.split(",") if part.strip()}
        found[number] = ids or {wildcard}
    return found
