"""Custom check plugin: module-level import grouping.

Referenced by ``rules/import-order.yaml``:

  check:
    type: custom
    plugin: import_order.py
    function: check

Plugin contract:
    def check(analyzer: SourceAnalyzer) -> list[dict]
    Each dict should contain at minimum a 'line' key.
"""

from __future__ import annotations

import os
import sys
from typing import Any

import libcst as cst
from libcst.helpers import get_full_name_for_node

STDLIB_MODULES: frozenset[str] = frozenset(sys.stdlib_module_names)

# Expected group order; the index is the sort rank.
GROUPS = ("__future__", "standard library", "third-party", "local")

# Layout directories that hold packages rather than being one.
_SOURCE_ROOTS = frozenset({"src", "lib"})


def first_party_package(filepath: str) -> str:
    """Return the top-level package the file belongs to, or ''.

    On disk, the package is the outermost directory above the file that
    still holds an ``__init__.py``.  Otherwise the first directory of a
    relative path is used (``mypkg/mod.py`` -> ``mypkg``), skipping a
    leading ``src/`` or ``lib/``.
    """
    directory = os.path.dirname(os.path.abspath(filepath))
    top = ""
    while os.path.isfile(os.path.join(directory, "__init__.py")):
        top = os.path.basename(directory)
        parent = os.path.dirname(directory)
        if parent == directory:
            break
        directory = parent
    if top:
        return top

    if os.path.isabs(filepath):
        return ""
    parts = os.path.normpath(filepath).replace(os.sep, "/").split("/")[:-1]
    parts = [part for part in parts if part not in (".", "..")]
    if parts and parts[0] in _SOURCE_ROOTS:
        parts = parts[1:]
    return parts[0] if parts else ""


def _classify(node: cst.Import | cst.ImportFrom, local: str) -> tuple[str, int]:
    """Return (module name, group rank) for an import statement."""
    if isinstance(node, cst.ImportFrom):
        module = get_full_name_for_node(node.module) if node.module else ""
        if node.relative:
            return "." * len(node.relative) + (module or ""), 3
        name = module or ""
    else:
        name = get_full_name_for_node(node.names[0].name) or ""

    top = name.split(".")[0]
    if top == "__future__":
        return name, 0
    if local and top == local:
        return name, 3
    if top in STDLIB_MODULES:
        return name, 1
    return name, 2


def check(analyzer: Any) -> list[dict[str, Any]]:
    """Flag module-level imports that appear after a later import group.

    Args:
        analyzer: A SourceAnalyzer; ``analyzer.module`` is walked directly
            and ``analyzer.line_of`` supplies positions.  Imports of the
            package ``analyzer.filepath`` belongs to count as local.

    Returns:
        One violation dict per out-of-order import, with ``module``,
        ``category`` and ``previous`` template variables.
    """
    violations: list[dict[str, Any]] = []
    highest = -1
    local = first_party_package(analyzer.filepath)

    for statement in analyzer.module.body:
        if not isinstance(statement, cst.SimpleStatementLine):
            continue
        for small in statement.body:
            if not isinstance(small, (cst.Import, cst.ImportFrom)):
                continue
            name, rank = _classify(small, local)
            if rank < highest:
                violations.append({
                    "line": analyzer.line_of(statement),
                    "module": name,
                    "category": GROUPS[rank],
                    "previous": GROUPS[highest],
                })
            highest = max(highest, rank)

    return violations
