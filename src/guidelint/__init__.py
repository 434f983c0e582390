"""guidelint: enforce Python coding guidelines from a YAML rule table.

Stable public API:
    scan_file: Scan a Python source string against a profile.
    scan_paths: Scan files and directories and emit one combined report.
    ScanResult: Dataclass returned by scan_file.
    Violation: Dataclass for individual violations.
    Guideline: Immutable record of one convention.
    GuidelintError: Base class of every guidelint exception.
"""

__version__ = "0.1.0"

from guidelint.engine import ScanResult, Violation, scan_file, scan_paths
from guidelint.exceptions import (
    GuidelintConfigError,
    GuidelintError,
    GuidelintParseError,
    PluginError,
    UnknownRuleError,
)
from guidelint.lib.models import Guideline

__all__ = [
    "__version__",
    "scan_file",
    "scan_paths",
    "ScanResult",
    "Violation",
    "Guideline",
    "GuidelintError",
    "GuidelintConfigError",
    "GuidelintParseError",
    "PluginError",
    "UnknownRuleError",
]
