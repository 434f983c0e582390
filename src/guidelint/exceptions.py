"""Custom exceptions for guidelint.

Defines the exception hierarchy used across the engine, rule loader,
plugin system and CLI. All exceptions are importable from the top-level
``guidelint`` package.

Exceptions:
    GuidelintError: Common base class.
    GuidelintParseError: Raised when LibCST cannot parse a source
        file. Wraps the original parse exception.
    GuidelintConfigError: Raised when a project config file is missing
        (explicit path) or structurally invalid.
    PluginError: Raised when a custom check plugin fails during
        execution. Captures plugin path and underlying error.
    UnknownRuleError: Raised when a rule id cannot be found in the
        rule table.
"""

from __future__ import annotations

from guidelint.lib import config


class GuidelintError(Exception):
    """Base class for all guidelint errors."""


class GuidelintParseError(GuidelintError):
    """Raised when LibCST cannot parse a source file.

    A file that cannot be parsed is reported as an error so that
    non-parseable code never silently passes.
    """

    def __init__(self, filepath: str, original_error: Exception) -> None:
        """Initialize with parse error details.

        Args:
            filepath: Path to the file that failed parsing.
            original_error: The underlying parse exception.
        """
        self.filepath = filepath
        self.original_error = original_error
        msg = config.get_str("messages.parse_error")
        super().__init__(msg.format(filepath=filepath, error=original_error))


class GuidelintConfigError(GuidelintError):
    """Raised when the project configuration cannot be used."""

    def __init__(self, path: str, problems: list[str]) -> None:
        """Initialize with the offending path and a list of problems.

        Args:
            path: Path to the project config file.
            problems: Human-readable validation messages.
        """
        self.path = path
        self.problems = problems
        msg = config.get_str("messages.config_error")
        super().__init__(msg.format(path=path, problems="; ".join(problems)))


class PluginError(GuidelintError):
    """Raised when a custom check plugin fails during execution."""

    def __init__(
        self, plugin_path: str, rule_id: str, original_error: Exception
    ) -> None:
        """Initialize with plugin error details.

        Args:
            plugin_path: Path to the plugin file that failed.
            rule_id: The rule ID that triggered the plugin.
            original_error: The underlying exception from the plugin.
        """
        self.plugin_path = plugin_path
        self.rule_id = rule_id
        self.original_error = original_error
        msg = config.get_str("messages.plugin_error")
        super().__init__(msg.format(rule_id=rule_id, error=original_error))


class UnknownRuleError(GuidelintError):
    """Raised when a rule id is not present in the rule table."""

    def __init__(self, rule_id: str) -> None:
        self.rule_id = rule_id
        msg = config.get_str("messages.unknown_rule")
        super().__init__(msg.format(rule_id=rule_id))
