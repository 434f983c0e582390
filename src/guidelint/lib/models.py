"""Data models for guidelint guidelines, scope, and project configuration.

Typed dataclasses that replace raw dict access at the edges of the
codebase (document rendering, CLI status, config validation).  The engine
itself passes resolved rule dicts around; ``Guideline.from_rule_obj``
converts one of those into the immutable record used for documents.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from guidelint.lib import config


# ---------------------------------------------------------------------------
# Guideline model
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Guideline:
    """A single named coding convention, resolved against a profile.

    Attributes:
        rule_id: Unique identifier for the rule (filename stem).
        name: Human-readable name.
        category: Grouping used by the style guide and checklist.
        description: One-sentence statement of the convention.
        rationale: Why the convention exists.
        bad_example: Snippet that violates the convention.
        good_example: Snippet that follows the convention.
        check_type: Check type identifier (e.g. 'ast_check').
        check_params: Check-type-specific options merged with params.
        severity: 'block', 'warn' or 'off'.
        enabled: Whether the rule is active.
        error_message: Message template shown on violation.
        fix_instruction: Suggested fix template.
        version: Rule definition version string.
    """

    rule_id: str
    name: str
    category: str
    description: str
    rationale: str
    bad_example: str
    good_example: str
    check_type: str
    check_params: dict[str, Any]
    severity: str
    enabled: bool
    error_message: str
    fix_instruction: str
    version: str = ""

    @classmethod
    def from_rule_obj(cls, rule_obj: dict[str, Any]) -> Guideline:
        """Build from a resolved rule object (see ``rules.resolve_rules``).

        Args:
            rule_obj: Dict with 'id', 'rule_data', 'severity', 'enabled', 'params'.

        Returns:
            Immutable Guideline instance.
        """
        data: dict[str, Any] = rule_obj["rule_data"]
        check: dict[str, Any] = dict(data.get("check", {}))
        check_type = check.pop("type", "")
        check.update(rule_obj.get("params", {}))
        examples: dict[str, Any] = data.get("examples", {}) or {}
        error: dict[str, Any] = data.get("error", {}) or {}
        return cls(
            rule_id=rule_obj["id"],
            name=data.get("name", rule_obj["id"]),
            category=data.get("category", ""),
            description=str(data.get("description", "")).strip(),
            rationale=str(data.get("rationale", "")).strip(),
            bad_example=str(examples.get("bad", "")),
            good_example=str(examples.get("good", "")),
            check_type=check_type,
            check_params=check,
            severity=rule_obj["severity"],
            enabled=bool(rule_obj["enabled"]),
            error_message=str(error.get("message", "")),
            fix_instruction=str(error.get("fix", "")),
            version=str(data.get("version", "")),
        )


# ---------------------------------------------------------------------------
# Scan results
# ---------------------------------------------------------------------------


@dataclass
class Violation:
    """A single rule violation found during scanning."""

    rule_id: str
    severity: str
    line: int
    source: str
    message: str
    fix: str
    value: str = ""


@dataclass
class ScanResult:
    """Result of scanning one file against a profile."""

    status: str
    filepath: str = ""
    violations: list[Violation] = field(default_factory=list)
    blocking_count: int = 0
    warning_count: int = 0
    suppressed_count: int = 0
    scan_ms: int = 0
    profile_name: str = ""
    profile_version: str = ""
    error: str = ""


# ---------------------------------------------------------------------------
# Scope model
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ScopeConfig:
    """Scope definition from a profile or project config.

    Attributes:
        gated_paths: Paths that are actively checked (empty = all).
        exempt_paths: Paths excluded from checking.
        exempt_files: Individual filenames excluded from checking.
    """

    gated_paths: list[str] = field(default_factory=list)
    exempt_paths: list[str] = field(default_factory=list)
    exempt_files: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScopeConfig:
        """Build from a raw dict (e.g. profile_data['scope'])."""
        return cls(
            gated_paths=list(data.get("gated_paths", []) or []),
            exempt_paths=list(data.get("exempt_paths", []) or []),
            exempt_files=list(data.get("exempt_files", []) or []),
        )

    def merged(self, other: Optional[ScopeConfig]) -> ScopeConfig:
        """Combine two scopes; exemptions and gated paths are unioned."""
        if other is None:
            return self
        return ScopeConfig(
            gated_paths=self.gated_paths + other.gated_paths,
            exempt_paths=self.exempt_paths + other.exempt_paths,
            exempt_files=self.exempt_files + other.exempt_files,
        )


# ---------------------------------------------------------------------------
# Project configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProjectConfig:
    """Top-level project configuration from .guidelint.yaml.

    Attributes:
        profile: Base profile name (e.g. 'write').
        overrides: Per-path profile overrides mapping.
        rule_overrides: Per-rule severity/enabled/params overrides.
        scope: File-level scope configuration.
        logging_enabled: Whether JSONL scan logging is on.
        logging_directory: Directory for the scan log.
    """

    profile: str
    overrides: dict[str, Any] = field(default_factory=dict)
    rule_overrides: dict[str, Any] = field(default_factory=dict)
    scope: Optional[ScopeConfig] = None
    logging_enabled: bool = False
    logging_directory: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any], default_profile: str) -> ProjectConfig:
        """Build from a raw .guidelint.yaml dict.

        Args:
            data: Parsed YAML mapping.
            default_profile: Fallback profile name from defaults.yaml.

        Returns:
            ProjectConfig instance.
        """
        scope_raw = data.get("scope")
        scope = ScopeConfig.from_dict(scope_raw) if scope_raw else None
        log_cfg = data.get("logging", {}) or {}
        return cls(
            profile=data.get("profile") or default_profile,
            overrides=data.get("overrides", {}) or {},
            rule_overrides=data.get("rule_overrides", {}) or {},
            scope=scope,
            logging_enabled=bool(log_cfg.get("enabled", False)),
            logging_directory=str(log_cfg.get("directory", "") or ""),
        )


def validate_project_config(data: Any) -> list[str]:
    """Validate the structure of a .guidelint.yaml dict.

    Returns a list of human-readable error strings (empty = valid).

    Args:
        data: The parsed YAML content.

    Returns:
        List of validation error messages. Empty if valid.
    """
    errors: list[str] = []

    if not isinstance(data, dict):
        errors.append(f"Project config must be a mapping, got {type(data).__name__}")
        return errors

    profile_val = data.get("profile")
    if profile_val is not None and not isinstance(profile_val, str):
        errors.append(
            f"'profile' must be a string, got {type(profile_val).__name__}"
        )

    for map_key in ("overrides", "rule_overrides", "logging"):
        val = data.get(map_key)
        if val is not None and not isinstance(val, dict):
            errors.append(
                f"'{map_key}' must be a mapping, got {type(val).__name__}"
            )

    valid_severities = config.get_list("severities.valid_choices")
    rule_overrides = data.get("rule_overrides")
    if isinstance(rule_overrides, dict):
        for rule_id, ovr in rule_overrides.items():
            if not isinstance(ovr, dict):
                errors.append(f"rule_overrides.{rule_id} must be a mapping")
                continue
            severity = ovr.get("severity")
            if severity is not None and severity not in valid_severities:
                errors.append(
                    f"rule_overrides.{rule_id}.severity must be one of "
                    f"{', '.join(valid_severities)}, got {severity!r}"
                )
            enabled = ovr.get("enabled")
            if enabled is not None and not isinstance(enabled, bool):
                errors.append(
                    f"rule_overrides.{rule_id}.enabled must be true or false, "
                    f"got {enabled!r}"
                )
            params = ovr.get("params")
            if params is not None and not isinstance(params, dict):
                errors.append(
                    f"rule_overrides.{rule_id}.params must be a mapping, "
                    f"got {type(params).__name__}"
                )

    scope = data.get("scope")
    if scope is not None:
        if not isinstance(scope, dict):
            errors.append(
                f"'scope' must be a mapping, got {type(scope).__name__}"
            )
        else:
            for list_key in ("gated_paths", "exempt_paths", "exempt_files"):
                val = scope.get(list_key)
                if val is not None and not isinstance(val, list):
                    errors.append(
                        f"scope.{list_key} must be a list, "
                        f"got {type(val).__name__}"
                    )

    return errors
