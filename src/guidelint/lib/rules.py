"""rules: rule loading, profile resolution, and project-level overrides.

Handles YAML rule files, profile manifests with inheritance via the
``extends`` key, and project-level configuration from ``.guidelint.yaml``.
Profile inheritance lets a child profile include all rules from a parent
and selectively override severity, enabled status, or parameters.  Project
config layering then applies repository-specific ``rule_overrides`` on top
of the fully resolved rule set.

Design notes:
    Inheritance resolution is recursive: the parent chain is resolved first,
    then child rules are merged on top.  Later rules override earlier ones
    when rule IDs collide, giving the most-specific profile the final say.
    A profile that (directly or indirectly) extends itself stops at the
    first repeated name.
"""

from __future__ import annotations

import copy
import sys
from pathlib import Path
from typing import Any, Optional, Union

from guidelint._paths import get_home, profiles_dir, rules_dir
from guidelint.exceptions import UnknownRuleError
from guidelint.lib import config
from guidelint.lib.models import Guideline
from guidelint.lib.yaml_loader import load_yaml


def find_home() -> Optional[Path]:
    """Resolve the home directory (package dir or $GUIDELINT_HOME override).

    Returns:
        The home Path if the directory exists, else None.
    """
    home = get_home()
    if home.is_dir():
        return home
    return None


def load_rule(rule_id: str, home: Path) -> Optional[dict[str, Any]]:
    """Load a single rule YAML file by ID.

    Args:
        rule_id: The rule identifier (matches filename without extension).
        home: The home directory for rule discovery.

    Returns:
        Parsed rule dict, or None if the rule file does not exist.
    """
    ext = config.get_str("filenames.rule_extension")
    rule_path = rules_dir(home) / f"{rule_id}{ext}"
    if not rule_path.is_file():
        return None
    return load_yaml(str(rule_path))


def list_rule_ids(home: Path) -> list[str]:
    """Return the ids of every rule file in the rule table, sorted."""
    ext = config.get_str("filenames.rule_extension")
    directory = rules_dir(home)
    if not directory.is_dir():
        return []
    return sorted(p.name.removesuffix(ext) for p in directory.glob(f"*{ext}"))


def list_profile_names(home: Path) -> list[str]:
    """Return the names of every profile manifest, sorted."""
    ext = config.get_str("filenames.profile_extension")
    directory = profiles_dir(home)
    if not directory.is_dir():
        return []
    return sorted(p.name.removesuffix(ext) for p in directory.glob(f"*{ext}"))


def load_profile(profile_name: str, home: Path) -> Optional[dict[str, Any]]:
    """Load a profile manifest by name.

    Args:
        profile_name: The profile identifier (filename without extension).
        home: The home directory for profile discovery.

    Returns:
        Parsed profile dict, or None if the profile file does not exist.
    """
    ext = config.get_str("filenames.profile_extension")
    profile_path = profiles_dir(home) / f"{profile_name}{ext}"
    if not profile_path.is_file():
        return None
    return load_yaml(str(profile_path))


def _build_rule_obj(
    entry: dict[str, Any],
    rule_data: dict[str, Any],
    default_severity: str,
    default_enabled: bool,
) -> dict[str, Any]:
    defaults = rule_data.get("defaults", {}) or {}
    return {
        "id": entry["id"],
        "rule_data": rule_data,
        "severity": entry.get(
            "severity", defaults.get("severity", default_severity)
        ),
        "enabled": entry.get(
            "enabled", defaults.get("enabled", default_enabled)
        ),
        "params": dict(entry.get("params", {}) or {}),
    }


def resolve_rules(
    profile_data: dict[str, Any],
    home: Path,
    _seen: Optional[set[str]] = None,
) -> list[dict[str, Any]]:
    """Resolve all rule references from a profile into full rule objects.

    Handles profile inheritance via 'extends' and applies severity/enabled/params
    overrides from the profile definition.

    Args:
        profile_data: Parsed profile YAML dict.
        home: The home directory for rule discovery.

    Returns:
        List of resolved rule objects with full rule data and overrides applied.
    """
    default_severity = config.get_str("defaults.severity")
    default_enabled = config.get("defaults.enabled")
    msg_tpl = config.get_str("messages.rule_not_found")

    seen = set(_seen or ())
    own_name = (profile_data.get("profile", {}) or {}).get("name")
    if own_name:
        seen.add(own_name)

    rules: list[dict[str, Any]] = []

    parent_name = profile_data.get("extends")
    if parent_name and parent_name not in seen:
        parent = load_profile(parent_name, home)
        if parent:
            rules = resolve_rules(parent, home, seen | {parent_name})

    def _entries(key: str) -> list[dict[str, Any]]:
        raw = profile_data.get(key, []) or []
        if not isinstance(raw, list):
            return []
        out = []
        for entry in raw:
            if isinstance(entry, str):
                entry = {"id": entry}
            if isinstance(entry, dict) and entry.get("id"):
                out.append(entry)
        return out

    for key in ("rules", "additional_rules"):
        for entry in _entries(key):
            rule_id = entry["id"]
            existing_ids = [r["id"] for r in rules]
            if rule_id in existing_ids and set(entry) - {"id"}:
                # Partial override of an inherited rule keeps its data.
                idx = existing_ids.index(rule_id)
                base = rules[idx]
                rules[idx] = {
                    **base,
                    "severity": entry.get("severity", base["severity"]),
                    "enabled": entry.get("enabled", base["enabled"]),
                    "params": {**base["params"], **(entry.get("params", {}) or {})},
                }
                continue

            rule_data = load_rule(rule_id, home)
            if not rule_data:
                sys.stderr.write(
                    msg_tpl.format(rule_id=rule_id, path=rules_dir(home)) + "\n"
                )
                continue

            rule_obj = _build_rule_obj(entry, rule_data, default_severity, default_enabled)
            if rule_id in existing_ids:
                rules[existing_ids.index(rule_id)] = rule_obj
            else:
                rules.append(rule_obj)

    return rules


def load_project_config(
    config_path: Union[str, Path],
) -> Optional[dict[str, Any]]:
    """Load the project's .guidelint.yaml configuration.

    Args:
        config_path: Path to the .guidelint.yaml file.

    Returns:
        Parsed config dict ({} for an empty file), or None if it is missing.
    """
    try:
        data = load_yaml(str(config_path))
    except FileNotFoundError:
        return None
    return data if data is not None else {}


def apply_project_overrides(
    rules: list[dict[str, Any]],
    project_config: dict[str, Any],
) -> list[dict[str, Any]]:
    """Apply rule_overrides from the project config to resolved rules.

    Modifies rules in-place for severity, enabled, and params overrides.

    Args:
        rules: List of resolved rule objects.
        project_config: Parsed .guidelint.yaml config.

    Returns:
        The same rules list with overrides applied in-place.
    """
    overrides = project_config.get("rule_overrides", {}) or {}
    if not overrides:
        return rules

    for rule in rules:
        rule_id = rule["id"]
        if rule_id in overrides:
            ovr = overrides[rule_id] or {}
            if "severity" in ovr:
                rule["severity"] = ovr["severity"]
            if "enabled" in ovr:
                rule["enabled"] = ovr["enabled"]
            if "params" in ovr:
                rule["params"].update(ovr["params"])

    return rules


def load_guidelines(
    profile_name: str,
    home: Path,
    project_config: Optional[dict[str, Any]] = None,
) -> list[Guideline]:
    """Resolve a profile (plus project overrides) into Guideline records.

    Args:
        profile_name: Profile to resolve.
        home: The home directory.
        project_config: Optional parsed project config for overrides.

    Returns:
        Guidelines in profile order.  Empty if the profile does not exist.
    """
    profile_data = load_profile(profile_name, home)
    if not profile_data:
        return []
    rules = resolve_rules(profile_data, home)
    if project_config:
        rules = apply_project_overrides(copy.deepcopy(rules), project_config)
    return [Guideline.from_rule_obj(r) for r in rules]


def rule_obj_for(rule_id: str, home: Path) -> dict[str, Any]:
    """Build a stand-alone rule object using the rule's own defaults.

    Raises:
        UnknownRuleError: If the rule file does not exist.
    """
    rule_data = load_rule(rule_id, home)
    if not rule_data:
        raise UnknownRuleError(rule_id)
    return _build_rule_obj(
        {"id": rule_id},
        rule_data,
        config.get_str("defaults.severity"),
        bool(config.get("defaults.enabled")),
    )
