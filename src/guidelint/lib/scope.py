"""scope: file-level scope checking and per-path profile resolution.

Evaluates whether a given file falls within a profile's checking perimeter.
Profiles and project configs declare ``gated_paths`` (directories to check)
and ``exempt_paths`` / ``exempt_files`` (exclusions).  When a project config
contains per-path overrides, ``resolve_effective_profile`` maps a filepath
to the correct profile name, or to ``None`` if the path is exempted.
"""

from __future__ import annotations

import fnmatch
import os
from typing import Any, Optional

from guidelint.lib import config
from guidelint.lib.models import ScopeConfig


def _normalize(filepath: str) -> str:
    """Collapse '.' segments ('./pkg/a.py' -> 'pkg/a.py') and use forward slashes."""
    return os.path.normpath(filepath).replace(os.sep, "/")


def _under(filepath: str, prefix: str) -> bool:
    """True if *filepath* starts with *prefix* or contains it as a segment."""
    return filepath.startswith(prefix) or f"/{prefix}" in filepath


def is_file_in_scope(
    filepath: str,
    profile_data: dict[str, Any],
    project_config: dict[str, Any],
) -> bool:
    """Check if a file is within the combined profile and project scope.

    Args:
        filepath: Path to the file being checked.
        profile_data: Parsed profile YAML dict with scope settings.
        project_config: Parsed .guidelint.yaml config.

    Returns:
        True if the file should be checked, False if exempt.
    """
    scope = ScopeConfig.from_dict(profile_data.get("scope", {}) or {})
    project_scope = project_config.get("scope")
    if project_scope:
        scope = scope.merged(ScopeConfig.from_dict(project_scope))

    path = _normalize(filepath)
    filename = os.path.basename(path)

    for pattern in scope.exempt_files:
        if filename == pattern or fnmatch.fnmatch(filename, pattern):
            return False

    for ep in scope.exempt_paths:
        if _under(path, ep):
            return False

    if not scope.gated_paths:
        return True

    return any(_under(path, gp) for gp in scope.gated_paths)


def resolve_effective_profile(
    filepath: str,
    project_config: dict[str, Any],
) -> Optional[str]:
    """Resolve the effective profile name for a file after applying overrides.

    Checks per-path overrides in the project config in declaration order.
    Returns None if the file is exempt (profile override set to null).

    Args:
        filepath: Path to the file being checked.
        project_config: Parsed .guidelint.yaml config.

    Returns:
        Profile name string, or None if the file is exempt.
    """
    base_profile: str = project_config.get("profile") or config.get_str(
        "defaults.profile_name"
    )
    overrides: dict[str, Any] = project_config.get("overrides", {}) or {}
    path = _normalize(filepath)

    for pattern, ovr in overrides.items():
        if not isinstance(ovr, dict) or "profile" not in ovr:
            continue
        matched = (
            fnmatch.fnmatch(path, pattern)
            or fnmatch.fnmatch(os.path.basename(path), pattern)
            or _under(path, pattern.rstrip("*"))
        )
        if matched:
            return ovr["profile"]

    return base_profile
