"""guidelint engine: thin orchestrator for guideline enforcement.

Composes the library modules to scan Python source against a profile and
return structured results.  This is the main entry point for programmatic
usage; the CLI ``check`` command is a wrapper around ``scan_paths``.

Design notes:
    The engine never parses source directly; it delegates to
    SourceAnalyzer (lib/analyzer) for CST construction and to
    lib/checks for rule evaluation.  It owns only orchestration:
    config and profile resolution, scope, suppression filtering,
    message interpolation, telemetry and output.
"""

from __future__ import annotations

import json
import os
import sys
import time
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional, Union

import yaml

from guidelint.exceptions import GuidelintConfigError, GuidelintParseError
from guidelint.lib import config
from guidelint.lib.analyzer import SourceAnalyzer
from guidelint.lib.checks import run_check
from guidelint.lib.formatter import (
    format_result_stderr,
    format_results_json,
    format_summary_stderr,
    inject_variables,
)
from guidelint.lib.logger import log_scan
from guidelint.lib.models import ScanResult, Violation, validate_project_config
from guidelint.lib.rules import (
    apply_project_overrides,
    find_home,
    load_profile,
    load_project_config,
    resolve_rules,
)
from guidelint.lib.scope import is_file_in_scope, resolve_effective_profile

__all__ = ["ScanResult", "Violation", "iter_python_files", "load_config", "scan_file", "scan_paths"]

PathLike = Union[str, Path]


def load_config(config_path: Optional[PathLike] = None) -> tuple[str, dict[str, Any]]:
    """Locate, load and validate the project configuration.

    Without an explicit path, ``.guidelint.yaml`` in the current directory
    is used when present, otherwise an empty configuration (default
    profile, no overrides).

    Args:
        config_path: Explicit path to a project config file.

    Returns:
        Tuple of (path used or '', parsed config dict).

    Raises:
        GuidelintConfigError: If an explicit path is missing or the
            config is structurally invalid.
    """
    if config_path is None:
        candidate = Path(config.get_str("filenames.project_config"))
        if not candidate.is_file():
            return "", {}
        config_path = candidate

    path = str(config_path)
    try:
        data = load_project_config(path)
    except yaml.YAMLError as exc:
        raise GuidelintConfigError(path, [str(exc).replace("\n", " ")]) from exc
    if data is None:
        raise GuidelintConfigError(path, [config.get_str("messages.config_missing")])
    problems = validate_project_config(data)
    if problems:
        raise GuidelintConfigError(path, problems)
    return path, data


def _load_profile_or_fail(profile_name: str, home: Path, config_path: str) -> dict[str, Any]:
    profile_data = load_profile(profile_name, home)
    if not profile_data:
        msg = config.get_str("messages.profile_not_found")
        raise GuidelintConfigError(
            config_path or profile_name, [msg.format(name=profile_name)]
        )
    return profile_data


def _is_suppressed(line: int, rule_id: str, suppressions: dict[int, set[str]]) -> bool:
    ids = suppressions.get(line)
    if not ids:
        return False
    return rule_id in ids or config.get_str("suppression.wildcard") in ids


def scan_file(
    source: str,
    filepath: str,
    config_path: Optional[PathLike] = None,
    *,
    profile: str = "",
    output_format: str = "",
    skip_scope: bool = False,
    quiet: bool = False,
) -> ScanResult:
    """Scan a Python source string against the effective profile.

    Args:
        source: Python source code as a string.
        filepath: Path to the file (used for scope, overrides and templates).
        config_path: Path to a project config; see ``load_config``.
        profile: Profile name that overrides the project config.
        output_format: 'stderr' for human output, 'json' for structured.
            Defaults to the value from config.
        skip_scope: If True, skip gated/exempt path checking.
        quiet: If True, produce no output (used by ``scan_paths``).

    Returns:
        ScanResult with status, violations, and timing.

    Raises:
        GuidelintParseError: If the source cannot be parsed.
        GuidelintConfigError: If the config or profile cannot be used.
    """
    if not output_format:
        output_format = config.get_str("formats.default")

    status_passed = config.get_str("statuses.passed")
    status_rejected = config.get_str("statuses.rejected")
    sev_off = config.get_str("severities.off")
    sev_block = config.get_str("severities.block")
    sev_warn = config.get_str("severities.warn")
    fallback_line = config.get_int("defaults.fallback_line")
    error_line = config.get_int("defaults.error_line")
    default_version = config.get_str("defaults.profile_version")

    start = time.time()

    # 1. Resolve home and project config
    home = find_home()
    if not home:
        return ScanResult(status=status_passed, filepath=filepath)
    used_path, project_config = load_config(config_path)

    # 2. Determine effective profile for this file path
    profile_name = profile or resolve_effective_profile(filepath, project_config)
    if profile_name is None:
        return ScanResult(status=status_passed, filepath=filepath)
    profile_data = _load_profile_or_fail(profile_name, home, used_path)
    profile_version = str(
        (profile_data.get("profile", {}) or {}).get("version", default_version)
    )

    # 3. Check file scope (early exit if out of scope)
    if not skip_scope and not is_file_in_scope(filepath, profile_data, project_config):
        return ScanResult(
            status=status_passed,
            filepath=filepath,
            profile_name=profile_name,
            profile_version=profile_version,
        )

    # 4. Load and filter active rules
    rules = resolve_rules(profile_data, home)
    rules = apply_project_overrides(rules, project_config)
    active_rules = [r for r in rules if r["enabled"] and r["severity"] != sev_off]

    # 5. Parse source once
    try:
        analyzer = SourceAnalyzer(source, filepath)
    except Exception as exc:
        raise GuidelintParseError(filepath, exc) from exc

    variables = analyzer.build_variables()
    suppressions = analyzer.suppressions()

    # 6. Run checks against each rule
    violations: list[Violation] = []
    violations_log: list[dict[str, Any]] = []
    passed_rules: list[str] = []
    suppressed_count = 0

    for rule_obj in active_rules:
        rule_id = rule_obj["id"]
        try:
            found = run_check(rule_obj, analyzer, home)
        except Exception as exc:
            msg = config.get_str("messages.rule_exception")
            sys.stderr.write(
                "  " + msg.format(
                    rule_id=rule_id,
                    error=type(exc).__name__,
                    detail=str(exc),
                ) + "\n"
            )
            err_msg = config.get_str("messages.internal_rule_error")
            found = [{"line": error_line, "source": err_msg.format(rule_id=rule_id)}]

        error_config: dict[str, Any] = rule_obj["rule_data"].get("error", {}) or {}
        default_msg = config.get_str("messages.default_violation").format(rule_id=rule_id)
        kept = 0
        for v in found:
            line = v.get("line", fallback_line)
            if _is_suppressed(line, rule_id, suppressions):
                suppressed_count += 1
                continue
            kept += 1
            # Analyzer variables first so per-violation fields win.
            merged = dict(variables)
            merged.update(v)
            violations.append(Violation(
                rule_id=rule_id,
                severity=rule_obj["severity"],
                line=line,
                source=v.get("source", ""),
                message=inject_variables(error_config.get("message", default_msg), merged),
                fix=inject_variables(error_config.get("fix", ""), merged),
                value=str(v.get("value", "")),
            ))
            violations_log.append({
                "rule": rule_id,
                "severity": rule_obj["severity"],
                "line": line,
            })
        if not kept:
            passed_rules.append(rule_id)

    violations.sort(key=lambda item: (item.line, item.rule_id))

    # 7. Compute timing and violation counts
    scan_ms = int((time.time() - start) * 1000)
    blocking_count = sum(1 for v in violations if v.severity == sev_block)
    warning_count = sum(1 for v in violations if v.severity == sev_warn)
    status = status_rejected if blocking_count > 0 else status_passed

    # 8. Log scan results (if enabled)
    log_cfg = project_config.get("logging", {}) or {}
    log_dir = log_cfg.get("directory", "")
    if log_cfg.get("enabled", False) and log_dir:
        log_scan(
            log_dir,
            filepath,
            profile_name,
            profile_version,
            status,
            violations_log,
            passed_rules,
            len(active_rules),
            source,
            scan_ms,
        )

    result = ScanResult(
        status=status,
        filepath=filepath,
        violations=violations,
        blocking_count=blocking_count,
        warning_count=warning_count,
        suppressed_count=suppressed_count,
        scan_ms=scan_ms,
        profile_name=profile_name,
        profile_version=profile_version,
    )

    # 9. Format output
    if not quiet:
        emit_report([result], output_format)

    return result


def iter_python_files(paths: Iterable[PathLike]) -> Iterator[str]:
    """Expand files and directories into Python file paths.

    Explicit files are yielded as given.  Directories are walked in sorted
    order, skipping the directory names listed in ``defaults.skip_dirs``.
    """
    skip_dirs = set(config.get_list("defaults.skip_dirs"))
    suffix = config.get_str("filenames.python_suffix")
    for raw in paths:
        path = str(raw)
        if not os.path.isdir(path):
            yield path
            continue
        for root, dirs, files in os.walk(path):
            dirs[:] = sorted(d for d in dirs if d not in skip_dirs)
            for name in sorted(files):
                if name.endswith(suffix):
                    yield os.path.join(root, name)


def scan_paths(
    paths: Iterable[PathLike],
    config_path: Optional[PathLike] = None,
    *,
    profile: str = "",
    output_format: str = "",
    skip_scope: bool = False,
    quiet: bool = False,
) -> list[ScanResult]:
    """Scan every Python file under *paths* and emit one combined report.

    Files that cannot be read or parsed yield a ScanResult with status
    'error' instead of aborting the run.

    Raises:
        GuidelintConfigError: If the config or profile cannot be used.
    """
    if not output_format:
        output_format = config.get_str("formats.default")
    status_error = config.get_str("statuses.error")

    results: list[ScanResult] = []
    for filepath in iter_python_files(paths):
        try:
            with open(filepath, "r", encoding="utf-8") as fh:
                source = fh.read()
            result = scan_file(
                source,
                filepath,
                config_path,
                profile=profile,
                skip_scope=skip_scope,
                quiet=True,
            )
        except (OSError, UnicodeDecodeError, GuidelintParseError) as exc:
            result = ScanResult(status=status_error, filepath=filepath, error=str(exc))
        results.append(result)

    if not quiet:
        emit_report(results, output_format)
    return results


def emit_report(results: list[ScanResult], output_format: str) -> None:
    """Write results as JSON to stdout or as human text to stderr."""
    if output_format == config.get_str("formats.json"):
        payload = format_results_json(results)
        sys.stdout.write(json.dumps(payload, indent=config.get_int("defaults.json_indent")) + "\n")
        return

    separator = config.get_str("formatting.violation_separator")
    parts: list[str] = []
    for result in results:
        if result.error:
            parts.append(f"  {result.error}")
        elif result.violations:
            parts.append(format_result_stderr(result))

    blocking = sum(r.blocking_count for r in results)
    warnings = sum(r.warning_count for r in results)
    if not parts and not warnings and not blocking:
        return

    named = next((r for r in results if r.profile_name), None)
    parts.append(
        format_summary_stderr(
            named.profile_name if named else "",
            named.profile_version if named else "",
            len(results),
            blocking,
            warnings,
            sum(r.suppressed_count for r in results),
        )
    )
    sys.stderr.write(separator.join(parts) + "\n")
