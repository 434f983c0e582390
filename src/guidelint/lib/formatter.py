"""formatter: violation output formatting for stderr and JSON.

Provides stderr (human-readable) and JSON (structured) renderings of
``ScanResult`` objects, plus the ``{placeholder}`` template injection used
to build violation messages.  Template variables come from
``SourceAnalyzer.build_variables()`` merged with each violation's own
fields.
"""

from __future__ import annotations

from typing import Any

from guidelint.lib import config
from guidelint.lib.models import ScanResult, Violation
from guidelint.lib.theme import code as _c


# ---------------------------------------------------------------------------
# Variable injection
# ---------------------------------------------------------------------------


def inject_variables(template: str, variables: dict[str, Any]) -> str:
    """Replace {variable} placeholders in a template string.

    Unknown placeholders are left untouched.

    Args:
        template: String containing {key} placeholders.
        variables: Mapping of key names to replacement values.

    Returns:
        Template with all recognized placeholders replaced.
    """
    result = template
    for key, val in variables.items():
        result = result.replace(f"{{{key}}}", str(val))
    return result


# ---------------------------------------------------------------------------
# Stderr formatting
# ---------------------------------------------------------------------------


def format_violation_stderr(violation: Violation, filepath: str) -> str:
    """Format a single violation for stderr output.

    Args:
        violation: The violation to render.
        filepath: Path of the file the violation belongs to.

    Returns:
        Formatted multi-line string.
    """
    location_tpl = config.get_str("formatting.location_template")
    caret = config.get_str("formatting.caret_char")
    fix_prefix = config.get_str("messages.fix_prefix")
    sev_warn = config.get_str("severities.warn")
    severity_role = "warning" if violation.severity == sev_warn else "error"

    parts: list[str] = [
        f"  {_c('file_path')}"
        f"{location_tpl.format(filepath=filepath, line=violation.line)}{_c('reset')} "
        f"{_c('rule_id')}[{violation.rule_id}]{_c('reset')}"
    ]
    if violation.source:
        parts.append(f"    {violation.source}")
        if violation.value:
            col = violation.source.find(violation.value)
            if col >= 0:
                parts.append(
                    f"    {_c('caret')}{' ' * col}"
                    f"{caret * len(violation.value)}{_c('reset')}"
                )
    parts.append(f"  {_c(severity_role)}{violation.message}{_c('reset')}")
    if violation.fix:
        fix_lines = violation.fix.strip().splitlines()
        parts.append(f"  {_c('fix')}{fix_prefix}{fix_lines[0]}{_c('reset')}")
        padding = " " * len(fix_prefix)
        for fl in fix_lines[1:]:
            parts.append(f"  {_c('fix')}{padding}{fl}{_c('reset')}")

    return "\n".join(parts)


def format_result_stderr(result: ScanResult) -> str:
    """Format every violation of one file, or '' if there are none."""
    separator = config.get_str("formatting.violation_separator")
    return separator.join(
        format_violation_stderr(v, result.filepath) for v in result.violations
    )


def format_summary_stderr(
    profile_name: str,
    profile_version: str,
    file_count: int,
    blocking_count: int,
    warning_count: int,
    suppressed_count: int = 0,
) -> str:
    """Format the summary footer bar for stderr output.

    Returns:
        Formatted summary string.
    """
    bar_width = config.get_int("formatting.summary_bar_width")
    bar_char = config.get_str("formatting.summary_bar_char")
    labels = config.get_dict("labels")

    bar = f"{_c('summary_bar')}{bar_char * bar_width}{_c('reset')}"
    parts: list[str] = [f"\n{bar}"]
    parts.append(
        f"  {_c('bold')}{labels['profile']}{_c('reset')} "
        f"{_c('info')}{profile_name}{_c('reset')} "
        f"{_c('dim')}(v{profile_version}){_c('reset')}"
    )
    parts.append(
        f"  {_c('bold')}{labels['files']}{_c('reset')} {file_count}"
    )
    parts.append(
        f"  {_c('bold')}{labels['violations']}{_c('reset')} "
        f"{_c('error')}{blocking_count} {labels['blocking']}{_c('reset')}, "
        f"{_c('warning')}{warning_count} {labels['warnings']}{_c('reset')}, "
        f"{_c('dim')}{suppressed_count} {labels['suppressed']}{_c('reset')}"
    )
    if blocking_count > 0:
        parts.append(f"  {_c('blocked')}{_c('bold')}{labels['rejected']}{_c('reset')}")
    else:
        parts.append(f"  {_c('allowed')}{labels['passed']}{_c('reset')}")
    parts.append(bar)
    return "\n".join(parts)


# ---------------------------------------------------------------------------
# JSON formatting
# ---------------------------------------------------------------------------


def format_result_json(result: ScanResult) -> dict[str, Any]:
    """Format one file's result as a JSON-compatible dict."""
    data: dict[str, Any] = {
        "file": result.filepath,
        "status": result.status,
        "profile": result.profile_name,
        "profile_version": result.profile_version,
        "violations": [
            {
                "rule": v.rule_id,
                "severity": v.severity,
                "line": v.line,
                "source": v.source,
                "message": v.message,
                "fix": v.fix,
            }
            for v in result.violations
        ],
        "summary": {
            "blocking": result.blocking_count,
            "warnings": result.warning_count,
            "suppressed": result.suppressed_count,
        },
        "scan_ms": result.scan_ms,
    }
    if result.error:
        data["error"] = result.error
    return data


def format_results_json(results: list[ScanResult]) -> dict[str, Any]:
    """Format a multi-file scan as a JSON-compatible dict.

    Args:
        results: One ScanResult per scanned file.

    Returns:
        Dict with overall status, per-file entries and totals.
    """
    status_rejected = config.get_str("statuses.rejected")
    status_passed = config.get_str("statuses.passed")
    status_error = config.get_str("statuses.error")

    blocking = sum(r.blocking_count for r in results)
    warnings = sum(r.warning_count for r in results)
    suppressed = sum(r.suppressed_count for r in results)
    if any(r.status == status_error for r in results):
        status = status_error
    elif blocking:
        status = status_rejected
    else:
        status = status_passed

    return {
        "status": status,
        "files": [format_result_json(r) for r in results],
        "summary": {
            "files": len(results),
            "blocking": blocking,
            "warnings": warnings,
            "suppressed": suppressed,
        },
    }
