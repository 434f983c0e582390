"""commands: handlers for every guidelint subcommand.

Each ``cmd_*`` function receives the parsed argparse namespace and returns
a process exit code.  Handlers translate library exceptions into a single
stderr line plus the configured error exit code; they never let a
traceback reach the user for expected failures (bad config, unknown rule,
unreadable file).
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Optional

from guidelint.engine import load_config, scan_paths
from guidelint.exceptions import (
    GuidelintConfigError,
    GuidelintError,
    GuidelintParseError,
    UnknownRuleError,
)
from guidelint.lib import config
from guidelint.lib.analyzer import SourceAnalyzer
from guidelint.lib.checks import run_check
from guidelint.lib.documents import (
    render_checklist,
    render_explanation,
    render_guide,
    verify_examples,
)
from guidelint.lib.formatter import format_violation_stderr, inject_variables
from guidelint.lib.models import Guideline, ProjectConfig, ScopeConfig, Violation
from guidelint.lib.rules import (
    find_home,
    list_profile_names,
    list_rule_ids,
    load_guidelines,
    load_rule,
    rule_obj_for,
)
from guidelint.lib.theme import colorize
from guidelint.lib.yaml_loader import dump_yaml


# -------------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------------


def _out(text: str = "") -> None:
    sys.stdout.write(text + "\n")


def _err(text: str) -> None:
    sys.stderr.write(colorize(text, "error") + "\n")


def _color(text: str, role: str) -> str:
    """Colorize text for stdout so command output respects the theme."""
    return colorize(text, role, stream=sys.stdout)


def _exit(name: str) -> int:
    return config.get_int(f"exit_codes.{name}")


def _home() -> Path:
    home = find_home()
    if home is None:
        raise GuidelintConfigError("", [config.get_str("messages.home_missing")])
    return home


def _project(args: argparse.Namespace) -> tuple[str, dict[str, Any]]:
    return load_config(getattr(args, "config", None))


def _profile_name(args: argparse.Namespace, project_config: dict[str, Any]) -> str:
    return (
        getattr(args, "profile", None)
        or project_config.get("profile")
        or config.get_str("defaults.profile_name")
    )


def _guidelines(args: argparse.Namespace) -> tuple[str, list[Guideline]]:
    _, project_config = _project(args)
    name = _profile_name(args, project_config)
    guidelines = load_guidelines(name, _home(), project_config)
    if not guidelines:
        msg = config.get_str("messages.profile_not_found")
        raise GuidelintConfigError(name, [msg.format(name=name)])
    return name, guidelines


def _write_output(text: str, output: Optional[str]) -> None:
    if not output:
        sys.stdout.write(text)
        return
    Path(output).write_text(text, encoding="utf-8")
    _out(config.get_str("messages.wrote_file").format(path=output))


def _project_config_path(args: argparse.Namespace) -> Path:
    return Path(getattr(args, "config", None) or config.get_str("filenames.project_config"))


# -------------------------------------------------------------------------
# check
# -------------------------------------------------------------------------


def cmd_check(args: argparse.Namespace) -> int:
    """Lint files and directories; exit non-zero on blocking violations."""
    status_error = config.get_str("statuses.error")
    paths = args.paths or ["."]
    try:
        results = scan_paths(
            paths,
            args.config,
            profile=args.profile or "",
            output_format=args.format,
            skip_scope=args.no_scope,
        )
    except GuidelintError as exc:
        _err(str(exc))
        return _exit("error")

    if not results:
        _err(config.get_str("messages.no_files").format(paths=", ".join(paths)))
        return _exit("ok")
    if any(r.status == status_error for r in results):
        return _exit("error")
    if any(r.blocking_count for r in results):
        return _exit("blocked")
    return _exit("ok")


# -------------------------------------------------------------------------
# Rule table inspection
# -------------------------------------------------------------------------


def cmd_list_rules(args: argparse.Namespace) -> int:
    """List the rules of a profile with their effective severity."""
    try:
        name, guidelines = _guidelines(args)
    except GuidelintError as exc:
        _err(str(exc))
        return _exit("error")

    width = max(len(g.rule_id) for g in guidelines)
    _out(_color(config.get_str("messages.list_header").format(profile=name), "bold"))
    for g in guidelines:
        severity = g.severity if g.enabled else config.get_str("severities.off")
        _out(
            f"  {_color(g.rule_id.ljust(width), 'rule_id')}  "
            f"{severity.ljust(5)}  {g.name}"
        )
    return _exit("ok")


def cmd_explain(args: argparse.Namespace) -> int:
    """Print rationale and examples for one rule."""
    try:
        rule_obj = rule_obj_for(args.rule_id, _home())
    except GuidelintError as exc:
        _err(str(exc))
        return _exit("error")
    sys.stdout.write(render_explanation(Guideline.from_rule_obj(rule_obj)))
    return _exit("ok")


def cmd_guide(args: argparse.Namespace) -> int:
    """Render the Markdown style guide for a profile."""
    try:
        name, guidelines = _guidelines(args)
    except GuidelintError as exc:
        _err(str(exc))
        return _exit("error")
    _write_output(render_guide(guidelines, name), args.output)
    return _exit("ok")


def cmd_checklist(args: argparse.Namespace) -> int:
    """Render the Markdown review checklist for a profile."""
    try:
        name, guidelines = _guidelines(args)
    except GuidelintError as exc:
        _err(str(exc))
        return _exit("error")
    _write_output(render_checklist(guidelines, name), args.output)
    return _exit("ok")


def cmd_test_rule(args: argparse.Namespace) -> int:
    """Run a single rule against a single file, ignoring profiles and scope."""
    try:
        rule_obj = rule_obj_for(args.rule_id, _home())
        with open(args.file, "r", encoding="utf-8") as fh:
            source = fh.read()
        try:
            analyzer = SourceAnalyzer(source, args.file)
        except Exception as exc:
            raise GuidelintParseError(args.file, exc) from exc
        found = run_check(rule_obj, analyzer, _home())
    except (GuidelintError, OSError) as exc:
        _err(str(exc))
        return _exit("error")

    error_config = rule_obj["rule_data"].get("error", {}) or {}
    variables = analyzer.build_variables()
    for v in found:
        merged = {**variables, **v}
        violation = Violation(
            rule_id=rule_obj["id"],
            severity=rule_obj["severity"],
            line=v.get("line", 0),
            source=v.get("source", ""),
            message=inject_variables(error_config.get("message", ""), merged),
            fix=inject_variables(error_config.get("fix", ""), merged),
            value=str(v.get("value", "")),
        )
        sys.stderr.write(format_violation_stderr(violation, args.file) + "\n")

    summary = config.get_str("messages.test_rule_summary")
    _out(summary.format(rule_id=rule_obj["id"], file=args.file, count=len(found)))
    return _exit("blocked") if found else _exit("ok")


# -------------------------------------------------------------------------
# lint-rules
# -------------------------------------------------------------------------


def validate_rule_data(rule_id: str, data: Any) -> list[str]:
    """Return structural problems of one rule YAML document."""
    problems: list[str] = []
    if not isinstance(data, dict):
        return [f"{rule_id}: rule file must be a mapping"]

    for key in config.get_list("rule_schema.required_keys"):
        if not data.get(key):
            problems.append(f"{rule_id}: missing required key '{key}'")

    categories = config.get_list("documents.category_order")
    if data.get("category") and data["category"] not in categories:
        problems.append(f"{rule_id}: unknown category '{data['category']}'")

    check = data.get("check") or {}
    check_types = set(config.get_dict("check_types").values())
    if not isinstance(check, dict) or check.get("type") not in check_types:
        problems.append(f"{rule_id}: check.type must be one of {sorted(check_types)}")

    severity = (data.get("defaults") or {}).get("severity")
    if severity is not None and severity not in config.get_list("severities.valid_choices"):
        problems.append(f"{rule_id}: invalid default severity '{severity}'")

    if not (data.get("error") or {}).get("message"):
        problems.append(f"{rule_id}: missing error.message")

    examples = data.get("examples") or {}
    for label in ("bad", "good"):
        if not examples.get(label):
            problems.append(f"{rule_id}: missing examples.{label}")

    return problems


def cmd_lint_rules(args: argparse.Namespace) -> int:
    """Validate every rule file and verify its examples against its check."""
    try:
        home = _home()
    except GuidelintError as exc:
        _err(str(exc))
        return _exit("error")

    problems: list[str] = []
    guidelines: list[Guideline] = []
    rule_ids = list_rule_ids(home)
    for rule_id in rule_ids:
        data = load_rule(rule_id, home)
        found = validate_rule_data(rule_id, data)
        problems.extend(found)
        if not found:
            guidelines.append(Guideline.from_rule_obj(rule_obj_for(rule_id, home)))

    problems.extend(verify_examples(guidelines, home))

    for profile_name in list_profile_names(home):
        if not load_guidelines(profile_name, home):
            problems.append(f"profile {profile_name}: resolves to no rules")

    if problems:
        for p in problems:
            _err(f"  {p}")
        return _exit("error")

    _out(_color(config.get_str("messages.lint_ok").format(count=len(rule_ids)), "allowed"))
    return _exit("ok")


# -------------------------------------------------------------------------
# Project configuration
# -------------------------------------------------------------------------


def cmd_init(args: argparse.Namespace) -> int:
    """Write a starter .guidelint.yaml in the current directory."""
    target = _project_config_path(args)
    if target.exists() and not args.force:
        _err(config.get_str("messages.init_exists").format(path=target))
        return _exit("error")

    home = find_home()
    if home is None or args.profile not in list_profile_names(home):
        msg = config.get_str("messages.profile_not_found")
        _err(msg.format(name=args.profile))
        return _exit("error")

    data: dict[str, Any] = {
        "profile": args.profile,
        "overrides": {},
        "rule_overrides": {},
        "scope": {
            "exempt_paths": list(config.get_list("init.exempt_paths")),
            "exempt_files": [],
        },
        "logging": {
            "enabled": False,
            "directory": config.get_str("init.log_directory"),
        },
    }
    dump_yaml(data, target)
    _out(config.get_str("messages.init_done").format(path=target, profile=args.profile))
    return _exit("ok")


def _set_rule_enabled(args: argparse.Namespace, enabled: bool) -> int:
    target = _project_config_path(args)
    try:
        home = _home()
        if args.rule_id not in list_rule_ids(home):
            raise UnknownRuleError(args.rule_id)
        _, data = load_config(target)
    except GuidelintError as exc:
        _err(str(exc))
        if not target.exists():
            _err(config.get_str("messages.run_init"))
        return _exit("error")

    overrides = data.setdefault("rule_overrides", {}) or {}
    data["rule_overrides"] = overrides
    entry = overrides.setdefault(args.rule_id, {}) or {}
    overrides[args.rule_id] = entry
    entry["enabled"] = enabled
    dump_yaml(data, target)

    key = "messages.rule_enabled" if enabled else "messages.rule_disabled"
    _out(config.get_str(key).format(rule_id=args.rule_id, path=target))
    return _exit("ok")


def cmd_disable_rule(args: argparse.Namespace) -> int:
    """Disable a rule through rule_overrides in the project config."""
    return _set_rule_enabled(args, False)


def cmd_enable_rule(args: argparse.Namespace) -> int:
    """Re-enable a rule through rule_overrides in the project config."""
    return _set_rule_enabled(args, True)


def cmd_status(args: argparse.Namespace) -> int:
    """Show the effective configuration."""
    try:
        used_path, project_config = _project(args)
        name, guidelines = _guidelines(args)
    except GuidelintError as exc:
        _err(str(exc))
        return _exit("error")

    labels = config.get_dict("labels")
    active = [g for g in guidelines if g.enabled and g.severity != config.get_str("severities.off")]
    _out(f"{_color(labels['config'], 'bold')} {used_path or labels['no_config']}")
    _out(f"{_color(labels['profile'], 'bold')} {name}")
    _out(f"{_color(labels['active_rules'], 'bold')} {len(active)}/{len(guidelines)}")
    project = ProjectConfig.from_dict(project_config, name)
    overridden = sorted(project.rule_overrides)
    _out(f"{_color(labels['overridden'], 'bold')} {', '.join(overridden) or '-'}")
    scope = project.scope or ScopeConfig()
    for key in ("gated_paths", "exempt_paths", "exempt_files"):
        values = getattr(scope, key)
        _out(f"  {key}: {', '.join(values) or '-'}")
    if project.logging_enabled:
        _out(f"  scan log: {project.logging_directory or '-'}")

    if args.verbose:
        _out()
        for g in guidelines:
            state = g.severity if g.enabled else config.get_str("severities.off")
            _out(f"  {g.rule_id}: {state}")
        home = _home()
        _out()
        _out(f"{_color(labels['home'], 'bold')} {home}")
        _out(f"  profiles: {', '.join(list_profile_names(home))}")
        _out(f"  rules: {len(list_rule_ids(home))}")
    return _exit("ok")
