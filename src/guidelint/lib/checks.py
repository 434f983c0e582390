"""checks: check-type dispatch and rule evaluation against SourceAnalyzer.

Each check type is a function that receives a SourceAnalyzer plus the
rule's check options and returns a list of violation dicts.  ``run_check()``
maps the check-type string from the rule YAML to the corresponding
function; new check types only require a new function and a dispatch
branch.  Options are the rule's ``check`` block overlaid with any
profile or project ``params`` for that rule.

Plugin trust model:
    - Plugins are loaded ONLY from <home>/plugins/ (first-party trusted).
    - Plugins execute in the same process.
    - Plugin contract: def check(analyzer: SourceAnalyzer) -> list[dict]
"""

from __future__ import annotations

import importlib.util
import os
import sys
from pathlib import Path
from typing import Any, Callable

from guidelint._paths import plugins_dir
from guidelint.exceptions import PluginError
from guidelint.lib import config
from guidelint.lib.analyzer import SourceAnalyzer


# ---------------------------------------------------------------------------
# Dispatch function
# ---------------------------------------------------------------------------


def run_check(
    rule_obj: dict[str, Any],
    analyzer: SourceAnalyzer,
    home: Path,
) -> list[dict[str, Any]]:
    """Dispatch a single rule's check to the appropriate implementation.

    Args:
        rule_obj: Resolved rule object with 'rule_data', 'params', etc.
        analyzer: The SourceAnalyzer for the file being checked.
        home: Home directory for plugin resolution.

    Returns:
        List of violation dicts. Empty list means the rule passed.
    """
    rule_data = rule_obj["rule_data"]
    check_config: dict[str, Any] = dict(rule_data.get("check", {}))
    check_type = check_config.pop("type", "")
    options: dict[str, Any] = {**check_config, **rule_obj.get("params", {})}

    ct = config.get_dict("check_types")
    if check_type == ct["qualified_name"]:
        return check_qualified_name(analyzer, options)
    elif check_type == ct["ast_check"]:
        return check_ast_check(analyzer, options)
    elif check_type == ct["naming"]:
        return check_naming(analyzer, options)
    elif check_type == ct["custom"]:
        return check_custom(analyzer, options, home, rule_obj["id"])
    else:
        msg = config.get_str("messages.unknown_check_type")
        sys.stderr.write(
            msg.format(check_type=check_type, rule_id=rule_obj["id"]) + "\n"
        )
        return []


def _opt(options: dict[str, Any], key: str) -> Any:
    """Return an option, falling back to ``check_defaults.<key>``."""
    if key in options:
        return options[key]
    return config.get(f"check_defaults.{key}")


# ---------------------------------------------------------------------------
# Qualified-name checks
# ---------------------------------------------------------------------------


def check_qualified_name(
    analyzer: SourceAnalyzer,
    options: dict[str, Any],
) -> list[dict[str, Any]]:
    """Flag references to deprecated or discouraged qualified names.

    Args:
        analyzer: Source analyzer for the file under inspection.
        options: Must contain ``names``: qualified name -> replacement.

    Returns:
        One violation per reference, with ``name`` and ``replacement``.
    """
    names: dict[str, str] = options.get("names", {}) or {}
    if not names:
        return []
    return analyzer.qualified_name_uses({str(k): str(v) for k, v in names.items()})


# ---------------------------------------------------------------------------
# Named structural checks
# ---------------------------------------------------------------------------


def _ast_checks() -> dict[str, Callable[[SourceAnalyzer, dict[str, Any]], list[dict[str, Any]]]]:
    """Map configured ast_check names to their implementations."""
    ac = config.get_dict("ast_checks")
    return {
        ac["strip_prefix_suffix"]: lambda a, o: a.strip_affix_calls(
            _opt(o, "min_length"), _opt(o, "allowed_values")
        ),
        ac["function_annotations"]: lambda a, o: a.unannotated_functions(
            _opt(o, "require_return"), _opt(o, "implicit_first")
        ),
        ac["lazy_log_formatting"]: lambda a, o: a.eager_log_formatting(
            _opt(o, "log_methods"), _opt(o, "logger_names")
        ),
        ac["print_calls"]: lambda a, o: a.print_calls(
            _opt(o, "allow_in_main_guard"), _opt(o, "print_exempt_files")
        ),
        ac["bare_except"]: lambda a, o: a.bare_excepts(),
        ac["swallowed_exceptions"]: lambda a, o: a.swallowed_exceptions(),
        ac["raise_without_from"]: lambda a, o: a.raises_without_from(),
        ac["error_log_in_handler"]: lambda a, o: a.error_logs_in_handlers(
            _opt(o, "logger_names")
        ),
        ac["open_without_encoding"]: lambda a, o: a.open_without_encoding(
            _opt(o, "path_methods")
        ),
        ac["json_string_round_trip"]: lambda a, o: a.json_string_round_trips(),
        ac["mutable_defaults"]: lambda a, o: a.mutable_defaults(
            _opt(o, "mutable_calls")
        ),
        ac["wildcard_imports"]: lambda a, o: a.wildcard_imports(),
        ac["relative_imports"]: lambda a, o: a.relative_imports(),
    }


def check_ast_check(
    analyzer: SourceAnalyzer,
    options: dict[str, Any],
) -> list[dict[str, Any]]:
    """Run a named structural check.

    Args:
        analyzer: Source analyzer for the file under inspection.
        options: Check options; ``check`` names the query to run.

    Returns:
        List of violation dicts from the delegated query.
    """
    check_name = options.get("check", "")
    impl = _ast_checks().get(check_name)
    if impl is None:
        msg = config.get_str("messages.unknown_ast_check")
        sys.stderr.write(msg.format(check=check_name) + "\n")
        return []
    return impl(analyzer, options)


def check_naming(
    analyzer: SourceAnalyzer,
    options: dict[str, Any],
) -> list[dict[str, Any]]:
    """Check function and class names against the configured patterns.

    Args:
        analyzer: Source analyzer for the file under inspection.
        options: Pattern and ignore-list options.

    Returns:
        One violation per offending definition.
    """
    return analyzer.naming_violations(
        _opt(options, "function_pattern"),
        _opt(options, "class_pattern"),
        _opt(options, "ignore_names"),
        _opt(options, "ignore_prefixes"),
    )


# ---------------------------------------------------------------------------
# Custom / plugin checks
# ---------------------------------------------------------------------------


def check_custom(
    analyzer: SourceAnalyzer,
    options: dict[str, Any],
    home: Path,
    rule_id: str = "custom",
) -> list[dict[str, Any]]:
    """Run a custom check via plugin file.

    The plugin contract: ``def check(analyzer: SourceAnalyzer) -> list[dict]``.
    Each dict should have at minimum a ``line`` key.  A failing plugin is
    reported on stderr and produces a single violation describing the error.

    Args:
        analyzer: Source analyzer for the file under inspection.
        options: Check options with plugin path and function name.
        home: Home directory for resolving relative plugin paths.
        rule_id: Rule that references the plugin, for diagnostics.

    Returns:
        List of violation dicts returned by the plugin function.
    """
    violations: list[dict[str, Any]] = []
    error_line = config.get_int("defaults.error_line")

    if "plugin" not in options:
        return violations

    plugin_path = str(options["plugin"])
    if not os.path.isabs(plugin_path):
        plugin_path = str(plugins_dir(home) / os.path.basename(plugin_path))
    func_name: str = options.get(
        "function", config.get_str("defaults.plugin_function_name")
    )

    try:
        func = _load_plugin(plugin_path, func_name)
        result = func(analyzer)
        if isinstance(result, list):
            violations.extend(result)
    except Exception as exc:
        err = PluginError(plugin_path, rule_id, exc)
        sys.stderr.write(f"{err}\n")
        violations.append({"line": error_line, "source": f"plugin error: {exc}"})

    for v in violations:
        v.setdefault("source", analyzer.source_line(v.get("line", 0)))
    return violations


def _load_plugin(plugin_path: str, func_name: str) -> Callable[..., Any]:
    """Import a plugin file by path and return its check function."""
    spec_name = config.get_str("defaults.plugin_spec_name")
    spec = importlib.util.spec_from_file_location(spec_name, plugin_path)
    if spec is None or spec.loader is None:
        msg = config.get_str("messages.plugin_load_error")
        raise ImportError(msg.format(path=plugin_path))
    mod = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(mod)
    return getattr(mod, func_name)
