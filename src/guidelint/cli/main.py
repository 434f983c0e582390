"""guidelint CLI entry point: argument parsing and command dispatch.

Provides the ``main()`` entry point that builds the argparse parser tree and
dispatches each subcommand to its handler in :mod:`guidelint.cli.commands`.
All configurable strings (program name, description, default values) are
loaded from the central config module so nothing is hardcoded.

Usage::

    guidelint check PATH... [--profile NAME] [--format stderr|json]
    guidelint list-rules [--profile NAME]
    guidelint explain <rule-id>
    guidelint guide [--profile NAME] [--output FILE]
    guidelint checklist [--profile NAME] [--output FILE]
    guidelint test-rule <rule-id> <file>
    guidelint lint-rules
    guidelint init [--profile NAME] [--force]
    guidelint disable-rule <rule-id>
    guidelint enable-rule <rule-id>
    guidelint status [--verbose]
"""

from __future__ import annotations

import argparse
import sys
from typing import Optional

from guidelint import __version__
from guidelint.cli.commands import (
    cmd_check,
    cmd_checklist,
    cmd_disable_rule,
    cmd_enable_rule,
    cmd_explain,
    cmd_guide,
    cmd_init,
    cmd_lint_rules,
    cmd_list_rules,
    cmd_status,
    cmd_test_rule,
)
from guidelint.lib import config


def build_parser() -> argparse.ArgumentParser:
    """Build the full argparse tree, one sub-parser per subcommand."""
    prog = config.get_str("cli.prog_name")
    desc = config.get_str("cli.description")
    default_profile = config.get_str("defaults.profile_name")
    project_config = config.get_str("filenames.project_config")
    formats = [config.get_str("formats.stderr"), config.get_str("formats.json")]

    parser = argparse.ArgumentParser(prog=prog, description=desc)
    parser.add_argument(
        "--version", action="version", version=f"{prog} {__version__}"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Options shared by every command that reads the project config.
    with_config = argparse.ArgumentParser(add_help=False)
    with_config.add_argument(
        "--config",
        help=f"Project config file (default: ./{project_config} if present)",
    )
    with_profile = argparse.ArgumentParser(add_help=False)
    with_profile.add_argument(
        "--profile", help="Profile to use instead of the project config's"
    )

    sub_check = subparsers.add_parser(
        "check", parents=[with_config, with_profile],
        help="Check Python files against the active profile",
    )
    sub_check.add_argument("paths", nargs="*", help="Files or directories (default: .)")
    sub_check.add_argument(
        "--format",
        choices=formats,
        default=config.get_str("formats.default"),
        help="Output format",
    )
    sub_check.add_argument(
        "--no-scope", action="store_true",
        help="Ignore gated/exempt paths and check every file given",
    )

    subparsers.add_parser(
        "list-rules", parents=[with_config, with_profile],
        help="List the rules of a profile",
    )

    sub_explain = subparsers.add_parser(
        "explain", help="Show rationale and examples for a rule"
    )
    sub_explain.add_argument("rule_id", help="Rule ID to explain")

    for name, what in (("guide", "style guide"), ("checklist", "review checklist")):
        sub_doc = subparsers.add_parser(
            name, parents=[with_config, with_profile],
            help=f"Render the Markdown {what}",
        )
        sub_doc.add_argument("--output", "-o", help="Write to a file instead of stdout")

    sub_test = subparsers.add_parser(
        "test-rule", help="Test a rule against a file"
    )
    sub_test.add_argument("rule_id", help="Rule ID to test")
    sub_test.add_argument("file", help="Python file to test against")

    subparsers.add_parser(
        "lint-rules", help="Validate all rule YAML files and their examples"
    )

    sub_init = subparsers.add_parser(
        "init", parents=[with_config],
        help=f"Initialize a project with {project_config}",
    )
    sub_init.add_argument(
        "--profile",
        default=default_profile,
        help=f"Profile to use (default: {default_profile})",
    )
    sub_init.add_argument(
        "--force", action="store_true", help="Overwrite an existing config"
    )

    sub_disable = subparsers.add_parser(
        "disable-rule", parents=[with_config],
        help=f"Disable a rule in {project_config}",
    )
    sub_disable.add_argument("rule_id", help="Rule ID to disable")

    sub_enable = subparsers.add_parser(
        "enable-rule", parents=[with_config],
        help="Re-enable a previously disabled rule",
    )
    sub_enable.add_argument("rule_id", help="Rule ID to enable")

    sub_status = subparsers.add_parser(
        "status", parents=[with_config, with_profile],
        help="Show the effective configuration",
    )
    sub_status.add_argument(
        "--verbose", "-v", action="store_true",
        help="Show resolved rules and the rule table location",
    )

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """Parse arguments and dispatch to the appropriate command handler.

    Print help text when no subcommand is given.  The handler's return value
    becomes the process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    dispatch = {
        "check": cmd_check,
        "list-rules": cmd_list_rules,
        "explain": cmd_explain,
        "guide": cmd_guide,
        "checklist": cmd_checklist,
        "test-rule": cmd_test_rule,
        "lint-rules": cmd_lint_rules,
        "init": cmd_init,
        "disable-rule": cmd_disable_rule,
        "enable-rule": cmd_enable_rule,
        "status": cmd_status,
    }

    handler = dispatch.get(args.command)
    if handler:
        sys.exit(handler(args))
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
