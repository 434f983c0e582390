"""documents: render the style guide and review checklist from the rule table.

The style guide and the review checklist are both generated from the same
resolved ``Guideline`` records, so they cannot drift apart.  This module
also verifies the editorial contract of every guideline: its "bad" example
must be flagged by its own check and its "good" example must pass.
"""

from __future__ import annotations

from collections import defaultdict
from pathlib import Path
from typing import Any, Iterable

from guidelint.lib import config
from guidelint.lib.analyzer import SourceAnalyzer
from guidelint.lib.checks import run_check
from guidelint.lib.models import Guideline


def group_by_category(guidelines: Iterable[Guideline]) -> list[tuple[str, list[Guideline]]]:
    """Group guidelines by category in the configured category order.

    Categories missing from ``documents.category_order`` follow the known
    ones, alphabetically.  Order within a category is profile order.
    """
    order: list[str] = config.get_list("documents.category_order")
    grouped: dict[str, list[Guideline]] = defaultdict(list)
    for g in guidelines:
        grouped[g.category or "other"].append(g)
    known = [c for c in order if c in grouped]
    extra = sorted(c for c in grouped if c not in order)
    return [(c, grouped[c]) for c in known + extra]


def category_title(category: str) -> str:
    titles: dict[str, str] = config.get_dict("documents.category_titles")
    return titles.get(category, category.replace("-", " ").title())


def _anchor(title: str) -> str:
    return "".join(ch for ch in title.lower().replace(" ", "-") if ch.isalnum() or ch == "-")


def _code_block(snippet: str) -> list[str]:
    fence = config.get_str("documents.code_fence")
    return [fence, snippet.rstrip("\n"), "```"]


def render_guide(guidelines: list[Guideline], profile_name: str = "") -> str:
    """Render the Markdown style guide.

    Args:
        guidelines: Resolved guidelines (disabled ones are skipped).
        profile_name: Profile the guide was rendered for.

    Returns:
        Markdown text ending with a newline.
    """
    docs = config.get_dict("documents")
    active = [g for g in guidelines if g.enabled]
    groups = group_by_category(active)

    lines: list[str] = [f"# {docs['guide_title']}", ""]
    intro = docs["guide_intro"].format(count=len(active), profile=profile_name or "-")
    lines += [intro.strip(), "", "## Contents", ""]
    for category, _ in groups:
        title = category_title(category)
        lines.append(f"- [{title}](#{_anchor(title)})")
    lines.append("")

    for category, members in groups:
        lines += [f"## {category_title(category)}", ""]
        for g in members:
            lines += [f"### {g.name}", ""]
            lines += [f"`{g.rule_id}` · severity: `{g.severity}`", ""]
            if g.description:
                lines += [g.description, ""]
            if g.rationale:
                lines += [g.rationale, ""]
            if g.bad_example:
                lines += [f"**{docs['bad_label']}**", ""] + _code_block(g.bad_example) + [""]
            if g.good_example:
                lines += [f"**{docs['good_label']}**", ""] + _code_block(g.good_example) + [""]

    return "\n".join(lines).rstrip("\n") + "\n"


def render_checklist(guidelines: list[Guideline], profile_name: str = "") -> str:
    """Render the Markdown review checklist, one unchecked box per guideline."""
    docs = config.get_dict("documents")
    active = [g for g in guidelines if g.enabled]

    lines: list[str] = [f"# {docs['checklist_title']}", ""]
    intro = docs["checklist_intro"].format(count=len(active), profile=profile_name or "-")
    lines += [intro.strip(), ""]
    for category, members in group_by_category(active):
        lines += [f"## {category_title(category)}", ""]
        for g in members:
            lines.append(f"- [ ] **{g.name}** (`{g.rule_id}`): {g.description}")
        lines.append("")

    return "\n".join(lines).rstrip("\n") + "\n"


def render_explanation(guideline: Guideline) -> str:
    """Render one guideline as plain text for the terminal."""
    docs = config.get_dict("documents")
    lines = [
        f"{guideline.rule_id}: {guideline.name}",
        f"  category: {category_title(guideline.category)}",
        f"  severity: {guideline.severity}",
        "",
        guideline.description,
        "",
        guideline.rationale,
    ]
    for label, snippet in (
        (docs["bad_label"], guideline.bad_example),
        (docs["good_label"], guideline.good_example),
    ):
        if snippet:
            lines += ["", f"{label}:"]
            lines += [f"    {line}" for line in snippet.rstrip("\n").splitlines()]
    return "\n".join(lines) + "\n"


# ---------------------------------------------------------------------------
# Editorial verification
# ---------------------------------------------------------------------------


def _run_example(guideline: Guideline, snippet: str, label: str, home: Path) -> list[dict[str, Any]]:
    rule_obj = {
        "id": guideline.rule_id,
        "rule_data": {"check": {"type": guideline.check_type, **guideline.check_params}},
        "severity": guideline.severity,
        "enabled": True,
        "params": {},
    }
    filepath = config.get_str("documents.example_path").format(
        rule_id=guideline.rule_id, label=label
    )
    analyzer = SourceAnalyzer(snippet, filepath)
    return run_check(rule_obj, analyzer, home)


def verify_examples(guidelines: list[Guideline], home: Path) -> list[str]:
    """Check that each bad example is flagged and each good example passes.

    Args:
        guidelines: Guidelines to verify.
        home: Home directory used for plugin resolution.

    Returns:
        Human-readable problem descriptions.  Empty means all examples
        agree with their rules.
    """
    messages = config.get_dict("messages")
    problems: list[str] = []
    for g in guidelines:
        for label, snippet, should_flag in (
            ("bad", g.bad_example, True),
            ("good", g.good_example, False),
        ):
            if not snippet.strip():
                problems.append(messages["example_missing"].format(rule_id=g.rule_id, label=label))
                continue
            try:
                found = _run_example(g, snippet, label, home)
            except Exception as exc:
                problems.append(
                    messages["example_error"].format(rule_id=g.rule_id, label=label, error=exc)
                )
                continue
            if should_flag and not found:
                problems.append(messages["example_not_flagged"].format(rule_id=g.rule_id))
            elif not should_flag and found:
                lines = ", ".join(str(v.get("line", "?")) for v in found)
                problems.append(
                    messages["example_flagged"].format(rule_id=g.rule_id, lines=lines)
                )
    return problems
