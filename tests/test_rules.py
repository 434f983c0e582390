"""Unit tests for guidelint.lib.rules loading and profile resolution."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from guidelint.exceptions import UnknownRuleError
from guidelint.lib.rules import (
    apply_project_overrides,
    find_home,
    list_profile_names,
    list_rule_ids,
    load_guidelines,
    load_profile,
    load_project_config,
    load_rule,
    resolve_rules,
    rule_obj_for,
)

EXPECTED_RULES = {
    "absolute-imports",
    "builtin-generics",
    "function-annotations",
    "import-order",
    "json-file-helpers",
    "lazy-log-formatting",
    "log-exception-traceback",
    "module-logger",
    "mutable-default-args",
    "naming-conventions",
    "no-bare-except",
    "no-print",
    "no-swallowed-exceptions",
    "no-wildcard-import",
    "open-encoding",
    "raise-from",
    "strip-prefix-suffix",
    "union-syntax",
}


def _write_profile(home: Path, name: str, data: dict) -> None:
    with open(home / "profiles" / f"{name}.yaml", "w", encoding="utf-8") as fh:
        yaml.safe_dump(data, fh)


class TestFindHome:
    """Tests for home directory discovery."""

    def test_default_home_exists(self):
        home = find_home()
        assert home is not None
        assert (home / "rules").is_dir()

    def test_env_override(self, custom_home: Path):
        assert find_home() == custom_home

    def test_env_override_to_missing_dir_is_ignored(self, monkeypatch, tmp_path):
        monkeypatch.setenv("GUIDELINT_HOME", str(tmp_path / "missing"))
        assert find_home() != tmp_path / "missing"


class TestLoadRule:
    """Tests for loading individual rule files."""

    def test_load_existing(self, guidelint_home: Path):
        rule = load_rule("no-bare-except", guidelint_home)
        assert rule["category"] == "exceptions"
        assert rule["check"]["type"] == "ast_check"

    def test_load_missing(self, guidelint_home: Path):
        assert load_rule("no-such-rule", guidelint_home) is None

    def test_rule_table_is_complete(self, guidelint_home: Path):
        assert set(list_rule_ids(guidelint_home)) == EXPECTED_RULES

    def test_rule_ids_sorted(self, guidelint_home: Path):
        ids = list_rule_ids(guidelint_home)
        assert ids == sorted(ids)

    def test_rule_obj_for(self, guidelint_home: Path):
        obj = rule_obj_for("no-bare-except", guidelint_home)
        assert obj["id"] == "no-bare-except"
        assert obj["severity"] == "block"
        assert obj["enabled"] is True

    def test_rule_obj_for_unknown(self, guidelint_home: Path):
        with pytest.raises(UnknownRuleError, match="no-such-rule"):
            rule_obj_for("no-such-rule", guidelint_home)


class TestProfiles:
    """Tests for profile loading and inheritance."""

    def test_profile_names(self, guidelint_home: Path):
        assert list_profile_names(guidelint_home) == ["review", "write"]

    def test_write_contains_every_rule(self, guidelint_home: Path):
        rules = resolve_rules(load_profile("write", guidelint_home), guidelint_home)
        assert {r["id"] for r in rules} == EXPECTED_RULES
        assert len(rules) == len(EXPECTED_RULES)

    def test_write_keeps_rule_default_severity(self, guidelint_home: Path):
        rules = resolve_rules(load_profile("write", guidelint_home), guidelint_home)
        by_id = {r["id"]: r for r in rules}
        assert by_id["no-bare-except"]["severity"] == "block"
        assert by_id["no-print"]["severity"] == "warn"

    def test_review_escalates_everything(self, guidelint_home: Path):
        rules = resolve_rules(load_profile("review", guidelint_home), guidelint_home)
        assert {r["id"] for r in rules} == EXPECTED_RULES
        assert {r["severity"] for r in rules} == {"block"}

    def test_review_keeps_parent_order(self, guidelint_home: Path):
        write = [r["id"] for r in resolve_rules(load_profile("write", guidelint_home), guidelint_home)]
        review = [r["id"] for r in resolve_rules(load_profile("review", guidelint_home), guidelint_home)]
        assert review == write

    def test_missing_profile(self, guidelint_home: Path):
        assert load_profile("no-such-profile", guidelint_home) is None

    def test_additional_rules_and_params(self, custom_home: Path):
        _write_profile(custom_home, "child", {
            "profile": {"name": "child"},
            "extends": "base",
            "rules": [{"id": "no-print", "params": {"allow_in_main_guard": False}}],
            "additional_rules": ["raise-from"],
        })
        _write_profile(custom_home, "base", {
            "profile": {"name": "base"},
            "rules": ["no-print", {"id": "no-bare-except", "enabled": False}],
        })
        rules = resolve_rules(load_profile("child", custom_home), custom_home)
        assert [r["id"] for r in rules] == ["no-print", "no-bare-except", "raise-from"]
        assert rules[0]["params"] == {"allow_in_main_guard": False}
        assert rules[1]["enabled"] is False

    def test_inheritance_cycle_terminates(self, custom_home: Path):
        _write_profile(custom_home, "a", {"profile": {"name": "a"}, "extends": "b", "rules": ["no-print"]})
        _write_profile(custom_home, "b", {"profile": {"name": "b"}, "extends": "a", "rules": ["raise-from"]})
        rules = resolve_rules(load_profile("a", custom_home), custom_home)
        assert [r["id"] for r in rules] == ["raise-from", "no-print"]

    def test_missing_rule_reported_and_skipped(self, custom_home: Path, capsys):
        _write_profile(custom_home, "broken", {"rules": ["no-print", "ghost-rule"]})
        rules = resolve_rules(load_profile("broken", custom_home), custom_home)
        assert [r["id"] for r in rules] == ["no-print"]
        assert "ghost-rule" in capsys.readouterr().err


class TestProjectConfig:
    """Tests for .guidelint.yaml loading and overrides."""

    def test_missing_file(self, tmp_path: Path):
        assert load_project_config(tmp_path / ".guidelint.yaml") is None

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / ".guidelint.yaml"
        path.write_text("", encoding="utf-8")
        assert load_project_config(path) == {}

    def test_apply_overrides(self, guidelint_home: Path):
        rules = resolve_rules(load_profile("write", guidelint_home), guidelint_home)
        overrides = {
            "rule_overrides": {
                "no-print": {"enabled": False},
                "raise-from": {"severity": "block", "params": {"extra": 1}},
            }
        }
        apply_project_overrides(rules, overrides)
        by_id = {r["id"]: r for r in rules}
        assert by_id["no-print"]["enabled"] is False
        assert by_id["raise-from"]["severity"] == "block"
        assert by_id["raise-from"]["params"] == {"extra": 1}

    def test_no_overrides_is_identity(self, guidelint_home: Path):
        rules = resolve_rules(load_profile("write", guidelint_home), guidelint_home)
        assert apply_project_overrides(rules, {}) is rules


class TestLoadGuidelines:
    """Tests for Guideline record construction."""

    def test_write_profile(self, guidelint_home: Path):
        guidelines = load_guidelines("write", guidelint_home)
        assert len(guidelines) == len(EXPECTED_RULES)
        for g in guidelines:
            assert g.name
            assert g.description
            assert g.rationale
            assert g.check_type

    def test_project_overrides_do_not_leak(self, guidelint_home: Path):
        config = {"rule_overrides": {"no-print": {"enabled": False}}}
        first = {g.rule_id: g for g in load_guidelines("write", guidelint_home, config)}
        second = {g.rule_id: g for g in load_guidelines("write", guidelint_home)}
        assert first["no-print"].enabled is False
        assert second["no-print"].enabled is True

    def test_unknown_profile(self, guidelint_home: Path):
        assert load_guidelines("nope", guidelint_home) == []
