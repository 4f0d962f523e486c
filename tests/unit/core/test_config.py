"""Tests for State/Config loading."""

import json
import shutil
from pathlib import Path

import pytest
from pydantic import ValidationError

from repoaudit.core.config import CheckDefinition, Config, State

FIXTURES = Path(__file__).parents[2] / "loader" / "fixtures"


def test_defaults_without_project_files(isolated_cwd):
    state = State()

    assert state.config.repositories is None
    assert state.config.checks == []
    assert state.config.github.primary_branch == "main"
    assert state.config.github.fallback_branch == "master"
    assert state.config.report.path == Path("repoaudit-report.md")


def test_flat_config_json_in_cwd(isolated_cwd):
    shutil.copy(FIXTURES / "flat.json", isolated_cwd / "config.json")

    config = State().config

    assert config.repositories == ["acme/widgets"]
    assert config.dynamic_repositories.organization == "acme"
    assert [c.name for c in config.checks] == ["has-license", "no-todo"]
    no_todo = config.checks[1]
    assert no_todo.pattern == "!TODO"
    assert no_todo.requires[0].check == "has-license"
    assert no_todo.requires[0].reason == "license first"
    assert no_todo.exclusion_for("acme/legacy").reason == "frozen"
    assert no_todo.exclusion_for("acme/widgets") is None


def test_repoaudit_yaml_overrides_config_json(isolated_cwd):
    (isolated_cwd / "config.json").write_text(json.dumps({
        "repositories": ["from/json"],
        "checks": [{"name": "a", "file": "f", "pattern": "x"}],
    }))
    (isolated_cwd / "repoaudit.yaml").write_text(
        "config:\n  repositories:\n    - from/yaml\n"
    )

    config = State().config

    assert config.repositories == ["from/yaml"]
    assert [c.name for c in config.checks] == ["a"]


def test_environment_override(isolated_cwd, monkeypatch):
    monkeypatch.setenv("REPOAUDIT_CONFIG__GITHUB__PRIMARY_BRANCH", "trunk")
    assert State().config.github.primary_branch == "trunk"


def test_report_path_template(isolated_cwd):
    (isolated_cwd / "repoaudit.yaml").write_text(
        "config:\n"
        f"  log_root: {isolated_cwd}/logs\n"
        "  report:\n"
        "    path: '{config.log_root}/report.md'\n"
    )

    state = State()

    assert state.config.report.path == isolated_cwd / "logs" / "report.md"


def test_check_patterns_are_not_templated(isolated_cwd):
    (isolated_cwd / "repoaudit.yaml").write_text(
        "config:\n"
        "  checks:\n"
        "    - name: braces\n"
        "      file: f\n"
        "      pattern: '{config.log_root}'\n"
    )
    assert State().config.checks[0].pattern == "{config.log_root}"


def test_duplicate_check_names_rejected():
    with pytest.raises(ValidationError, match="Duplicate check name: 'a'"):
        Config(checks=[
            {"name": "a", "file": "f", "pattern": "x"},
            {"name": "a", "file": "g", "pattern": "y"},
        ])


def test_check_definition_is_frozen():
    check = CheckDefinition(name="a", file="f", pattern="x")
    with pytest.raises(ValidationError):
        check.pattern = "y"


def test_check_enabled_by_default():
    check = CheckDefinition(name="a", file="f", pattern="x")
    assert check.enabled is True
    assert check.requires == []
    assert check.exclude == []
