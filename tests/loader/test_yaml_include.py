"""Tests for YAML include: directive, --include and the flat layout."""

import sys
from pathlib import Path

import pytest

from repoaudit.core.config import State
from repoaudit.core.yaml_settings import YamlWithIncludesSettingsSource


@pytest.fixture
def fixtures_dir():
    """Path to test fixtures directory."""
    return Path(__file__).parent / "fixtures"


def load(yaml_file):
    return YamlWithIncludesSettingsSource(State, yaml_file=str(yaml_file))()


def test_minimal_config_loads(fixtures_dir, isolated_cwd):
    data = load(fixtures_dir / "minimal.yaml")

    assert data["config"]["repositories"] == ["acme/widgets"]
    assert data["config"]["checks"][0]["name"] == "has-license"


def test_package_defaults_always_loaded(fixtures_dir, isolated_cwd):
    data = load(fixtures_dir / "minimal.yaml")

    assert data["config"]["github"]["fallback_branch"] == "master"
    assert data["config"]["report"]["path"] == "repoaudit-report.md"


def test_include_directive_merges(fixtures_dir, isolated_cwd):
    data = load(fixtures_dir / "with_include.yaml")

    assert data["config"]["repositories"] == ["acme/widgets", "acme/gadgets"]
    assert data["config"]["checks"][0]["name"] == "has-readme"
    # Including file wins over included file
    assert data["config"]["report"]["path"] == "from-base.md"


def test_nested_includes(fixtures_dir, isolated_cwd):
    data = load(fixtures_dir / "nested_include.yaml")

    assert data["config"]["repositories"] == ["nested/repo"]
    assert data["config"]["checks"][0]["name"] == "has-readme"


def test_flat_json_nested_under_config(fixtures_dir, isolated_cwd):
    data = load(fixtures_dir / "flat.json")

    assert "repositories" not in data
    assert data["config"]["repositories"] == ["acme/widgets"]
    assert data["config"]["dynamicRepositories"]["topic"] == "audited"


def test_cli_include_has_highest_priority(fixtures_dir, isolated_cwd, monkeypatch):
    monkeypatch.setattr(sys, "argv", [
        "repoaudit",
        "--include", str(fixtures_dir / "override_report.yaml"),
    ])

    data = load(fixtures_dir / "with_include.yaml")

    assert data["config"]["report"]["path"] == "from-cli.md"
    assert data["config"]["repositories"] == ["acme/widgets", "acme/gadgets"]


def test_circular_include_detected(fixtures_dir, isolated_cwd):
    with pytest.raises(ValueError, match="Circular include"):
        load(fixtures_dir / "circular_a.yaml")


def test_missing_include_file_raises_error(tmp_path, isolated_cwd):
    config_file = tmp_path / "broken.yaml"
    config_file.write_text("include: nonexistent.yaml\n")

    with pytest.raises(FileNotFoundError):
        load(config_file)


def test_non_mapping_file_rejected(tmp_path, isolated_cwd):
    config_file = tmp_path / "list.yaml"
    config_file.write_text("- just\n- a list\n")

    with pytest.raises(ValueError, match="must contain a mapping"):
        load(config_file)


def test_flat_layout_keys_are_config_fields():
    from repoaudit.core.config import Config
    from repoaudit.core.yaml_settings import CONFIG_KEYS

    known = set()
    for name, field in Config.model_fields.items():
        known.add(name)
        if field.alias:
            known.add(field.alias)

    assert CONFIG_KEYS <= known
