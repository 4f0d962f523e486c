"""YAML/JSON configuration loading with include directive support."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import yaml
from platformdirs import user_config_dir
from pydantic_settings import BaseSettings, YamlConfigSettingsSource

from repoaudit.core.log import logger

# Project files looked up in the working directory, lowest priority
# first. JSON is valid YAML so both go through yaml.safe_load.
PROJECT_FILES = ("config.json", "repoaudit.yaml")

# Keys of the flat audit file layout (repositories/checks at the top
# level) that get nested under config: on load.
CONFIG_KEYS = {
    "repositories", "dynamicRepositories", "dynamic_repositories",
    "checks", "github", "report", "logger", "log_root",
}


class YamlWithIncludesSettingsSource(YamlConfigSettingsSource):
    """YAML settings source with include: and --include support.

    Deep merges, lowest priority first:
        package defaults < user config < project config.json
        < project repoaudit.yaml < CLI --include files.
    Files may pull in other files with an include: key; included
    data is overridden by the including file.
    """

    def __init__(
        self, settings_cls: type[BaseSettings], yaml_file=None
    ):
        """Initialize with CLI include processing.

        Args:
            settings_cls: The Settings class being initialized
            yaml_file: Optional override for the include file list
        """
        includes = []
        i = 1
        while i < len(sys.argv):
            if sys.argv[i] == "--include" and i + 1 < len(sys.argv):
                includes.append(sys.argv[i + 1])
                i += 1
            i += 1

        base = yaml_file or settings_cls.model_config.get("yaml_file")
        if base and includes:
            yaml_file = (
                [base] if isinstance(base, (str, os.PathLike)) else list(base)
            ) + includes
        elif includes:
            yaml_file = includes
        else:
            yaml_file = base

        super().__init__(settings_cls, yaml_file)

    def _read_files(self, files, deep_merge: bool = False):  # noqa: ARG002
        """Load defaults, user config, project config, and includes.

        Files are always deep merged regardless of deep_merge.

        Args:
            files: Explicit file path(s) from yaml_file or --include
            deep_merge: Accepted for base class compatibility

        Returns:
            Deep-merged dictionary of all loaded data
        """
        result = {}

        files_to_load = [
            Path(__file__).parent.parent / "defaults" / "default.yaml",
            Path(user_config_dir("repoaudit", appauthor=False))
            / "repoaudit.yaml",
        ]
        files_to_load.extend(Path(name) for name in PROJECT_FILES)

        if files:
            if isinstance(files, (str, os.PathLike)):
                files = [files]
            files_to_load.extend(Path(f).expanduser() for f in files)

        seen = set()
        for file_path in files_to_load:
            # yaml_file defaults to repoaudit.yaml, already in the list
            key = file_path.resolve()
            if key in seen:
                continue
            seen.add(key)

            if file_path.is_file():
                logger.debug("Loading configuration", file=str(file_path))
                data = self._load_file_recursive(file_path, set())
                result = self._deep_merge(result, data)
            else:
                logger.debug(
                    "Configuration file not found (skipping)",
                    file=str(file_path),
                )

        return result

    def _load_file_recursive(
        self, filepath: Path, visited: set[Path]
    ) -> dict:
        """Load file and process include: directives recursively.

        Raises:
            ValueError: If a circular include is detected
        """
        if filepath in visited:
            raise ValueError(f"Circular include: {filepath}")
        visited.add(filepath)

        with open(filepath, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(
                f"Configuration file must contain a mapping: {filepath}"
            )

        includes = data.pop("include", None) or []
        data = self._nest_flat_layout(data)

        if isinstance(includes, str):
            includes = [includes]
        for inc in includes:
            inc_path = self._resolve_path(inc, filepath)
            logger.debug(
                "Including configuration file",
                included_from=str(filepath),
                include_file=str(inc_path),
            )
            inc_data = self._load_file_recursive(inc_path, visited.copy())
            data = self._deep_merge(inc_data, data)

        return data

    @staticmethod
    def _nest_flat_layout(data: dict) -> dict:
        """Move top-level audit keys under config:.

        Lets a plain {"repositories": [...], "checks": [...]} file
        load the same as one with an explicit config: section.
        """
        flat = {k: data.pop(k) for k in list(data) if k in CONFIG_KEYS}
        if flat:
            nested = data.get("config") or {}
            data["config"] = {**flat, **nested}
        return data

    def _resolve_path(
        self, include_path: str, relative_to: Path
    ) -> Path:
        """Resolve include path relative to the including file."""
        path = Path(include_path).expanduser()
        if path.is_absolute():
            return path
        return (relative_to.parent / path).resolve()

    def _deep_merge(self, base: dict, override: dict) -> dict:
        """Deep merge override into base (override wins)."""
        result = base.copy()
        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        return result
