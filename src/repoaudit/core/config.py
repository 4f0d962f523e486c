"""Application state and configuration."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from repoaudit.core.base import BaseConfig, BaseState
from repoaudit.core.log import Logger
from repoaudit.core.result import CheckResult
from repoaudit.core.yaml_settings import YamlWithIncludesSettingsSource

# ============================================================
# TEMPLATE SUBSTITUTION NAMESPACE
# ============================================================

# Usage in YAML: {platformdirs.user_state_dir}, {os.getcwd}, {Path.cwd}
TEMPLATE_NAMESPACE = {
    'os': os,
    'platformdirs': platformdirs,
    'Path': Path,
}

# ============================================================
# CHECK CATALOG (loaded from YAML/JSON)
# ============================================================

class Requirement(BaseConfig):
    """Advisory link to a check that should be fixed first."""

    model_config = ConfigDict(frozen=True)

    check: str = Field(description="Name of the required check")
    reason: str | None = Field(
        default=None,
        description="Why the required check should be fixed first",
    )


class Exclusion(BaseConfig):
    """Repository skipped entirely by one check."""

    model_config = ConfigDict(frozen=True)

    repository: str = Field(description="Repository in owner/repo form")
    reason: str | None = Field(
        default=None,
        description="Why the repository is excluded",
    )


class CheckDefinition(BaseConfig):
    """A named rule pairing a file path with a pattern test."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Unique check name")
    file: str = Field(
        description="File path relative to the repository root"
    )
    pattern: str = Field(
        description=(
            "Regular expression searched for anywhere in the file. "
            "Prefix with '!' to require that it does NOT match"
        )
    )
    description: str | None = Field(
        default=None,
        description="Human readable explanation shown in the report",
    )
    enabled: bool = Field(
        default=True,
        description="When false the check is never evaluated",
    )
    requires: list[Requirement] = Field(
        default_factory=list,
        description="Checks to fix before this one (report annotation only)",
    )
    exclude: list[Exclusion] = Field(
        default_factory=list,
        description="Repositories this check skips",
    )

    def exclusion_for(self, repository: str) -> Exclusion | None:
        """Return the exclusion entry for repository, if any."""
        for entry in self.exclude:
            if entry.repository == repository:
                return entry
        return None


# ============================================================
# CONFIG MODELS (loaded from YAML/env/CLI)
# ============================================================

class DynamicRepositories(BaseConfig):
    """Repository list fetched from GitHub at run time."""

    enabled: bool = Field(
        default=False,
        description="Resolve repositories from GitHub instead of the static list",
    )
    source: Literal["github"] = Field(
        default="github",
        description="Listing service (only 'github' is supported)",
    )
    organization: str | None = Field(
        default=None,
        description="GitHub organization to search",
    )
    topic: str | None = Field(
        default=None,
        description="Repository topic to filter on",
    )

    @model_validator(mode='after')
    def _require_search_terms(self) -> 'DynamicRepositories':
        if self.enabled and not (self.organization and self.topic):
            raise ValueError(
                "dynamicRepositories requires organization and topic "
                "when enabled"
            )
        return self


class GitHubConfig(BaseConfig):
    """GitHub endpoints, branches and credentials."""

    raw_base_url: str = Field(
        default="https://raw.githubusercontent.com",
        description="Base URL for raw file content",
    )
    api_base_url: str = Field(
        default="https://api.github.com",
        description="Base URL for the REST API (repository search)",
    )
    web_base_url: str = Field(
        default="https://github.com",
        description="Base URL used for links in reports",
    )
    primary_branch: str = Field(
        default="main",
        description="Branch tried first when fetching files",
    )
    fallback_branch: str = Field(
        default="master",
        description="Branch tried when the primary branch has no such file",
    )
    token: str | None = Field(
        default_factory=lambda: os.getenv("GITHUB_TOKEN"),
        description="API token (defaults to the GITHUB_TOKEN env var)",
    )
    timeout: float = Field(
        default=30.0,
        description="Per-request timeout in seconds",
    )
    user_agent: str = Field(
        default="repoaudit",
        description="User-Agent header sent with every request",
    )


class ReportConfig(BaseConfig):
    """Markdown report output."""

    enabled: bool = Field(
        default=True,
        description="Write the markdown report after the run",
    )
    path: Path = Field(
        default=Path("repoaudit-report.md"),
        description="Report file location (supports {config.*} templates)",
    )


class Config(BaseConfig):
    """Application configuration loaded from YAML/JSON/env/CLI."""

    model_config = ConfigDict(populate_by_name=True)

    logger: Logger = Field(
        default=None,
        description="Logger configuration and runtime instance"
    )
    repositories: list[str] | None = Field(
        default=None,
        description="Static list of repositories in owner/repo form",
    )
    dynamic_repositories: DynamicRepositories = Field(
        default_factory=DynamicRepositories,
        alias="dynamicRepositories",
        description="Resolve repositories from a GitHub topic search",
    )
    checks: list[CheckDefinition] = Field(
        default_factory=list,
        description="Check catalog evaluated against every repository",
    )
    github: GitHubConfig = Field(
        default_factory=GitHubConfig,
        description="GitHub endpoints and credentials",
    )
    report: ReportConfig = Field(
        default_factory=ReportConfig,
        description="Markdown report settings",
    )
    log_root: Path = Field(
        default_factory=(
            lambda: Path(platformdirs.user_state_dir()) / "repoaudit"
        ),
        description=(
            "Root directory for log files "
            "(supports {platformdirs.*} templates)"
        ),
    )

    @model_validator(mode='after')
    def _unique_check_names(self) -> 'Config':
        seen = set()
        for check in self.checks:
            if check.name in seen:
                raise ValueError(f"Duplicate check name: '{check.name}'")
            seen.add(check.name)
        return self

    @model_validator(mode='after')
    def _setup_logger(self) -> 'Config':
        """Initialize the global logger from the logger section."""
        from repoaudit.core.log import setup_logger

        if self.logger is None:
            self.logger = Logger()

        setup_logger(
            log_root=self.log_root,
            run_name="audit",
            level=self.logger.level,
            console=self.logger.console,
            file=self.logger.file,
            logfire=self.logger.logfire,
        )
        return self

    def close(self):
        """Close the global logger, then any closeable children."""
        from repoaudit.core.log import logger
        logger.close()
        super().close()


# ============================================================
# RUNTIME STATE MODELS (mutable during workflow execution)
# ============================================================

class AuditState(BaseState):
    """Audit workflow runtime state."""

    check_name: str | None = Field(
        default=None,
        description="Single check selected on the command line",
    )
    client: Any = Field(
        default=None,
        description="Open GitHubClient for the duration of the run",
    )
    checks: list[CheckDefinition] = Field(
        default_factory=list,
        description="Checks selected for this run",
    )
    repositories: list[str] = Field(
        default_factory=list,
        description="Resolved repositories in audit order",
    )
    results: list[CheckResult] = Field(
        default_factory=list,
        description="Append-only results in evaluation order",
    )
    status: str = Field(
        default="pending",
        description="Workflow status: pending, running, complete",
    )
    report_path: Path | None = Field(
        default=None,
        description="Where the markdown report was written",
    )

    model_config = ConfigDict(arbitrary_types_allowed=True)


class Runtime(BaseModel):
    """All runtime state, grouped by workflow."""

    audit: AuditState = Field(
        default_factory=AuditState,
        description="Audit workflow runtime state"
    )


# ============================================================
# STATE (config + runtime combined)
# ============================================================

class State(BaseSettings):
    """Complete application state - configuration and runtime.

    This is the state object that flows through the workflow graph.
    config is loaded once from YAML/JSON, .env, environment and CLI;
    runtime is filled in as the audit progresses.
    """

    config: Config = Field(
        default_factory=Config,
        description="Application configuration (from YAML/env/CLI)",
    )
    runtime: Runtime = Field(
        default_factory=Runtime,
        description="Runtime state (mutates during workflow execution)",
    )
    include: list[str] | None = Field(
        default=None,
        description=(
            "Additional YAML/JSON files to include and merge. "
            "Use --include on CLI or include: in YAML files."
        ),
    )

    model_config = SettingsConfigDict(
        yaml_file="repoaudit.yaml",
        env_file=".env",
        env_prefix="REPOAUDIT_",
        env_nested_delimiter="__",
        cli_parse_args=True,
        cli_implicit_flags=True,
        cli_use_class_docs_for_groups=True,
        arbitrary_types_allowed=True,
        extra='ignore'
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Priority, highest first: init arguments, environment
        variables, .env file, YAML/JSON files, file secrets."""
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlWithIncludesSettingsSource(settings_cls),
            file_secret_settings,
        )

    @model_validator(mode="after")
    def substitute_templates(self) -> "State":
        """Replace {config.*} and {platformdirs.*} templates in
        string and path fields."""
        self._substitute_recursive(self)
        return self

    def _substitute_recursive(self, obj: Any) -> None:
        if isinstance(obj, BaseModel):
            # Check catalog entries are frozen; patterns are regexes
            # and must never be rewritten.
            if obj.model_config.get("frozen"):
                return
            for field_name in obj.__class__.model_fields:
                value = getattr(obj, field_name)
                new_value = self._substitute_value(value)
                if new_value is not value and new_value != value:
                    setattr(obj, field_name, new_value)
        elif isinstance(obj, dict):
            for key in obj:
                obj[key] = self._substitute_value(obj[key])
        elif isinstance(obj, list):
            for i in range(len(obj)):
                obj[i] = self._substitute_value(obj[i])

    def _substitute_value(self, value: Any) -> Any:
        if isinstance(value, str):
            return self._substitute_string(value)
        elif isinstance(value, Path):
            return Path(self._substitute_string(str(value)))
        elif isinstance(value, (BaseModel, dict, list)):
            self._substitute_recursive(value)
            return value
        else:
            return value

    def _substitute_string(self, value: str) -> str:
        """Replace {field.path} templates with actual field values.

        Examples:
            "{config.log_root}/report.md"
            → "/home/user/.local/state/repoaudit/report.md"
            "{platformdirs.user_state_dir}"
            → "/home/user/.local/state/repoaudit"
        """
        def replace_template(match):
            parts = match.group(1).split(".")

            if parts[0] in TEMPLATE_NAMESPACE:
                obj = TEMPLATE_NAMESPACE[parts[0]]
                parts = parts[1:]
            else:
                obj = self

            try:
                for part in parts:
                    obj = getattr(obj, part)

                if callable(obj):
                    obj = obj('repoaudit', appauthor=False)

                return str(obj)
            except (AttributeError, TypeError):
                # Not a valid reference, leave unchanged
                return match.group(0)

        return re.sub(r'\{([a-z._]+)\}', replace_template, value)


__all__ = [
    "State",
    "Config",
    "CheckDefinition",
    "Requirement",
    "Exclusion",
    "DynamicRepositories",
    "GitHubConfig",
    "ReportConfig",
]
