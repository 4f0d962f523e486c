"""Initialize node - select checks and resolve repositories."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, GraphRunContext

from repoaudit.core.config import CheckDefinition, State
from repoaudit.core.errors import ConfigurationError, FetchError
from repoaudit.core.log import logger
from repoaudit.resolver import source_from_config
from repoaudit.workflow.nodes.audit_repository import AuditRepository


def select_checks(
    checks: list[CheckDefinition], check_name: str | None
) -> list[CheckDefinition]:
    """All checks, or only the one named on the command line.

    Raises:
        ConfigurationError: If check_name matches no check
    """
    if not check_name:
        return list(checks)

    selected = [check for check in checks if check.name == check_name]
    if not selected:
        raise ConfigurationError(f"No check found with name '{check_name}'")
    return selected


@dataclass
class Initialize(BaseNode[State]):
    """Select checks and resolve the repository list."""

    async def run(self, ctx: GraphRunContext[State]) -> AuditRepository:
        """Prepare runtime state for the audit loop.

        Raises:
            ConfigurationError: Unknown check name, no repository
                source configured, or the repository search failed

        Returns:
            AuditRepository: First repository to audit
        """
        config = ctx.state.config
        audit = ctx.state.runtime.audit
        audit.status = "running"

        audit.checks = select_checks(config.checks, audit.check_name)
        if audit.check_name:
            logger.info("Running only check: {check}", check=audit.check_name)

        source = source_from_config(config)
        try:
            audit.repositories = await source.resolve(audit.client)
        except FetchError as e:
            raise ConfigurationError(
                f"Could not resolve repositories: {e}"
            ) from e

        logger.info(
            "Running {check_count} checks across {repo_count} repositories",
            check_count=sum(1 for check in audit.checks if check.enabled),
            repo_count=len(audit.repositories),
        )
        return AuditRepository(0)
