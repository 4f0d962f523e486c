"""Graph workflow definition."""

from __future__ import annotations

import httpx
from pydantic_graph import Graph

from repoaudit.core.config import State
from repoaudit.core.log import logger
from repoaudit.github.client import GitHubClient


def create_workflow():
    """Create the audit workflow graph.

    Initialize → AuditRepository (once per repository) → Report

    Returns:
        Graph workflow with State as state_type
    """
    logger.debug("Building workflow graph")

    from repoaudit.workflow.nodes.audit_repository import AuditRepository
    from repoaudit.workflow.nodes.initialize import Initialize
    from repoaudit.workflow.nodes.report import Report

    return Graph(
        nodes=(
            Initialize,
            AuditRepository,
            Report,
        ),
        state_type=State
    )


async def run_audit(
    state: State,
    check_name: str | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> int:
    """Run the audit workflow.

    Args:
        state: State with config loaded
        check_name: Run only this check (None runs all)
        transport: Optional HTTP transport override

    Returns:
        Exit code (0 = every check passed, 1 = at least one failed)

    Raises:
        ConfigurationError: Unknown check name or no repositories
        ReportError: Report file could not be written
    """
    from repoaudit.workflow.nodes.initialize import Initialize

    audit = state.runtime.audit
    audit.check_name = check_name

    workflow = create_workflow()

    async with GitHubClient(state.config.github, transport=transport) as client:
        audit.client = client
        try:
            async with workflow.iter(Initialize(), state=state) as run:
                async for node in run:
                    if hasattr(node, 'data'):
                        return node.data
        finally:
            audit.client = None

    # Workflow ended without reaching End node (shouldn't happen)
    logger.error("Audit failed - workflow ended unexpectedly")
    return 1
