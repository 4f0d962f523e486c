"""AuditRepository node - run all checks for one repository."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, GraphRunContext

from repoaudit.core.config import State
from repoaudit.core.log import logger
from repoaudit.engine.checker import RepositoryChecker
from repoaudit.workflow.nodes.report import Report


@dataclass
class AuditRepository(BaseNode[State]):
    """Audit the repository at `position`, then move to the next."""

    position: int = 0

    async def run(
        self, ctx: GraphRunContext[State]
    ) -> AuditRepository | Report:
        """Evaluate checks for one repository.

        Returns:
            AuditRepository: For the next repository
            Report: Once every repository has been audited
        """
        audit = ctx.state.runtime.audit
        if self.position >= len(audit.repositories):
            return Report()

        repository = audit.repositories[self.position]
        logger.info(
            "📦 Repository: {repository} ({index}/{total})",
            repository=repository,
            index=self.position + 1,
            total=len(audit.repositories),
        )

        checker = RepositoryChecker(audit.client)
        with logger.span("Auditing {repository}", repository=repository):
            results = await checker.check_repository(repository, audit.checks)
        audit.results.extend(results)

        return AuditRepository(self.position + 1)
