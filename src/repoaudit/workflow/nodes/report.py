"""Report node - render results, write the report, pick exit code."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, End, GraphRunContext

from repoaudit.core.config import State
from repoaudit.core.errors import ReportError
from repoaudit.core.log import logger
from repoaudit.report.render import render, write_report


@dataclass
class Report(BaseNode[State, None, int]):
    """Render console summary and markdown report."""

    async def run(self, ctx: GraphRunContext[State]) -> End[int]:
        """Print the summary and write the report.

        Returns:
            End[int]: 0 when every result passed, 1 otherwise

        Raises:
            ReportError: If the report file cannot be written
        """
        audit = ctx.state.runtime.audit
        config = ctx.state.config

        rendered = render(
            audit.results,
            audit.checks,
            web_base_url=config.github.web_base_url,
            branch=config.github.primary_branch,
        )

        print("\n--- Results ---")
        print(rendered.console_text)

        if config.report.enabled:
            try:
                audit.report_path = write_report(
                    rendered.document, config.report.path
                )
            except OSError as e:
                raise ReportError(
                    f"Failed to write report to {config.report.path}: {e}"
                ) from e
            logger.info(
                "Report written to {path}", path=str(audit.report_path)
            )

        failed = sum(1 for result in audit.results if not result.passed)
        logger.info(
            "{passed} passed, {failed} failed",
            passed=len(audit.results) - failed,
            failed=failed,
        )

        audit.status = "complete"
        return End(1 if failed else 0)
