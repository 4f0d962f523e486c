"""Console summary and markdown report for check results.

render() is a pure function of the results; printing the console
text and writing the document are left to the caller.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path

from repoaudit.core.config import CheckDefinition, Requirement
from repoaudit.core.result import CheckResult

ALL_PASSED = "✅ All checks passed!"
NOT_FOUND_MARKER = "File not found"


class FailureKind(Enum):
    """How a failed result is displayed."""
    NOT_FOUND = "not_found"  # neither branch had the file
    ERROR = "error"          # fetch or pattern problem, raw text shown
    PATTERN = "pattern"      # file fetched, pattern test not satisfied


def classify(result: CheckResult) -> FailureKind:
    if result.error is None:
        return FailureKind.PATTERN
    if NOT_FOUND_MARKER in result.error:
        return FailureKind.NOT_FOUND
    return FailureKind.ERROR


@dataclass(frozen=True)
class RenderedReport:
    console_text: str
    document: str


class ResultIndex:
    """Lookup of results by (check, repository), built once."""

    def __init__(self, results: list[CheckResult]):
        self._by_key = {(r.check, r.repository): r for r in results}

    def get(self, check: str, repository: str) -> CheckResult | None:
        return self._by_key.get((check, repository))

    def failed(self, check: str, repository: str) -> bool:
        result = self.get(check, repository)
        return result is not None and not result.passed


def fix_first(
    result: CheckResult,
    checks_by_name: dict[str, CheckDefinition],
    index: ResultIndex,
) -> list[Requirement]:
    """Required checks that also failed for the same repository."""
    check = checks_by_name.get(result.check)
    if check is None:
        return []
    return [
        requirement for requirement in check.requires
        if index.failed(requirement.check, result.repository)
    ]


def group_failures(
    results: list[CheckResult],
) -> dict[str, dict[str, list[CheckResult]]]:
    """Failed results grouped by check, then repository.

    Both levels are sorted alphabetically; results inside a
    repository keep their evaluation order.
    """
    grouped: dict[str, dict[str, list[CheckResult]]] = defaultdict(
        lambda: defaultdict(list)
    )
    for result in results:
        if not result.passed:
            grouped[result.check][result.repository].append(result)

    return {
        check: {repo: grouped[check][repo] for repo in sorted(grouped[check])}
        for check in sorted(grouped)
    }


class Renderer:
    """Builds both outputs from one result set."""

    def __init__(
        self,
        results: list[CheckResult],
        checks: list[CheckDefinition],
        generated_at: datetime | None = None,
        web_base_url: str = "https://github.com",
        branch: str = "main",
    ):
        self.results = list(results)
        self.checks_by_name = {check.name: check for check in checks}
        self.generated_at = generated_at or datetime.now()
        self.web_base_url = web_base_url.rstrip("/")
        self.branch = branch
        self.index = ResultIndex(self.results)
        self.failures = group_failures(self.results)

    def repo_url(self, repository: str) -> str:
        return f"{self.web_base_url}/{repository}"

    def file_url(self, repository: str, file_path: str) -> str:
        return (
            f"{self.web_base_url}/{repository}/blob/{self.branch}/"
            f"{file_path.lstrip('/')}"
        )

    @staticmethod
    def describe(result: CheckResult) -> str:
        kind = classify(result)
        if kind is FailureKind.NOT_FOUND:
            return "File not found"
        if kind is FailureKind.ERROR:
            return result.error
        return "Pattern not found"

    @staticmethod
    def requirement_text(requirement: Requirement) -> str:
        text = f"fix first: `{requirement.check}`"
        if requirement.reason:
            text += f" ({requirement.reason})"
        return text

    def console_text(self) -> str:
        failed_count = sum(
            len(failures)
            for by_repo in self.failures.values()
            for failures in by_repo.values()
        )
        lines = [f"❌ Found {failed_count} failed check(s):", ""]

        markers = {
            FailureKind.NOT_FOUND: "🤷‍♂️",
            FailureKind.ERROR: "❌",
            FailureKind.PATTERN: "🔍",
        }

        for check_name, by_repo in self.failures.items():
            lines.append(f"🔍 Check: {check_name}")
            for repository, failures in by_repo.items():
                lines.append(f"  📦 Repository: {self.repo_url(repository)}")
                for failure in failures:
                    marker = markers[classify(failure)]
                    lines.append(
                        f"     {marker} {failure.file_path} - "
                        f"{self.describe(failure)}"
                    )
                    for requirement in fix_first(
                        failure, self.checks_by_name, self.index
                    ):
                        lines.append(
                            f"        ⚠️  {self.requirement_text(requirement)}"
                        )
                    lines.append(
                        f"        View: "
                        f"{self.file_url(repository, failure.file_path)}"
                    )
            lines.append("")

        return "\n".join(lines)

    @staticmethod
    def _cell(text: str) -> str:
        """Make text safe inside a markdown table cell."""
        return text.replace("|", "\\|").replace("\r", " ").replace("\n", " ")

    def document(self) -> str:
        passed = sum(1 for r in self.results if r.passed)
        failed = len(self.results) - passed
        repositories = {r.repository for r in self.results}

        lines = [
            "# Repository Check Report",
            "",
            f"**Generated:** {self.generated_at.strftime('%Y-%m-%d %H:%M:%S')}",
            "",
            "## Summary",
            "",
            "| Status | Count |",
            "| --- | --- |",
            f"| ✅ Passed | {passed} |",
            f"| ❌ Failed | {failed} |",
            f"| Total | {len(self.results)} |",
            f"| Repositories | {len(repositories)} |",
            "",
        ]

        labels = {
            FailureKind.NOT_FOUND: "🤷 File not found",
            FailureKind.PATTERN: "🔍 Pattern not found",
        }

        for check_name, by_repo in self.failures.items():
            lines.append(f"## `{check_name}`")
            lines.append("")
            check = self.checks_by_name.get(check_name)
            if check is not None and check.description:
                lines.append(f"_{check.description}_")
                lines.append("")

            lines.append("| Repository | File | Result | Fix first |")
            lines.append("| --- | --- | --- | --- |")
            for repository, failures in by_repo.items():
                for failure in failures:
                    kind = classify(failure)
                    label = labels.get(kind) or f"❌ {failure.error}"
                    requirements = "<br>".join(
                        self.requirement_text(requirement)
                        for requirement in fix_first(
                            failure, self.checks_by_name, self.index
                        )
                    )
                    lines.append(
                        f"| [{repository}]({self.repo_url(repository)}) "
                        f"| [{failure.file_path}]"
                        f"({self.file_url(repository, failure.file_path)}) "
                        f"| {self._cell(label)} "
                        f"| {self._cell(requirements)} |"
                    )
            lines.append("")

        return "\n".join(lines)

    def render(self) -> RenderedReport:
        if not self.failures:
            return RenderedReport(console_text=ALL_PASSED, document=ALL_PASSED)
        return RenderedReport(
            console_text=self.console_text(),
            document=self.document(),
        )


def render(
    results: list[CheckResult],
    checks: list[CheckDefinition],
    generated_at: datetime | None = None,
    web_base_url: str = "https://github.com",
    branch: str = "main",
) -> RenderedReport:
    """Render the console summary and markdown document.

    Args:
        results: Results in evaluation order
        checks: Check definitions, used for requires and descriptions
        generated_at: Report timestamp (defaults to now)
        web_base_url: Base URL for repository links
        branch: Branch used in file links

    Returns:
        RenderedReport with console_text and document
    """
    return Renderer(
        results,
        checks,
        generated_at=generated_at,
        web_base_url=web_base_url,
        branch=branch,
    ).render()


def write_report(document: str, path: Path) -> Path:
    """Write the report document, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(document + "\n", encoding="utf-8")
    return path
