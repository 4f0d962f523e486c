"""Check evaluation over repositories."""

from __future__ import annotations

import re
from typing import Protocol

from repoaudit.core.config import CheckDefinition
from repoaudit.core.errors import AuditError, PatternError
from repoaudit.core.log import logger
from repoaudit.core.result import CheckResult

NEGATION_PREFIX = "!"


class ContentFetcher(Protocol):
    """Anything that can return the text of a file in a repository."""

    async def fetch(self, repository: str, file_path: str) -> str:
        ...


def compile_pattern(check: CheckDefinition) -> tuple[re.Pattern, bool]:
    """Compile the check pattern.

    Returns:
        (regex, negated) where negated is True when the pattern had
        a leading '!'

    Raises:
        PatternError: If the pattern is not a valid regular expression
    """
    negated = check.pattern.startswith(NEGATION_PREFIX)
    source = check.pattern[len(NEGATION_PREFIX):] if negated else check.pattern
    try:
        return re.compile(source), negated
    except re.error as e:
        raise PatternError(
            f"Invalid pattern '{check.pattern}' in check "
            f"'{check.name}': {e}"
        ) from e


def evaluate(content: str, check: CheckDefinition) -> bool:
    """Return whether content satisfies the check.

    A plain pattern passes when it matches anywhere in content; a
    '!' pattern passes when the remainder matches nowhere.
    """
    regex, negated = compile_pattern(check)
    found = regex.search(content) is not None
    return not found if negated else found


def applicable_checks(
    checks: list[CheckDefinition], repository: str
) -> list[CheckDefinition]:
    """Enabled checks that do not exclude repository, in order."""
    selected = []
    for check in checks:
        if not check.enabled:
            continue
        exclusion = check.exclusion_for(repository)
        if exclusion is not None:
            logger.debug(
                "Skipping {check} for {repository}",
                check=check.name,
                repository=repository,
                reason=exclusion.reason or "",
            )
            continue
        selected.append(check)
    return selected


class RepositoryChecker:
    """Runs checks against repositories one request at a time.

    Failures of a single check are recorded as failed results and
    never stop the run.
    """

    def __init__(self, fetcher: ContentFetcher):
        self.fetcher = fetcher

    async def run_check(
        self, repository: str, check: CheckDefinition
    ) -> CheckResult:
        try:
            content = await self.fetcher.fetch(repository, check.file)
            passed = evaluate(content, check)
        except AuditError as e:
            logger.debug(
                "{check} errored for {repository}: {error}",
                check=check.name,
                repository=repository,
                error=str(e),
            )
            return CheckResult(
                repository=repository,
                check=check.name,
                file_path=check.file,
                passed=False,
                error=str(e),
            )

        logger.debug(
            "{check} {outcome} for {repository}",
            check=check.name,
            outcome="passed" if passed else "failed",
            repository=repository,
        )
        return CheckResult(
            repository=repository,
            check=check.name,
            file_path=check.file,
            passed=passed,
        )

    async def check_repository(
        self, repository: str, checks: list[CheckDefinition]
    ) -> list[CheckResult]:
        """Evaluate every applicable check for one repository."""
        results = []
        for check in applicable_checks(checks, repository):
            results.append(await self.run_check(repository, check))
        return results
