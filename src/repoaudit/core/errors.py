"""Exception types raised while auditing repositories.

Per-check errors are caught and recorded as a failed CheckResult.
ConfigurationError stops the run before any check is evaluated;
ReportError stops it after results are printed.
"""


class AuditError(Exception):
    """Base class for all audit errors."""


class InvalidRepositoryIdentifier(AuditError):
    """Repository identifier is not of the form owner/repo."""

    def __init__(self, repository: str):
        self.repository = repository
        super().__init__(
            f'Invalid repository format: {repository}. '
            f'Expected "owner/repo"'
        )


class NotFound(AuditError):
    """Neither the primary nor the fallback branch served the file."""

    def __init__(self, file_path: str):
        self.file_path = file_path
        super().__init__(f"File not found: {file_path}")


class FetchError(AuditError):
    """Transport-level failure talking to GitHub."""


class PatternError(AuditError):
    """A check pattern is not a valid regular expression."""


class ConfigurationError(AuditError):
    """Configuration cannot produce a runnable audit."""


class ReportError(AuditError):
    """The markdown report could not be written."""


__all__ = [
    "AuditError",
    "InvalidRepositoryIdentifier",
    "NotFound",
    "FetchError",
    "PatternError",
    "ConfigurationError",
    "ReportError",
]
