#!/usr/bin/env python3
"""repoaudit CLI - check repository files against content rules."""

import asyncio
import sys

import yaml
from pydantic import Field
from pydantic_settings import CliApp, CliPositionalArg

from repoaudit.core.config import State
from repoaudit.core.errors import AuditError
from repoaudit.core.log import logger


class CliState(State):
    """Audit repositories against a catalog of file-content checks.

    For every repository, each enabled check fetches one file from
    the default branch (falling back to master) and tests it against
    a regular expression. Prefix a pattern with '!' to require that
    it does not match.

    Configuration sources (in priority order):
    1. Command-line arguments (--config.report.path out.md)
    2. Environment variables
       (REPOAUDIT_CONFIG__GITHUB__TOKEN=value)
    3. .env file for secrets
    4. --include files, then repoaudit.yaml, then config.json
       in the current directory

    Exit status is 0 when every check passed and 1 otherwise.
    """

    check: CliPositionalArg[str | None] = Field(
        default=None,
        description="Run only the check with this name",
    )

    def cli_cmd(self):
        """Run the audit and exit with its status."""
        # Closing the logger flushes file sinks on exit
        with logger:
            try:
                from repoaudit.workflow.graph import run_audit
                exit_code = asyncio.run(run_audit(self, self.check))
            except AuditError as e:
                logger.error("Audit aborted: {error}", error=str(e))
                print(f"Error: {e}", file=sys.stderr)
                exit_code = 1
            raise SystemExit(exit_code)


def main():
    """Main entry point for CLI."""
    try:
        CliApp.run(CliState)
    except (ValueError, OSError, yaml.YAMLError) as e:
        # pydantic ValidationError is a ValueError
        print(f"Error: Failed to load configuration: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
