"""Repository list sources.

The source is picked once from configuration and then resolved;
nothing downstream needs to know which kind it was.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from repoaudit.core.config import Config
from repoaudit.core.errors import ConfigurationError
from repoaudit.core.log import logger


class RepositoryLister(Protocol):
    async def list_repositories(self, organization: str, topic: str) -> list[str]:
        ...


@dataclass(frozen=True)
class StaticRepositories:
    """Repositories listed verbatim in configuration."""

    repositories: tuple[str, ...]

    async def resolve(self, client: RepositoryLister) -> list[str]:  # noqa: ARG002
        return list(self.repositories)


@dataclass(frozen=True)
class GitHubTopicRepositories:
    """Repositories of an organization tagged with a topic."""

    organization: str
    topic: str

    async def resolve(self, client: RepositoryLister) -> list[str]:
        logger.info(
            "Fetching repositories from github for org: {organization} "
            "with topic: {topic}",
            organization=self.organization,
            topic=self.topic,
        )
        return await client.list_repositories(self.organization, self.topic)


RepositorySource = StaticRepositories | GitHubTopicRepositories


def source_from_config(config: Config) -> RepositorySource:
    """Pick the repository source described by config.

    Raises:
        ConfigurationError: If neither a dynamic source nor a static
            list is configured
    """
    dynamic = config.dynamic_repositories
    if dynamic.enabled:
        return GitHubTopicRepositories(
            organization=dynamic.organization,
            topic=dynamic.topic,
        )

    if config.repositories is not None:
        return StaticRepositories(tuple(config.repositories))

    raise ConfigurationError(
        "No repositories configured. Either provide static repositories "
        "or enable dynamic repository fetching."
    )
