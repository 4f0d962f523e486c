"""GitHub access: raw file content and topic-based repository search."""

from __future__ import annotations

from urllib.parse import quote

import httpx

from repoaudit.core.config import GitHubConfig
from repoaudit.core.errors import (
    FetchError,
    InvalidRepositoryIdentifier,
    NotFound,
)
from repoaudit.core.log import logger

# GitHub search returns at most 1000 results, 100 per page.
SEARCH_PAGE_SIZE = 100
SEARCH_MAX_PAGES = 10


def parse_repository(repository: str) -> tuple[str, str]:
    """Split an owner/repo identifier on the first '/'.

    Raises:
        InvalidRepositoryIdentifier: If either part is empty or there
            is no '/'
    """
    owner, sep, name = repository.partition("/")
    if not sep or not owner or not name:
        raise InvalidRepositoryIdentifier(repository)
    return owner, name


class GitHubClient:
    """Thin async wrapper around the GitHub endpoints the audit needs.

    One instance is used for a whole run and must be closed, either
    with `async with` or aclose(). Requests are issued one at a time.
    """

    def __init__(
        self,
        config: GitHubConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Args:
            config: Endpoints, branch names, token and timeout
            transport: Optional transport override (tests use
                httpx.MockTransport)
        """
        self.config = config
        headers = {"User-Agent": config.user_agent}
        if config.token:
            headers["Authorization"] = f"Bearer {config.token}"
        self._http = httpx.AsyncClient(
            headers=headers,
            timeout=config.timeout,
            follow_redirects=True,
            transport=transport,
        )

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):  # noqa: U100
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def raw_url(self, owner: str, name: str, branch: str, file_path: str) -> str:
        # '#' and '?' are legal in file names but not in a URL path.
        return (
            f"{self.config.raw_base_url.rstrip('/')}/{owner}/{name}/"
            f"{branch}/{quote(file_path.lstrip('/'))}"
        )

    async def fetch(self, repository: str, file_path: str) -> str:
        """Return the raw text of file_path in repository.

        Tries the primary branch, then the fallback branch once.

        Raises:
            InvalidRepositoryIdentifier: Malformed repository identifier
            NotFound: Neither branch returned a success status
            FetchError: Transport failure (DNS, timeout, connection)
        """
        owner, name = parse_repository(repository)

        try:
            for branch in (
                self.config.primary_branch,
                self.config.fallback_branch,
            ):
                url = self.raw_url(owner, name, branch, file_path)
                logger.trace("GET {url}", url=url)
                response = await self._http.get(url)
                if response.is_success:
                    return response.text
                logger.debug(
                    "No {file_path} on {branch} ({status})",
                    repository=repository,
                    file_path=file_path,
                    branch=branch,
                    status=response.status_code,
                )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise FetchError(f"Failed to fetch {file_path}: {e}") from e

        raise NotFound(file_path)

    async def list_repositories(self, organization: str, topic: str) -> list[str]:
        """Return full names of organization repositories tagged topic.

        Order is whatever the search API returns.

        Raises:
            FetchError: Transport failure, non-success response or a
                payload without the expected items
        """
        url = f"{self.config.api_base_url.rstrip('/')}/search/repositories"
        query = f"org:{organization} topic:{topic}"
        names: list[str] = []

        for page in range(1, SEARCH_MAX_PAGES + 1):
            try:
                response = await self._http.get(
                    url,
                    params={
                        "q": query,
                        "per_page": SEARCH_PAGE_SIZE,
                        "page": page,
                    },
                    headers={"Accept": "application/vnd.github+json"},
                )
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                raise FetchError(
                    f"Failed to list repositories for {query!r}: {e}"
                ) from e

            if not response.is_success:
                raise FetchError(
                    f"Repository search for {query!r} failed with "
                    f"HTTP {response.status_code}: {response.text[:200]}"
                )

            try:
                payload = response.json()
                items = payload.get("items", [])
                names.extend(item["full_name"] for item in items)
                total = payload.get("total_count", 0)
            except (ValueError, KeyError, TypeError, AttributeError) as e:
                raise FetchError(
                    f"Unexpected repository search response for "
                    f"{query!r}: {e!r}"
                ) from e

            if len(items) < SEARCH_PAGE_SIZE or len(names) >= total:
                break

        logger.debug(
            "Repository search returned {count} repositories",
            query=query,
            count=len(names),
        )
        return names
