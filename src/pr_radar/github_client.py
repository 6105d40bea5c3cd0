"""Async GitHub REST client for pull request and commit history data."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

import httpx

from pr_radar.config import PRRadarConfig
from pr_radar.exceptions import (
    GitHubAPIError,
    PathNotFoundError,
    RateLimitExhaustedError,
    RepoAccessDeniedError,
)
from pr_radar.models import Commit, FileChange, FileStatus, PRState, PullRequestSummary

logger = logging.getLogger(__name__)

_GITHUB_BASE_URL = "https://api.github.com"
_PER_PAGE = 100
_MAX_FILE_PAGES = 30  # GitHub caps the files endpoint at 3000 entries


def split_repo(repo: str) -> tuple[str, str]:
    """Parse an owner/name string into (owner, name).

    Raises ValueError if the format is invalid.
    """
    parts = repo.split("/")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        msg = f"repo must be in owner/name format, got: {repo!r}"
        raise ValueError(msg)
    return parts[0], parts[1]


def _parse_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


class GitHubClient:
    """Async GitHub API client used by ingestion and ownership analysis."""

    def __init__(
        self,
        token: str,
        config: PRRadarConfig | None = None,
        base_url: str = _GITHUB_BASE_URL,
    ) -> None:
        self._config = config if config is not None else PRRadarConfig()
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
            },
            timeout=self._config.http.timeout_seconds,
        )

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self._client.aclose()

    async def _get(self, path: str, resource: str, params: dict[str, Any] | None = None) -> Any:
        """GET *path* and return the decoded JSON body.

        Raises:
            RateLimitExhaustedError: On 429, or 403 with an exhausted rate limit.
            RepoAccessDeniedError: On 401 or any other 403.
            PathNotFoundError: On 404.
            GitHubAPIError: For any other non-200 response.
        """
        response = await self._client.get(path, params=params)

        if response.status_code in (403, 429):
            remaining = response.headers.get("X-RateLimit-Remaining")
            try:
                body = response.json() if response.content else {}
            except ValueError:
                body = {}
            message = str(body.get("message", "")) if isinstance(body, dict) else ""
            if (
                response.status_code == 429
                or remaining == "0"
                or "rate limit" in message.lower()
            ):
                reset_header = response.headers.get("X-RateLimit-Reset")
                if reset_header:
                    reset_at = datetime.fromtimestamp(int(reset_header), tz=UTC)
                else:
                    reset_at = datetime.now(UTC)
                raise RateLimitExhaustedError(reset_at=reset_at)

        if response.status_code in (401, 403):
            raise RepoAccessDeniedError(resource, status_code=response.status_code)
        if response.status_code == 404:
            raise PathNotFoundError(resource)
        if response.status_code != 200:
            remaining = response.headers.get("X-RateLimit-Remaining")
            raise GitHubAPIError(
                message=f"GitHub API returned {response.status_code} for {resource}",
                status_code=response.status_code,
                rate_limit_remaining=int(remaining) if remaining else None,
            )
        return response.json()

    async def list_commits_touching_path(
        self, repo: str, path: str, limit: int = 50
    ) -> list[Commit]:
        """Return up to *limit* most recent commits that touched *path*."""
        owner, name = split_repo(repo)
        data = await self._get(
            f"/repos/{owner}/{name}/commits",
            resource=f"{repo}:{path}",
            params={"path": path, "per_page": min(limit, _PER_PAGE)},
        )

        commits: list[Commit] = []
        for item in data[:limit]:
            commit_author = (item.get("commit") or {}).get("author") or {}
            gh_author = item.get("author") or {}
            authored_at = _parse_datetime(commit_author.get("date"))
            if authored_at is None:
                continue
            commits.append(
                Commit(
                    sha=item.get("sha", ""),
                    author=gh_author.get("login") or commit_author.get("name"),
                    authored_at=authored_at,
                )
            )
        return commits

    async def get_pull_request(self, repo: str, number: int) -> PullRequestSummary:
        """Fetch the summary fields of a single pull request."""
        owner, name = split_repo(repo)
        data = await self._get(
            f"/repos/{owner}/{name}/pulls/{number}", resource=f"{repo}#{number}"
        )

        merged_at = _parse_datetime(data.get("merged_at"))
        if merged_at is not None:
            state = PRState.MERGED
        else:
            state = PRState(data.get("state", "open"))

        return PullRequestSummary(
            repo=repo,
            number=number,
            author=(data.get("user") or {}).get("login") or "ghost",
            title=data.get("title") or "",
            state=state,
            is_draft=bool(data.get("draft", False)),
            additions=data.get("additions", 0),
            deletions=data.get("deletions", 0),
            changed_files=data.get("changed_files", 0),
            commits=data.get("commits", 0),
            created_at=_parse_datetime(data["created_at"]),
            updated_at=_parse_datetime(data["updated_at"]),
            merged_at=merged_at,
        )

    async def list_pull_request_files(self, repo: str, number: int) -> list[FileChange]:
        """Fetch every file changed by a pull request, 100 per page."""
        owner, name = split_repo(repo)
        files: list[FileChange] = []

        for page in range(1, _MAX_FILE_PAGES + 1):
            data = await self._get(
                f"/repos/{owner}/{name}/pulls/{number}/files",
                resource=f"{repo}#{number}",
                params={"per_page": _PER_PAGE, "page": page},
            )
            for item in data:
                # "copied", "changed" and "unchanged" count as modifications
                try:
                    status = FileStatus(item.get("status", "modified"))
                except ValueError:
                    status = FileStatus.MODIFIED
                files.append(
                    FileChange(
                        path=item["filename"],
                        status=status,
                        additions=item.get("additions", 0),
                        deletions=item.get("deletions", 0),
                        changes=item.get("changes", 0),
                    )
                )
            if len(data) < _PER_PAGE:
                break

        logger.debug("Fetched %d files for %s#%d", len(files), repo, number)
        return files
