"""Custom exception hierarchy for PR Radar."""

from __future__ import annotations

from datetime import datetime


class PRRadarError(Exception):
    """Base exception for PR Radar."""


class ConfigError(PRRadarError):
    """Error with configuration."""


class StoreError(PRRadarError):
    """Error with the shared store."""


class GitHubAPIError(PRRadarError):
    """Error from the GitHub API."""

    def __init__(
        self,
        message: str,
        status_code: int = 0,
        rate_limit_remaining: int | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.rate_limit_remaining = rate_limit_remaining


class RateLimitExhaustedError(GitHubAPIError):
    """GitHub API rate limit exhausted."""

    def __init__(self, reset_at: datetime, rate_limit_remaining: int = 0):
        self.reset_at = reset_at
        super().__init__(
            f"Rate limit exhausted. Resets at {reset_at.isoformat()}",
            status_code=403,
            rate_limit_remaining=rate_limit_remaining,
        )


class RepoAccessDeniedError(GitHubAPIError):
    """The token cannot read the repository or resource."""

    def __init__(self, repo: str, status_code: int = 403):
        self.repo = repo
        super().__init__(f"Access denied: {repo}", status_code=status_code)


class PathNotFoundError(GitHubAPIError):
    """Repository, pull request or file path not found."""

    def __init__(self, resource: str):
        self.resource = resource
        super().__init__(f"Not found: {resource}", status_code=404)


class SlackDeliveryError(PRRadarError):
    """A Slack message could not be delivered."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class JobLockedError(PRRadarError):
    """A scheduled job is already running elsewhere."""

    def __init__(self, job_name: str):
        self.job_name = job_name
        super().__init__(f"Job is already running: {job_name}")
