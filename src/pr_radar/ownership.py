"""Code ownership inferred from per-file commit history."""

from __future__ import annotations

import logging
import math
from collections import Counter
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta

import httpx

from pr_radar.config import OwnershipConfig
from pr_radar.exceptions import (
    GitHubAPIError,
    PathNotFoundError,
    RateLimitExhaustedError,
    RepoAccessDeniedError,
)
from pr_radar.github_client import GitHubClient
from pr_radar.models import Commit, OwnershipRecord

logger = logging.getLogger(__name__)


def summarize_commits(
    path: str,
    commits: Sequence[Commit],
    now: datetime,
    config: OwnershipConfig | None = None,
) -> OwnershipRecord:
    """Derive primary and recent contributors for *path* from its commits.

    Primary contributors authored at least ``primary_share`` of the
    analyzed commits (top ``max_primary`` kept). Recent contributors have
    a commit within ``recent_days`` of *now*.
    """
    config = config or OwnershipConfig()
    if not commits:
        return OwnershipRecord(path=path)

    counts: Counter[str] = Counter()
    recent: dict[str, None] = {}
    recent_since = now - timedelta(days=config.recent_days)

    for commit in commits:
        if not commit.author:
            continue
        counts[commit.author] += 1
        if commit.authored_at > recent_since:
            recent.setdefault(commit.author, None)

    total = len(commits)
    # most_common keeps first-seen order among equal counts
    primary = [
        author for author, count in counts.most_common()
        if count / total >= config.primary_share
    ][: config.max_primary]

    expertise = min(
        10.0,
        len(primary) * 2 + len(recent) * 1.5 + math.log(total + 1) * 0.5,
    )
    return OwnershipRecord(
        path=path,
        primary_contributors=primary,
        recent_contributors=list(recent),
        expertise_score=expertise,
        commit_count=total,
    )


class CodeOwnershipAnalyzer:
    """Walk commit history of touched files and summarize who owns them."""

    def __init__(self, client: GitHubClient, config: OwnershipConfig | None = None) -> None:
        self.client = client
        self.config = config or OwnershipConfig()

    async def analyze(
        self,
        repo: str,
        paths: Sequence[str],
        now: datetime | None = None,
    ) -> list[OwnershipRecord]:
        """Return one ownership record per path, in the order given.

        A path whose history cannot be read gets a zero-value record
        instead of failing the whole request. Rate-limit exhaustion is
        re-raised since every remaining path would fail the same way.
        """
        now = now or datetime.now(UTC)
        records: list[OwnershipRecord] = []

        for path in paths:
            try:
                commits = await self.client.list_commits_touching_path(
                    repo, path, limit=self.config.commit_limit
                )
            except RateLimitExhaustedError:
                raise
            except RepoAccessDeniedError as exc:
                logger.warning("Skipping ownership for %s in %s: %s", path, repo, exc)
                records.append(OwnershipRecord(path=path, analyzed=False))
                continue
            except PathNotFoundError:
                logger.info("No history for %s in %s (deleted or renamed)", path, repo)
                records.append(OwnershipRecord(path=path, analyzed=False))
                continue
            except (GitHubAPIError, httpx.TransportError) as exc:
                logger.warning("Failed to analyze ownership for %s: %s", path, exc)
                records.append(OwnershipRecord(path=path, analyzed=False))
                continue

            records.append(summarize_commits(path, commits, now, self.config))

        return records
