"""Ingestion: fetch a pull request, score it and persist the insight."""

from __future__ import annotations

import logging
from collections.abc import Sequence

import httpx

from pr_radar.config import PRRadarConfig
from pr_radar.exceptions import PRRadarError
from pr_radar.github_client import GitHubClient
from pr_radar.models import FileChange, PRInsight, PullRequestSummary, ScoreResult
from pr_radar.reviewers import ReviewerSuggestionService
from pr_radar.scoring import score_pull_request
from pr_radar.store import Store

logger = logging.getLogger(__name__)


async def analyze_pull_request(
    client: GitHubClient,
    repo: str,
    number: int,
    config: PRRadarConfig | None = None,
) -> tuple[PullRequestSummary, list[FileChange], ScoreResult]:
    """Fetch a pull request with its files and score it."""
    config = config or PRRadarConfig()
    pr = await client.get_pull_request(repo, number)
    files = await client.list_pull_request_files(repo, number)
    return pr, files, score_pull_request(pr, files, config.scoring)


def build_insight(
    org_id: str,
    pr: PullRequestSummary,
    files: Sequence[FileChange],
    score: ScoreResult,
    suggested_reviewers: Sequence[str] = (),
) -> PRInsight:
    return PRInsight(
        org_id=org_id,
        repo=pr.repo,
        number=pr.number,
        title=pr.title,
        author=pr.author,
        status=pr.state,
        is_draft=pr.is_draft,
        size_score=score.size_score,
        risk_score=score.risk_score,
        risk_factors=score.risk_factors.model_dump(),
        recommendations=score.recommendations,
        suggested_reviewers=list(suggested_reviewers),
        touched_paths=[f.path for f in files],
        opened_at=pr.created_at,
        updated_at=pr.updated_at,
    )


async def ingest_pull_request(
    store: Store,
    client: GitHubClient,
    org_id: str,
    repo: str,
    number: int,
    config: PRRadarConfig | None = None,
    reviewer_service: ReviewerSuggestionService | None = None,
) -> PRInsight:
    """Score a pull request and upsert its insight for *org_id*.

    Reviewer suggestion failures are logged and leave the insight without
    suggested reviewers; the stale alert job can fill them in later.
    """
    config = config or PRRadarConfig()
    pr, files, score = await analyze_pull_request(client, repo, number, config)

    reviewers: list[str] = []
    if reviewer_service is not None and files:
        try:
            suggestions = await reviewer_service.get_suggestions(
                org_id, repo, [f.path for f in files], pr.author
            )
        except (PRRadarError, httpx.HTTPError) as exc:
            logger.warning("Reviewer suggestions failed for %s#%d: %s", repo, number, exc)
        else:
            reviewers = [s.handle for s in suggestions.confident]

    insight = build_insight(org_id, pr, files, score, reviewers)
    store.upsert_insight(insight)
    logger.info(
        "Stored insight for %s#%d (size %.1f, risk %.1f)",
        repo, number, score.size_score, score.risk_score,
    )
    return insight
