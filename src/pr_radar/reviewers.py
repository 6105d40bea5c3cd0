"""Reviewer suggestions ranked by code ownership."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime

from pr_radar.classifier import expertise_area
from pr_radar.config import PRRadarConfig
from pr_radar.github_client import GitHubClient
from pr_radar.models import OrgMember, OwnershipRecord, ReviewerSuggestion, SuggestionResult
from pr_radar.ownership import CodeOwnershipAnalyzer
from pr_radar.store import Store

logger = logging.getLogger(__name__)

PRIMARY_OWNER_POINTS = 3.0
RECENT_CONTRIBUTOR_POINTS = 2.0
BROAD_EXPERTISE_BONUS = 1.0
HIGH_EXPERTISE_BONUS = 1.0
HIGH_EXPERTISE_LEVEL = 5.0


def _score_member(
    member: OrgMember,
    ownership: Sequence[OwnershipRecord],
    touched_count: int,
    average_expertise: float,
) -> ReviewerSuggestion:
    handle = member.handle or ""
    key = handle.casefold()
    raw = 0.0
    primary_files = 0
    recent_files = 0
    areas: list[str] = []

    for record in ownership:
        is_primary = key in {c.casefold() for c in record.primary_contributors}
        is_recent = key in {c.casefold() for c in record.recent_contributors}
        if is_primary:
            primary_files += 1
            raw += PRIMARY_OWNER_POINTS
        if is_recent:
            recent_files += 1
            raw += RECENT_CONTRIBUTOR_POINTS
        if is_primary or is_recent:
            area = expertise_area(record.path)
            if area is not None and area.value not in areas:
                areas.append(area.value)

    reasoning: list[str] = []
    if primary_files:
        reasoning.append(
            f"Primary contributor to {primary_files} of {touched_count} modified files"
        )
    if recent_files:
        reasoning.append(
            f"Recent activity in {recent_files} of {touched_count} modified files"
        )
    if len(areas) > 1:
        raw += BROAD_EXPERTISE_BONUS
        reasoning.append(f"Experience across multiple areas: {', '.join(areas)}")
    if average_expertise > HIGH_EXPERTISE_LEVEL:
        raw += HIGH_EXPERTISE_BONUS
        reasoning.append("High expertise in modified codebase areas")

    return ReviewerSuggestion(
        handle=handle,
        member_id=member.id,
        confidence_score=round(min(1.0, raw / 10), 2),
        reasoning=reasoning or ["Available for review"],
        expertise_areas=areas,
    )


def suggest_reviewers(
    members: Sequence[OrgMember],
    ownership: Sequence[OwnershipRecord],
    touched_paths: Sequence[str],
    author: str,
    max_results: int = 5,
) -> list[ReviewerSuggestion]:
    """Rank *members* as reviewers for a change touching *touched_paths*.

    The author and members without a handle are never suggested. Only
    candidates with a positive confidence are returned, highest first;
    equal confidences keep the order of *members*.
    """
    author_key = author.casefold()
    average_expertise = (
        sum(r.expertise_score for r in ownership) / len(ownership) if ownership else 0.0
    )
    touched_count = len(touched_paths) or len(ownership)

    suggestions = [
        _score_member(member, ownership, touched_count, average_expertise)
        for member in members
        if member.handle and member.handle.casefold() != author_key
    ]
    ranked = sorted(
        (s for s in suggestions if s.confidence_score > 0),
        key=lambda s: s.confidence_score,
        reverse=True,
    )
    return ranked[:max_results]


class ReviewerSuggestionService:
    """Load an organization's roster, analyze ownership and rank reviewers."""

    def __init__(
        self,
        store: Store,
        client: GitHubClient,
        config: PRRadarConfig | None = None,
    ) -> None:
        self.store = store
        self.config = config or PRRadarConfig()
        self.analyzer = CodeOwnershipAnalyzer(client, self.config.ownership)

    async def get_suggestions(
        self,
        org_id: str,
        repo: str,
        touched_paths: Sequence[str],
        author: str,
        now: datetime | None = None,
    ) -> SuggestionResult:
        if not org_id:
            raise ValueError("org_id must not be empty")
        threshold = self.config.suggestions.confidence_threshold

        members = [
            m for m in self.store.list_members(org_id)
            if m.handle and m.handle.casefold() != author.casefold()
        ]
        if not members:
            logger.info("No candidate reviewers in org %s", org_id)
            return SuggestionResult(confidence_threshold=threshold)

        ownership = await self.analyzer.analyze(repo, touched_paths, now=now)
        suggestions = suggest_reviewers(
            members,
            ownership,
            touched_paths,
            author,
            max_results=self.config.suggestions.max_results,
        )
        return SuggestionResult(suggestions=suggestions, confidence_threshold=threshold)
