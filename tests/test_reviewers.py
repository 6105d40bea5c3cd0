"""Tests for reviewer suggestions."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from pr_radar.config import PRRadarConfig
from pr_radar.models import OrgMember, OwnershipRecord
from pr_radar.reviewers import ReviewerSuggestionService, suggest_reviewers
from pr_radar.store import Store


def _member(handle: str | None, member_id: str | None = None) -> OrgMember:
    return OrgMember(id=member_id or f"m-{handle}", org_id="org-1", handle=handle)


@pytest.fixture
def ownership() -> list[OwnershipRecord]:
    return [
        OwnershipRecord(
            path="api/users.py",
            primary_contributors=["alice"],
            recent_contributors=["alice", "bob"],
            expertise_score=4.0,
        ),
        OwnershipRecord(
            path="src/components/Button.tsx",
            primary_contributors=["Alice"],
            expertise_score=3.0,
        ),
    ]


class TestSuggestReviewers:
    def test_ranking_and_reasoning(self, ownership: list[OwnershipRecord]) -> None:
        members = [_member("bob"), _member("alice"), _member("carol")]
        paths = [r.path for r in ownership]

        suggestions = suggest_reviewers(members, ownership, paths, author="carol")

        assert [s.handle for s in suggestions] == ["alice", "bob"]
        alice, bob = suggestions
        assert alice.confidence_score == 0.9
        assert alice.reasoning == [
            "Primary contributor to 2 of 2 modified files",
            "Recent activity in 1 of 2 modified files",
            "Experience across multiple areas: Backend, Frontend",
        ]
        assert alice.expertise_areas == ["Backend", "Frontend"]
        assert bob.confidence_score == 0.2
        assert bob.reasoning == ["Recent activity in 1 of 2 modified files"]

    def test_author_excluded_case_insensitively(
        self, ownership: list[OwnershipRecord]
    ) -> None:
        members = [_member("alice"), _member("bob")]
        suggestions = suggest_reviewers(members, ownership, [], author="ALICE")
        assert [s.handle for s in suggestions] == ["bob"]

    def test_members_without_handle_or_history_skipped(
        self, ownership: list[OwnershipRecord]
    ) -> None:
        members = [_member(None, "m-x"), _member("zed")]
        assert suggest_reviewers(members, ownership, [], author="carol") == []

    def test_cap_keeps_member_order_on_ties(self) -> None:
        handles = [f"dev{i}" for i in range(8)]
        ownership = [OwnershipRecord(path="lib/x.py", recent_contributors=handles)]
        members = [_member(h) for h in handles]

        suggestions = suggest_reviewers(members, ownership, ["lib/x.py"], "carol",
                                        max_results=5)

        assert [s.handle for s in suggestions] == handles[:5]
        assert all(s.confidence_score == 0.2 for s in suggestions)

    def test_high_expertise_bonus(self) -> None:
        ownership = [
            OwnershipRecord(path="lib/x.py", primary_contributors=["alice"],
                            expertise_score=8.0),
        ]
        [alice] = suggest_reviewers([_member("alice")], ownership, ["lib/x.py"], "carol")
        assert alice.confidence_score == 0.4
        assert "High expertise in modified codebase areas" in alice.reasoning

    def test_confidence_capped_at_one(self) -> None:
        ownership = [
            OwnershipRecord(path=f"api/f{i}.py", primary_contributors=["alice"],
                            recent_contributors=["alice"])
            for i in range(5)
        ]
        [alice] = suggest_reviewers([_member("alice")], ownership, [], "carol")
        assert alice.confidence_score == 1.0

    def test_empty_inputs(self) -> None:
        assert suggest_reviewers([], [], [], "carol") == []


class TestReviewerSuggestionService:
    async def test_get_suggestions(
        self, store: Store, ownership: list[OwnershipRecord]
    ) -> None:
        for handle in ("alice", "bob", "carol"):
            store.upsert_member(_member(handle))
        store.upsert_member(OrgMember(id="m-other", org_id="org-2", handle="eve"))

        service = ReviewerSuggestionService(store, AsyncMock(), PRRadarConfig())
        service.analyzer = AsyncMock()
        service.analyzer.analyze.return_value = ownership

        result = await service.get_suggestions(
            "org-1", "acme/api", [r.path for r in ownership], "carol"
        )

        assert result.confidence_threshold == 0.3
        assert [s.handle for s in result.suggestions] == ["alice", "bob"]
        assert [s.handle for s in result.confident] == ["alice"]

    async def test_no_members_skips_analysis(self, store: Store) -> None:
        service = ReviewerSuggestionService(store, AsyncMock())
        service.analyzer = AsyncMock()

        result = await service.get_suggestions("org-1", "acme/api", ["a.py"], "carol")

        assert result.suggestions == []
        service.analyzer.analyze.assert_not_awaited()

    async def test_empty_org_id(self, store: Store) -> None:
        service = ReviewerSuggestionService(store, AsyncMock())
        with pytest.raises(ValueError):
            await service.get_suggestions("", "acme/api", ["a.py"], "carol")
