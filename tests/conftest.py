"""Shared test fixtures for PR Radar tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest

from pr_radar.models import (
    FileChange,
    Organization,
    PRInsight,
    PRState,
    PullRequestSummary,
)
from pr_radar.store import Store

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=UTC)


def _make_pr(**overrides: Any) -> PullRequestSummary:
    data: dict[str, Any] = {
        "repo": "acme/api",
        "number": 42,
        "author": "carol",
        "title": "Add billing webhook",
        "additions": 120,
        "deletions": 30,
        "changed_files": 4,
        "commits": 3,
        "created_at": NOW - timedelta(days=3),
        "updated_at": NOW - timedelta(days=1),
    }
    data.update(overrides)
    return PullRequestSummary(**data)


def _make_insight(
    number: int,
    days_idle: float,
    org_id: str = "org-1",
    **overrides: Any,
) -> PRInsight:
    data: dict[str, Any] = {
        "org_id": org_id,
        "repo": "acme/api",
        "number": number,
        "title": f"Change {number}",
        "author": "carol",
        "status": PRState.OPEN,
        "size_score": 4.2,
        "risk_score": 5.1,
        "opened_at": NOW - timedelta(days=days_idle + 1),
        "updated_at": NOW - timedelta(days=days_idle),
    }
    data.update(overrides)
    return PRInsight(**data)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def store(tmp_path: Path) -> Iterator[Store]:
    s = Store(tmp_path / "radar.db")
    yield s
    s.close()


@pytest.fixture
def sample_pr() -> PullRequestSummary:
    return _make_pr()


@pytest.fixture
def sample_files() -> list[FileChange]:
    return [
        FileChange(path="src/billing/webhook.py", status="added", additions=90, deletions=0,
                   changes=90),
        FileChange(path="src/billing/client.py", additions=10, deletions=25, changes=35),
        FileChange(path="tests/test_webhook.py", status="added", additions=20, deletions=5,
                   changes=25),
        FileChange(path="README.md", additions=0, deletions=0, changes=0),
    ]


@pytest.fixture
def slack_org() -> Organization:
    return Organization(
        id="org-1",
        name="Acme",
        slack_webhook_url="https://hooks.slack.com/services/T000/B000/XXXX",
    )


@pytest.fixture
def make_pr() -> Callable[..., PullRequestSummary]:
    return _make_pr


@pytest.fixture
def make_insight() -> Callable[..., PRInsight]:
    return _make_insight
