"""Data models for PR Radar."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, computed_field


class PRState(StrEnum):
    """Pull request lifecycle states."""
    OPEN = "open"
    CLOSED = "closed"
    MERGED = "merged"


class FileStatus(StrEnum):
    """Change status of a file within a pull request."""
    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"
    RENAMED = "renamed"


class AlertLevel(StrEnum):
    """Severity of a stale PR alert."""
    WARNING = "warning"
    CRITICAL = "critical"


class FileChange(BaseModel):
    """A single file touched by a pull request."""
    model_config = ConfigDict(frozen=True)

    path: str
    status: FileStatus = FileStatus.MODIFIED
    additions: int = Field(default=0, ge=0)
    deletions: int = Field(default=0, ge=0)
    changes: int = Field(default=0, ge=0)


class PullRequestSummary(BaseModel):
    """Immutable snapshot of a pull request at ingestion time."""
    model_config = ConfigDict(frozen=True)

    repo: str = Field(min_length=3, pattern=r"^[^/\s]+/[^/\s]+$")
    number: int = Field(gt=0)
    author: str = Field(min_length=1)
    title: str = ""
    state: PRState = PRState.OPEN
    is_draft: bool = False
    additions: int = Field(default=0, ge=0)
    deletions: int = Field(default=0, ge=0)
    changed_files: int = Field(default=0, ge=0)
    commits: int = Field(default=0, ge=0)
    created_at: datetime
    updated_at: datetime
    merged_at: datetime | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def url(self) -> str:
        return f"https://github.com/{self.repo}/pull/{self.number}"


class SizeMetrics(BaseModel):
    """Raw size figures behind the size score."""
    additions: int = 0
    deletions: int = 0
    files_changed: int = 0
    tests_changed: int = 0
    total_changes: int = 0


class RiskFactors(BaseModel):
    """Individual risk sub-factors, each on a 0-10 scale."""
    size: float = Field(default=0.0, ge=0, le=10)
    test_coverage: float = Field(default=0.0, ge=0, le=10)
    critical_path: float = Field(default=0.0, ge=0, le=10)
    complexity: float = Field(default=0.0, ge=0, le=10)
    author_experience: float = Field(default=0.0, ge=0, le=10)
    file_type: float = Field(default=0.0, ge=0, le=10)


class ScoreResult(BaseModel):
    """Complete size/risk score for a pull request."""
    size_score: float = Field(ge=0, le=10)
    risk_score: float = Field(ge=0, le=10)
    risk_factors: RiskFactors
    size_metrics: SizeMetrics
    recommendations: list[str] = []
    config_version: int = 1


class Commit(BaseModel):
    """A commit as seen by the ownership analyzer."""
    sha: str = ""
    author: str | None = None
    authored_at: datetime


class OwnershipRecord(BaseModel):
    """Inferred ownership of a single file path."""
    path: str
    primary_contributors: list[str] = []
    recent_contributors: list[str] = []
    expertise_score: float = Field(default=0.0, ge=0, le=10)
    commit_count: int = 0
    analyzed: bool = True


class OrgMember(BaseModel):
    """A member of an organization who may review code."""
    id: str
    org_id: str
    handle: str | None = None
    name: str = ""


class ReviewerSuggestion(BaseModel):
    """A ranked reviewer candidate."""
    handle: str
    member_id: str
    confidence_score: float = Field(ge=0, le=1)
    reasoning: list[str] = []
    expertise_areas: list[str] = []


class SuggestionResult(BaseModel):
    """Reviewer suggestions plus the threshold callers should apply."""
    suggestions: list[ReviewerSuggestion] = []
    confidence_threshold: float = 0.3

    @property
    def confident(self) -> list[ReviewerSuggestion]:
        return [
            s for s in self.suggestions
            if s.confidence_score >= self.confidence_threshold
        ]


class Organization(BaseModel):
    """An organization and its chat integration settings."""
    id: str
    name: str
    slack_webhook_url: str | None = None
    slack_bot_token: str | None = None
    slack_channel: str | None = None
    deleted_at: datetime | None = None

    @property
    def has_slack(self) -> bool:
        return bool(self.slack_webhook_url or self.slack_bot_token)


class PRInsight(BaseModel):
    """Persisted scoring insight for a pull request."""
    org_id: str
    repo: str
    number: int
    title: str = ""
    author: str | None = None
    status: PRState = PRState.OPEN
    is_draft: bool = False
    size_score: float = 0.0
    risk_score: float = 0.0
    risk_factors: dict[str, float] = {}
    recommendations: list[str] = []
    suggested_reviewers: list[str] = []
    touched_paths: list[str] = []
    opened_at: datetime
    updated_at: datetime

    @computed_field  # type: ignore[prop-decorator]
    @property
    def url(self) -> str:
        return f"https://github.com/{self.repo}/pull/{self.number}"


class StalePullRequestAlert(BaseModel):
    """A stored insight that has gone quiet for too long."""
    insight: PRInsight
    days_stale: int = Field(ge=0)
    last_activity: datetime
    alert_level: AlertLevel


class JobLockState(BaseModel):
    """Row state of a named job lock."""
    job_name: str
    is_locked: bool = False
    locked_at: datetime | None = None
    locked_by: str | None = None


class PRAlertData(BaseModel):
    """Fields rendered into an individual PR alert message."""
    repo: str
    number: int
    title: str
    author: str
    url: str
    risk_score: float = 0.0
    size_score: float = 0.0
    days_open: int = 0
    suggested_reviewers: list[str] = []
    is_stale: bool = False


class BatchSendResult(BaseModel):
    """Outcome of sending several chat messages."""
    sent: int = 0
    failed: int = 0
    errors: list[str] = []


class StaleAlertJobResult(BaseModel):
    """Outcome of a scheduled stale PR alert run."""
    success: bool = True
    processed_orgs: int = 0
    detected_stale_prs: int = 0
    sent_alerts: int = 0
    execution_time_ms: int = 0
    errors: list[str] = []
