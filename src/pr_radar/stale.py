"""Stale pull request detection and the scheduled alert job."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from datetime import UTC, datetime, timedelta

import httpx

from pr_radar.config import PRRadarConfig
from pr_radar.exceptions import JobLockedError, PRRadarError, SlackDeliveryError
from pr_radar.formatter import format_stale_summary_message
from pr_radar.job_lock import STALE_PR_ALERTS_JOB, JobLock
from pr_radar.models import (
    AlertLevel,
    Organization,
    PRAlertData,
    PRInsight,
    StaleAlertJobResult,
    StalePullRequestAlert,
)
from pr_radar.reviewers import ReviewerSuggestionService
from pr_radar.slack_client import SlackClient
from pr_radar.store import Store

logger = logging.getLogger(__name__)

JOB_ALREADY_RUNNING = "Stale PR alert job is already running"

SlackFactory = Callable[[Organization], SlackClient]


def classify_stale(
    insight: PRInsight, now: datetime, critical_days: int = 7
) -> StalePullRequestAlert:
    """Wrap *insight* with its whole days of inactivity and alert level."""
    days_stale = max(0, (now - insight.updated_at) // timedelta(days=1))
    level = AlertLevel.CRITICAL if days_stale >= critical_days else AlertLevel.WARNING
    return StalePullRequestAlert(
        insight=insight,
        days_stale=days_stale,
        last_activity=insight.updated_at,
        alert_level=level,
    )


class StalePRDetector:
    """Find stored open pull requests that have gone quiet."""

    def __init__(self, store: Store) -> None:
        self.store = store

    def find_stale(
        self,
        org_id: str,
        days_threshold: int = 2,
        repos: Sequence[str] | None = None,
        exclude_draft: bool = True,
        now: datetime | None = None,
        critical_days: int = 7,
    ) -> list[StalePullRequestAlert]:
        """Return stale alerts for *org_id*, least recently updated first."""
        now = now or datetime.now(UTC)
        insights = self.store.list_stale_insights(
            org_id,
            updated_before=now - timedelta(days=days_threshold),
            repos=repos,
            exclude_draft=exclude_draft,
        )
        return [classify_stale(i, now, critical_days) for i in insights]


class StaleAlertJob:
    """One run of stale PR alerting across every organization with Slack.

    Critical PRs get an individual alert each; warning PRs are rolled into
    a single summary per organization. The run is guarded by a job lock
    so overlapping schedules never double-alert.
    """

    def __init__(
        self,
        store: Store,
        config: PRRadarConfig | None = None,
        slack_factory: SlackFactory | None = None,
        reviewer_service: ReviewerSuggestionService | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.store = store
        self.config = config or PRRadarConfig()
        self.detector = StalePRDetector(store)
        self.reviewer_service = reviewer_service
        self._slack_factory = slack_factory or (
            lambda org: SlackClient.from_organization(org, self.config)
        )
        self._clock = clock or (lambda: datetime.now(UTC))
        self.lock = JobLock(
            store,
            STALE_PR_ALERTS_JOB,
            ttl=timedelta(minutes=self.config.job_lock.ttl_minutes),
            clock=self._clock,
        )

    async def run(self) -> StaleAlertJobResult:
        """Run the job. Never raises; failures are reported in the result."""
        started = time.monotonic()
        result = StaleAlertJobResult()

        try:
            if self.lock.is_locked():
                raise JobLockedError(self.lock.job_name)
            async with self.lock.hold():
                organizations = self.store.list_alerting_organizations()
                if not organizations:
                    logger.info("No organizations with Slack integrations found")
                for org in organizations:
                    try:
                        await self._process_organization(org, result)
                        result.processed_orgs += 1
                    except Exception as exc:
                        logger.exception("Failed to process org %s", org.name)
                        result.errors.append(f"Failed to process org {org.name}: {exc}")
                        result.success = False
        except JobLockedError:
            logger.info(JOB_ALREADY_RUNNING)
            result.errors.append(JOB_ALREADY_RUNNING)
            result.success = False
        except Exception as exc:
            logger.exception("Stale PR alert job failed")
            result.errors.append(f"Stale PR alert job failed: {exc}")
            result.success = False

        result.execution_time_ms = int((time.monotonic() - started) * 1000)
        return result

    async def _process_organization(
        self, org: Organization, result: StaleAlertJobResult
    ) -> None:
        settings = self.config.stale_alerts
        stale = self.detector.find_stale(
            org.id,
            days_threshold=settings.days_threshold,
            exclude_draft=settings.exclude_draft,
            now=self._clock(),
            critical_days=settings.critical_days,
        )
        if not stale:
            logger.info("No stale PRs found for organization %s", org.name)
            return

        result.detected_stale_prs += len(stale)
        critical = [a for a in stale if a.alert_level == AlertLevel.CRITICAL]
        warning = [a for a in stale if a.alert_level == AlertLevel.WARNING]

        async with self._slack_factory(org) as slack:
            if critical:
                alerts = [await self._alert_data(org, a) for a in critical]
                sent = await slack.send_pr_alerts(alerts, delay_ms=settings.alert_delay_ms)
                result.sent_alerts += sent.sent
                if sent.errors:
                    result.errors.extend(sent.errors)
                    result.success = False

            if warning:
                message = format_stale_summary_message(
                    warning,
                    org.name,
                    days_threshold=settings.days_threshold,
                    critical_days=settings.critical_days,
                    max_listed=settings.summary_max_listed,
                )
                try:
                    await slack.send_message(message)
                    result.sent_alerts += 1
                except SlackDeliveryError as exc:
                    logger.error("Failed to send stale PR summary for %s: %s", org.name, exc)
                    result.errors.append(
                        f"Failed to send stale PR summary for {org.name}: {exc}"
                    )
                    result.success = False

        logger.info(
            "Processed %d stale PRs for %s: %d critical, %d warnings",
            len(stale), org.name, len(critical), len(warning),
        )

    async def _alert_data(self, org: Organization, alert: StalePullRequestAlert) -> PRAlertData:
        insight = alert.insight
        return PRAlertData(
            repo=insight.repo,
            number=insight.number,
            title=insight.title or f"Stale PR - {alert.days_stale} days old",
            author=insight.author or "Unknown",
            url=insight.url,
            risk_score=insight.risk_score,
            size_score=insight.size_score,
            days_open=alert.days_stale,
            suggested_reviewers=await self._reviewers_for(org, insight),
            is_stale=True,
        )

    async def _reviewers_for(self, org: Organization, insight: PRInsight) -> list[str]:
        if insight.suggested_reviewers or self.reviewer_service is None:
            return insight.suggested_reviewers
        if not insight.touched_paths:
            return []
        try:
            suggestions = await self.reviewer_service.get_suggestions(
                org.id, insight.repo, insight.touched_paths, insight.author or ""
            )
        except (PRRadarError, httpx.HTTPError) as exc:
            logger.warning(
                "Reviewer suggestions failed for %s#%d: %s", insight.repo, insight.number, exc
            )
            return []
        return [s.handle for s in suggestions.confident]
