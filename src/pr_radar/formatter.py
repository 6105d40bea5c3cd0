"""Output formatting for PR Radar: Slack messages, terminal and JSON."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import click

from pr_radar.models import (
    PRAlertData,
    PullRequestSummary,
    ScoreResult,
    StalePullRequestAlert,
    SuggestionResult,
)

BOT_USERNAME = "PR Radar"
HIGH_RISK_ALERT = "\U0001f6a8 High Risk PR"   # rotating light
STALE_ALERT = "\u23f0 Stale PR Alert"     # alarm clock
HIGH_RISK_COLOR = "#ff4444"
STALE_COLOR = "#ffaa00"

_HIGH_RISK_LEVEL = 7.0


def _score_color(value: float) -> str:
    if value >= 7:
        return "red"
    if value >= 4:
        return "yellow"
    return "green"


def format_pr_alert_message(alert: PRAlertData) -> dict[str, Any]:
    """Build the Slack payload for an individual PR alert."""
    high_risk = alert.risk_score >= _HIGH_RISK_LEVEL
    alert_type = HIGH_RISK_ALERT if high_risk else STALE_ALERT
    ref = f"{alert.repo}#{alert.number}"

    fields: list[dict[str, Any]] = [
        {"title": "Author", "value": alert.author, "short": True},
        {"title": "Days Open", "value": str(alert.days_open), "short": True},
        {"title": "Risk Score", "value": f"{alert.risk_score}/10", "short": True},
        {"title": "Size Score", "value": f"{alert.size_score}/10", "short": True},
    ]
    if alert.suggested_reviewers:
        fields.append({
            "title": "Suggested Reviewers",
            "value": ", ".join(alert.suggested_reviewers),
            "short": False,
        })

    return {
        "text": f"{alert_type}: {ref}",
        "blocks": [
            {
                "type": "section",
                "text": {"type": "mrkdwn", "text": f"{alert_type}: *<{alert.url}|{ref}>*"},
            },
            {
                "type": "actions",
                "elements": [{
                    "type": "button",
                    "text": {"type": "plain_text", "text": "View PR", "emoji": True},
                    "url": alert.url,
                    "action_id": "view_pr",
                }],
            },
        ],
        "attachments": [{
            "color": HIGH_RISK_COLOR if high_risk else STALE_COLOR,
            "title": f"{ref}: {alert.title}",
            "title_link": alert.url,
            "fields": fields,
            "footer": BOT_USERNAME,
        }],
        "username": BOT_USERNAME,
        "icon_emoji": ":radar:",
    }


def format_stale_summary_message(
    alerts: Sequence[StalePullRequestAlert],
    org_name: str,
    days_threshold: int = 2,
    critical_days: int = 7,
    max_listed: int = 10,
) -> dict[str, Any]:
    """Build one Slack summary listing warning-level stale PRs.

    At most *max_listed* PRs are listed; the rest are counted.
    """
    lines = [
        f"• <{a.insight.url}|{a.insight.repo}#{a.insight.number}>"
        f" - {a.days_stale} days old"
        for a in alerts[:max_listed]
    ]
    remainder = len(alerts) - max_listed
    if remainder > 0:
        lines.append(f"... and {remainder} more")

    tip = (
        f"\U0001f4a1 *Tip:* PRs are considered stale after {days_threshold} days"
        f" without activity. Critical alerts are sent for PRs older than"
        f" {critical_days} days."
    )
    return {
        "text": f"\u23f0 Stale PR Summary for {org_name}",
        "blocks": [
            {
                "type": "header",
                "text": {
                    "type": "plain_text",
                    "text": f"\u23f0 Stale PR Summary - {org_name}",
                    "emoji": True,
                },
            },
            {
                "type": "section",
                "text": {
                    "type": "mrkdwn",
                    "text": f"Found {len(alerts)} stale PRs that need attention:",
                },
            },
            {"type": "section", "text": {"type": "mrkdwn", "text": "\n".join(lines)}},
            {"type": "context", "elements": [{"type": "mrkdwn", "text": tip}]},
        ],
        "username": BOT_USERNAME,
        "icon_emoji": ":hourglass_flowing_sand:",
    }


def format_cli_output(
    score: ScoreResult, pr: PullRequestSummary, verbose: bool = False
) -> str:
    """Format a score result for terminal display with color."""
    size_styled = click.style(
        f"{score.size_score}/10", fg=_score_color(score.size_score), bold=True
    )
    risk_styled = click.style(
        f"{score.risk_score}/10", fg=_score_color(score.risk_score), bold=True
    )

    lines: list[str] = [
        f"{pr.repo}#{pr.number}: {pr.title}",
        f"Author: {pr.author}",
        f"Size: {size_styled} | Risk: {risk_styled}",
    ]

    if verbose:
        metrics = score.size_metrics
        lines.append("")
        lines.append(
            f"+{metrics.additions} -{metrics.deletions} | "
            f"Files: {metrics.files_changed} | Tests: {metrics.tests_changed}"
        )
        lines.append("")
        lines.append("Risk factors:")
        for name, value in score.risk_factors.model_dump().items():
            lines.append(f"  {name}: {value}")

    if score.recommendations:
        lines.append("")
        lines.append("Recommendations:")
        for rec in score.recommendations:
            lines.append(f"  - {rec}")

    return "\n".join(lines)


def format_suggestions_cli(result: SuggestionResult) -> str:
    """Format reviewer suggestions for the terminal."""
    if not result.suggestions:
        return "No reviewer suggestions."

    lines: list[str] = []
    for s in result.suggestions:
        pct = f"{s.confidence_score * 100:.0f}%"
        if s.confidence_score >= result.confidence_threshold:
            pct = click.style(pct, fg="green", bold=True)
        lines.append(f"{s.handle} ({pct})")
        for reason in s.reasoning:
            lines.append(f"  - {reason}")
    return "\n".join(lines)


def format_json(result: ScoreResult | SuggestionResult) -> str:
    """Format a result model as JSON."""
    return result.model_dump_json(indent=2)
