"""Click-based CLI for PR Radar."""

from __future__ import annotations

import asyncio
import logging
import sys
from datetime import timedelta
from typing import Any

import click

from pr_radar.config import PRRadarConfig, load_config
from pr_radar.exceptions import ConfigError, GitHubAPIError, StoreError
from pr_radar.formatter import format_cli_output, format_json, format_suggestions_cli
from pr_radar.github_client import GitHubClient, split_repo
from pr_radar.insights import analyze_pull_request, ingest_pull_request
from pr_radar.job_lock import STALE_PR_ALERTS_JOB, JobLock
from pr_radar.models import SuggestionResult
from pr_radar.reviewers import ReviewerSuggestionService
from pr_radar.stale import StaleAlertJob
from pr_radar.store import Store

_LOG_FORMAT = "%(levelname)s: %(name)s: %(message)s"

_config_option = click.option("--config", "config_path", default=None, help="Config file path")
_token_option = click.option("--token", envvar="GITHUB_TOKEN", help="GitHub token")


def _load(config_path: str | None) -> PRRadarConfig:
    try:
        return load_config(config_path)
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


def _require_token(token: str | None) -> str:
    if not token:
        click.echo("Error: GitHub token required. Set GITHUB_TOKEN or use --token.", err=True)
        sys.exit(1)
    return token


def _check_repo(repo: str) -> None:
    try:
        split_repo(repo)
    except ValueError:
        click.echo("Error: REPO must be in owner/name format.", err=True)
        sys.exit(1)


def _run(coro: Any) -> Any:
    try:
        return asyncio.run(coro)
    except (GitHubAPIError, StoreError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


@click.group()
@click.version_option(package_name="pr-radar")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool) -> None:
    """PR Radar - pull request risk scoring, reviewer suggestions and stale alerts."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=_LOG_FORMAT,
    )


@main.command()
@click.argument("repo")
@click.argument("number", type=int)
@_token_option
@_config_option
@click.option("--details", is_flag=True, help="Show size metrics and risk factors")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def score(
    repo: str,
    number: int,
    token: str | None,
    config_path: str | None,
    details: bool,
    output_json: bool,
) -> None:
    """Score the size and risk of a pull request."""
    token = _require_token(token)
    _check_repo(repo)
    config = _load(config_path)

    async def _score() -> Any:
        async with GitHubClient(token, config) as client:
            return await analyze_pull_request(client, repo, number, config)

    pr, _files, result = _run(_score())
    if output_json:
        click.echo(format_json(result))
    else:
        click.echo(format_cli_output(result, pr, verbose=details))


@main.command()
@click.argument("repo")
@click.argument("number", type=int)
@click.option("--org", "org_id", required=True, help="Organization id")
@_token_option
@_config_option
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def suggest(
    repo: str,
    number: int,
    org_id: str,
    token: str | None,
    config_path: str | None,
    output_json: bool,
) -> None:
    """Suggest reviewers for a pull request from code ownership."""
    token = _require_token(token)
    _check_repo(repo)
    config = _load(config_path)
    store = Store(config.store.db_path)

    async def _suggest() -> SuggestionResult:
        async with GitHubClient(token, config) as client:
            pr = await client.get_pull_request(repo, number)
            files = await client.list_pull_request_files(repo, number)
            service = ReviewerSuggestionService(store, client, config)
            return await service.get_suggestions(
                org_id, repo, [f.path for f in files], pr.author
            )

    try:
        result = _run(_suggest())
    finally:
        store.close()

    if output_json:
        click.echo(format_json(result))
    else:
        click.echo(format_suggestions_cli(result))


@main.command()
@click.argument("repo")
@click.argument("number", type=int)
@click.option("--org", "org_id", required=True, help="Organization id")
@_token_option
@_config_option
@click.option(
    "--suggest/--no-suggest",
    "with_reviewers",
    default=True,
    help="Store suggested reviewers with the insight",
)
def ingest(
    repo: str,
    number: int,
    org_id: str,
    token: str | None,
    config_path: str | None,
    with_reviewers: bool,
) -> None:
    """Score a pull request and store the insight for stale tracking."""
    token = _require_token(token)
    _check_repo(repo)
    config = _load(config_path)
    store = Store(config.store.db_path)

    async def _ingest() -> Any:
        async with GitHubClient(token, config) as client:
            service = ReviewerSuggestionService(store, client, config) if with_reviewers else None
            return await ingest_pull_request(
                store, client, org_id, repo, number, config, reviewer_service=service
            )

    try:
        insight = _run(_ingest())
    finally:
        store.close()

    click.echo(
        f"Stored {insight.repo}#{insight.number}: "
        f"size {insight.size_score}/10, risk {insight.risk_score}/10"
    )
    if insight.suggested_reviewers:
        click.echo(f"Suggested reviewers: {', '.join(insight.suggested_reviewers)}")


@main.command("stale-alerts")
@_token_option
@_config_option
def stale_alerts(token: str | None, config_path: str | None) -> None:
    """Run the stale PR alert job once and print its result."""
    config = _load(config_path)
    store = Store(config.store.db_path)

    async def _job() -> Any:
        if not token:
            return await StaleAlertJob(store, config).run()
        async with GitHubClient(token, config) as client:
            service = ReviewerSuggestionService(store, client, config)
            return await StaleAlertJob(store, config, reviewer_service=service).run()

    try:
        result = asyncio.run(_job())
    finally:
        store.close()

    click.echo(result.model_dump_json(indent=2))
    if not result.success:
        sys.exit(1)


@main.command("lock-status")
@click.option("--job", "job_name", default=STALE_PR_ALERTS_JOB, help="Job name")
@_config_option
def lock_status(job_name: str, config_path: str | None) -> None:
    """Show the state of a job lock."""
    config = _load(config_path)
    store = Store(config.store.db_path)
    lock = JobLock(store, job_name, ttl=timedelta(minutes=config.job_lock.ttl_minutes))
    try:
        # an expired lease is released here and reported as unlocked
        locked = lock.is_locked()
        state = store.get_lock(job_name)
    finally:
        store.close()

    if state is None:
        click.echo(f"{job_name}: never locked")
        return
    status = click.style("locked", fg="red", bold=True) if locked else "unlocked"
    click.echo(f"{job_name}: {status}")
    if state.locked_at is not None:
        click.echo(f"Since: {state.locked_at.isoformat()}")
    if locked and state.locked_by:
        click.echo(f"Holder: {state.locked_by}")
