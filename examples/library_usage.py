"""Example: Score a pull request and suggest reviewers with PR Radar."""

from __future__ import annotations

import asyncio
import os

from pr_radar import PRRadarConfig, ReviewerSuggestionService
from pr_radar.github_client import GitHubClient
from pr_radar.insights import analyze_pull_request
from pr_radar.models import OrgMember
from pr_radar.store import Store


async def main() -> None:
    config = PRRadarConfig()
    store = Store("pr-radar-example.db")
    for handle in ("octocat", "hubot"):
        store.upsert_member(OrgMember(id=handle, org_id="example", handle=handle))

    async with GitHubClient(os.environ["GITHUB_TOKEN"], config) as client:
        pr, files, score = await analyze_pull_request(client, "octocat/Hello-World", 1, config)
        print(f"{pr.repo}#{pr.number} by {pr.author}")
        print(f"Size: {score.size_score}/10  Risk: {score.risk_score}/10")
        for rec in score.recommendations:
            print(f"  - {rec}")

        service = ReviewerSuggestionService(store, client, config)
        result = await service.get_suggestions(
            "example", pr.repo, [f.path for f in files], pr.author
        )
        for suggestion in result.confident:
            print(f"Reviewer: {suggestion.handle} ({suggestion.confidence_score:.0%})")

    store.close()


if __name__ == "__main__":
    asyncio.run(main())
