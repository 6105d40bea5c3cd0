"""PR Radar - pull request risk scoring, reviewer suggestions and stale alerts."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from pr_radar.config import PRRadarConfig, ScoringConfig, load_config
from pr_radar.exceptions import PRRadarError
from pr_radar.models import ScoreResult, StaleAlertJobResult
from pr_radar.reviewers import ReviewerSuggestionService, suggest_reviewers
from pr_radar.scoring import PRScorer, score_pull_request
from pr_radar.stale import StaleAlertJob, StalePRDetector, classify_stale

try:
    __version__ = version("pr-radar")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "PRRadarConfig",
    "PRRadarError",
    "PRScorer",
    "ReviewerSuggestionService",
    "ScoreResult",
    "ScoringConfig",
    "StaleAlertJob",
    "StaleAlertJobResult",
    "StalePRDetector",
    "__version__",
    "classify_stale",
    "load_config",
    "score_pull_request",
    "suggest_reviewers",
]
