"""Size and risk scoring engine for pull requests."""

from __future__ import annotations

import math
from collections.abc import Sequence

from pr_radar.classifier import FileCategory, classify
from pr_radar.config import DEFAULT_SCORING_CONFIG, ScoringConfig
from pr_radar.models import (
    FileChange,
    FileStatus,
    PullRequestSummary,
    RiskFactors,
    ScoreResult,
    SizeMetrics,
)

MAX_SCORE = 10.0

# Changes above this count are "large" for test coverage purposes.
LARGE_CHANGESET_LINES = 500

RECOMMEND_SPLIT = "Large PR - split into smaller, focused changes"
RECOMMEND_TESTS = "Add or update tests to cover the changes"
RECOMMEND_CRITICAL_CAUTION = (
    "Extra caution needed - changes affect critical system components"
)
RECOMMEND_CRITICAL_REVIEWERS = (
    "Consider additional reviewers familiar with these components"
)
RECOMMEND_COMPLEXITY = "Complex changes detected - ensure thorough code review"
RECOMMEND_HIGH_RISK_APPROVALS = "High-risk PR - consider requiring multiple approvals"
RECOMMEND_HIGH_RISK_TESTING = "Schedule additional testing before merge"
RECOMMEND_SECURITY_REVIEW = (
    "Security-sensitive files changed - request a security-focused review"
)
RECOMMEND_DEPENDENCIES = "Dependency changes detected - verify compatibility"
RECOMMEND_MIGRATION = "Database migration changes - ensure backward compatibility"


def _clamp(value: float, upper: float = MAX_SCORE) -> float:
    if math.isnan(value):
        return 0.0
    return min(upper, max(0.0, value))


class PRScorer:
    """Compute size and risk scores for a pull request.

    Scoring is a pure function of the pull request, its files and the
    configuration; the scorer holds no mutable state and can be shared
    between threads.
    """

    def __init__(self, config: ScoringConfig | None = None) -> None:
        self.config = config if config is not None else DEFAULT_SCORING_CONFIG

    def score(
        self, pr: PullRequestSummary, files: Sequence[FileChange]
    ) -> ScoreResult:
        """Score *pr* given the files it touches."""
        file_categories = [(f, classify(f.path)) for f in files]

        metrics = self._size_metrics(pr, file_categories)
        size_score = self.size_score(pr)
        factors = RiskFactors(
            size=round(size_score, 2),
            test_coverage=round(self._test_coverage_risk(metrics, file_categories), 2),
            critical_path=round(self._critical_path_risk(file_categories), 2),
            complexity=round(self._complexity_risk(pr, file_categories), 2),
            author_experience=_clamp(self.config.author_experience_baseline),
            file_type=round(self._file_type_risk(file_categories), 2),
        )
        risk_score = self._risk_score(size_score, factors)

        result = ScoreResult(
            size_score=round(size_score, 1),
            risk_score=round(risk_score, 1),
            risk_factors=factors,
            size_metrics=metrics,
            config_version=self.config.version,
        )
        result.recommendations = self._recommendations(result, file_categories)
        return result

    # ------------------------------------------------------------------
    # Size
    # ------------------------------------------------------------------

    def size_score(self, pr: PullRequestSummary) -> float:
        """Sub-linear 0-10 size score; exactly 0 for a PR with no line changes."""
        if pr.additions + pr.deletions == 0:
            return 0.0
        weights = self.config.size_weights
        weighted = (
            pr.additions * weights.additions
            + pr.deletions * weights.deletions
            + pr.changed_files * weights.files_changed
        )
        normalized = weighted / self.config.size_normalization
        return _clamp(math.log10(normalized + 1) * self.config.size_log_scale)

    @staticmethod
    def _size_metrics(
        pr: PullRequestSummary,
        file_categories: list[tuple[FileChange, frozenset[FileCategory]]],
    ) -> SizeMetrics:
        tests_changed = sum(
            f.changes for f, cats in file_categories if FileCategory.TEST in cats
        )
        return SizeMetrics(
            additions=pr.additions,
            deletions=pr.deletions,
            files_changed=pr.changed_files,
            tests_changed=tests_changed,
            total_changes=pr.additions + pr.deletions,
        )

    # ------------------------------------------------------------------
    # Risk sub-factors
    # ------------------------------------------------------------------

    @staticmethod
    def _test_coverage_risk(
        metrics: SizeMetrics,
        file_categories: list[tuple[FileChange, frozenset[FileCategory]]],
    ) -> float:
        """Higher is worse. No files at all is treated as the worst case."""
        if not file_categories:
            return MAX_SCORE

        test_files = [f for f, cats in file_categories if FileCategory.TEST in cats]
        if len(test_files) == len(file_categories):
            return 0.0

        total_changes = metrics.total_changes or sum(f.changes for f, _ in file_categories)
        untested_large = total_changes > LARGE_CHANGESET_LINES and metrics.tests_changed == 0

        code_files = [
            f for f, cats in file_categories
            if FileCategory.SOURCE_CODE in cats and FileCategory.TEST not in cats
        ]
        if code_files and not test_files:
            risk = 5 + len(code_files) * 0.5
            if untested_large:
                risk += 2
            return _clamp(risk)

        ratio = metrics.tests_changed / total_changes if total_changes else 0.0
        if ratio >= 0.4:
            risk = 1.0
        elif ratio >= 0.2:
            risk = 2.0
        elif ratio >= 0.1:
            risk = 4.0
        elif ratio > 0:
            risk = 6.0
        else:
            risk = 8.0

        if untested_large:
            risk += 2
        return _clamp(risk)

    @staticmethod
    def _critical_path_risk(
        file_categories: list[tuple[FileChange, frozenset[FileCategory]]],
    ) -> float:
        critical = [cats for _, cats in file_categories if FileCategory.CRITICAL_PATH in cats]
        if not critical:
            return 0.0

        risk = 3.0
        for cats in critical:
            if FileCategory.DEPENDENCY_MANIFEST in cats:
                risk += 1
            if FileCategory.ENVIRONMENT in cats:
                risk += 2
            if FileCategory.MIGRATION in cats:
                risk += 2
            if cats & {FileCategory.SECURITY_SENSITIVE, FileCategory.PAYMENT}:
                risk += 1.5
        return _clamp(risk)

    @staticmethod
    def _complexity_risk(
        pr: PullRequestSummary,
        file_categories: list[tuple[FileChange, frozenset[FileCategory]]],
    ) -> float:
        accumulated = 0.0
        for f, cats in file_categories:
            if cats & {FileCategory.SOURCE_CODE, FileCategory.BUILD_TOOLING}:
                accumulated += 1
            changed_lines = f.additions + f.deletions or f.changes
            if changed_lines > 200:
                accumulated += 2
            elif changed_lines > 100:
                accumulated += 1
            if f.status == FileStatus.ADDED:
                accumulated += 0.5
            elif f.status == FileStatus.RENAMED:
                accumulated += 1

        risk = accumulated / max(1, len(file_categories)) * 5
        if pr.commits > 20:
            risk += 2
        elif pr.commits > 10:
            risk += 1
        return _clamp(risk)

    @staticmethod
    def _file_type_risk(
        file_categories: list[tuple[FileChange, frozenset[FileCategory]]],
    ) -> float:
        if file_categories and all(
            FileCategory.DOCUMENTATION in cats for _, cats in file_categories
        ):
            return 0.5

        def touched(category: FileCategory) -> bool:
            return any(category in cats for _, cats in file_categories)

        risk = 0.0
        if touched(FileCategory.CRITICAL_SYSTEM):
            risk += 3
        if touched(FileCategory.SECURITY_SENSITIVE):
            risk += 2
        if touched(FileCategory.INFRASTRUCTURE):
            risk += 1.5
        return _clamp(risk)

    def _risk_score(self, size_score: float, factors: RiskFactors) -> float:
        weights = self.config.risk_weights
        weighted = (
            size_score * weights.size
            + factors.test_coverage * weights.test_coverage
            + factors.critical_path * weights.critical_paths
            + factors.complexity * weights.complexity
        )
        return _clamp(weighted)

    # ------------------------------------------------------------------
    # Recommendations
    # ------------------------------------------------------------------

    def _recommendations(
        self,
        result: ScoreResult,
        file_categories: list[tuple[FileChange, frozenset[FileCategory]]],
    ) -> list[str]:
        thresholds = self.config.thresholds
        factors = result.risk_factors
        touched: set[FileCategory] = set()
        for _, cats in file_categories:
            touched |= cats

        recommendations: list[str] = []
        if result.size_score > thresholds.large_pr:
            recommendations.append(RECOMMEND_SPLIT)
        if factors.test_coverage > 7:
            recommendations.append(RECOMMEND_TESTS)
        if factors.critical_path > 5:
            recommendations.append(RECOMMEND_CRITICAL_CAUTION)
            recommendations.append(RECOMMEND_CRITICAL_REVIEWERS)
        if factors.complexity > 6:
            recommendations.append(RECOMMEND_COMPLEXITY)
        if result.risk_score > thresholds.high_risk:
            recommendations.append(RECOMMEND_HIGH_RISK_APPROVALS)
            recommendations.append(RECOMMEND_HIGH_RISK_TESTING)
        if FileCategory.SECURITY_SENSITIVE in touched and factors.file_type >= 5:
            recommendations.append(RECOMMEND_SECURITY_REVIEW)
        if FileCategory.DEPENDENCY_MANIFEST in touched:
            recommendations.append(RECOMMEND_DEPENDENCIES)
        if FileCategory.MIGRATION in touched:
            recommendations.append(RECOMMEND_MIGRATION)
        return recommendations


def score_pull_request(
    pr: PullRequestSummary,
    files: Sequence[FileChange],
    config: ScoringConfig | None = None,
) -> ScoreResult:
    """Convenience function: score a pull request with *config* or the defaults."""
    return PRScorer(config).score(pr, files)
