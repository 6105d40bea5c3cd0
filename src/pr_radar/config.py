"""Configuration models for PR Radar."""

from __future__ import annotations

import math
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from pr_radar.exceptions import ConfigError

SCORING_CONFIG_VERSION = 1


class SizeWeights(BaseModel):
    """Multipliers applied to the raw size inputs."""
    model_config = ConfigDict(frozen=True)

    additions: float = Field(default=1.0, gt=0)
    deletions: float = Field(default=0.8, gt=0)
    files_changed: float = Field(default=2.0, gt=0)


class RiskWeights(BaseModel):
    """Weights of the risk sub-factors. Must sum to 1.0."""
    model_config = ConfigDict(frozen=True)

    size: float = Field(default=0.3, gt=0)
    test_coverage: float = Field(default=0.25, gt=0)
    critical_paths: float = Field(default=0.3, gt=0)
    complexity: float = Field(default=0.15, gt=0)

    @model_validator(mode="after")
    def _check_sum(self) -> RiskWeights:
        total = self.size + self.test_coverage + self.critical_paths + self.complexity
        if not math.isclose(total, 1.0, abs_tol=0.01):
            raise ValueError(f"risk weights must sum to 1.0, got {total:.3f}")
        return self


class ScoringThresholds(BaseModel):
    """Score thresholds used to trigger recommendations."""
    model_config = ConfigDict(frozen=True)

    small_pr: float = Field(default=3.0, gt=0)
    large_pr: float = Field(default=7.0, gt=0)
    high_risk: float = Field(default=7.0, gt=0)


class ScoringConfig(BaseModel):
    """Versioned scoring configuration.

    Changing any default here changes the scores of every PR, so bump
    ``SCORING_CONFIG_VERSION`` alongside it.
    """
    model_config = ConfigDict(frozen=True)

    version: int = SCORING_CONFIG_VERSION
    size_weights: SizeWeights = Field(default_factory=SizeWeights)
    risk_weights: RiskWeights = Field(default_factory=RiskWeights)
    thresholds: ScoringThresholds = Field(default_factory=ScoringThresholds)
    # Size curve: min(10, log10(weighted / size_normalization + 1) * size_log_scale)
    size_normalization: float = Field(default=20.0, gt=0)
    size_log_scale: float = Field(default=4.5, gt=0)
    author_experience_baseline: float = Field(default=2.0, ge=0, le=10)


DEFAULT_SCORING_CONFIG = ScoringConfig()


class OwnershipConfig(BaseModel):
    """Commit-history ownership analysis parameters."""
    commit_limit: int = Field(default=50, gt=0, le=100)
    recent_days: int = Field(default=30, gt=0)
    primary_share: float = Field(default=0.2, gt=0, le=1)
    max_primary: int = Field(default=3, gt=0)


class SuggestionConfig(BaseModel):
    """Reviewer suggestion parameters."""
    confidence_threshold: float = Field(default=0.3, ge=0, le=1)
    max_results: int = Field(default=5, gt=0)


class StaleAlertConfig(BaseModel):
    """Stale PR detection and alerting parameters."""
    days_threshold: int = Field(default=2, ge=0)
    critical_days: int = Field(default=7, gt=0)
    alert_delay_ms: int = Field(default=500, ge=0)
    summary_max_listed: int = Field(default=10, gt=0)
    exclude_draft: bool = True


class JobLockConfig(BaseModel):
    """Lease duration shared by every scheduled job."""
    ttl_minutes: int = Field(default=60, gt=0)


class HttpConfig(BaseModel):
    """Outbound HTTP settings for the GitHub and Slack clients."""
    timeout_seconds: float = Field(default=30.0, gt=0)


class StoreConfig(BaseModel):
    """Shared store location."""
    db_path: str = str(Path.home() / ".local" / "share" / "pr-radar" / "pr-radar.db")


class PRRadarConfig(BaseModel):
    """Top-level configuration composing all sub-configs."""
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    ownership: OwnershipConfig = Field(default_factory=OwnershipConfig)
    suggestions: SuggestionConfig = Field(default_factory=SuggestionConfig)
    stale_alerts: StaleAlertConfig = Field(default_factory=StaleAlertConfig)
    job_lock: JobLockConfig = Field(default_factory=JobLockConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)


_ENV_MAPPING: dict[str, tuple[tuple[str, ...], Any]] = {
    "PR_RADAR_DB_PATH": (("store", "db_path"), str),
    "PR_RADAR_LARGE_PR": (("scoring", "thresholds", "large_pr"), float),
    "PR_RADAR_HIGH_RISK": (("scoring", "thresholds", "high_risk"), float),
    "PR_RADAR_STALE_DAYS": (("stale_alerts", "days_threshold"), int),
    "PR_RADAR_CRITICAL_DAYS": (("stale_alerts", "critical_days"), int),
    "PR_RADAR_ALERT_DELAY_MS": (("stale_alerts", "alert_delay_ms"), int),
    "PR_RADAR_LOCK_TTL_MINUTES": (("job_lock", "ttl_minutes"), int),
    "PR_RADAR_HTTP_TIMEOUT": (("http", "timeout_seconds"), float),
}


def _read_yaml(path: Path) -> dict[str, Any]:
    with open(path) as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return data


def load_config(path: str | Path | None = None) -> PRRadarConfig:
    """Load configuration from YAML file, environment variables, and defaults.

    Priority (highest to lowest):
    1. Environment variables (PR_RADAR_*)
    2. YAML config file
    3. Defaults

    Raises:
        ConfigError: If the file is not valid YAML or a value fails validation.
    """
    config_data: dict[str, Any] = {}

    if path is not None:
        config_path = Path(path)
        if config_path.exists():
            config_data = _read_yaml(config_path)
    else:
        for default_path in [".pr-radar.yml", ".pr-radar.yaml"]:
            p = Path(default_path)
            if p.exists():
                config_data = _read_yaml(p)
                break

    for env_var, (keys, type_fn) in _ENV_MAPPING.items():
        value = os.environ.get(env_var)
        if value is None:
            continue
        section = config_data
        for key in keys[:-1]:
            section = section.setdefault(key, {})
        try:
            section[keys[-1]] = type_fn(value)
        except ValueError as exc:
            raise ConfigError(f"Invalid value for {env_var}: {value!r}") from exc

    try:
        return PRRadarConfig(**config_data)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc
