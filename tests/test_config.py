"""Tests for configuration."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from pr_radar.config import (
    PRRadarConfig,
    RiskWeights,
    ScoringConfig,
    SizeWeights,
    load_config,
)
from pr_radar.exceptions import ConfigError


class TestScoringConfig:
    def test_defaults(self) -> None:
        config = ScoringConfig()
        assert config.version == 1
        assert config.size_weights.additions == 1.0
        assert config.size_weights.deletions == 0.8
        assert config.size_weights.files_changed == 2.0
        assert config.thresholds.large_pr == 7.0
        assert config.thresholds.high_risk == 7.0

    def test_risk_weights_must_sum_to_one(self) -> None:
        with pytest.raises(ValidationError, match="sum to 1.0"):
            RiskWeights(size=0.5, test_coverage=0.5, critical_paths=0.5, complexity=0.5)

    def test_risk_weights_tolerance(self) -> None:
        weights = RiskWeights(size=0.305, test_coverage=0.25, critical_paths=0.3,
                              complexity=0.15)
        assert weights.size == 0.305

    def test_size_weights_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            SizeWeights(additions=0)

    def test_frozen(self) -> None:
        config = ScoringConfig()
        with pytest.raises(ValidationError):
            config.version = 2  # type: ignore[misc]


class TestPRRadarConfig:
    def test_defaults(self) -> None:
        config = PRRadarConfig()
        assert config.ownership.commit_limit == 50
        assert config.suggestions.confidence_threshold == 0.3
        assert config.stale_alerts.days_threshold == 2
        assert config.stale_alerts.critical_days == 7
        assert config.stale_alerts.alert_delay_ms == 500
        assert config.job_lock.ttl_minutes == 60
        assert config.http.timeout_seconds == 30.0


class TestLoadConfig:
    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        config = load_config(tmp_path / "missing.yml")
        assert config.stale_alerts.days_threshold == 2

    def test_yaml_file(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yml"
        path.write_text(yaml.dump({
            "stale_alerts": {"days_threshold": 3, "critical_days": 10},
            "scoring": {"thresholds": {"large_pr": 6.0}},
        }))
        config = load_config(path)
        assert config.stale_alerts.days_threshold == 3
        assert config.stale_alerts.critical_days == 10
        assert config.scoring.thresholds.large_pr == 6.0
        assert config.scoring.thresholds.high_risk == 7.0

    def test_default_file_in_cwd(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / ".pr-radar.yml").write_text(yaml.dump({"job_lock": {"ttl_minutes": 15}}))
        monkeypatch.chdir(tmp_path)
        assert load_config().job_lock.ttl_minutes == 15

    def test_env_overrides_yaml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "config.yml"
        path.write_text(yaml.dump({"stale_alerts": {"days_threshold": 3}}))
        monkeypatch.setenv("PR_RADAR_STALE_DAYS", "5")
        monkeypatch.setenv("PR_RADAR_DB_PATH", str(tmp_path / "x.db"))
        config = load_config(path)
        assert config.stale_alerts.days_threshold == 5
        assert config.store.db_path == str(tmp_path / "x.db")

    def test_bad_env_value(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PR_RADAR_ALERT_DELAY_MS", "soon")
        with pytest.raises(ConfigError, match="PR_RADAR_ALERT_DELAY_MS"):
            load_config(tmp_path / "missing.yml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yml"
        path.write_text("stale_alerts: [unclosed")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(path)

    def test_non_mapping_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(path)

    def test_invalid_weights_raise_config_error(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yml"
        path.write_text(yaml.dump({"scoring": {"risk_weights": {"size": 0.9}}}))
        with pytest.raises(ConfigError):
            load_config(path)
