"""Tests for scorer configuration loading."""

import pytest
import yaml
from pydantic import ValidationError

from risk_scorer.config import (
    ConfigError,
    RiskThresholdsConfig,
    ScorerConfig,
    ScoringWeightsConfig,
    find_config_file,
    get_config,
    load_config,
    reset_config,
    save_default_config,
)


class TestDefaults:
    def test_default_weights(self):
        weights = get_config().scoring_weights
        assert weights.security == 0.30
        assert weights.resilience == 0.20
        assert weights.observability == 0.15
        assert weights.architecture == 0.15
        assert weights.compliance == 0.20
        assert weights.total() == pytest.approx(1.0)

    def test_default_thresholds(self):
        thresholds = get_config().risk_thresholds
        assert (thresholds.low, thresholds.medium, thresholds.high) == (85, 70, 50)


class TestValidation:
    def test_weights_must_sum_to_one(self):
        with pytest.raises(ValidationError, match="sum to 1.0"):
            ScoringWeightsConfig(security=0.5)

    def test_rebalanced_weights_accepted(self):
        weights = ScoringWeightsConfig(security=0.40, resilience=0.10)
        assert weights.total() == pytest.approx(1.0)

    def test_thresholds_must_descend(self):
        with pytest.raises(ValidationError):
            RiskThresholdsConfig(low=60, medium=70, high=50)


class TestLoadConfig:
    def test_load_partial_file(self, tmp_path):
        path = tmp_path / "risk-scorer.yaml"
        path.write_text(yaml.dump({"resilience": {"max_rto_hours": 12}}))

        config = load_config(path)
        assert config.resilience.max_rto_hours == 12
        assert config.resilience.max_rpo_hours == 4
        assert get_config() is config

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / "risk-scorer.yaml"
        path.write_text("")
        assert load_config(path) == ScorerConfig()

    def test_invalid_file(self, tmp_path):
        path = tmp_path / "risk-scorer.yaml"
        path.write_text(yaml.dump({"scoring_weights": {"security": 0.9}}))
        with pytest.raises(ConfigError):
            load_config(path)

    def test_reset(self, tmp_path):
        path = tmp_path / "risk-scorer.yaml"
        path.write_text(yaml.dump({"report": {"weakness_threshold": 40}}))
        load_config(path)
        reset_config()
        assert get_config().report.weakness_threshold == 50

    def test_save_default_round_trip(self, tmp_path):
        path = tmp_path / "nested" / "config.yaml"
        save_default_config(path)

        assert path.read_text().startswith("# risk-scorer settings")
        assert load_config(path) == ScorerConfig()


class TestFindConfigFile:
    def test_environment_variable(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.yaml"
        path.write_text("")
        monkeypatch.setenv("RISK_SCORER_CONFIG", str(path))
        assert find_config_file() == path

    def test_current_directory(self, tmp_path, monkeypatch):
        monkeypatch.delenv("RISK_SCORER_CONFIG", raising=False)
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path / "home"))
        (tmp_path / "risk-scorer.yml").write_text("")
        assert find_config_file().name == "risk-scorer.yml"

    def test_nothing_found(self, tmp_path, monkeypatch):
        monkeypatch.delenv("RISK_SCORER_CONFIG", raising=False)
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path / "home"))
        assert find_config_file() is None
