"""Centralized configuration management for the risk scorer."""

import math
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator


class ConfigError(Exception):
    """Raised when a configuration file cannot be loaded."""


class ScoringWeightsConfig(BaseModel):
    """Weights of each category in the global score.

    The five weights must sum to 1.0 so that the global score stays within
    0-100.
    """
    security: float = Field(0.30, ge=0, le=1, description="Weight for the Security category")
    resilience: float = Field(0.20, ge=0, le=1, description="Weight for the Resilience & Continuity category")
    observability: float = Field(0.15, ge=0, le=1, description="Weight for the Observability & Operations category")
    architecture: float = Field(0.15, ge=0, le=1, description="Weight for the Architecture & Scalability category")
    compliance: float = Field(0.20, ge=0, le=1, description="Weight for the Compliance & Certifications category")

    @model_validator(mode="after")
    def _weights_sum_to_one(self) -> "ScoringWeightsConfig":
        total = self.total()
        if not math.isclose(total, 1.0, abs_tol=1e-9):
            raise ValueError(f"Scoring weights must sum to 1.0 (got {total:.4f})")
        return self

    def total(self) -> float:
        return self.security + self.resilience + self.observability + self.architecture + self.compliance


class RiskThresholdsConfig(BaseModel):
    """Lower bounds (inclusive) of each risk tier on the global score.

    Scores below the high threshold are Critical.
    """
    low: int = Field(85, description="Minimum global score for Low risk")
    medium: int = Field(70, description="Minimum global score for Medium risk")
    high: int = Field(50, description="Minimum global score for High risk")

    @model_validator(mode="after")
    def _thresholds_descend(self) -> "RiskThresholdsConfig":
        if not (100 >= self.low > self.medium > self.high >= 0):
            raise ValueError("Risk thresholds must satisfy 100 >= low > medium > high >= 0")
        return self


class ResilienceConfig(BaseModel):
    """Thresholds used by the Resilience category."""
    max_rto_hours: float = Field(24, description="Maximum RTO (hours) for full backup credit")
    max_rpo_hours: float = Field(4, description="Maximum RPO (hours) for full backup credit")
    sla_full_credit: float = Field(99.9, description="Minimum SLA percentage for full SLA credit")
    sla_partial_credit: float = Field(99.5, description="Minimum SLA percentage for partial SLA credit")


class ObservabilityConfig(BaseModel):
    """Settings for the Observability category."""
    recognized_tools: list[str] = Field(
        default_factory=lambda: ["Prometheus", "Grafana", "ELK Stack", "Datadog", "Splunk"],
        description="Monitoring tools that earn the modern tooling credit"
    )


class ReportConfig(BaseModel):
    """Thresholds used for recommendations and the strengths/weaknesses list."""
    weakness_threshold: float = Field(
        50.0,
        description="Categories strictly below this percentage get a recommendation"
    )
    strength_threshold: float = Field(
        70.0,
        description="Categories at or above this percentage are listed as strengths"
    )


class ScorerConfig(BaseModel):
    """Complete configuration for the risk scorer."""
    scoring_weights: ScoringWeightsConfig = Field(default_factory=ScoringWeightsConfig)
    risk_thresholds: RiskThresholdsConfig = Field(default_factory=RiskThresholdsConfig)
    resilience: ResilienceConfig = Field(default_factory=ResilienceConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)


CONFIG_ENV_VAR = "RISK_SCORER_CONFIG"
CONFIG_FILE_NAMES = ("risk-scorer.yaml", "risk-scorer.yml")

_config: Optional[ScorerConfig] = None


def get_config() -> ScorerConfig:
    """Active scorer configuration; defaults until a file is loaded."""
    global _config
    if _config is None:
        _config = ScorerConfig()
    return _config


def load_config(path: Path) -> ScorerConfig:
    """Read a YAML file and make it the active configuration.

    Keys missing from the file keep their defaults; an empty file yields
    the default configuration.

    Raises:
        ConfigError: The file is unreadable, is not YAML, or holds values
            that fail validation (for example weights not summing to 1.0).
    """
    global _config

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        config = ScorerConfig.model_validate(data or {})
    except (OSError, yaml.YAMLError, ValidationError) as e:
        raise ConfigError(f"Invalid configuration file {path}: {e}") from e

    _config = config
    return _config


def reset_config() -> None:
    """Discard any loaded file and return to the defaults."""
    global _config
    _config = ScorerConfig()


def _config_candidates() -> list[Path]:
    candidates = []
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        candidates.append(Path(env_path))
    candidates.extend(Path(name) for name in CONFIG_FILE_NAMES)
    candidates.append(Path.home() / ".config" / "risk-scorer" / "config.yaml")
    return candidates


def find_config_file() -> Optional[Path]:
    """First existing configuration file, or None.

    The RISK_SCORER_CONFIG variable wins over risk-scorer.yaml/.yml in the
    working directory, which wins over ~/.config/risk-scorer/config.yaml.
    """
    return next((path for path in _config_candidates() if path.exists()), None)


_CONFIG_HEADER = f"""# risk-scorer settings
#
# scoring_weights  share of each category in the global score (sum = 1.0)
# risk_thresholds  lowest global score of the Low, Medium and High tiers
# resilience       RTO/RPO limits (hours) and SLA percentages for credit
# observability    monitoring tools that earn the tooling points
# report           weakness and strength thresholds, in percent
#
# Picked up from ${CONFIG_ENV_VAR}, ./{CONFIG_FILE_NAMES[0]}
# or ~/.config/risk-scorer/config.yaml.

"""


def save_default_config(path: Path) -> None:
    """Write the default configuration, with an explanatory header, to path."""
    body = yaml.dump(
        ScorerConfig().model_dump(), default_flow_style=False, sort_keys=False, allow_unicode=True
    )
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(_CONFIG_HEADER + body)
