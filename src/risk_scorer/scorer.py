"""Aggregator of the Risk Scoring Engine.

Runs the five category evaluators, combines their percentages with the
category weights into a 0-100 global score and maps it to a risk level.
"""

import logging
import math
from typing import Optional

from .config import ScorerConfig, get_config
from .evaluators import (
    ArchitectureEvaluator,
    ComplianceEvaluator,
    ObservabilityEvaluator,
    ResilienceEvaluator,
    SecurityEvaluator,
)
from .explainer import ScoreExplainer
from .schema import (
    CATEGORY_ORDER,
    CalculationDetails,
    CategoricalScores,
    Category,
    CategoryDetail,
    RiskLevel,
    ScoreBreakdown,
    ScoringInputs,
)

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up."""
    return int(math.floor(value + 0.5))


def determine_risk_level(global_score: int, config: Optional[ScorerConfig] = None) -> RiskLevel:
    """Map a global score to its risk tier (lower bounds inclusive)."""
    thresholds = (config or get_config()).risk_thresholds
    if global_score >= thresholds.low:
        return RiskLevel.LOW
    if global_score >= thresholds.medium:
        return RiskLevel.MEDIUM
    if global_score >= thresholds.high:
        return RiskLevel.HIGH
    return RiskLevel.CRITICAL


class RiskScorer:
    """Scores one environment from its input records.

    Scoring principles:
    - Each category is evaluated independently out of a fixed maximum of points
    - Category scores are clamped before normalization
    - The global score is the rounded weighted sum of category percentages
    - Categories are always reported in the same order
    """

    def __init__(self, config: Optional[ScorerConfig] = None):
        """Initialize scorer with optional custom configuration."""
        self.config = config or get_config()
        weights = self.config.scoring_weights

        self.security = SecurityEvaluator(weight=weights.security)
        self.resilience = ResilienceEvaluator(weight=weights.resilience, settings=self.config.resilience)
        self.observability = ObservabilityEvaluator(
            weight=weights.observability, settings=self.config.observability
        )
        self.architecture = ArchitectureEvaluator(weight=weights.architecture)
        self.compliance = ComplianceEvaluator(weight=weights.compliance)

        self.explainer = ScoreExplainer(
            weights=weights,
            thresholds=self.config.risk_thresholds,
            report=self.config.report,
        )

    def evaluate_categories(self, inputs: ScoringInputs) -> list[CategoryDetail]:
        """Run the five evaluators, in report order."""
        return [
            self.security.evaluate(inputs.security_profile),
            self.resilience.evaluate(inputs.environment),
            self.observability.evaluate(inputs.monitoring, inputs.development_metrics),
            self.architecture.evaluate(inputs.environment, inputs.code_base),
            self.compliance.evaluate(inputs.environment, inputs.hosting),
        ]

    def score(self, inputs: ScoringInputs) -> ScoreBreakdown:
        """Score the inputs and build the full explanation."""
        return self.aggregate(self.evaluate_categories(inputs))

    def aggregate(self, categories: list[CategoryDetail]) -> ScoreBreakdown:
        """Combine category details into the global score and explanation.

        Args:
            categories: One detail per category, in report order

        Returns:
            ScoreBreakdown with scores, risk level, notes, details and report
        """
        by_category = {detail.category: detail for detail in categories}
        missing = [c.value for c in Category if c not in by_category]
        if missing:
            raise ValueError(f"Missing category details: {', '.join(missing)}")
        categories = [by_category[c] for c in CATEGORY_ORDER]

        for detail in categories:
            logger.debug(
                "%s: %.1f/%.1f points (%.1f%%)",
                detail.category.value, detail.raw_score, detail.max_raw_score, detail.percentage,
            )

        weighted_sum = sum(detail.contribution for detail in categories)
        global_score = max(0, min(100, round_half_up(weighted_sum)))
        risk_level = determine_risk_level(global_score, self.config)

        scores = CategoricalScores(
            security=by_category[Category.SECURITY].percentage,
            resilience=by_category[Category.RESILIENCE].percentage,
            observability=by_category[Category.OBSERVABILITY].percentage,
            architecture=by_category[Category.ARCHITECTURE].percentage,
            compliance=by_category[Category.COMPLIANCE].percentage,
        )

        details = CalculationDetails(
            categories=categories,
            global_score=global_score,
            risk_level=risk_level,
        )

        return ScoreBreakdown(
            scores=scores,
            global_score=global_score,
            risk_level=risk_level,
            notes=self.explainer.generate_notes(scores),
            calculation_details=details,
            calculation_report=self.explainer.render_report(details),
        )
