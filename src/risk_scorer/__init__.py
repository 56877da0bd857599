"""Risk Scoring Engine for third-party solution environments."""

from risk_scorer.engine import ScoringEngine, validate_store
from risk_scorer.schema import (
    CalculationDetails,
    Category,
    CategoryDetail,
    CollectionType,
    RiskLevel,
    ScoringSnapshot,
)
from risk_scorer.scorer import RiskScorer, determine_risk_level

__version__ = "1.0.0"

__all__ = [
    "ScoringEngine",
    "validate_store",
    "RiskScorer",
    "determine_risk_level",
    "CalculationDetails",
    "Category",
    "CategoryDetail",
    "CollectionType",
    "RiskLevel",
    "ScoringSnapshot",
]
