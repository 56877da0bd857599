"""Explainer for the Risk Scoring Engine.

Generates recommendation notes and the natural-language calculation report
from a CalculationDetails structure.

Principles:
- Every point in the score must be traceable to an input
- Categories always appear in the same order
- The arithmetic is shown, not only the result
"""

from typing import Optional

from .config import ReportConfig, RiskThresholdsConfig, ScoringWeightsConfig, get_config
from .schema import (
    CATEGORY_ORDER,
    CalculationComponent,
    CalculationDetails,
    CategoricalScores,
    Category,
    CategoryDetail,
)

# Advisory sentence for each category scoring below the weakness threshold
RECOMMENDATIONS = {
    Category.SECURITY: (
        "Recommend penetration testing, MFA and automated patching to improve security (Security < {threshold:g}%)."
    ),
    Category.RESILIENCE: (
        "Verify the external backup implementation and renegotiate the SLA (Resilience < {threshold:g}%)."
    ),
    Category.OBSERVABILITY: (
        "Propose log centralization and improved alerting (Observability < {threshold:g}%)."
    ),
    Category.ARCHITECTURE: (
        "Review the architecture to support horizontal scaling or reduce technical debt (Architecture < {threshold:g}%)."
    ),
    Category.COMPLIANCE: (
        "Prioritize obtaining key certifications (HDS/ISO 27001) for the hosting (Compliance < {threshold:g}%)."
    ),
}

SEPARATOR = "=" * 60


def component_marker(component: CalculationComponent) -> str:
    """✓ for full points, ✗ for none, ⚠ for partial credit."""
    if component.value == component.max:
        return "✓"
    if component.value == 0:
        return "✗"
    return "⚠"


class ScoreExplainer:
    """Generates notes and the calculation report for a scoring run.

    Configuration:
    - Weights, risk thresholds and report thresholds can be customized via
      risk-scorer.yaml
    """

    def __init__(
        self,
        weights: Optional[ScoringWeightsConfig] = None,
        thresholds: Optional[RiskThresholdsConfig] = None,
        report: Optional[ReportConfig] = None,
    ):
        cfg = get_config()
        self.weights = weights or cfg.scoring_weights
        self.thresholds = thresholds or cfg.risk_thresholds
        self.weakness_threshold = (report or cfg.report).weakness_threshold
        self.strength_threshold = (report or cfg.report).strength_threshold

    def generate_notes(self, scores: CategoricalScores) -> str:
        """One advisory sentence per weak category, space-joined."""
        notes = ""
        for category in CATEGORY_ORDER:
            if scores.get(category) < self.weakness_threshold:
                notes += RECOMMENDATIONS[category].format(threshold=self.weakness_threshold) + " "
        return notes.strip()

    def strengths(self, details: CalculationDetails) -> list[CategoryDetail]:
        return [d for d in details.categories if d.percentage >= self.strength_threshold]

    def weaknesses(self, details: CalculationDetails) -> list[CategoryDetail]:
        return [d for d in details.categories if d.percentage < self.weakness_threshold]

    def render_report(self, details: CalculationDetails) -> str:
        """Render the multi-section calculation report."""
        lines: list[str] = []
        lines.extend(self._render_method())
        lines.append("")
        lines.extend(self._render_categories(details))
        lines.append("")
        lines.extend(self._render_final_calculation(details))
        lines.append("")
        lines.extend(self._render_assessment(details))
        return "\n".join(lines)

    def _render_method(self) -> list[str]:
        w = self.weights
        t = self.thresholds
        formula = " + ".join(
            f"{category.value} × {getattr(w, category.value.lower()) * 100:.0f}%"
            for category in CATEGORY_ORDER
        )
        return [
            "RISK SCORE CALCULATION REPORT",
            SEPARATOR,
            "",
            "Method",
            "------",
            f"Global score = {formula}",
            "Each category is scored out of a fixed maximum of points and normalized "
            "to a percentage (raw points / maximum points × 100).",
            f"Risk levels: Low >= {t.low}, Medium >= {t.medium}, "
            f"High >= {t.high}, Critical < {t.high}.",
        ]

    def _render_categories(self, details: CalculationDetails) -> list[str]:
        lines = ["Category breakdown", "------------------"]
        for i, detail in enumerate(details.categories, 1):
            lines.append(f"{i}. {detail.category.value} (weight {detail.weight * 100:.0f}%)")
            lines.append(
                f"   Raw score: {detail.raw_score:g}/{detail.max_raw_score:g} points "
                f"-> {detail.percentage:.1f}%"
            )
            lines.append(
                f"   Contribution: {detail.percentage:.1f} × {detail.weight:.2f} "
                f"= {detail.contribution:.2f}"
            )
            for component in detail.components:
                lines.append(
                    f"   {component_marker(component)} {component.name}: "
                    f"{component.value:g}/{component.max:g} - {component.reason}"
                )
            lines.append("")
        if lines[-1] == "":
            lines.pop()
        return lines

    def _render_final_calculation(self, details: CalculationDetails) -> list[str]:
        lines = ["Final calculation", "-----------------"]
        width = max((len(d.category.value) for d in details.categories), default=0) + 1
        total = 0.0
        for detail in details.categories:
            label = f"{detail.category.value}:".ljust(width)
            lines.append(
                f"  {label} {detail.percentage:.1f}% × {detail.weight:.2f} = {detail.contribution:.2f}"
            )
            total += detail.contribution
        lines.append(f"  Sum = {total:.2f} -> global score {details.global_score}/100")
        lines.append(f"  Risk level: {details.risk_level.value}")
        return lines

    def _render_assessment(self, details: CalculationDetails) -> list[str]:
        lines = ["Assessment", "----------"]

        strengths = self.strengths(details)
        lines.append(f"Strengths (>= {self.strength_threshold:g}%):")
        if strengths:
            for detail in strengths:
                lines.append(f"  - {detail.category.value} ({detail.percentage:.1f}%)")
        else:
            lines.append("  - None")

        weaknesses = self.weaknesses(details)
        lines.append(f"Weaknesses (< {self.weakness_threshold:g}%):")
        if weaknesses:
            for detail in weaknesses:
                line = f"  - {detail.category.value} ({detail.percentage:.1f}%)"
                zero = detail.zero_components()
                if zero:
                    line += f"; zero-scored components: {', '.join(c.name for c in zero)}"
                lines.append(line)
        else:
            lines.append("  - None")

        return lines
