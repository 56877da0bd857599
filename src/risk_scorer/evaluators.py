"""Category evaluators of the Risk Scoring Engine.

Each evaluator scores one category out of a fixed maximum of points and returns a
CategoryDetail holding the raw score, the normalized percentage and every
component with the reason behind its points. Evaluators are pure: the same
records always produce the same detail.
"""

from typing import Optional

from .config import ObservabilityConfig, ResilienceConfig, get_config
from .parsers import (
    CERTIFICATION_POINTS,
    STRONG_CERTIFICATIONS,
    has_sensitive_data,
    match_certifications,
    parse_scaling_mechanism,
    parse_sla,
    parse_technical_debt,
)
from .schema import (
    AuthMechanism,
    CalculationComponent,
    Category,
    CategoryDetail,
    CodeBase,
    DeploymentType,
    DevelopmentMetrics,
    DocumentationLevel,
    Environment,
    Hosting,
    MonitoringObservability,
    MonitoringStatus,
    PatchingCadence,
    PentestFrequency,
    RedundancyTier,
    ScalingMechanism,
    SecurityProfile,
    TechnicalDebtLevel,
    Virtualization,
)


def _component(name: str, value: float, max_value: float, reason: str) -> CalculationComponent:
    """Build a component with its value clamped to [0, max_value]."""
    return CalculationComponent(
        name=name,
        value=max(0.0, min(float(value), float(max_value))),
        max=float(max_value),
        reason=reason,
    )


def _unrecognized(label: str, value: Optional[str]) -> str:
    if not value:
        return f"{label} not specified"
    return f"Unrecognized {label.lower()} '{value}'"


class CategoryEvaluator:
    """Base class for the five category evaluators.

    Subclasses define the category, its maximum points and an evaluate()
    method returning a CategoryDetail built with _build_detail().
    """

    category: Category
    max_score: float

    def __init__(self, weight: float):
        self.weight = weight

    def _build_detail(self, components: list[CalculationComponent]) -> CategoryDetail:
        """Sum components, clamp to the maximum and normalize to 0-100."""
        raw = sum(c.value for c in components)
        raw = max(0.0, min(raw, self.max_score))
        percentage = raw / self.max_score * 100

        return CategoryDetail(
            category=self.category,
            weight=self.weight,
            raw_score=raw,
            max_raw_score=self.max_score,
            percentage=percentage,
            contribution=percentage * self.weight,
            components=components,
        )


class SecurityEvaluator(CategoryEvaluator):
    """Scores authentication, encryption, patching, pentests and access control."""

    category = Category.SECURITY
    max_score = 20.0

    AUTH_POINTS = {
        AuthMechanism.SSO: (4, "SSO configured"),
        AuthMechanism.MFA: (4, "MFA enabled"),
        AuthMechanism.PASSWORDS: (2, "Password authentication only"),
        AuthMechanism.NONE: (0, "No authentication"),
    }

    PATCHING_POINTS = {
        PatchingCadence.AUTOMATED: (4, "Automated patching"),
        PatchingCadence.SCHEDULED: (2, "Scheduled patching"),
        PatchingCadence.AD_HOC: (0, "Ad hoc patching"),
    }

    PENTEST_POINTS = {
        PentestFrequency.QUARTERLY: (4, "Quarterly penetration tests"),
        PentestFrequency.ANNUAL: (2, "Annual penetration tests"),
        PentestFrequency.NEVER: (0, "No penetration tests"),
    }

    def __init__(self, weight: Optional[float] = None):
        super().__init__(weight if weight is not None else get_config().scoring_weights.security)

    def evaluate(self, profile: SecurityProfile) -> CategoryDetail:
        return self._build_detail([
            self._score_authentication(profile),
            self._score_encryption(profile),
            self._score_patching(profile),
            self._score_pentest(profile),
            self._score_access_control(profile),
        ])

    def percentage(self, profile: SecurityProfile) -> float:
        return self.evaluate(profile).percentage

    def _score_authentication(self, profile: SecurityProfile) -> CalculationComponent:
        auth = AuthMechanism.from_string(profile.auth)
        if auth is None:
            return _component("Authentication", 0, 4, _unrecognized("Authentication mechanism", profile.auth))
        points, reason = self.AUTH_POINTS[auth]
        return _component("Authentication", points, 4, reason)

    def _score_encryption(self, profile: SecurityProfile) -> CalculationComponent:
        enc = profile.encryption
        if enc.in_transit and enc.at_rest:
            return _component("Encryption", 4, 4, "Encryption in transit and at rest")
        if enc.in_transit:
            return _component("Encryption", 2, 4, "Encryption in transit only (no encryption at rest)")
        if enc.at_rest:
            return _component("Encryption", 2, 4, "Encryption at rest only (no encryption in transit)")
        return _component("Encryption", 0, 4, "No encryption in transit or at rest")

    def _score_patching(self, profile: SecurityProfile) -> CalculationComponent:
        cadence = PatchingCadence.from_string(profile.patching)
        if cadence is None:
            return _component("Patching", 0, 4, _unrecognized("Patching cadence", profile.patching))
        points, reason = self.PATCHING_POINTS[cadence]
        return _component("Patching", points, 4, reason)

    def _score_pentest(self, profile: SecurityProfile) -> CalculationComponent:
        freq = PentestFrequency.from_string(profile.pentest_freq)
        if freq is None:
            return _component(
                "Penetration testing", 0, 4,
                _unrecognized("Penetration test frequency", profile.pentest_freq),
            )
        points, reason = self.PENTEST_POINTS[freq]
        return _component("Penetration testing", points, 4, reason)

    def _score_access_control(self, profile: SecurityProfile) -> CalculationComponent:
        if profile.centralized_monitoring:
            return _component(
                "Access control & monitoring", 4, 4,
                "Centralized monitoring of security events",
            )
        if profile.access_control:
            return _component(
                "Access control & monitoring", 2, 4,
                f"Access control documented ({profile.access_control.strip()}) without centralized monitoring",
            )
        return _component(
            "Access control & monitoring", 0, 4,
            "No access control documented and no centralized monitoring",
        )


class ResilienceEvaluator(CategoryEvaluator):
    """Scores backups, redundancy and the SLA commitment."""

    category = Category.RESILIENCE
    max_score = 20.0

    REDUNDANCY_POINTS = {
        RedundancyTier.GEO_REDUNDANT: (6, "Geo-redundant environment"),
        RedundancyTier.HIGH: (6, "High redundancy"),
        RedundancyTier.MINIMAL: (3, "Minimal redundancy"),
        RedundancyTier.NONE: (0, "No redundancy"),
    }

    def __init__(self, weight: Optional[float] = None, settings: Optional[ResilienceConfig] = None):
        cfg = get_config()
        super().__init__(weight if weight is not None else cfg.scoring_weights.resilience)
        self.settings = settings or cfg.resilience

    def evaluate(self, environment: Environment) -> CategoryDetail:
        return self._build_detail([
            self._score_backup(environment),
            self._score_redundancy(environment),
            self._score_sla(environment),
        ])

    def percentage(self, environment: Environment) -> float:
        return self.evaluate(environment).percentage

    def _score_backup(self, environment: Environment) -> CalculationComponent:
        backup = environment.backup
        max_rto = self.settings.max_rto_hours
        max_rpo = self.settings.max_rpo_hours

        if not backup.exists:
            return _component("Backup RTO/RPO", 0, 8, "No backup in place")

        if backup.rto is None or backup.rpo is None:
            return _component(
                "Backup RTO/RPO", 4, 8,
                "Backup exists but RTO/RPO are not documented",
            )

        if backup.rto <= max_rto and backup.rpo <= max_rpo:
            return _component(
                "Backup RTO/RPO", 8, 8,
                f"Backup with RTO {backup.rto:g}h <= {max_rto:g}h and RPO {backup.rpo:g}h <= {max_rpo:g}h",
            )

        exceeded = []
        if backup.rto > max_rto:
            exceeded.append(f"RTO {backup.rto:g}h > {max_rto:g}h")
        if backup.rpo > max_rpo:
            exceeded.append(f"RPO {backup.rpo:g}h > {max_rpo:g}h")
        return _component(
            "Backup RTO/RPO", 4, 8,
            f"Backup exists but {' and '.join(exceeded)}",
        )

    def _score_redundancy(self, environment: Environment) -> CalculationComponent:
        tier = RedundancyTier.from_string(environment.redundancy)
        if tier is None:
            return _component("Redundancy", 0, 6, _unrecognized("Redundancy tier", environment.redundancy))
        points, reason = self.REDUNDANCY_POINTS[tier]
        return _component("Redundancy", points, 6, reason)

    def _score_sla(self, environment: Environment) -> CalculationComponent:
        sla = parse_sla(environment.sla_offered)
        full = self.settings.sla_full_credit
        partial = self.settings.sla_partial_credit

        if sla is None:
            if environment.sla_offered:
                return _component("SLA", 0, 6, f"Unparseable SLA '{environment.sla_offered}'")
            return _component("SLA", 0, 6, "No SLA offered")
        if sla >= full:
            return _component("SLA", 6, 6, f"SLA {sla:g}% >= {full:g}%")
        if sla >= partial:
            return _component("SLA", 3, 6, f"SLA {sla:g}% between {partial:g}% and {full:g}%")
        return _component("SLA", 0, 6, f"SLA {sla:g}% below {partial:g}%")


class ObservabilityEvaluator(CategoryEvaluator):
    """Scores performance monitoring, log centralization and tooling."""

    category = Category.OBSERVABILITY
    max_score = 15.0

    def __init__(self, weight: Optional[float] = None, settings: Optional[ObservabilityConfig] = None):
        cfg = get_config()
        super().__init__(weight if weight is not None else cfg.scoring_weights.observability)
        self.settings = settings or cfg.observability

    def evaluate(
        self,
        monitoring: MonitoringObservability,
        metrics: Optional[DevelopmentMetrics] = None,
    ) -> CategoryDetail:
        """Score the category.

        Development metrics are accepted for future use and do not affect
        the points.
        """
        return self._build_detail([
            self._score_status("Performance monitoring", monitoring.perf_monitoring),
            self._score_status("Log centralization", monitoring.log_centralization),
            self._score_tooling(monitoring),
        ])

    def percentage(
        self,
        monitoring: MonitoringObservability,
        metrics: Optional[DevelopmentMetrics] = None,
    ) -> float:
        return self.evaluate(monitoring, metrics).percentage

    def _score_status(self, name: str, value: Optional[str]) -> CalculationComponent:
        status = MonitoringStatus.from_string(value)
        if status == MonitoringStatus.YES:
            return _component(name, 5, 5, f"{name} in place")
        if status == MonitoringStatus.PARTIAL:
            return _component(name, 2, 5, f"{name} partially in place")
        if status == MonitoringStatus.NO:
            return _component(name, 0, 5, f"No {name.lower()}")
        return _component(name, 0, 5, _unrecognized(name, value))

    def _score_tooling(self, monitoring: MonitoringObservability) -> CalculationComponent:
        recognized = {t.lower(): t for t in self.settings.recognized_tools}
        found = [recognized[t.strip().lower()] for t in monitoring.tools if t and t.strip().lower() in recognized]

        if found:
            return _component("Modern tooling", 5, 5, f"Recognized tooling: {', '.join(found)}")
        if monitoring.tools:
            return _component(
                "Modern tooling", 0, 5,
                f"No recognized tooling among: {', '.join(monitoring.tools)}",
            )
        return _component("Modern tooling", 0, 5, "No monitoring tools listed")


class ArchitectureEvaluator(CategoryEvaluator):
    """Scores deployment maturity, scaling and code quality."""

    category = Category.ARCHITECTURE
    max_score = 15.0

    def __init__(self, weight: Optional[float] = None):
        super().__init__(weight if weight is not None else get_config().scoring_weights.architecture)

    def evaluate(self, environment: Environment, code_base: CodeBase) -> CategoryDetail:
        return self._build_detail([
            self._score_deployment(environment),
            self._score_scaling(environment),
            self._score_code_quality(code_base),
        ])

    def percentage(self, environment: Environment, code_base: CodeBase) -> float:
        return self.evaluate(environment, code_base).percentage

    def _score_deployment(self, environment: Environment) -> CalculationComponent:
        deployment = DeploymentType.from_string(environment.deployment_type)
        virtualization = Virtualization.from_string(environment.virtualization)
        name = "Deployment & virtualization"

        # Checked in priority order
        if deployment == DeploymentType.MICROSERVICES and virtualization == Virtualization.K8S:
            return _component(name, 6, 6, "Microservices on Kubernetes")
        if virtualization == Virtualization.VM:
            return _component(name, 3, 6, "Virtual machine based deployment")
        if deployment == DeploymentType.MONOLITH:
            return _component(name, 1, 6, "Monolithic deployment")
        return _component(
            name, 0, 6,
            f"No credited deployment model (deployment: {environment.deployment_type or 'not specified'}, "
            f"virtualization: {environment.virtualization or 'not specified'})",
        )

    def _score_scaling(self, environment: Environment) -> CalculationComponent:
        mechanism = parse_scaling_mechanism(environment.db_scaling_mechanism)
        if mechanism == ScalingMechanism.HORIZONTAL:
            return _component("Scaling mechanism", 6, 6, "Horizontal scaling supported")
        if mechanism == ScalingMechanism.VERTICAL:
            return _component("Scaling mechanism", 3, 6, "Vertical scaling only")
        return _component(
            "Scaling mechanism", 0, 6,
            _unrecognized("Scaling mechanism", environment.db_scaling_mechanism),
        )

    def _score_code_quality(self, code_base: CodeBase) -> CalculationComponent:
        documentation = DocumentationLevel.from_string(code_base.documentation_level)
        debt = parse_technical_debt(code_base.technical_debt_known)

        if documentation == DocumentationLevel.HIGH and debt == TechnicalDebtLevel.LOW:
            return _component("Code quality", 3, 3, "High documentation and low technical debt")
        return _component(
            "Code quality", 0, 3,
            f"Documentation {code_base.documentation_level or 'not specified'}, "
            f"technical debt {code_base.technical_debt_known or 'not specified'}",
        )


class ComplianceEvaluator(CategoryEvaluator):
    """Scores hosting certifications and their fit with sensitive data."""

    category = Category.COMPLIANCE
    max_score = 20.0
    certification_cap = 16.0

    def __init__(self, weight: Optional[float] = None):
        super().__init__(weight if weight is not None else get_config().scoring_weights.compliance)

    def evaluate(self, environment: Environment, hosting: Optional[Hosting] = None) -> CategoryDetail:
        certifications = match_certifications(hosting.certifications) if hosting else []
        return self._build_detail([
            self._score_certifications(hosting, certifications),
            self._score_sensitive_data(environment, certifications),
        ])

    def percentage(self, environment: Environment, hosting: Optional[Hosting] = None) -> float:
        return self.evaluate(environment, hosting).percentage

    def _score_certifications(
        self,
        hosting: Optional[Hosting],
        certifications: list[str],
    ) -> CalculationComponent:
        if hosting is None:
            return _component("Certifications", 0, self.certification_cap, "No hosting record")
        if not certifications:
            if hosting.certifications:
                return _component(
                    "Certifications", 0, self.certification_cap,
                    f"No recognized certification among: {', '.join(hosting.certifications)}",
                )
            return _component("Certifications", 0, self.certification_cap, "No hosting certifications")

        total = sum(CERTIFICATION_POINTS[c] for c in certifications)
        parts = ", ".join(f"{c} (+{CERTIFICATION_POINTS[c]})" for c in certifications)
        if total > self.certification_cap:
            reason = f"{parts}; capped at {self.certification_cap:g}"
        else:
            reason = parts
        return _component("Certifications", total, self.certification_cap, reason)

    def _score_sensitive_data(
        self,
        environment: Environment,
        certifications: list[str],
    ) -> CalculationComponent:
        name = "Sensitive data alignment"
        if not has_sensitive_data(environment.data_types):
            return _component(name, 0, 4, "No health or financial data processed")

        strong = [c for c in certifications if c in STRONG_CERTIFICATIONS]
        if strong:
            return _component(
                name, 4, 4,
                f"Sensitive data covered by {', '.join(strong)}",
            )
        return _component(
            name, 0, 4,
            "Health or financial data without ISO 27001, HDS or SOC 2 certification",
        )
