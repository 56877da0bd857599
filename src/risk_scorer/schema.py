"""Pydantic models for the Risk Scoring Engine.

Input schemas for the questionnaire records collected about a solution and
its environments, and output schemas for scoring snapshots. Input fields
that behave like enumerations are kept as raw strings so that unexpected
values never fail validation; the parsers module interprets them.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


# =============================================================================
# Enumerations
# =============================================================================


class Category(str, Enum):
    """Scoring categories, in report order."""
    SECURITY = "Security"
    RESILIENCE = "Resilience"
    OBSERVABILITY = "Observability"
    ARCHITECTURE = "Architecture"
    COMPLIANCE = "Compliance"


CATEGORY_ORDER = [
    Category.SECURITY,
    Category.RESILIENCE,
    Category.OBSERVABILITY,
    Category.ARCHITECTURE,
    Category.COMPLIANCE,
]


class RiskLevel(str, Enum):
    """Risk tier derived from the global score."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class CollectionType(str, Enum):
    """Why a snapshot was collected."""
    SNAPSHOT = "snapshot"  # Periodic health check
    DUE_DILIGENCE = "DD"  # Due-diligence collection

    @classmethod
    def from_string(cls, value: str) -> "CollectionType":
        """Parse collection type from string."""
        if value and value.strip().lower() in ("dd", "due_diligence", "due-diligence"):
            return cls.DUE_DILIGENCE
        return cls.SNAPSHOT


class AuthMechanism(str, Enum):
    """Authentication mechanism offered by the solution."""
    NONE = "None"
    PASSWORDS = "Passwords"
    MFA = "MFA"
    SSO = "SSO"

    @classmethod
    def from_string(cls, value: Optional[str]) -> Optional["AuthMechanism"]:
        """Parse auth mechanism from string, None when unrecognized."""
        if not value:
            return None
        mapping = {
            "none": cls.NONE,
            "passwords": cls.PASSWORDS,
            "password": cls.PASSWORDS,
            "mfa": cls.MFA,
            "sso": cls.SSO,
        }
        return mapping.get(value.strip().lower())


class PatchingCadence(str, Enum):
    """How security patches are applied."""
    AD_HOC = "ad_hoc"
    SCHEDULED = "scheduled"
    AUTOMATED = "automated"

    @classmethod
    def from_string(cls, value: Optional[str]) -> Optional["PatchingCadence"]:
        if not value:
            return None
        mapping = {
            "adhoc": cls.AD_HOC,
            "scheduled": cls.SCHEDULED,
            "automated": cls.AUTOMATED,
        }
        return mapping.get(value.strip().lower().replace("_", "").replace("-", "").replace(" ", ""))


class PentestFrequency(str, Enum):
    """Penetration-testing cadence."""
    NEVER = "never"
    ANNUAL = "annual"
    QUARTERLY = "quarterly"

    @classmethod
    def from_string(cls, value: Optional[str]) -> Optional["PentestFrequency"]:
        if not value:
            return None
        mapping = {
            "never": cls.NEVER,
            "annual": cls.ANNUAL,
            "quarterly": cls.QUARTERLY,
        }
        return mapping.get(value.strip().lower())


class RedundancyTier(str, Enum):
    """Redundancy level of an environment."""
    NONE = "none"
    MINIMAL = "minimal"
    GEO_REDUNDANT = "geo-redundant"
    HIGH = "high"

    @classmethod
    def from_string(cls, value: Optional[str]) -> Optional["RedundancyTier"]:
        if not value:
            return None
        mapping = {
            "none": cls.NONE,
            "minimal": cls.MINIMAL,
            "georedundant": cls.GEO_REDUNDANT,
            "high": cls.HIGH,
        }
        return mapping.get(value.strip().lower().replace("-", "").replace("_", "").replace(" ", ""))


class DeploymentType(str, Enum):
    """Deployment architecture."""
    MONOLITH = "monolith"
    MICROSERVICES = "microservices"
    HYBRID = "hybrid"

    @classmethod
    def from_string(cls, value: Optional[str]) -> Optional["DeploymentType"]:
        if not value:
            return None
        mapping = {
            "monolith": cls.MONOLITH,
            "microservices": cls.MICROSERVICES,
            "hybrid": cls.HYBRID,
        }
        return mapping.get(value.strip().lower())


class Virtualization(str, Enum):
    """Virtualization technology."""
    PHYSICAL = "physical"
    VM = "VM"
    CONTAINER = "container"
    K8S = "k8s"

    @classmethod
    def from_string(cls, value: Optional[str]) -> Optional["Virtualization"]:
        if not value:
            return None
        mapping = {
            "physical": cls.PHYSICAL,
            "vm": cls.VM,
            "container": cls.CONTAINER,
            "k8s": cls.K8S,
            "kubernetes": cls.K8S,
        }
        return mapping.get(value.strip().lower())


class MonitoringStatus(str, Enum):
    """Yes/Partial/No answer for monitoring questions."""
    YES = "Yes"
    PARTIAL = "Partial"
    NO = "No"

    @classmethod
    def from_string(cls, value: Optional[str]) -> Optional["MonitoringStatus"]:
        if not value:
            return None
        mapping = {
            "yes": cls.YES,
            "partial": cls.PARTIAL,
            "no": cls.NO,
        }
        return mapping.get(value.strip().lower())


class DocumentationLevel(str, Enum):
    """Code documentation level."""
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"
    NONE = "None"

    @classmethod
    def from_string(cls, value: Optional[str]) -> Optional["DocumentationLevel"]:
        if not value:
            return None
        mapping = {
            "high": cls.HIGH,
            "medium": cls.MEDIUM,
            "low": cls.LOW,
            "none": cls.NONE,
        }
        return mapping.get(value.strip().lower())


class TechnicalDebtLevel(str, Enum):
    """Known technical debt level."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class ScalingMechanism(str, Enum):
    """Database scaling mechanism."""
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


# =============================================================================
# Input Records
# =============================================================================


def _as_list(value):
    """None becomes an empty list and a lone value a one-item list."""
    if value is None:
        return []
    if isinstance(value, (str, int, float)):
        return [value]
    return value


def _as_dict(value):
    """None becomes an empty mapping so the nested defaults apply."""
    return {} if value is None else value


class InputRecord(BaseModel):
    """Base for collected records.

    Records come from a document store filled by questionnaires, so nulls
    and numbers where text is expected are accepted rather than rejected.
    """

    class Config:
        populate_by_name = True
        extra = "allow"
        coerce_numbers_to_str = True


class Backup(InputRecord):
    """Backup descriptor of an environment."""
    exists: bool = False
    schedule: Optional[str] = None
    rto: Optional[float] = Field(None, description="Recovery Time Objective, in hours")
    rpo: Optional[float] = Field(None, description="Recovery Point Objective, in hours")
    restoration_test_frequency: Optional[str] = None

    @field_validator("exists", mode="before")
    @classmethod
    def _null_exists(cls, value):
        return False if value is None else value


class Environment(InputRecord):
    """One execution context (production, test, ...) of a solution."""
    env_id: str = Field(..., alias="envId")
    solution_id: str = Field(..., alias="solutionId")
    hosting_id: Optional[str] = Field(None, alias="hostingId")
    env_type: Optional[str] = None
    redundancy: Optional[str] = None
    backup: Backup = Field(default_factory=Backup)
    deployment_type: Optional[str] = None
    virtualization: Optional[str] = None
    db_scaling_mechanism: Optional[str] = None
    sla_offered: Optional[str] = None
    data_types: list[str] = Field(default_factory=list)
    tech_stack: list[str] = Field(default_factory=list)
    disaster_recovery_plan: Optional[str] = None
    archived: bool = False

    @field_validator("data_types", "tech_stack", mode="before")
    @classmethod
    def _null_lists(cls, value):
        return _as_list(value)

    @field_validator("backup", mode="before")
    @classmethod
    def _null_backup(cls, value):
        return _as_dict(value)

    @field_validator("archived", mode="before")
    @classmethod
    def _null_archived(cls, value):
        return False if value is None else value


class Encryption(InputRecord):
    """Encryption flags of a security profile."""
    in_transit: bool = False
    at_rest: bool = False
    details: Optional[str] = None

    @field_validator("in_transit", "at_rest", mode="before")
    @classmethod
    def _null_flag(cls, value):
        return False if value is None else value


class SecurityProfile(InputRecord):
    """Security posture of one environment."""
    sec_id: Optional[str] = Field(None, alias="secId")
    env_id: str = Field(..., alias="envId")
    auth: Optional[str] = None
    encryption: Encryption = Field(default_factory=Encryption)
    patching: Optional[str] = None
    pentest_freq: Optional[str] = None
    vuln_mgmt: Optional[str] = None
    access_control: Optional[str] = None
    centralized_monitoring: bool = False

    @field_validator("encryption", mode="before")
    @classmethod
    def _null_encryption(cls, value):
        return _as_dict(value)

    @field_validator("centralized_monitoring", mode="before")
    @classmethod
    def _null_monitoring(cls, value):
        return False if value is None else value


class MonitoringObservability(InputRecord):
    """Monitoring and observability practices of one environment."""
    mon_id: Optional[str] = Field(None, alias="monId")
    env_id: str = Field(..., alias="envId")
    perf_monitoring: Optional[str] = None
    log_centralization: Optional[str] = None
    tools: list[str] = Field(default_factory=list)
    alerting_strategy: Optional[str] = None

    @field_validator("tools", mode="before")
    @classmethod
    def _null_tools(cls, value):
        return _as_list(value)


class CodeBase(InputRecord):
    """Code base characteristics of a solution."""
    codebase_id: Optional[str] = Field(None, alias="codebaseId")
    solution_id: str = Field(..., alias="solutionId")
    documentation_level: Optional[str] = None
    technical_debt_known: Optional[str] = None
    code_review_process: Optional[str] = None
    version_control_tool: Optional[str] = None


class DevelopmentMetrics(InputRecord):
    """DORA-style delivery metrics of a solution.

    Required for scoring to proceed, but its fields are not scored.
    """
    metrics_id: Optional[str] = Field(None, alias="metricsId")
    solution_id: str = Field(..., alias="solutionId")
    sdlc_process: Optional[str] = None
    devops_automation_level: Optional[str] = None
    planned_vs_unplanned_ratio: Optional[float] = None
    lead_time_for_changes_days: Optional[float] = None
    mttr_hours: Optional[float] = None
    internal_vs_external_bug_ratio: Optional[float] = None


class Hosting(InputRecord):
    """Hosting provider referenced by an environment."""
    hosting_id: str = Field(..., alias="hostingId")
    provider: Optional[str] = None
    region: Optional[str] = None
    tier: Optional[str] = None
    certifications: list[str] = Field(default_factory=list)

    @field_validator("certifications", mode="before")
    @classmethod
    def _null_certifications(cls, value):
        return _as_list(value)


class ScoringInputs(BaseModel):
    """The records one scoring run reads."""
    environment: Environment
    security_profile: SecurityProfile
    monitoring: MonitoringObservability
    code_base: CodeBase
    development_metrics: DevelopmentMetrics
    hosting: Optional[Hosting] = None


# =============================================================================
# Scoring Output Models
# =============================================================================


class CalculationComponent(BaseModel):
    """Points obtained by one named component of a category."""
    name: str
    value: float
    max: float
    reason: str

    class Config:
        frozen = True


class CategoryDetail(BaseModel):
    """Scoring breakdown of one category."""
    category: Category
    weight: float
    raw_score: float
    max_raw_score: float
    percentage: float = Field(..., ge=0, le=100)
    contribution: float
    components: tuple[CalculationComponent, ...] = ()

    class Config:
        frozen = True

    def zero_components(self) -> list[CalculationComponent]:
        """Components that scored no points."""
        return [c for c in self.components if c.value == 0]


class CalculationDetails(BaseModel):
    """Structured explanation of a whole scoring run."""
    categories: tuple[CategoryDetail, ...] = ()
    global_score: int = Field(..., ge=0, le=100)
    risk_level: RiskLevel

    class Config:
        frozen = True

    def get(self, category: Category) -> Optional[CategoryDetail]:
        for detail in self.categories:
            if detail.category == category:
                return detail
        return None


class CategoricalScores(BaseModel):
    """Category percentages, each 0-100."""
    security: float = Field(..., ge=0, le=100)
    resilience: float = Field(..., ge=0, le=100)
    observability: float = Field(..., ge=0, le=100)
    architecture: float = Field(..., ge=0, le=100)
    compliance: float = Field(..., ge=0, le=100)

    class Config:
        frozen = True

    def get(self, category: Category) -> float:
        return getattr(self, category.value.lower())


class ScoreBreakdown(BaseModel):
    """Result of aggregating the five categories, before persistence."""
    scores: CategoricalScores
    global_score: int = Field(..., ge=0, le=100)
    risk_level: RiskLevel
    notes: str = ""
    calculation_details: CalculationDetails
    calculation_report: str = ""

    class Config:
        frozen = True


class ScoringSnapshot(BaseModel):
    """Immutable record of one scoring computation for one environment."""
    score_id: str = Field(..., alias="scoreId")
    solution_id: str = Field(..., alias="solutionId")
    env_id: Optional[str] = Field(None, alias="envId")
    date: datetime
    collection_type: CollectionType = CollectionType.SNAPSHOT
    scores: CategoricalScores
    global_score: int = Field(..., ge=0, le=100)
    risk_level: RiskLevel
    notes: str = ""
    calculation_details: Optional[CalculationDetails] = None
    calculation_report: Optional[str] = None

    class Config:
        populate_by_name = True
        frozen = True
