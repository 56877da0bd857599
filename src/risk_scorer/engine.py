"""Risk Scoring Engine - main entry point.

Loads the records of one environment from the document store, scores them
and appends an immutable ScoringSnapshot. Recomputing never updates an
existing snapshot; it adds a newer one, keeping the historical trail.
"""

import copy
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable, Optional

from pydantic import BaseModel, ValidationError

from .config import ScorerConfig, get_config
from .identifiers import IdGenerator, SequentialIdGenerator
from .schema import (
    CodeBase,
    CollectionType,
    DevelopmentMetrics,
    Environment,
    Hosting,
    MonitoringObservability,
    ScoreBreakdown,
    ScoringInputs,
    ScoringSnapshot,
    SecurityProfile,
)
from .scorer import RiskScorer
from .store import (
    CODE_BASES,
    DEVELOPMENT_METRICS,
    ENVIRONMENTS,
    HOSTINGS,
    MONITORING,
    SCORING_SNAPSHOTS,
    SECURITY_PROFILES,
    DocumentStore,
    JsonDocumentStore,
    StoreError,
)

logger = logging.getLogger(__name__)

# Environment types tried in order when scoring a whole solution
ENVIRONMENT_PRIORITY = ["production", "test"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _field_keys(model: type[BaseModel], name: str) -> set[str]:
    """The field name and its alias, as either may appear in a document."""
    for field_name, info in model.model_fields.items():
        if name in (field_name, info.alias):
            return {field_name, info.alias} - {None}
    return {name}


def _has_field(model: type[BaseModel], document: dict, name: str) -> bool:
    return any(key in document for key in _field_keys(model, name))


def _error_location(error: dict) -> str:
    return ".".join(str(part) for part in error["loc"]) or "<record>"


def _drop_invalid_fields(model: type[BaseModel], document: dict, error: ValidationError) -> dict:
    """Copy of the document without the values reported by a ValidationError.

    The deepest mapping key on each error path is removed; a bad list item
    removes the whole list.
    """
    cleaned = copy.deepcopy(document)
    for err in error.errors():
        parent, keys, node = None, set(), cleaned
        for depth, part in enumerate(err["loc"]):
            if not isinstance(part, str) or not isinstance(node, dict):
                break
            candidates = _field_keys(model, part) if depth == 0 else {part}
            key = next((k for k in candidates if k in node), None)
            if key is None:
                break
            parent, keys, node = node, candidates, node[key]
        if parent is not None:
            for key in keys:
                parent.pop(key, None)
    return cleaned


class ScoringEngine:
    """Computes and records risk scores for solution environments.

    Usage:
        engine = ScoringEngine(store)
        snapshot = engine.compute_score("sol-1", "env-1")
        if snapshot is None:
            ...  # insufficient data, scoring deferred
    """

    def __init__(
        self,
        store: DocumentStore,
        id_generator: Optional[IdGenerator] = None,
        config: Optional[ScorerConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.id_generator = id_generator or SequentialIdGenerator.from_store(store)
        self.config = config or get_config()
        self.clock = clock or _utcnow
        self.scorer = RiskScorer(self.config)

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def _load(
        self,
        model: type[BaseModel],
        collection: str,
        query: dict,
        defaults: Optional[dict] = None,
    ) -> Optional[BaseModel]:
        """Validate the first matching document.

        Returns None only when no document matches. Fields that fail
        validation are dropped with a warning so that the record still
        scores, with those fields counted as not provided.
        """
        document = self.store.find_one(collection, query)
        if document is None:
            return None
        try:
            return model.model_validate(document)
        except ValidationError as e:
            logger.warning(
                "Ignoring invalid fields of %s document %s: %s",
                collection, query, ", ".join(_error_location(err) for err in e.errors()),
            )
            cleaned = _drop_invalid_fields(model, document, e)
        for name, value in {**query, **(defaults or {})}.items():
            if not _has_field(model, cleaned, name):
                cleaned[name] = value
        return model.model_validate(cleaned)

    def load_inputs(self, solution_id: str, environment_id: str) -> Optional[ScoringInputs]:
        """Load every record needed to score one environment.

        Returns None when a required record is missing. Hosting is optional.
        """
        environment = self._load(
            Environment, ENVIRONMENTS, {"env_id": environment_id}, defaults={"solution_id": solution_id}
        )
        security_profile = self._load(SecurityProfile, SECURITY_PROFILES, {"env_id": environment_id})
        monitoring = self._load(MonitoringObservability, MONITORING, {"env_id": environment_id})
        code_base = self._load(CodeBase, CODE_BASES, {"solution_id": solution_id})
        metrics = self._load(DevelopmentMetrics, DEVELOPMENT_METRICS, {"solution_id": solution_id})

        required = {
            "Environment": environment,
            "SecurityProfile": security_profile,
            "MonitoringObservability": monitoring,
            "CodeBase": code_base,
            "DevelopmentMetrics": metrics,
        }
        missing = [name for name, record in required.items() if record is None]
        if missing:
            logger.warning(
                "Missing data for scoring environment %s (solution %s): %s. Scoring skipped.",
                environment_id, solution_id, ", ".join(missing),
            )
            return None

        hosting = None
        if environment.hosting_id:
            hosting = self._load(Hosting, HOSTINGS, {"hosting_id": environment.hosting_id})
            if hosting is None:
                logger.debug("Hosting %s not found for environment %s", environment.hosting_id, environment_id)

        return ScoringInputs(
            environment=environment,
            security_profile=security_profile,
            monitoring=monitoring,
            code_base=code_base,
            development_metrics=metrics,
            hosting=hosting,
        )

    # -------------------------------------------------------------------------
    # Scoring
    # -------------------------------------------------------------------------

    def evaluate(self, inputs: ScoringInputs) -> ScoreBreakdown:
        """Score already-loaded records without persisting anything."""
        return self.scorer.score(inputs)

    def compute_score(
        self,
        solution_id: str,
        environment_id: str,
        collection_type: CollectionType = CollectionType.SNAPSHOT,
        persist: bool = True,
    ) -> Optional[ScoringSnapshot]:
        """Score an environment and record a new snapshot.

        Args:
            solution_id: Solution owning the environment
            environment_id: Environment to score
            collection_type: Periodic snapshot or due-diligence collection
            persist: Append the snapshot to the store (False for dry runs)

        Returns:
            The new ScoringSnapshot, or None when required data is missing
        """
        inputs = self.load_inputs(solution_id, environment_id)
        if inputs is None:
            return None

        breakdown = self.evaluate(inputs)

        snapshot = ScoringSnapshot(
            score_id=self.id_generator.next_id(),
            solution_id=solution_id,
            env_id=environment_id,
            date=self.clock(),
            collection_type=collection_type,
            scores=breakdown.scores,
            global_score=breakdown.global_score,
            risk_level=breakdown.risk_level,
            notes=breakdown.notes,
            calculation_details=breakdown.calculation_details,
            calculation_report=breakdown.calculation_report,
        )

        if persist:
            self.store.insert_one(SCORING_SNAPSHOTS, snapshot.model_dump(mode="json"))
            logger.info(
                "ScoringSnapshot %s recorded for environment %s. Score: %d, Risk: %s",
                snapshot.score_id, environment_id, snapshot.global_score, snapshot.risk_level.value,
            )
        return snapshot

    def select_environment(self, solution_id: str) -> Optional[str]:
        """Pick the environment to score for a solution.

        Production first, then test, then the first non-archived
        environment of the solution.
        """
        environments = [
            doc for doc in self.store.find(ENVIRONMENTS, {"solution_id": solution_id})
            if not doc.get("archived", False)
        ]
        for env_type in ENVIRONMENT_PRIORITY:
            for doc in environments:
                if (doc.get("env_type") or "").lower() == env_type:
                    return doc.get("env_id") or doc.get("envId")
        if environments:
            return environments[0].get("env_id") or environments[0].get("envId")
        return None

    def score_solution(
        self,
        solution_id: str,
        collection_type: CollectionType = CollectionType.SNAPSHOT,
        persist: bool = True,
    ) -> Optional[ScoringSnapshot]:
        """Score the most representative environment of a solution."""
        environment_id = self.select_environment(solution_id)
        if environment_id is None:
            logger.warning("No environment found for solution %s", solution_id)
            return None
        return self.compute_score(solution_id, environment_id, collection_type, persist=persist)

    def score_solutions(
        self,
        solution_ids: Iterable[str],
        collection_type: CollectionType = CollectionType.SNAPSHOT,
        persist: bool = True,
    ) -> dict[str, Optional[ScoringSnapshot]]:
        """Score several solutions; a failure for one does not stop the others."""
        results: dict[str, Optional[ScoringSnapshot]] = {}
        for solution_id in solution_ids:
            results[solution_id] = self.score_solution(solution_id, collection_type, persist=persist)
        return results

    # -------------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------------

    def history(
        self,
        environment_id: Optional[str] = None,
        solution_id: Optional[str] = None,
    ) -> list[ScoringSnapshot]:
        """Snapshots for an environment and/or solution, oldest first."""
        query = {}
        if environment_id:
            query["env_id"] = environment_id
        if solution_id:
            query["solution_id"] = solution_id
        snapshots = [
            ScoringSnapshot.model_validate(doc)
            for doc in self.store.find(SCORING_SNAPSHOTS, query)
        ]
        return sorted(snapshots, key=lambda s: s.date)

    def latest_snapshot(
        self,
        environment_id: Optional[str] = None,
        solution_id: Optional[str] = None,
    ) -> Optional[ScoringSnapshot]:
        snapshots = self.history(environment_id, solution_id)
        return snapshots[-1] if snapshots else None

    def get_snapshot(self, score_id: str) -> Optional[ScoringSnapshot]:
        document = self.store.find_one(SCORING_SNAPSHOTS, {"score_id": score_id})
        return ScoringSnapshot.model_validate(document) if document else None


_COLLECTION_MODELS = {
    ENVIRONMENTS: Environment,
    SECURITY_PROFILES: SecurityProfile,
    MONITORING: MonitoringObservability,
    CODE_BASES: CodeBase,
    DEVELOPMENT_METRICS: DevelopmentMetrics,
    HOSTINGS: Hosting,
    SCORING_SNAPSHOTS: ScoringSnapshot,
}


def validate_store(path: str) -> tuple[bool, list[str]]:
    """Validate every document of a JSON store file.

    Returns:
        Tuple of (is_valid, list of issues)
    """
    issues = []
    try:
        store = JsonDocumentStore(Path(path), autosave=False)
    except StoreError as e:
        return False, [str(e)]

    for collection, model in _COLLECTION_MODELS.items():
        for i, document in enumerate(store.find(collection)):
            try:
                model.model_validate(document)
            except ValidationError as e:
                for error in e.errors():
                    location = ".".join(str(part) for part in error["loc"])
                    issues.append(f"{collection}[{i}].{location}: {error['msg']}")

    return len(issues) == 0, issues
