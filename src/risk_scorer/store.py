"""Document store used by the scoring engine.

The engine only needs to look records up by key and append snapshots, so
the store exposes a minimal document API: find_one, find, insert_one and
count. Two implementations are provided: an in-memory store and a store
backed by a single JSON file mapping collection names to document lists.
"""

import copy
import json
import logging
import threading
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)

# Collection names, as used by the data collection application
ENVIRONMENTS = "environments"
SECURITY_PROFILES = "securityprofiles"
MONITORING = "monitoringobservabilities"
CODE_BASES = "codebases"
DEVELOPMENT_METRICS = "developmentmetrics"
HOSTINGS = "hostings"
SCORING_SNAPSHOTS = "scoringsnapshots"

COLLECTIONS = [
    ENVIRONMENTS,
    SECURITY_PROFILES,
    MONITORING,
    CODE_BASES,
    DEVELOPMENT_METRICS,
    HOSTINGS,
    SCORING_SNAPSHOTS,
]

# Key aliases, so documents written with camelCase keys match snake_case queries
_KEY_ALIASES = {
    "env_id": "envId",
    "solution_id": "solutionId",
    "hosting_id": "hostingId",
    "score_id": "scoreId",
}


class StoreError(Exception):
    """Raised when a store cannot be read or written."""


def _field(document: dict[str, Any], key: str) -> Any:
    if key in document:
        return document[key]
    alias = _KEY_ALIASES.get(key)
    if alias and alias in document:
        return document[alias]
    return None


def matches(document: dict[str, Any], query: Optional[dict[str, Any]]) -> bool:
    """True when every key of the query equals the document's value."""
    if not query:
        return True
    return all(_field(document, key) == value for key, value in query.items())


class DocumentStore:
    """Minimal document store API consumed by the scoring engine."""

    def find_one(self, collection: str, query: dict[str, Any]) -> Optional[dict[str, Any]]:
        """Return the first document matching the query, or None."""
        for document in self.find(collection, query):
            return document
        return None

    def find(self, collection: str, query: Optional[dict[str, Any]] = None) -> list[dict[str, Any]]:
        """Return all documents matching the query, in insertion order."""
        raise NotImplementedError

    def insert_one(self, collection: str, document: dict[str, Any]) -> None:
        """Append a document to a collection."""
        raise NotImplementedError

    def count(self, collection: str, query: Optional[dict[str, Any]] = None) -> int:
        return len(self.find(collection, query))


class InMemoryDocumentStore(DocumentStore):
    """Thread-safe in-memory store.

    Documents are copied on the way in and out so callers never share
    mutable state with the store.
    """

    def __init__(self, data: Optional[dict[str, list[dict[str, Any]]]] = None):
        self._lock = threading.Lock()
        self._collections: dict[str, list[dict[str, Any]]] = {
            name: [copy.deepcopy(doc) for doc in docs]
            for name, docs in (data or {}).items()
        }

    def find(self, collection: str, query: Optional[dict[str, Any]] = None) -> list[dict[str, Any]]:
        with self._lock:
            documents = self._collections.get(collection, [])
            return [copy.deepcopy(doc) for doc in documents if matches(doc, query)]

    def insert_one(self, collection: str, document: dict[str, Any]) -> None:
        with self._lock:
            self._collections.setdefault(collection, []).append(copy.deepcopy(document))

    def dump(self) -> dict[str, list[dict[str, Any]]]:
        """Snapshot of all collections."""
        with self._lock:
            return copy.deepcopy(self._collections)


class JsonDocumentStore(InMemoryDocumentStore):
    """Store persisted as one JSON file.

    The file holds an object mapping collection names to arrays of
    documents. Inserts are written back to the file unless autosave is off.
    """

    def __init__(self, path: Path, autosave: bool = True):
        self.path = Path(path)
        self.autosave = autosave
        super().__init__(self._read(self.path))

    @staticmethod
    def _read(path: Path) -> dict[str, list[dict[str, Any]]]:
        if not path.exists():
            return {}
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise StoreError(f"Invalid JSON in {path}: {e}") from e
        except OSError as e:
            raise StoreError(f"Cannot read {path}: {e}") from e

        if not isinstance(data, dict):
            raise StoreError(f"{path} must contain a JSON object of collections")
        for name, documents in data.items():
            if not isinstance(documents, list):
                raise StoreError(f"Collection '{name}' in {path} must be a list")
        return data

    def insert_one(self, collection: str, document: dict[str, Any]) -> None:
        super().insert_one(collection, document)
        if self.autosave:
            self.save()

    def save(self) -> None:
        """Write all collections back to the file."""
        data = self.dump()
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise StoreError(f"Cannot write {self.path}: {e}") from e
        logger.debug("Store saved to %s", self.path)
