"""Snapshot identifier generators.

The engine receives one of these as a collaborator. All of them produce
ids prefixed with "score-".
"""

import itertools
import threading
import uuid

from .store import SCORING_SNAPSHOTS, DocumentStore

SCORE_ID_PREFIX = "score-"


def format_score_id(number: int) -> str:
    """Format a sequence number as score-NNNNNN."""
    return f"{SCORE_ID_PREFIX}{number:06d}"


class IdGenerator:
    """Produces a new snapshot identifier on each call."""

    def next_id(self) -> str:
        raise NotImplementedError

    def __call__(self) -> str:
        return self.next_id()


class SequentialIdGenerator(IdGenerator):
    """Atomic in-process counter producing score-000001, score-000002, ...

    Two threads sharing a generator never receive the same id.
    """

    def __init__(self, start: int = 1):
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    @classmethod
    def from_store(cls, store: DocumentStore) -> "SequentialIdGenerator":
        """Continue numbering after the snapshots already in the store."""
        return cls(start=store.count(SCORING_SNAPSHOTS) + 1)

    def next_id(self) -> str:
        with self._lock:
            return format_score_id(next(self._counter))


class CountingIdGenerator(IdGenerator):
    """Derives the id from the current snapshot count.

    Matches the historical numbering but two concurrent callers can read
    the same count; serialize scoring per environment when using it.
    """

    def __init__(self, store: DocumentStore):
        self.store = store

    def next_id(self) -> str:
        return format_score_id(self.store.count(SCORING_SNAPSHOTS) + 1)


class UuidIdGenerator(IdGenerator):
    """Collision-resistant random ids (score-<32 hex chars>)."""

    def next_id(self) -> str:
        return f"{SCORE_ID_PREFIX}{uuid.uuid4().hex}"
