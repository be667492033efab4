"""
Snapshot persistence for the triage engine
Loads and stores the report list and score map as key-value documents.
"""

import copy
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from src.crowdsource.errors import PersistenceError
from .connection import DatabaseConnection, get_db
from .models import KeyValueRecord, REPORTS_KEY, SCORES_KEY

logger = logging.getLogger(__name__)


class SnapshotRepository:
    """
    Storage backend backed by the ``kv_store`` table.

    Each persist call replaces the whole document for its key.
    """

    def __init__(self, db: Optional[DatabaseConnection] = None):
        self.db = db or get_db()

    def load_reports(self) -> List[Dict[str, Any]]:
        """Stored report dictionaries (empty list if none)."""
        return self._load(REPORTS_KEY, [])

    def load_scores(self) -> Dict[str, int]:
        """Stored contributor points (empty dict if none)."""
        return self._load(SCORES_KEY, {})

    def persist_reports(self, reports: List[Dict[str, Any]]) -> None:
        self._save(REPORTS_KEY, reports)

    def persist_scores(self, scores: Dict[str, int]) -> None:
        self._save(SCORES_KEY, scores)

    def _load(self, key: str, fallback):
        try:
            with self.db.get_session() as session:
                record = session.get(KeyValueRecord, key)
                return record.value if record is not None else fallback
        except SQLAlchemyError as e:
            logger.error(f"Failed to load {key}: {e}")
            raise PersistenceError(f"Failed to load {key}") from e

    def _save(self, key: str, value) -> None:
        try:
            with self.db.get_session() as session:
                record = session.get(KeyValueRecord, key)
                if record is None:
                    session.add(KeyValueRecord(key=key, value=value))
                else:
                    record.value = value
        except SQLAlchemyError as e:
            logger.error(f"Failed to persist {key}: {e}")
            raise PersistenceError(f"Failed to persist {key}") from e


class InMemoryBackend:
    """Storage backend that keeps deep copies of the last persisted snapshot."""

    def __init__(
        self,
        reports: Optional[List[Dict[str, Any]]] = None,
        scores: Optional[Dict[str, int]] = None
    ):
        self.reports = copy.deepcopy(reports or [])
        self.scores = dict(scores or {})
        self.persist_calls = 0

    def load_reports(self) -> List[Dict[str, Any]]:
        return copy.deepcopy(self.reports)

    def load_scores(self) -> Dict[str, int]:
        return dict(self.scores)

    def persist_reports(self, reports: List[Dict[str, Any]]) -> None:
        self.reports = copy.deepcopy(reports)
        self.persist_calls += 1

    def persist_scores(self, scores: Dict[str, int]) -> None:
        self.scores = dict(scores)
        self.persist_calls += 1
