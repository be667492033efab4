"""
Database module for MangroveWatch
Key-value snapshot persistence for reports and contributor scores
"""

from .connection import DatabaseConnection, get_db, init_db, mask_url
from .models import Base, KeyValueRecord, REPORTS_KEY, SCORES_KEY
from .repository import SnapshotRepository, InMemoryBackend

__all__ = [
    "DatabaseConnection",
    "get_db",
    "init_db",
    "mask_url",
    "Base",
    "KeyValueRecord",
    "REPORTS_KEY",
    "SCORES_KEY",
    "SnapshotRepository",
    "InMemoryBackend",
]
