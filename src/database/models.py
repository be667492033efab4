"""
SQLAlchemy models for MangroveWatch
Snapshots are kept as JSON documents in a small key-value table.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.orm import declarative_base

Base = declarative_base()

REPORTS_KEY = "mw_reports"
SCORES_KEY = "mw_scores"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class KeyValueRecord(Base):
    """
    One stored document.

    ``mw_reports`` holds the list of report dictionaries and ``mw_scores``
    the contributor point map.
    """
    __tablename__ = "kv_store"

    key = Column(String(64), primary_key=True)
    value = Column(JSON, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    def __repr__(self):
        return f"<KeyValueRecord({self.key})>"
