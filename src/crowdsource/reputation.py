"""Contributor points and badge tiers."""

import logging
import threading
from typing import Any, Dict, List, Optional, Tuple

from src.core.constants import BADGE_LADDER
from src.crowdsource.errors import PersistenceError

logger = logging.getLogger(__name__)


def badge_for(points: int) -> str:
    """Return the badge earned at the given point total."""
    badge = BADGE_LADDER[0][0]
    for name, threshold in BADGE_LADDER:
        if points >= threshold:
            badge = name
        else:
            break
    return badge


def badge_progress(points: int) -> Dict[str, Optional[object]]:
    """Current badge, the next badge, and the points still needed to reach it."""
    current = BADGE_LADDER[0]
    next_badge: Optional[Tuple[str, int]] = None

    for idx, (name, threshold) in enumerate(BADGE_LADDER):
        if points >= threshold:
            current = (name, threshold)
            next_badge = BADGE_LADDER[idx + 1] if idx + 1 < len(BADGE_LADDER) else None
        else:
            next_badge = (name, threshold)
            break

    return {
        "current": current[0],
        "current_threshold": current[1],
        "next": next_badge[0] if next_badge else None,
        "next_threshold": next_badge[1] if next_badge else None,
        "points_to_next": max(0, next_badge[1] - points) if next_badge else None,
    }


class ReputationLedger:
    """
    Maps contributor names to accumulated points.

    Contributors are identified by the exact name string. Point totals only
    ever grow; entries are created on the first non-zero award.
    """

    def __init__(
        self,
        scores: Optional[Dict[str, int]] = None,
        storage_backend: Optional[Any] = None
    ):
        """
        Initialize ledger.

        Args:
            scores: Snapshot of previously stored point totals
            storage_backend: Backend with a ``persist_scores(dict)`` method
        """
        self.storage = storage_backend
        self._scores: Dict[str, int] = {name: int(pts) for name, pts in (scores or {}).items()}
        self._lock = threading.RLock()

        logger.info(f"ReputationLedger initialized with {len(self._scores)} contributors")

    badge_for = staticmethod(badge_for)

    def award(self, name: Optional[str], amount: int) -> int:
        """
        Add points to a contributor.

        ``amount`` must be a non-negative integer; that is the caller's
        responsibility. Empty names are ignored.

        Returns:
            The contributor's new total (0 for ignored names)
        """
        if not name:
            return 0

        with self._lock:
            previous = self._scores.get(name)
            if amount == 0:
                return previous or 0

            self._scores[name] = (previous or 0) + amount
            try:
                self._persist()
            except PersistenceError:
                if previous is None:
                    del self._scores[name]
                else:
                    self._scores[name] = previous
                raise

            logger.info(f"Awarded {amount} points to {name!r} (total {self._scores[name]})")
            return self._scores[name]

    def points_for(self, name: str) -> int:
        with self._lock:
            return self._scores.get(name, 0)

    def top_entries(self, limit: Optional[int] = None) -> List[Tuple[str, int]]:
        """
        Contributors by descending points, ties broken by ascending name.

        Args:
            limit: Maximum number of entries (all when None)
        """
        with self._lock:
            entries = sorted(self._scores.items(), key=lambda item: (-item[1], item[0]))
        if limit is not None:
            entries = entries[:max(0, limit)]
        return entries

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._scores)

    def __len__(self) -> int:
        with self._lock:
            return len(self._scores)

    def _persist(self) -> None:
        if self.storage is None:
            return
        self.storage.persist_scores(dict(self._scores))
