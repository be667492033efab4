"""
Credibility scoring for crowdsourced incident reports
Deterministic, auditable heuristic that turns a raw submission into a
confidence score, a triage status and a list of advisory flags.
"""

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from src.core.constants import (
    ACTIVITY_KEYWORD_BONUS,
    ACTIVITY_KEYWORDS,
    BASE_SCORE,
    CONVERSION_KEYWORD_BONUS,
    CONVERSION_KEYWORDS,
    DETAILS_CHARS_PER_POINT,
    FLAG_LOW_CONFIDENCE,
    FLAG_MISSING_COORDINATES,
    FLAG_NO_PHOTO,
    FLAGGED_BELOW,
    LATITUDE_BONUS,
    LOW_CONFIDENCE_BELOW,
    MANGROVE_MAX_ABS_LATITUDE,
    MAX_LENGTH_BONUS,
    MAX_SCORE,
    MIN_SCORE,
    PHOTO_BONUS,
    VALIDATED_THRESHOLD,
)
from src.crowdsource.report_handler import ReportStatus

logger = logging.getLogger(__name__)


def parse_coordinate(value: Any) -> Optional[float]:
    """
    Parse a coordinate string.

    Returns None for absent, empty, non-numeric or non-finite values.
    Unlike JavaScript parseFloat, trailing text ("10.5N") and "Infinity" are rejected.
    """
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    if not math.isfinite(number):
        return None
    return number


def _keyword_pattern(terms) -> "re.Pattern[str]":
    return re.compile("|".join(re.escape(t) for t in terms), re.IGNORECASE)


@dataclass
class ScoringResult:
    """Outcome of scoring a single submission."""
    confidence: int
    status: ReportStatus
    flags: List[str] = field(default_factory=list)

    # Per-rule contributions, before clamping
    factors: Dict[str, int] = field(default_factory=dict)


class ScoringEngine:
    """
    Scores incident reports with an additive heuristic.

    Rules, starting from a base of 40:
    - Length of the details text (up to +30)
    - Photo attached (+15)
    - Activity keywords such as chainsaw or truck (+10)
    - Land conversion keywords such as reclamation or bulldozer (+8)
    - Latitude inside the mangrove belt (+5)

    The sum is clamped to [5, 99] and mapped to a status.
    """

    ACTIVITY_PATTERN = _keyword_pattern(ACTIVITY_KEYWORDS)
    CONVERSION_PATTERN = _keyword_pattern(CONVERSION_KEYWORDS)

    def evaluate(
        self,
        details: Optional[str],
        has_photo: bool,
        category: Optional[str] = None,
        latitude: Any = None,
        longitude: Any = None
    ) -> ScoringResult:
        """
        Score a submission.

        Args:
            details: Free-text description (may be empty)
            has_photo: Whether an attachment was supplied
            category: Incident category (not used by the heuristic)
            latitude: Latitude as supplied (string or number)
            longitude: Longitude as supplied (string or number)

        Returns:
            ScoringResult with confidence, status and flags
        """
        text = (details or "").strip()
        factors: Dict[str, int] = {"base": BASE_SCORE}

        factors["length"] = min(MAX_LENGTH_BONUS, len(text) // DETAILS_CHARS_PER_POINT)

        if has_photo:
            factors["photo"] = PHOTO_BONUS

        if self.ACTIVITY_PATTERN.search(text):
            factors["activity_keywords"] = ACTIVITY_KEYWORD_BONUS

        if self.CONVERSION_PATTERN.search(text):
            factors["conversion_keywords"] = CONVERSION_KEYWORD_BONUS

        lat = parse_coordinate(latitude)
        lng = parse_coordinate(longitude)

        if lat is not None and abs(lat) <= MANGROVE_MAX_ABS_LATITUDE:
            factors["latitude"] = LATITUDE_BONUS

        confidence = max(MIN_SCORE, min(MAX_SCORE, sum(factors.values())))
        status = self.status_for(confidence)

        flags = []
        if lat is None or lng is None:
            flags.append(FLAG_MISSING_COORDINATES)
        if confidence < LOW_CONFIDENCE_BELOW:
            flags.append(FLAG_LOW_CONFIDENCE)
        if not has_photo:
            flags.append(FLAG_NO_PHOTO)

        logger.debug(
            f"Scored submission (category={category!r}): "
            f"confidence={confidence} status={status.value} flags={len(flags)}"
        )

        return ScoringResult(
            confidence=confidence,
            status=status,
            flags=flags,
            factors=factors,
        )

    @staticmethod
    def status_for(confidence: int) -> ReportStatus:
        """Map a clamped confidence score to its initial triage status."""
        if confidence >= VALIDATED_THRESHOLD:
            return ReportStatus.VALIDATED
        elif confidence < FLAGGED_BELOW:
            return ReportStatus.FLAGGED
        return ReportStatus.SUBMITTED
