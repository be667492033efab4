"""
MangroveWatch - Constants and Reference Data
Static values used by the scoring heuristic and the reputation ledger.
"""

from typing import Dict, List, Tuple

# =============================================================================
# SCORING HEURISTIC
# =============================================================================

BASE_SCORE: int = 40
MIN_SCORE: int = 5
MAX_SCORE: int = 99

# One point per 20 characters of (trimmed) details, capped
DETAILS_CHARS_PER_POINT: int = 20
MAX_LENGTH_BONUS: int = 30

PHOTO_BONUS: int = 15

# Evidence of activity (machinery, vehicles, cutting)
ACTIVITY_KEYWORDS: Tuple[str, ...] = (
    "boat", "chainsaw", "truck", "oil", "dump", "cut", "stump", "logging",
)
ACTIVITY_KEYWORD_BONUS: int = 10

# Evidence of land conversion / illegality
CONVERSION_KEYWORDS: Tuple[str, ...] = (
    "illegal", "reclamation", "spoil", "backhoe", "bulldozer",
)
CONVERSION_KEYWORD_BONUS: int = 8

# Mangroves grow roughly between 35 degrees north and south
MANGROVE_MAX_ABS_LATITUDE: float = 35.0
LATITUDE_BONUS: int = 5

# Status thresholds (applied to the clamped score)
VALIDATED_THRESHOLD: int = 70
FLAGGED_BELOW: int = 45
LOW_CONFIDENCE_BELOW: int = 50

FLAG_MISSING_COORDINATES: str = "Missing coordinates"
FLAG_LOW_CONFIDENCE: str = "Low confidence – needs moderator review"
FLAG_NO_PHOTO: str = "No photo attached"

# =============================================================================
# REPUTATION
# =============================================================================

# Submission reward (base by confidence band, plus evidence bonuses)
SUBMISSION_POINTS_HIGH: int = 10
SUBMISSION_POINTS_MEDIUM: int = 6
SUBMISSION_POINTS_LOW: int = 2
LONG_DETAILS_CHARS: int = 80
LONG_DETAILS_BONUS: int = 3
PHOTO_POINTS_BONUS: int = 5

PROMOTION_POINTS: int = 5

# Badge ladder, ascending by threshold
BADGE_LADDER: List[Tuple[str, int]] = [
    ("Beginner", 0),
    ("Guardian", 20),
    ("Ranger", 50),
    ("Champion", 100),
]

# =============================================================================
# PRESENTATION
# =============================================================================

STATUS_COLORS: Dict[str, str] = {
    "Validated": "green",
    "Submitted": "orange",
    "Flagged": "red",
}

COORDINATE_PLACEHOLDER: str = "—"
