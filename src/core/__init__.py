"""
MangroveWatch - Core Utilities
Central configuration, logging, and reference constants.
"""

from src.core.config import settings, get_settings
from src.core.constants import (
    BADGE_LADDER,
    ACTIVITY_KEYWORDS,
    CONVERSION_KEYWORDS,
    STATUS_COLORS,
)

__all__ = [
    "settings",
    "get_settings",
    "BADGE_LADDER",
    "ACTIVITY_KEYWORDS",
    "CONVERSION_KEYWORDS",
    "STATUS_COLORS",
]
