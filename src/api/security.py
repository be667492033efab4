"""
Moderator capability check for the HTTP layer.

The configured value is a SHA-256 digest, so the token itself never has to
live in configuration or code.
"""

import hashlib
import hmac
import logging
from typing import Optional

from fastapi import Header

from src.core.config import get_settings

logger = logging.getLogger(__name__)


def hash_token(token: str) -> str:
    """Hex SHA-256 digest of a moderator token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def token_matches(token: Optional[str], expected_digest: Optional[str]) -> bool:
    """Constant-time comparison of a presented token against the configured digest."""
    if not token or not expected_digest:
        return False
    return hmac.compare_digest(hash_token(token), expected_digest.strip().lower())


def is_moderator(x_moderator_token: Optional[str] = Header(None)) -> bool:
    """FastAPI dependency: True when the request carries a valid moderator token."""
    digest = get_settings().moderator_token_sha256
    if not digest:
        logger.warning("Moderator token digest not configured; moderation disabled")
        return False
    return token_matches(x_moderator_token, digest)
