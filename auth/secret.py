"""
auth/secret.py -- The single accessor for the JWT signing secret.

Secrets pasted into .env files often arrive wrapped in double quotes or with
trailing whitespace. If signing and verification normalized the raw value
differently, tokens signed by one path would never verify on the other. So
normalization happens here, once, and the resulting string is handed to
TokenService at construction time. Nothing else reads settings.jwt_secret.
"""

from __future__ import annotations

import logging

from auth.errors import ConfigError
from core.config import Settings, get_settings

logger = logging.getLogger("userservice.auth")


def normalize_secret(raw: str) -> str:
    """Strip one layer of surrounding double quotes, then surrounding whitespace."""
    value = raw
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        value = value[1:-1]
    return value.strip()


def get_secret(settings: Settings | None = None) -> str:
    """Return the normalized signing secret. Raises ConfigError if unset."""
    settings = settings or get_settings()
    secret = normalize_secret(settings.jwt_secret)
    if not secret:
        raise ConfigError(
            "JWT_SECRET is required. Set JWT_SECRET in your environment or .env file."
        )
    # Length only -- the value itself is never logged.
    logger.debug("JWT_SECRET loaded with length %d", len(secret))
    return secret
