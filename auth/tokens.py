"""
auth/tokens.py -- JWT issuance, verification, and diagnostic decoding.

Security design decisions:
  JWT: python-jose with HS256. The signing secret is passed in at
       construction (see auth/secret.py), so the exact same normalized value
       is used for signing and verification.

  Payload: {id, userId, email, name, role, iat, exp}. id and userId both
       carry the user id. Downstream consumers read one or the other, so both
       stay until those consumers are migrated.

  verify() never raises. It returns a TokenVerification holding either the
       claims or the reason verification failed (expired vs bad signature).
       The API layer collapses both into one 401; the distinction is for logs.

  decode() skips signature and expiry checks entirely. It exists for
       operators debugging a token (main.py decode-token) and must never feed
       an access-control decision.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt

from auth.errors import (
    ConfigError,
    ExpiredTokenError,
    InvalidSignatureError,
    InvalidTokenError,
)
from auth.models import DEFAULT_ROLE, User

logger = logging.getLogger("userservice.auth")

DEFAULT_EXPIRE_SECONDS = 24 * 60 * 60
_ALGORITHM = "HS256"


@dataclass(frozen=True)
class TokenVerification:
    """Outcome of TokenService.verify(): claims on success, error otherwise."""

    claims: dict[str, Any] | None = None
    error: InvalidTokenError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.claims is not None


class TokenService:
    """Signs and verifies bearer tokens carrying identity claims.

    Usage:
        tokens = TokenService(get_secret(), expire_seconds=3600)
        token = tokens.issue(user)
        result = tokens.verify(token)
        if result.ok:
            user_id = result.claims["userId"]
    """

    def __init__(
        self,
        secret: str,
        expire_seconds: int = DEFAULT_EXPIRE_SECONDS,
        algorithm: str = _ALGORITHM,
    ) -> None:
        if not secret:
            raise ConfigError("TokenService requires a non-empty signing secret.")
        self._secret = secret
        self.expire_seconds = expire_seconds
        self.algorithm = algorithm

    def issue(self, user: User, expire_seconds: int | None = None) -> str:
        """Encode a signed JWT for user, valid for expire_seconds (default: service TTL)."""
        duration = expire_seconds if expire_seconds is not None else self.expire_seconds
        now = datetime.now(timezone.utc)
        payload = {
            "id": user.id,
            "userId": user.id,
            "email": user.email,
            "name": user.name,
            "role": user.role or DEFAULT_ROLE,
            "iat": now,
            "exp": now + timedelta(seconds=duration),
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenVerification:
        """Check signature and expiry. Never raises."""
        try:
            claims = jwt.decode(token, self._secret, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            return TokenVerification(error=ExpiredTokenError("Token has expired"))
        except JWTError as exc:
            logger.debug("JWT verification error: %s", exc)
            return TokenVerification(error=InvalidSignatureError("Token signature is invalid"))
        if not (claims.get("id") or claims.get("userId")):
            return TokenVerification(error=InvalidSignatureError("Token carries no user id"))
        return TokenVerification(claims=claims)

    @staticmethod
    def decode(token: str) -> dict[str, Any] | None:
        """Return the payload WITHOUT verifying signature or expiry, or None if unparseable."""
        try:
            return jwt.get_unverified_claims(token)
        except JWTError as exc:
            logger.debug("JWT decode error: %s", exc)
            return None
