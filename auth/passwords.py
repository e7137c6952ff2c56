"""
auth/passwords.py -- bcrypt password hashing.

bcrypt is used directly (no passlib wrapper): passlib's wrap-bug detection
builds a password longer than 72 bytes, which bcrypt 4.x rejects outright.

Work factor defaults to 10, matching the hashes already stored by earlier
deployments of the service. bcrypt embeds the cost in each digest, so records
hashed at a different cost still verify after the setting changes.
"""

from __future__ import annotations

import bcrypt

DEFAULT_ROUNDS = 10
MAX_PASSWORD_BYTES = 72

_BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


class PasswordHasher:
    """Salted, deliberately slow one-way hashing of passwords.

    Usage:
        hasher = PasswordHasher(rounds=12)
        stored = hasher.hash("secret")
        hasher.verify("secret", stored)  # True
    """

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        self.rounds = rounds
        self._dummy_hash: str | None = None

    @staticmethod
    def too_long(plaintext: str) -> bool:
        """True if plaintext exceeds bcrypt's 72-byte input limit (UTF-8)."""
        return len(plaintext.encode("utf-8")) > MAX_PASSWORD_BYTES

    def hash(self, plaintext: str) -> str:
        """Return a bcrypt digest of plaintext with a fresh random salt.

        Raises ValueError for inputs over MAX_PASSWORD_BYTES; callers
        validate with too_long() first.
        """
        if self.too_long(plaintext):
            raise ValueError(f"password cannot be longer than {MAX_PASSWORD_BYTES} bytes")
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(plaintext.encode("utf-8"), salt).decode("utf-8")

    def verify(self, plaintext: str | None, hashed: str | None) -> bool:
        """Return True if plaintext matches the stored digest.

        A wrong password is False. So is a missing or non-string password, an
        over-long one, and a malformed or missing stored hash: a corrupt record
        or a bad caller must fail the login, not crash it.
        """
        if not hashed or not isinstance(plaintext, str) or self.too_long(plaintext):
            return False
        try:
            return bcrypt.checkpw(plaintext.encode("utf-8"), hashed.encode("utf-8"))
        except (ValueError, TypeError):
            return False

    @staticmethod
    def is_hashed(value: str | None) -> bool:
        return bool(value) and value.startswith(_BCRYPT_PREFIXES) and len(value) == 60

    @property
    def dummy_hash(self) -> str:
        """Digest checked against when a login email is unknown.

        Running bcrypt on both the "no such user" and the "wrong password"
        paths keeps response time from revealing which emails exist.
        """
        if self._dummy_hash is None:
            self._dummy_hash = self.hash("userservice_timing_dummy")
        return self._dummy_hash
