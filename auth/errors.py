"""
auth/errors.py -- Error taxonomy for the authentication and user-record core.

Every error carries a machine-readable code and the HTTP status the API layer
should answer with. The core raises these; api/main.py owns the single
exception handler that turns them into the {"error": {...}} envelope.

Expected outcomes (caller-correctable, 4xx):
  ValidationError, ConflictError, NotFoundError, and the AuthError family.

Unexpected failures (5xx, generic response, logged with traceback):
  ConfigError, StorageError.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations


class UserServiceError(Exception):
    """Base class for all errors raised by the auth/ package."""

    code = "internal_error"
    status_code = 500
    # Expected outcomes are safe to echo to the client; unexpected ones are not.
    expose = False

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class ConfigError(UserServiceError):
    """Required configuration is missing or unusable. Fatal at startup."""

    code = "config_error"


class StorageError(UserServiceError):
    """The backing user document could not be read or written."""

    code = "storage_error"


class ValidationError(UserServiceError):
    """A required field is missing from a creation payload."""

    code = "validation_error"
    status_code = 400
    expose = True


class ConflictError(UserServiceError):
    """A record with the same id or email already exists.

    Answered with 400 rather than 409 so existing clients keep working.
    """

    code = "conflict"
    status_code = 400
    expose = True


class NotFoundError(UserServiceError):
    code = "not_found"
    status_code = 404
    expose = True


class AuthError(UserServiceError):
    """Base for every authentication failure. All of them surface as 401."""

    code = "unauthorized"
    status_code = 401
    expose = True


class InvalidCredentialsError(AuthError):
    """Unknown email or wrong password -- deliberately indistinguishable."""

    code = "invalid_credentials"

    def __init__(self, message: str = "Invalid credentials") -> None:
        super().__init__(message)


class MissingTokenError(AuthError):
    code = "missing_token"

    def __init__(self, message: str = "No token provided") -> None:
        super().__init__(message)


class InvalidTokenError(AuthError):
    """Token failed verification. Subclasses record why, for logging."""

    code = "invalid_token"
    reason = "invalid"

    def __init__(self, message: str = "Invalid token") -> None:
        super().__init__(message)


class ExpiredTokenError(InvalidTokenError):
    reason = "expired"


class InvalidSignatureError(InvalidTokenError):
    reason = "bad_signature"
