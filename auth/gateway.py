"""
auth/gateway.py -- Login and request authentication on top of the store and tokens.

AuthGateway is the only entry point the HTTP layer and CLI use for identity
decisions:

  login()         email + password -> signed token + public user projection
  authenticate()  "Bearer <token>" header -> verified Identity
  current_user()  Identity -> live User record (404 if deleted since login)

Security design decisions:
  Timing equalization: login() always runs bcrypt, against a dummy hash
       when the email is unknown, so response time does not reveal which
       emails exist. Unknown email and wrong password raise the same
       InvalidCredentialsError with the same message.

  Tokens do not cache the user record. A user deleted after login still holds
  a valid token; current_user() is where that surfaces, as NotFoundError.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from auth.errors import InvalidCredentialsError, MissingTokenError, NotFoundError
from auth.models import Identity, User
from auth.passwords import PasswordHasher
from auth.secret import get_secret
from auth.storage import JsonFileStorage
from auth.store import UserStore
from auth.tokens import TokenService
from core.config import Settings, get_settings

logger = logging.getLogger("userservice.auth")

_BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class LoginResult:
    token: str
    user: dict[str, Any]


class AuthGateway:
    def __init__(self, store: UserStore, tokens: TokenService, hasher: PasswordHasher | None = None) -> None:
        self.store = store
        self.tokens = tokens
        self.hasher = hasher or store.hasher

    def login(self, email: str, password: str) -> LoginResult:
        """Check credentials and issue a token.

        Raises InvalidCredentialsError for an unknown email, a user without a
        password, or a wrong password -- callers cannot tell which.
        """
        user = self.store.get_by_email(email)
        if user is None or user.password is None:
            # Equalize timing -- do NOT return before running bcrypt
            self.hasher.verify(password, self.hasher.dummy_hash)
            raise InvalidCredentialsError()
        if not self.hasher.verify(password, user.password):
            raise InvalidCredentialsError()

        token = self.tokens.issue(user)
        logger.info("Login succeeded for user %s", user.id)
        return LoginResult(token=token, user=user.public())

    def authenticate(self, header_value: str | None) -> Identity:
        """Turn an Authorization header value into a verified Identity.

        Raises MissingTokenError when the header is absent or not of the form
        "Bearer <token>", and the InvalidTokenError subclass reported by
        TokenService when verification fails.
        """
        if not header_value or not header_value.startswith(_BEARER_PREFIX):
            raise MissingTokenError()
        token = header_value[len(_BEARER_PREFIX):].strip()
        if not token:
            raise MissingTokenError()

        result = self.tokens.verify(token)
        if not result.ok:
            logger.info("Token rejected (%s)", result.error.reason)
            raise result.error
        return Identity.from_claims(result.claims)

    def current_user(self, identity: Identity | dict[str, Any]) -> User:
        """Re-resolve the live record behind a verified identity."""
        if isinstance(identity, dict):
            identity = Identity.from_claims(identity)
        user = self.store.get_by_id(identity.id) if identity.id else None
        if user is None:
            raise NotFoundError("User not found")
        return user

    def validate_user(self, user_id: str) -> User:
        """Confirm a user id (e.g. from an X-User-Id header) refers to a live record."""
        user = self.store.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user


def build_gateway(settings: Settings | None = None) -> AuthGateway:
    """Wire the auth core from Settings. Used by the API lifespan and the CLI.

    Raises ConfigError if JWT_SECRET is missing.
    """
    settings = settings or get_settings()
    secret = get_secret(settings)
    hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    storage = JsonFileStorage(settings.users_file, retry_attempts=settings.storage_retry_attempts)
    store = UserStore(storage, hasher)
    tokens = TokenService(secret, expire_seconds=settings.token_expire_seconds)
    return AuthGateway(store, tokens, hasher)
