"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

The gateway and store are built once in the api lifespan and hung on
app.state; these helpers fetch them per request.

get_identity() validates the Authorization: Bearer header and returns the
verified Identity. Failures propagate as AuthError subclasses, which the
app-level handler in api/main.py turns into a 401 envelope.

get_current_user() additionally re-resolves the live record (404 if the user
was deleted after the token was issued).

Layer rule: auth/dependencies.py may import from fastapi (for Request)
because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Depends, Request

from auth.gateway import AuthGateway
from auth.models import Identity, User
from auth.store import UserStore


def get_gateway(request: Request) -> AuthGateway:
    return request.app.state.gateway


def get_user_store(request: Request) -> UserStore:
    return request.app.state.user_store


def get_identity(request: Request, gateway: AuthGateway = Depends(get_gateway)) -> Identity:
    """Require a valid bearer token. Raises MissingTokenError / InvalidTokenError.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(identity: Identity = Depends(get_identity)): ...
    """
    identity = gateway.authenticate(request.headers.get("Authorization"))
    request.state.identity = identity
    return identity


def get_current_user(
    identity: Identity = Depends(get_identity),
    gateway: AuthGateway = Depends(get_gateway),
) -> User:
    """Require authentication and return the live user record."""
    return gateway.current_user(identity)
