"""
api/routes/auth.py -- Authentication REST endpoints.

Routes:
  POST /auth/login    -- email/password login; returns {token, user}
  GET  /auth/me       -- live record of the token's user (requires auth)
  GET  /auth/verify   -- identity claims carried by the token (requires auth)

Security:
  POST /login is rate-limited per IP (LOGIN_RATE_LIMIT, default 10/minute).
  AuthGateway.login() provides timing equalization -- use it, never inline
     a store lookup + password check here.
  Cache-Control: no-store on login responses.

Token failures of any kind (missing, malformed, expired, bad signature) all
answer 401; the reason is only logged.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, LoginRequest, LoginResponse, UserResponse, VerifyResponse
from auth.dependencies import get_current_user, get_gateway, get_identity
from auth.gateway import AuthGateway
from auth.models import Identity, User
from core.config import get_settings

# Auth policy:
# - POST /auth/login:   public -- login endpoint must be unauthenticated
# - GET  /auth/me:      requires auth (get_current_user)
# - GET  /auth/verify:  requires auth (get_identity)
router = APIRouter()


def _login_rate_limit() -> str:
    return get_settings().login_rate_limit


@limiter.limit(_login_rate_limit)  # brute-force mitigation; must be ABOVE @router to preserve FastAPI introspection
@router.post("/auth/login", response_model=LoginResponse)
def login(request: Request, body: LoginRequest, gateway: AuthGateway = Depends(get_gateway)) -> JSONResponse:
    """Authenticate with email and password; return a bearer token and the user.

    Unknown email and wrong password both raise InvalidCredentialsError, which
    the app handler renders as one generic 401 ("Invalid credentials").
    """
    if not body.email or not body.password:
        resp = JSONResponse(
            status_code=400,
            content=ErrorResponse(
                error=ErrorDetail(code="validation_error", message="Email and password are required")
            ).model_dump(exclude_none=True),
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp

    result = gateway.login(body.email, body.password)
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            token=result.token,
            user=UserResponse.from_public(result.user),
        ).model_dump(by_alias=True),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/auth/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)) -> UserResponse:
    """Return the live record for the authenticated user (404 if since deleted)."""
    return UserResponse.from_public(current_user.public())


@router.get("/auth/verify", response_model=VerifyResponse)
def verify(identity: Identity = Depends(get_identity)) -> VerifyResponse:
    """Confirm the bearer token is valid and echo its identity claims."""
    return VerifyResponse(
        userId=identity.id,
        email=identity.email,
        role=identity.role,
        name=identity.name,
    )
