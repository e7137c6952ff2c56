"""
api/main.py -- FastAPI application entry point for the user service.

Run with:  python main.py serve
           uvicorn api.main:app --reload

Middleware stack (outermost to innermost):
  1. CORSMiddleware     -- the service is called from browser frontends
  2. SlowAPIMiddleware  -- enforces per-route rate limits from api.limiter

Lifespan builds the auth core once per process: Settings -> signing secret ->
PasswordHasher / JsonFileStorage / UserStore / TokenService / AuthGateway,
all stored on app.state. A missing JWT_SECRET raises ConfigError here, so the
server refuses to start instead of failing on the first login.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from api.limiter import limiter
from api.models import EndpointInfo, ErrorDetail, ErrorResponse, HealthResponse, ProbeResponse, ServiceInfo
from api.routes.auth import router as auth_router
from api.routes.users import router as users_router
from auth.errors import AuthError, InvalidTokenError, StorageError, UserServiceError
from auth.gateway import build_gateway
from core.config import get_settings

VERSION = "1.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("userservice.api")


# ---------------------------------------------------------------------------
# Lifespan -- modern startup / shutdown pattern (replaces @app.on_event)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the auth core and attach it to app.state.

    build_gateway() resolves the secret before touching storage, so a missing
    JWT_SECRET stops startup first. The list_all() call afterwards creates the
    users file if absent, which makes an unwritable data directory fail here
    too rather than on the first request.
    """
    settings = get_settings()
    logging.getLogger("userservice").setLevel(settings.log_level)
    logger.info("User service starting up")

    gateway = build_gateway(settings)
    app.state.gateway = gateway
    app.state.user_store = gateway.store
    user_count = len(gateway.store.list_all())
    logger.info("Auth initialized (users=%d, file=%s)", user_count, settings.users_file)

    yield

    logger.info("User service shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="User Service",
    description="User records, password login, and bearer token verification.",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization", "X-User-Id"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, tags=["Auth"])
app.include_router(users_router, tags=["Users"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


def _error_response(status_code: int, code: str, message: str, detail: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail)).model_dump(
            exclude_none=True
        ),
    )


@app.exception_handler(UserServiceError)
async def user_service_error_handler(request: Request, exc: UserServiceError) -> JSONResponse:
    """Render errors raised by the auth core.

    Expected outcomes (validation, conflict, not found, auth) carry a message
    meant for the caller. Storage and config failures are logged with their
    traceback and answered generically -- file paths and OS errors stay in
    the log.
    """
    if not exc.expose:
        logger.error(
            "%s on %s %s: %s",
            type(exc).__name__,
            request.method,
            request.url.path,
            exc.message,
            exc_info=exc,
        )
        return _error_response(500, "internal_error", "Internal server error")

    if isinstance(exc, AuthError):
        # Expired and bad-signature tokens share one outward message; the
        # specific subclass was already logged by the gateway.
        message = "Invalid token" if isinstance(exc, InvalidTokenError) else exc.message
        response = _error_response(exc.status_code, exc.code, message)
        response.headers["Cache-Control"] = "no-store"
        return response

    return _error_response(exc.status_code, exc.code, exc.message)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a structured error when a rate limit is exceeded."""
    retry_after = int(getattr(exc, "retry_after", 60))
    response = _error_response(429, "rate_limited", "Too many requests.", str(exc))
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when request body or query params fail validation."""
    return _error_response(422, "validation_error", "Request validation failed.", str(exc.errors()))


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Return a structured error for all FastAPI/Starlette HTTP exceptions."""
    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})
    return _error_response(exc.status_code, f"http_{exc.status_code}", str(exc.detail))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error_response(500, "internal_error", "Internal server error")


# ---------------------------------------------------------------------------
# Service info and health endpoints
#
# Defined directly in main.py (not in a router) so they are always reachable
# regardless of router registration state. No rate limit applied -- probes
# from orchestrators must not be throttled.
# ---------------------------------------------------------------------------

_ENDPOINTS = [
    EndpointInfo(method="GET", path="/users", description="Get all users"),
    EndpointInfo(method="GET", path="/users/:id", description="Get user by ID"),
    EndpointInfo(method="POST", path="/users", description="Create a new user"),
    EndpointInfo(method="GET", path="/users/validate/user", description="Validate user from X-User-Id header"),
    EndpointInfo(method="POST", path="/auth/login", description="Login with email and password"),
    EndpointInfo(method="GET", path="/auth/me", description="Get current user data (requires auth)"),
    EndpointInfo(method="GET", path="/auth/verify", description="Verify JWT token (requires auth)"),
    EndpointInfo(method="GET", path="/health", description="Health check"),
    EndpointInfo(method="GET", path="/health/live", description="Liveness probe"),
    EndpointInfo(method="GET", path="/health/ready", description="Readiness probe"),
]


@app.get("/", tags=["Health"])
async def root() -> ServiceInfo:
    """Service name and the list of public endpoints."""
    return ServiceInfo(endpoints=_ENDPOINTS)


@app.get("/health", tags=["Health"])
async def health() -> HealthResponse:
    return HealthResponse()


@app.get("/health/live", tags=["Health"])
async def live() -> ProbeResponse:
    return ProbeResponse(status="live")


@app.get("/health/ready", tags=["Health"])
def ready(request: Request) -> JSONResponse:
    """Ready once the users file can be read; 503 otherwise."""
    try:
        request.app.state.user_store.list_all()
    except StorageError:
        logger.warning("Readiness probe failed: users file unreadable")
        return JSONResponse(status_code=503, content=ProbeResponse(status="unavailable").model_dump())
    return JSONResponse(status_code=200, content=ProbeResponse(status="ready").model_dump())
