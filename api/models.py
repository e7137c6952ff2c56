"""
API request and response models for the user service REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

None of the user response models has a password field, so a projection can
never leak a digest even if a handler passes a full record through.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Request body for POST /auth/login.

    Both fields are optional at the schema level so a missing field answers
    400 "Email and password are required" rather than a 422 schema dump.
    Values are compared as sent, exactly as POST /users stored them.
    """

    email: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, max_length=255)


class UserCreate(BaseModel):
    """Request body for POST /users.

    name is validated by the store (ValidationError "name required") rather
    than by the schema, so every entry point gets the same error. Unknown
    keys are dropped.
    """

    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = Field(default=None, max_length=255)
    id: Optional[str] = Field(default=None, max_length=100)
    email: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, max_length=255)
    role: Optional[str] = Field(default=None, max_length=30)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Public projection of a user record (no password)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    name: str
    email: Optional[str] = None
    role: str
    created_at: Optional[str] = Field(default=None, alias="createdAt")

    @classmethod
    def from_public(cls, doc: dict) -> "UserResponse":
        """Build from User.public(). Factory colocated with the output model."""
        return cls.model_validate(doc)


class LoginResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str
    user: UserResponse


class VerifyResponse(BaseModel):
    """Identity claims echoed back by GET /auth/verify."""

    model_config = ConfigDict(frozen=True)

    userId: str
    email: Optional[str] = None
    role: str
    name: Optional[str] = None


class ValidateUserResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    valid: bool = True
    user: UserResponse


class HealthResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    service: str = "user-service"


class ProbeResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: str


class EndpointInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    method: str
    path: str
    description: str


class ServiceInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    service: str = "user-service"
    endpoints: list[EndpointInfo]


# ---------------------------------------------------------------------------
# Error envelope
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    error: ErrorDetail
