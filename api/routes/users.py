"""
api/routes/users.py -- User record REST endpoints.

Routes:
  GET  /users                 -- all users (public projections)
  GET  /users/validate/user   -- confirm the X-User-Id header names a live user
  GET  /users/{user_id}       -- one user, 404 if unknown
  POST /users                 -- create a user; 201 with the projection

Validation and duplicate failures raised by the store (ValidationError,
ConflictError) reach the client as 400 with the store's message, e.g.
"User with email a@x.com already exists".

/validate/user is registered before /{user_id} so the literal path wins.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Header

from api.models import UserCreate, UserResponse, ValidateUserResponse
from auth.dependencies import get_gateway, get_user_store
from auth.errors import NotFoundError, ValidationError
from auth.gateway import AuthGateway
from auth.store import UserStore

router = APIRouter()


@router.get("/users", response_model=list[UserResponse])
def list_users(store: UserStore = Depends(get_user_store)) -> list[UserResponse]:
    return [UserResponse.from_public(u.public()) for u in store.list_all()]


@router.get("/users/validate/user", response_model=ValidateUserResponse)
def validate_user(
    x_user_id: str | None = Header(default=None),
    gateway: AuthGateway = Depends(get_gateway),
) -> ValidateUserResponse:
    """Used by sibling services to check that a forwarded user id is real."""
    if not x_user_id:
        raise ValidationError("X-User-Id header is required")
    user = gateway.validate_user(x_user_id)
    return ValidateUserResponse(valid=True, user=UserResponse.from_public(user.public()))


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(user_id: str, store: UserStore = Depends(get_user_store)) -> UserResponse:
    user = store.get_by_id(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return UserResponse.from_public(user.public())


@router.post("/users", response_model=UserResponse, status_code=201)
def create_user(body: UserCreate, store: UserStore = Depends(get_user_store)) -> UserResponse:
    """Create a user. The password, if any, is stored only as a bcrypt hash."""
    user = store.create(body.model_dump(exclude_none=True))
    return UserResponse.from_public(user.public())
