"""
api/routes/v1/users.py -- User account CRUD endpoints.

Routes:
  POST   /api/v1/users        -- create an account (public self-registration)
  GET    /api/v1/users        -- list accounts (requires auth)
  GET    /api/v1/users/{id}   -- fetch one account (requires auth)
  PUT    /api/v1/users/{id}   -- partial update (requires auth)
  DELETE /api/v1/users/{id}   -- delete an account (requires auth)

Any authenticated caller may manage any account; there are no roles.
Passwords are hashed before they reach the store and are never echoed back.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.exc import IntegrityError

from api.models import UserCreate, UserListResponse, UserResponse, UserUpdate
from auth.dependencies import get_current_claims
from auth.models import TokenClaims, User
from auth.passwords import hash_password
from auth.store import UserStore
from core.errors import AppError, ErrorKind

logger = logging.getLogger("accountapi.api.users")

router = APIRouter()

_USERNAME_TAKEN = "A user with that username already exists."
_USER_NOT_FOUND = "User not found."


@router.post("/users", response_model=UserResponse, status_code=201)
def create_user(request: Request, body: UserCreate) -> UserResponse:
    """Create a new account. Public endpoint.

    Sync handler: bcrypt hashing is CPU-bound and belongs in the threadpool.
    """
    user_store: UserStore = request.app.state.user_store

    new_user = User(
        username=body.username,
        full_name=body.full_name,
        email=body.email,
        hashed_password=hash_password(body.password),
    )
    try:
        user_id = user_store.create_user(new_user)
    except IntegrityError as exc:
        raise AppError(ErrorKind.CONFLICT, _USERNAME_TAKEN) from exc

    logger.info("Created user %d", user_id)
    return UserResponse.from_user(_require_user(user_store, user_id))


@router.get("/users", response_model=UserListResponse)
def list_users(
    request: Request,
    claims: TokenClaims = Depends(get_current_claims),
) -> UserListResponse:
    user_store: UserStore = request.app.state.user_store
    users = [UserResponse.from_user(u) for u in user_store.list_users()]
    return UserListResponse(users=users, count=len(users))


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(
    request: Request,
    user_id: int,
    claims: TokenClaims = Depends(get_current_claims),
) -> UserResponse:
    user_store: UserStore = request.app.state.user_store
    return UserResponse.from_user(_require_user(user_store, user_id))


@router.put("/users/{user_id}", response_model=UserResponse)
def update_user(
    request: Request,
    user_id: int,
    body: UserUpdate,
    claims: TokenClaims = Depends(get_current_claims),
) -> UserResponse:
    """Update username, password, full name, or email.

    A new password replaces the stored hash wholesale. Tokens already issued
    under the old username stay valid until they expire.
    """
    user_store: UserStore = request.app.state.user_store
    _require_user(user_store, user_id)

    updates: dict = body.model_dump(exclude_unset=True, exclude={"password"})
    if body.password is not None:
        updates["hashed_password"] = hash_password(body.password)
    if not updates:
        raise AppError(ErrorKind.NO_CHANGES)

    try:
        updated = user_store.update_user(user_id, updated_by=claims.user_id, **updates)
    except IntegrityError as exc:
        raise AppError(ErrorKind.CONFLICT, _USERNAME_TAKEN) from exc
    if not updated:
        # Deleted between the existence check and the write.
        raise AppError(ErrorKind.NOT_FOUND, _USER_NOT_FOUND)

    logger.info("User %d updated by %d (fields=%s)", user_id, claims.user_id, sorted(updates))
    return UserResponse.from_user(_require_user(user_store, user_id))


@router.delete("/users/{user_id}", status_code=204)
def delete_user(
    request: Request,
    user_id: int,
    claims: TokenClaims = Depends(get_current_claims),
) -> Response:
    user_store: UserStore = request.app.state.user_store
    if not user_store.delete_user(user_id):
        raise AppError(ErrorKind.NOT_FOUND, _USER_NOT_FOUND)
    logger.info("User %d deleted by %d", user_id, claims.user_id)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _require_user(user_store: UserStore, user_id: int) -> User:
    user = user_store.get_by_id(user_id)
    if user is None:
        raise AppError(ErrorKind.NOT_FOUND, _USER_NOT_FOUND)
    return user
