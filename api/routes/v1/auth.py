"""
api/routes/v1/auth.py -- Login and token introspection endpoints.

Routes:
  POST /api/v1/auth/login   -- password login; returns a bearer token
  GET  /api/v1/auth/me      -- identity carried by the presented token

Security:
  authenticate_user() provides timing equalization -- use it, never inline
  get_by_username() + verify_password().
  Wrong username and wrong password both raise INVALID_CREDENTIALS, which the
  boundary renders as the same 401.
  Cache-Control: no-store on login responses so tokens are not cached.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import LoginRequest, LoginResponse, MeResponse, UserResponse
from auth.dependencies import get_current_claims
from auth.models import TokenClaims
from auth.store import UserStore
from auth.tokens import TOKEN_TTL, authenticate_user, create_access_token
from core.errors import AppError, ErrorKind

logger = logging.getLogger("accountapi.api.auth")

# Auth policy:
# - POST /api/v1/auth/login: public -- login endpoint must be unauthenticated
# - GET  /api/v1/auth/me:    requires bearer token (get_current_claims)
router = APIRouter()


@router.post("/auth/login", response_model=LoginResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with username and password; return a signed access token.

    Declared sync so bcrypt runs in the threadpool instead of the event loop.
    A signing failure propagates as SIGNING_FAILURE (500), not as a 401.
    """
    user_store: UserStore = request.app.state.user_store
    user = authenticate_user(user_store, body.username, body.password)
    if user is None:
        logger.info("Failed login")
        raise AppError(ErrorKind.INVALID_CREDENTIALS)

    token = create_access_token(user.id, user.username)
    logger.info("User %d logged in", user.id)
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            access_token=token,
            token_type="bearer",  # noqa: S106 # nosec B106 -- OAuth token type, not a password
            expires_in=int(TOKEN_TTL.total_seconds()),
            user=UserResponse.from_user(user),
        ).model_dump(mode="json"),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/auth/me", response_model=MeResponse)
async def me(claims: TokenClaims = Depends(get_current_claims)) -> MeResponse:
    """Return the identity recovered from the presented token."""
    return MeResponse.from_claims(claims)
