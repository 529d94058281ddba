"""
auth/dependencies.py -- FastAPI Depends() helper for bearer-token authentication.

get_current_claims() is the single guard for protected routes:
  1. Read the Authorization header and extract the "Bearer <token>" value.
  2. Validate the token (signature, algorithm, expiry) with no store lookup.
  3. Attach the resulting TokenClaims to request.state.claims.

A missing or badly shaped header raises TOKEN_MISSING; a rejected token raises
TOKEN_INVALID. The rejection reason is logged here and nowhere else.

Layer rule: no imports from api/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import logging

from fastapi import Request

from auth.models import TokenClaims
from auth.tokens import InvalidTokenError, decode_access_token, extract_bearer_token
from core.errors import AppError, ErrorKind

logger = logging.getLogger("accountapi.auth")


def get_current_claims(request: Request) -> TokenClaims:
    """Require a valid bearer token. Raises AppError on failure.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(claims: TokenClaims = Depends(get_current_claims)): ...
    """
    token = extract_bearer_token(request.headers.get("Authorization"))
    if not token:
        raise AppError(ErrorKind.TOKEN_MISSING)

    try:
        claims = decode_access_token(token)
    except InvalidTokenError as exc:
        logger.info("Rejected token on %s %s: %s", request.method, request.url.path, exc.reason.value)
        raise

    request.state.claims = claims
    return claims
