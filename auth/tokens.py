"""
auth/tokens.py -- Access token issuance/validation, bearer extraction, login.

Security design decisions:
  JWT: python-jose with HS256 only. Tokens are signed with SECRET_KEY and
       carry user_id, username (sub), iat, exp and a fixed issuer. Lifetime is
       a constant 24 hours; nothing about a token is stored server-side.

  Validation order: the header's alg is checked against HS256 before any
       other field is trusted, so "none" and algorithm-confusion tokens are
       rejected even when they carry a signature. Failures raise
       InvalidTokenError whose reason (expired / forged / malformed /
       wrong_algorithm) is for logs only -- the route layer turns every reason
       into the same 401.

  Login: authenticate_user() always runs bcrypt, against DUMMY_HASH when the
       username is unknown, so response time does not reveal account existence.

  SECRET_KEY: sourced from core.config.get_settings() once at module load.
       Settings refuses to start without a key of at least 32 characters.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import TYPE_CHECKING

from jose import jwt
from jose.exceptions import ExpiredSignatureError, JOSEError, JWTClaimsError, JWTError

from auth.models import TokenClaims
from auth.passwords import DUMMY_HASH, verify_password
from core.config import get_settings
from core.errors import AppError, ErrorKind

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("accountapi.auth")

# ---------------------------------------------------------------------------
# Config -- read once at module load via the lru_cache singleton
# ---------------------------------------------------------------------------

_settings = get_settings()

ALGORITHM = "HS256"
ISSUER = "account-api"
TOKEN_TTL = timedelta(hours=24)

_BEARER_PREFIX = "Bearer "


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TokenRejection(str, Enum):
    """Internal reason a token failed validation. Never sent to clients."""

    MALFORMED = "malformed"
    WRONG_ALGORITHM = "wrong_algorithm"
    FORGED = "forged"
    EXPIRED = "expired"


class InvalidTokenError(AppError):
    """Raised by decode_access_token(). Always surfaces as TOKEN_INVALID."""

    def __init__(self, reason: TokenRejection) -> None:
        super().__init__(ErrorKind.TOKEN_INVALID)
        self.reason = reason


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(user_id: int, username: str, issued_at: datetime | None = None) -> str:
    """Encode a signed JWT for the given identity, valid for TOKEN_TTL.

    Args:
        user_id:   Numeric user ID stored in the DB.
        username:  Username stored as the JWT subject claim.
        issued_at: Issue time, defaults to now. Truncated to whole seconds so
                   exp - iat is exactly TOKEN_TTL on the wire.

    Raises AppError(SIGNING_FAILURE) if python-jose cannot sign the payload.
    """
    now = (issued_at or _utc_now()).replace(microsecond=0)
    payload = {
        "sub": username,
        "user_id": user_id,
        "iat": int(now.timestamp()),
        "exp": int((now + TOKEN_TTL).timestamp()),
        "iss": ISSUER,
    }
    try:
        return jwt.encode(payload, _settings.secret_key, algorithm=ALGORITHM)
    except JOSEError as exc:
        logger.error("Token signing failed: %s", type(exc).__name__)
        raise AppError(ErrorKind.SIGNING_FAILURE) from exc


def decode_access_token(token: str) -> TokenClaims:
    """Verify a JWT and return its claims. Raises InvalidTokenError on any failure."""
    try:
        header = jwt.get_unverified_header(token)
    except JWTError:
        raise InvalidTokenError(TokenRejection.MALFORMED) from None
    if header.get("alg") != ALGORITHM:
        raise InvalidTokenError(TokenRejection.WRONG_ALGORITHM)

    try:
        jwt.get_unverified_claims(token)
    except JWTError:
        raise InvalidTokenError(TokenRejection.MALFORMED) from None

    try:
        payload = jwt.decode(
            token,
            _settings.secret_key,
            algorithms=[ALGORITHM],
            issuer=ISSUER,
            options={"verify_aud": False},
        )
    except ExpiredSignatureError:
        raise InvalidTokenError(TokenRejection.EXPIRED) from None
    except JWTClaimsError:
        raise InvalidTokenError(TokenRejection.MALFORMED) from None
    except JWTError:
        raise InvalidTokenError(TokenRejection.FORGED) from None
    except (TypeError, ValueError, OverflowError):
        # jose coerces iat/exp with int() and lets non-numeric types escape.
        raise InvalidTokenError(TokenRejection.MALFORMED) from None

    return _payload_to_claims(payload)


def _payload_to_claims(payload: dict) -> TokenClaims:
    user_id = payload.get("user_id")
    username = payload.get("sub")
    iat = payload.get("iat")
    exp = payload.get("exp")
    if not _is_int(user_id) or not isinstance(username, str) or not _is_int(iat) or not _is_int(exp):
        raise InvalidTokenError(TokenRejection.MALFORMED)
    # jose accepts now == exp; the token lifetime is a half-open interval.
    if int(_utc_now().timestamp()) >= exp:
        raise InvalidTokenError(TokenRejection.EXPIRED)
    try:
        issued_at = datetime.fromtimestamp(iat, tz=timezone.utc)
        expires_at = datetime.fromtimestamp(exp, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        raise InvalidTokenError(TokenRejection.MALFORMED) from None
    return TokenClaims(
        user_id=user_id,
        username=username,
        issued_at=issued_at,
        expires_at=expires_at,
        issuer=payload["iss"],
    )


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


# ---------------------------------------------------------------------------
# Authorization header
# ---------------------------------------------------------------------------


def extract_bearer_token(header_value: str | None) -> str:
    """Return the token from an "Authorization: Bearer <token>" value, or "".

    Only the exact, case-sensitive "Bearer " prefix is recognised. "" means no
    token was presented, which callers report differently from a bad token.
    """
    if header_value and header_value.startswith(_BEARER_PREFIX):
        return header_value[len(_BEARER_PREFIX) :]
    return ""


# ---------------------------------------------------------------------------
# User authentication (constant-time)
# ---------------------------------------------------------------------------


def authenticate_user(store: UserStore, username: str, password: str) -> User | None:
    """Authenticate a username/password login with timing equalization.

    Always runs bcrypt whether or not the user exists:
    - Unknown username: bcrypt runs against DUMMY_HASH (same cost as real check)
    - Wrong password: bcrypt runs against the real hash (same cost)

    Returns the User on success, None on any failure.
    """
    user = store.get_by_username(username)
    if user is None:
        # Equalize timing -- do NOT return early before running bcrypt
        verify_password(password, DUMMY_HASH)
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user
