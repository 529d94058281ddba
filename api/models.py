"""
API request and response models for the Account API REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

No response model has a password or hash field, so a stored hash cannot be
serialized into a response by accident.
"""

from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

from auth.models import TokenClaims, User
from auth.passwords import MAX_PASSWORD_BYTES

# ---------------------------------------------------------------------------
# Constrained field types
# ---------------------------------------------------------------------------

_Username = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]
_FullName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
_Email = Annotated[str, StringConstraints(strip_whitespace=True, max_length=100)]


def _check_password_bytes(value: Optional[str]) -> Optional[str]:
    """bcrypt only reads the first 72 bytes -- reject instead of truncating."""
    if value is not None and len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
    return value


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login."""

    username: str = Field(min_length=1, max_length=50)
    password: str = Field(min_length=1, max_length=MAX_PASSWORD_BYTES)


class UserCreate(BaseModel):
    """Request body for POST /api/v1/users.

    Text fields are stripped; the password is taken verbatim since leading and
    trailing spaces are part of it.
    """

    username: _Username
    password: str = Field(min_length=1, max_length=MAX_PASSWORD_BYTES)
    full_name: _FullName
    email: Optional[_Email] = None

    @field_validator("password")
    @classmethod
    def check_password_bytes(cls, value: str) -> str:
        return _check_password_bytes(value)


class UserUpdate(BaseModel):
    """Request body for PUT /api/v1/users/{id}. Omitted fields are left as-is.

    email may be sent as null to clear it. The other fields may be omitted but
    not nulled.
    """

    username: Optional[_Username] = None
    password: Optional[str] = Field(default=None, min_length=1, max_length=MAX_PASSWORD_BYTES)
    full_name: Optional[_FullName] = None
    email: Optional[_Email] = None

    @field_validator("password")
    @classmethod
    def check_password_bytes(cls, value: Optional[str]) -> Optional[str]:
        return _check_password_bytes(value)

    @field_validator("username", "full_name", "password")
    @classmethod
    def reject_null(cls, value: Optional[str]) -> str:
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Public view of a user record."""

    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    full_name: str
    email: Optional[str]
    created_at: str
    created_by: Optional[int]
    updated_at: Optional[str]
    updated_by: Optional[int]

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            username=user.username,
            full_name=user.full_name,
            email=user.email,
            created_at=user.created_at or "",
            created_by=user.created_by,
            updated_at=user.updated_at,
            updated_by=user.updated_by,
        )


class UserListResponse(BaseModel):
    """Response body for GET /api/v1/users."""

    model_config = ConfigDict(frozen=True)

    users: list[UserResponse]
    count: int


class LoginResponse(BaseModel):
    """Response body for a successful POST /api/v1/auth/login."""

    model_config = ConfigDict(frozen=True)

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse
    message: str = "Login successful"


class MeResponse(BaseModel):
    """Response body for GET /api/v1/auth/me -- straight from the token claims."""

    model_config = ConfigDict(frozen=True)

    user_id: int
    username: str
    issued_at: datetime
    expires_at: datetime

    @classmethod
    def from_claims(cls, claims: TokenClaims) -> "MeResponse":
        return cls(
            user_id=claims.user_id,
            username=claims.username,
            issued_at=claims.issued_at,
            expires_at=claims.expires_at,
        )


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
