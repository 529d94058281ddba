"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and routes do
the work; these only own the domain shape.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class User:
    """A stored user account.

    hashed_password is a bcrypt string that embeds its own salt and cost. It is
    written at creation, replaced wholesale on password change, and never
    copied into any response model.

    created_by / updated_by hold the id of the authenticated user that made the
    change. Self-registration leaves created_by as None.
    """

    username: str
    full_name: str
    hashed_password: str
    id: int | None = None
    email: str | None = None
    created_at: str | None = None
    created_by: int | None = None
    updated_at: str | None = None
    updated_by: int | None = None


@dataclass(frozen=True)
class TokenClaims:
    """Identity recovered from a validated access token.

    Never persisted server-side: rebuilt from the token on every request.
    expires_at - issued_at is always the fixed token lifetime.
    """

    user_id: int
    username: str
    issued_at: datetime
    expires_at: datetime
    issuer: str
