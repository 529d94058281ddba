"""
core/errors.py -- Closed set of error kinds raised by auth/ and route code.

Only the API boundary (api/main.py) knows how an ErrorKind maps to an HTTP
status. Everything below the boundary raises AppError and stays transport-free.

Credential and token failures are deliberately coarse: a wrong password and an
unknown username are both INVALID_CREDENTIALS; an expired, forged, malformed,
or wrong-algorithm token is always TOKEN_INVALID. Finer reasons belong in logs.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    INVALID_REQUEST = "invalid_request"
    INVALID_CREDENTIALS = "invalid_credentials"
    TOKEN_MISSING = "token_missing"
    TOKEN_INVALID = "token_invalid"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    NO_CHANGES = "no_changes"
    SIGNING_FAILURE = "signing_failure"


class AppError(Exception):
    """An expected failure tagged with its ErrorKind.

    message overrides the default client-facing message for kinds where the
    wording depends on the resource (NOT_FOUND, CONFLICT). The boundary
    ignores it for auth kinds so nothing request-specific leaks into a 401.
    """

    def __init__(self, kind: ErrorKind, message: str | None = None) -> None:
        super().__init__(message or kind.value)
        self.kind = kind
        self.message = message
