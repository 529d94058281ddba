"""
auth/passwords.py -- Password hashing and credential verification (bcrypt).

Passwords: bcrypt via the bcrypt package directly. The stored hash is
self-describing ($2b$<cost>$<22-char salt><31-char digest>), so verification
needs no separate salt column and old hashes keep working after the cost
factor is raised.

Using bcrypt directly rather than passlib: passlib's wrap-bug detection builds
a password longer than 72 bytes, which bcrypt 4.x rejects outright. The API
layer caps passwords at 72 UTF-8 bytes so bcrypt never truncates silently.

Nothing in this module logs, stores, or returns a plaintext password.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging

import bcrypt

from core.config import get_settings

logger = logging.getLogger("accountapi.auth")

_settings = get_settings()

MAX_PASSWORD_BYTES = 72


def hash_password(plain: str, rounds: int | None = None) -> str:
    """Return a bcrypt hash of plain with a fresh random salt.

    rounds defaults to Settings.bcrypt_rounds. Errors from the entropy source
    propagate; account creation treats them as fatal.
    """
    salt = bcrypt.gensalt(rounds=rounds or _settings.bcrypt_rounds)
    return bcrypt.hashpw(plain.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if plain matches the bcrypt hash.

    bcrypt.checkpw re-derives the digest with the salt and cost embedded in
    hashed and compares in constant time. A malformed stored hash is reported
    as a plain mismatch.
    """
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash could not be parsed")
        return False


# Timing equalization dummy hash. Computed once at module load with the
# configured cost so a lookup miss runs the same bcrypt work as a wrong
# password and response time does not reveal whether a username exists.
DUMMY_HASH: str = hash_password("accountapi_timing_dummy")
