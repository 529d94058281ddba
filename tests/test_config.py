"""Unit tests for core/config.py -- startup validation of Settings.

Covers:
- a missing SECRET_KEY fails closed (no fallback secret)
- short secrets are rejected
- bcrypt cost factor bounds
- LOG_LEVEL normalisation
"""

import pytest
from pydantic import ValidationError

from core.config import Settings

_GOOD_KEY = "k" * 32


def test_missing_secret_key_fails(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SECRET_KEY", raising=False)
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_empty_secret_key_fails() -> None:
    with pytest.raises(ValidationError, match="SECRET_KEY is required"):
        Settings(_env_file=None, secret_key="")


def test_short_secret_key_fails() -> None:
    with pytest.raises(ValidationError, match="at least 32 characters"):
        Settings(_env_file=None, secret_key="k" * 31)


def test_secret_key_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SECRET_KEY", _GOOD_KEY)
    assert Settings(_env_file=None).secret_key == _GOOD_KEY


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("BCRYPT_ROUNDS", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    settings = Settings(_env_file=None, secret_key=_GOOD_KEY)
    assert settings.bcrypt_rounds == 10
    assert settings.log_level == "INFO"
    assert settings.database_url.startswith("sqlite:///")


@pytest.mark.parametrize("rounds", [3, 32])
def test_bcrypt_rounds_out_of_range(rounds: int) -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, secret_key=_GOOD_KEY, bcrypt_rounds=rounds)


def test_log_level_is_uppercased() -> None:
    assert Settings(_env_file=None, secret_key=_GOOD_KEY, log_level="debug").log_level == "DEBUG"


def test_unknown_log_level_fails() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, secret_key=_GOOD_KEY, log_level="chatty")
