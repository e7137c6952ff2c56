"""Unit tests for core/config.py -- Settings defaults and environment overrides."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from core.config import Settings, get_settings


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch):
    for name in ("JWT_SECRET", "TOKEN_EXPIRE_SECONDS", "USERS_FILE", "BCRYPT_ROUNDS", "LOGIN_RATE_LIMIT", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env) -> None:
    settings = Settings(_env_file=None)
    assert settings.jwt_secret == ""
    assert settings.token_expire_seconds == 86400
    assert settings.users_file == "data/users.json"
    assert settings.bcrypt_rounds == 10
    assert settings.login_rate_limit == "10/minute"
    assert settings.port == 3003


def test_environment_overrides(clean_env) -> None:
    clean_env.setenv("JWT_SECRET", '"quoted"')
    clean_env.setenv("TOKEN_EXPIRE_SECONDS", "3600")
    clean_env.setenv("USERS_FILE", "/var/lib/users.json")
    clean_env.setenv("LOG_LEVEL", "debug")
    settings = Settings(_env_file=None)
    # Raw value kept; normalization belongs to auth.secret
    assert settings.jwt_secret == '"quoted"'
    assert settings.token_expire_seconds == 3600
    assert settings.users_file == "/var/lib/users.json"
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize(
    ("name", "value"),
    [("BCRYPT_ROUNDS", "3"), ("BCRYPT_ROUNDS", "32"), ("TOKEN_EXPIRE_SECONDS", "0"), ("LOG_LEVEL", "chatty")],
)
def test_invalid_values_rejected(clean_env, name: str, value: str) -> None:
    clean_env.setenv(name, value)
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_get_settings_is_cached() -> None:
    assert get_settings() is get_settings()
