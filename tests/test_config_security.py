from __future__ import annotations

import pytest
from pydantic import ValidationError

from lessonhub.core.config import Settings


def test_default_secret_key_allowed_in_development() -> None:
    settings = Settings(_env_file=None, app_env="development", secret_key="change-me")
    assert settings.secret_key == "change-me"
    assert settings.realtime_backend == "memory"
    assert settings.availability_past_grace_days == 1
    assert settings.booking_require_prior_contact is True


def test_default_secret_key_rejected_in_production() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, app_env="production", secret_key="change-me")


def test_placeholder_secret_key_prefix_rejected_in_production() -> None:
    with pytest.raises(ValidationError):
        Settings(
            _env_file=None,
            app_env="production",
            secret_key="change-me-in-production",
            realtime_allow_memory_in_production=True,
        )


def test_in_memory_realtime_backend_requires_explicit_ack_in_production() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, app_env="production", secret_key="super-secure-value")


def test_custom_secret_key_allowed_in_production_with_explicit_ack() -> None:
    settings = Settings(
        _env_file=None,
        app_env="production",
        secret_key="super-secure-value",
        realtime_allow_memory_in_production=True,
    )
    assert settings.secret_key == "super-secure-value"


def test_redis_realtime_backend_requires_redis_url() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, realtime_backend="redis", redis_url=None)


def test_realtime_backend_is_case_insensitive() -> None:
    settings = Settings(_env_file=None, realtime_backend=" Redis ", redis_url="redis://localhost:6379/0")
    assert settings.realtime_backend == "redis"


def test_negative_grace_days_rejected() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, availability_past_grace_days=-1)
