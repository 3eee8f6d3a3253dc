"""Tests for settings guards."""

import pytest

from src.core.config import Settings


def test_defaults() -> None:
    config = Settings(_env_file=None, SECRET_KEY="s", RATE_LIMIT_HASH_SECRET="h")

    assert config.MAGIC_LINK_COOLDOWN_SECONDS == 90
    assert config.MAGIC_LINK_MAX_PER_WINDOW == 3
    assert config.MAGIC_LINK_WINDOW_SECONDS == 3600
    assert config.CACHE_TTL_PROJECTS == 600
    assert config.CACHE_TTL_ACTIVITIES == 1800
    assert config.CACHE_TTL_ISSUES == 300
    assert config.CACHE_TTL_TIME_ENTRIES == 60
    assert config.REDMINE_TIMEOUT_SECONDS == 15.0


def test_default_hash_secret_warns_outside_production() -> None:
    with pytest.warns(UserWarning, match="RATE_LIMIT_HASH_SECRET"):
        Settings(_env_file=None, ENVIRONMENT="staging", SECRET_KEY="s")


def test_default_hash_secret_rejected_in_production() -> None:
    with pytest.raises(ValueError, match="RATE_LIMIT_HASH_SECRET"):
        Settings(_env_file=None, ENVIRONMENT="production", SECRET_KEY="s")
