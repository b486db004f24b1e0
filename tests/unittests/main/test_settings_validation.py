"""Unit tests for scheduler settings validation."""

import pytest

from revalidator.main.config import Settings, get_settings, reset_settings, set_settings

BASE = dict(
    postgres_user="u",
    postgres_host="localhost",
    postgres_password="p",
    postgres_port=5432,
    postgres_db="db",
    redis_host="localhost",
    redis_port=6379,
)


def test_defaults():
    settings = Settings(**BASE)

    assert settings.lease_seconds == 600
    assert settings.per_section_batch == 50
    assert settings.max_events_per_run == 100
    assert settings.backoff_base_seconds == 300
    assert settings.backoff_max_seconds == 21600
    assert settings.drain_cron_minutes == 10
    assert settings.dlq_failure_threshold is None
    assert settings.database_url == "postgresql+asyncpg://u:p@localhost:5432/db"


@pytest.mark.parametrize(
    "overrides",
    [
        {"lease_seconds": 0},
        {"per_section_batch": -1},
        {"max_events_per_run": 0},
        {"dispatch_batch_size": 0},
        {"backoff_base_seconds": 600, "backoff_max_seconds": 300},
        {"revalidate_min_dns_seconds": -1},
        {"dlq_failure_threshold": 0},
    ],
)
def test_invalid_values_exit(overrides):
    with pytest.raises(SystemExit):
        Settings(**BASE, **overrides)


def test_short_lease_only_warns():
    settings = Settings(**BASE, lease_seconds=60, drain_cron_minutes=10)

    assert settings.lease_seconds == 60


def test_settings_singleton_override(test_settings):
    set_settings(test_settings)
    assert get_settings() is test_settings

    reset_settings()
    assert get_settings() is not test_settings
