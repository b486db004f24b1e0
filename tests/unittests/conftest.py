import pytest

from revalidator.main.config import Settings, reset_settings
from revalidator.scheduler.revalidation_scheduler import RevalidationScheduler
from revalidator.scheduler.scheduler_config import SchedulerConfig
from tests.unittests.fakes import FakeClock, FakeRedis, FakeRegistry


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Create test settings with explicit values for unit tests.

    Provides a clean, isolated configuration that doesn't depend on .env
    files or environment variables.
    """
    return Settings(
        # Minimal database settings (not used in unit tests)
        postgres_user="unit_test_user",
        postgres_host="localhost",
        postgres_password="unit_test_password",
        postgres_port=5432,
        postgres_db="unit_test_db",

        # Redis settings (not used in unit tests)
        redis_host="localhost",
        redis_port=6379,

        cron_secret="unit-test-cron-secret",

        dev=True,
    )


@pytest.fixture(autouse=True)
def reset_settings_after_test():
    """Reset settings after each test to prevent state leakage."""
    yield
    reset_settings()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def redis(clock) -> FakeRedis:
    return FakeRedis(clock)


@pytest.fixture
def registry() -> FakeRegistry:
    return FakeRegistry()


@pytest.fixture
def config() -> SchedulerConfig:
    return SchedulerConfig()


@pytest.fixture
def scheduler(redis, registry, config, clock) -> RevalidationScheduler:
    return RevalidationScheduler(redis, registry, config=config, clock=clock)
