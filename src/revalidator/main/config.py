import logging
import os
import sys
from typing import Optional

from pydantic import computed_field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="allow")

    # Infrastructure dependencies
    postgres_user: str
    postgres_host: str
    postgres_password: str
    postgres_port: int
    postgres_db: str
    redis_host: str
    redis_port: int
    redis_db: Optional[int] = None

    # Redis connection resilience
    redis_conn_timeout: int = 5
    redis_conn_retries: int = 5
    redis_conn_retry_delay: int = 1
    redis_retry_on_timeout: bool = True
    redis_max_connections: Optional[int] = None
    redis_socket_keepalive: bool = True
    redis_health_check_interval: int = 30

    # Minimum revalidation interval per section (seconds)
    revalidate_min_dns_seconds: int = 60 * 60  # 1h, refresh when the default DNS TTL expires
    revalidate_min_headers_seconds: int = 6 * 60 * 60  # 6h, half of the 12h headers TTL
    revalidate_min_hosting_seconds: int = 24 * 60 * 60
    revalidate_min_certificates_seconds: int = 6 * 60 * 60  # quarter of the 24h window
    revalidate_min_seo_seconds: int = 24 * 60 * 60
    revalidate_min_registration_seconds: int = 24 * 60 * 60

    # Failure backoff
    backoff_base_seconds: int = 5 * 60
    backoff_max_seconds: int = 6 * 60 * 60

    # Drain loop
    drain_cron_minutes: int = 10
    lease_seconds: int = 600  # Match drain_cron_minutes
    per_section_batch: int = 50
    max_events_per_run: int = 100
    dependency_lead_seconds: int = 60
    stale_access_threshold_days: int = 30
    dispatch_batch_size: int = 200

    # Dead letter queue
    dlq_cooldown_hours: int = 24
    dlq_failure_threshold: Optional[int] = None  # None keeps DLQ moves manual

    # Shared secret for the HTTP cron endpoints
    cron_secret: Optional[str] = None

    # Dev
    dev: bool = False

    @model_validator(mode="after")
    def validate_scheduler_settings(self):
        """Ensure scheduler-related configuration values are sane."""
        positive = {
            "LEASE_SECONDS": self.lease_seconds,
            "PER_SECTION_BATCH": self.per_section_batch,
            "MAX_EVENTS_PER_RUN": self.max_events_per_run,
            "BACKOFF_BASE_SECONDS": self.backoff_base_seconds,
            "DRAIN_CRON_MINUTES": self.drain_cron_minutes,
            "DISPATCH_BATCH_SIZE": self.dispatch_batch_size,
        }
        for name, value in positive.items():
            if value <= 0:
                logging.error(
                    "%s must be greater than zero. Current value: %s", name, value
                )
                sys.exit(1)

        if self.backoff_max_seconds < self.backoff_base_seconds:
            logging.error(
                "BACKOFF_MAX_SECONDS (%s) is shorter than BACKOFF_BASE_SECONDS (%s).",
                self.backoff_max_seconds,
                self.backoff_base_seconds,
            )
            sys.exit(1)

        floors = (
            self.revalidate_min_dns_seconds,
            self.revalidate_min_headers_seconds,
            self.revalidate_min_hosting_seconds,
            self.revalidate_min_certificates_seconds,
            self.revalidate_min_seo_seconds,
            self.revalidate_min_registration_seconds,
        )
        if any(floor < 0 for floor in floors):
            logging.error("REVALIDATE_MIN_*_SECONDS cannot be negative: %s", floors)
            sys.exit(1)

        if self.dlq_failure_threshold is not None and self.dlq_failure_threshold <= 0:
            logging.error(
                "DLQ_FAILURE_THRESHOLD must be greater than zero when set. Current value: %s",
                self.dlq_failure_threshold,
            )
            sys.exit(1)

        if self.lease_seconds < self.drain_cron_minutes * 60:
            logging.warning(
                "LEASE_SECONDS (%s) is shorter than the drain cadence (%s minutes). "
                "Leases may expire before the dispatched revalidation completes.",
                self.lease_seconds,
                self.drain_cron_minutes,
            )

        return self

    @computed_field
    @property
    def database_url(self) -> str:
        return (
            f"postgresql+asyncpg://{self.postgres_user}:"
            f"{self.postgres_password}@{self.postgres_host}:"
            f"{self.postgres_port}/{self.postgres_db}"
        )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get settings singleton, creating it if needed.

    Returns:
        Settings: The application settings instance.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings) -> None:
    """Override settings (primarily for testing).

    Args:
        settings: The Settings instance to use.
    """
    global _settings
    _settings = settings


def reset_settings() -> None:
    """Reset settings to None (for test cleanup)."""
    global _settings
    _settings = None


def get_loglevel():
    loglevel = os.getenv("LOGLEVEL", "INFO")

    match loglevel:
        case "INFO":
            return logging.INFO
        case "WARNING":
            return logging.WARNING
        case "ERROR":
            return logging.ERROR
        case "CRITICAL":
            return logging.CRITICAL
        case "DEBUG":
            return logging.DEBUG
        case _:
            return logging.INFO
