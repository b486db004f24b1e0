from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from revalidator.main.config import Settings, get_settings
from revalidator.sections.section import Section

DEFAULT_MIN_TTL_SECONDS: dict[Section, int] = {
    Section.DNS: 60 * 60,
    Section.HEADERS: 6 * 60 * 60,
    Section.HOSTING: 24 * 60 * 60,
    Section.CERTIFICATES: 6 * 60 * 60,
    Section.SEO: 24 * 60 * 60,
    Section.REGISTRATION: 24 * 60 * 60,
}


@dataclass(frozen=True)
class SchedulerConfig:
    """Tuning values for one scheduler instance.

    Passed into the scheduler explicitly so tests can shrink TTLs and caps
    without touching process-wide settings.
    """

    min_ttl_seconds: dict[Section, int] = field(
        default_factory=lambda: dict(DEFAULT_MIN_TTL_SECONDS)
    )
    backoff_base_seconds: int = 5 * 60
    backoff_max_seconds: int = 6 * 60 * 60
    lease_seconds: int = 600
    per_section_batch: int = 50
    max_events_per_run: int = 100
    dependency_lead_seconds: int = 60
    dlq_cooldown_hours: int = 24
    dlq_failure_threshold: Optional[int] = None
    stale_access_threshold_days: int = 30

    def min_ttl_ms(self, section: Section) -> int:
        return self.min_ttl_seconds.get(section, 0) * 1000

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> SchedulerConfig:
        resolved = settings or get_settings()
        return cls(
            min_ttl_seconds={
                Section.DNS: resolved.revalidate_min_dns_seconds,
                Section.HEADERS: resolved.revalidate_min_headers_seconds,
                Section.HOSTING: resolved.revalidate_min_hosting_seconds,
                Section.CERTIFICATES: resolved.revalidate_min_certificates_seconds,
                Section.SEO: resolved.revalidate_min_seo_seconds,
                Section.REGISTRATION: resolved.revalidate_min_registration_seconds,
            },
            backoff_base_seconds=resolved.backoff_base_seconds,
            backoff_max_seconds=resolved.backoff_max_seconds,
            lease_seconds=resolved.lease_seconds,
            per_section_batch=resolved.per_section_batch,
            max_events_per_run=resolved.max_events_per_run,
            dependency_lead_seconds=resolved.dependency_lead_seconds,
            dlq_cooldown_hours=resolved.dlq_cooldown_hours,
            dlq_failure_threshold=resolved.dlq_failure_threshold,
            stale_access_threshold_days=resolved.stale_access_threshold_days,
        )
