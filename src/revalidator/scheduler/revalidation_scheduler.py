"""Entry point used by section fetchers, the drain trigger and the cleanup trigger.

Wires the due queue, leases, failure tracker, dead letter queue, dependency
propagation, drain loop and orphan cleanup around one Redis client, one
``SchedulerConfig`` and one clock.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Iterable, Sequence

from revalidator.domains.domain_repo import DomainRegistry
from revalidator.main.clock import Clock, system_clock
from revalidator.main.config import Settings
from revalidator.main.logging import get_logger
from revalidator.scheduler.backoff import FailureTracker
from revalidator.scheduler.cleanup import CleanupResult, OrphanCleanup
from revalidator.scheduler.dead_letter import DeadLetterQueue
from revalidator.scheduler.drain import DrainLoop, DrainResult
from revalidator.scheduler.due_queue import DueQueue
from revalidator.scheduler.leases import LeaseStore
from revalidator.scheduler.propagation import DependencyPropagator
from revalidator.scheduler.scheduler_config import SchedulerConfig
from revalidator.sections.priority import priority_for_last_access
from revalidator.sections.section import Priority, Section

if TYPE_CHECKING:
    import redis.asyncio as aioredis

logger = get_logger(__name__)


class RevalidationScheduler:
    """Decides when each (domain, section) pair is refreshed next.

    Args:
        redis_client: Async Redis connection with decoded responses.
        registry: System of record for staleness and orphan checks.
        config: Scheduler tuning values. Defaults to ``SchedulerConfig()``.
        clock: Time source. Defaults to the system clock.
    """

    def __init__(
        self,
        redis_client: aioredis.Redis,
        registry: DomainRegistry,
        config: SchedulerConfig | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.config = config or SchedulerConfig()
        self.clock = clock or system_clock
        self.registry = registry

        self.due_queue = DueQueue(redis_client, self.config, self.clock)
        self.leases = LeaseStore(redis_client, self.config.lease_seconds)
        self.dead_letter = DeadLetterQueue(redis_client, self.config, self.clock)
        self.failures = FailureTracker(
            redis_client,
            self.due_queue,
            self.config,
            self.clock,
            dead_letter=self.dead_letter,
        )
        self.propagator = DependencyPropagator(self.due_queue, self.config)
        self.drain_loop = DrainLoop(
            self.due_queue, self.leases, registry, self.config, self.clock
        )
        self.cleanup = OrphanCleanup(redis_client, registry)

    @classmethod
    def from_settings(
        cls,
        redis_client: aioredis.Redis,
        registry: DomainRegistry,
        settings: Settings | None = None,
        clock: Clock | None = None,
    ) -> RevalidationScheduler:
        return cls(
            redis_client,
            registry,
            config=SchedulerConfig.from_settings(settings),
            clock=clock,
        )

    # Scheduling

    async def schedule_section_if_earlier(
        self,
        section: Section,
        domain: str,
        due_at_ms: float,
        priority: Priority | None = None,
    ) -> bool:
        """Earliest-wins schedule, then pull the section's dependencies ahead.

        Dependencies are only touched when this call moved the due time.
        """
        scheduled = await self.due_queue.schedule_if_earlier(
            section, domain, due_at_ms, priority
        )
        if scheduled:
            await self.propagator.propagate(section, domain, due_at_ms, priority)
        return scheduled

    async def schedule_sections_for_domain(
        self,
        domain: str,
        sections: Iterable[tuple[Section, float]],
        priority: Priority | None = None,
    ) -> None:
        await asyncio.gather(
            *(
                self.schedule_section_if_earlier(section, domain, due_at_ms, priority)
                for section, due_at_ms in sections
            )
        )

    async def schedule_immediate(
        self,
        domain: str,
        sections: Sequence[Section],
        delay_ms: int = 1000,
        priority: Priority | None = None,
    ) -> None:
        """Schedule soon; the per-section minimum TTL still applies."""
        due_at_ms = self.clock.now_ms() + delay_ms
        await self.schedule_sections_for_domain(
            domain, [(section, due_at_ms) for section in sections], priority
        )

    async def priority_for_domain(self, domain: str) -> Priority | None:
        """Lane derived from the domain's last access; unlabeled if unknown."""
        try:
            last_accessed_at = await self.registry.get_last_accessed_at(domain)
        except Exception as exc:
            logger.warning(
                "Last access lookup failed, using unlabeled lane",
                extra={"domain": domain, "error": str(exc)},
            )
            return None

        now = datetime.fromtimestamp(self.clock.now_ms() / 1000, tz=timezone.utc)
        return priority_for_last_access(last_accessed_at, now)

    # Failures

    async def record_failure_and_backoff(
        self,
        section: Section,
        domain: str,
        priority: Priority | None = None,
    ) -> int:
        return await self.failures.record_failure_and_backoff(section, domain, priority)

    async def reset_failure_backoff(self, section: Section, domain: str) -> None:
        await self.failures.reset(section, domain)

    async def get_failure_attempts(self, section: Section, domain: str) -> int:
        return await self.failures.get_attempts(section, domain)

    # Dead letter queue

    async def move_to_dlq(self, section: Section, domain: str) -> None:
        await self.dead_letter.move_to_dlq(section, domain)

    async def restore_from_dlq(
        self,
        section: Section,
        domain: str,
        priority: Priority | None = None,
    ) -> None:
        await self.dead_letter.restore_from_dlq(section, domain, priority)

    async def list_dlq(self, section: Section) -> list[tuple[str, int]]:
        return await self.dead_letter.list_entries(section)

    async def restore_expired_dlq_entries(self) -> int:
        return await self.dead_letter.restore_expired()

    # Periodic runs

    async def drain_due_domains_once(self) -> DrainResult:
        return await self.drain_loop.drain_once()

    async def cleanup_orphaned_queue_entries(self) -> CleanupResult:
        return await self.cleanup.run()
