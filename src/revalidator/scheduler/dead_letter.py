"""Dead letter queue for persistently failing (section, domain) pairs.

A parked domain has no due entry and no failure counter in that section.
Transitions are best-effort housekeeping: failures are logged, never raised.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from revalidator.main.clock import Clock
from revalidator.main.logging import get_logger
from revalidator.scheduler.keys import dlq_key, due_key, due_keys_for, task_key
from revalidator.scheduler.scheduler_config import SchedulerConfig
from revalidator.sections.section import Priority, Section

if TYPE_CHECKING:
    import redis.asyncio as aioredis

logger = get_logger(__name__)


class DeadLetterQueue:
    def __init__(
        self,
        redis_client: aioredis.Redis,
        config: SchedulerConfig,
        clock: Clock,
    ) -> None:
        self._redis = redis_client
        self._config = config
        self._clock = clock

    def cooldown_until(self, now_ms: int | None = None) -> int:
        now = self._clock.now_ms() if now_ms is None else now_ms
        return now + self._config.dlq_cooldown_hours * 60 * 60 * 1000

    async def move_to_dlq(self, section: Section, domain: str) -> None:
        cooldown_until = self.cooldown_until()
        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                for key in due_keys_for(section):
                    pipe.zrem(key, domain)
                pipe.hdel(task_key(section), domain)
                pipe.zadd(dlq_key(section), {domain: cooldown_until})
                await pipe.execute()

            logger.info(
                "Moved domain to dead letter queue",
                extra={
                    "section": section.value,
                    "domain": domain,
                    "cooldown_until": cooldown_until,
                },
            )
        except Exception as exc:
            logger.warning(
                "Failed to move domain to dead letter queue",
                extra={"section": section.value, "domain": domain, "error": str(exc)},
            )

    async def restore_from_dlq(
        self,
        section: Section,
        domain: str,
        priority: Priority | None = None,
    ) -> None:
        """Take ``domain`` out of the DLQ and make it due immediately."""
        now = self._clock.now_ms()
        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.zrem(dlq_key(section), domain)
                pipe.zadd(due_key(section, priority), {domain: now})
                await pipe.execute()

            logger.info(
                "Restored domain from dead letter queue",
                extra={"section": section.value, "domain": domain},
            )
        except Exception as exc:
            logger.warning(
                "Failed to restore domain from dead letter queue",
                extra={"section": section.value, "domain": domain, "error": str(exc)},
            )

    async def list_entries(self, section: Section) -> list[tuple[str, int]]:
        """Parked domains with their cooldown expiry, earliest first."""
        entries = await self._redis.zrange(dlq_key(section), 0, -1, withscores=True)
        return [(domain, int(score)) for domain, score in entries]

    async def restore_expired(self) -> int:
        """Restore every entry whose cooldown has passed.

        Returns:
            Number of domains restored.
        """
        now = self._clock.now_ms()
        restored = 0
        for section in Section:
            try:
                expired = await self._redis.zrangebyscore(dlq_key(section), "-inf", now)
            except Exception as exc:
                logger.warning(
                    "Failed to read dead letter queue",
                    extra={"section": section.value, "error": str(exc)},
                )
                continue

            for domain in expired:
                await self.restore_from_dlq(section, domain)
                restored += 1

        return restored
