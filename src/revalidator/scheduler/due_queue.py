"""Per-section, per-lane due queues.

Each lane is a Redis sorted set of domain -> due timestamp (ms). Ordinary
scheduling only ever moves a due time earlier ("earliest wins"); the failure
path is the one writer allowed to push it later. Drained entries are removed
when their pair is leased, so the refresh that follows can schedule the next
due time into an empty slot.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Iterable

from revalidator.main.clock import Clock
from revalidator.main.logging import get_logger
from revalidator.scheduler.keys import dlq_key, due_key, due_keys_for
from revalidator.scheduler.scheduler_config import SchedulerConfig
from revalidator.sections.section import PRIORITY_LANES, Priority, Section

if TYPE_CHECKING:
    import redis.asyncio as aioredis

logger = get_logger(__name__)

REMOVE_IF_SCORE: str = (
    # Remove a member only while it still has the score it was drained with.
    #
    # KEYS[1]: due:{section}[:{priority}]
    # ARGV[1]: domain
    # ARGV[2]: score read by the drain
    #
    # Returns 1 if removed, 0 if the member is gone or was rescheduled.
    "local score = redis.call('ZSCORE', KEYS[1], ARGV[1])\n"
    "if score and tonumber(score) == tonumber(ARGV[2]) then\n"
    "  return redis.call('ZREM', KEYS[1], ARGV[1])\n"
    "end\n"
    "return 0\n"
)


def is_valid_due_at(due_at_ms) -> bool:
    if isinstance(due_at_ms, bool) or not isinstance(due_at_ms, (int, float)):
        return False
    return math.isfinite(due_at_ms) and due_at_ms >= 0


class DueQueue:
    """Sorted-set due queues keyed by section and priority lane.

    Args:
        redis_client: Async Redis connection (decoded responses).
        config: Scheduler tuning values (minimum TTL per section).
        clock: Time source.
    """

    def __init__(
        self,
        redis_client: aioredis.Redis,
        config: SchedulerConfig,
        clock: Clock,
    ) -> None:
        self._redis = redis_client
        self._config = config
        self._clock = clock

    async def schedule_if_earlier(
        self,
        section: Section,
        domain: str,
        due_at_ms: float,
        priority: Priority | None = None,
    ) -> bool:
        """Schedule ``domain`` unless it is already due at the same time or earlier.

        The stored time is clamped to ``now + min_ttl(section)``. Invalid
        timestamps and domains parked in the dead letter queue are ignored.

        Returns:
            True if the queue was written, False otherwise.
        """
        if not is_valid_due_at(due_at_ms):
            return False

        now = self._clock.now_ms()
        desired = max(int(due_at_ms), now + self._config.min_ttl_ms(section))
        key = due_key(section, priority)

        try:
            if await self._redis.zscore(dlq_key(section), domain) is not None:
                logger.debug(
                    "Not scheduling domain held in dead letter queue",
                    extra={"section": section.value, "domain": domain},
                )
                return False

            # LT keeps the lower score; CH makes the reply count updates as well as inserts
            changed = await self._redis.zadd(key, {domain: desired}, lt=True, ch=True)
            return bool(changed)
        except Exception as exc:
            logger.warning(
                "Failed to schedule section",
                extra={"section": section.value, "domain": domain, "error": str(exc)},
            )
            return False

    async def force_schedule(
        self,
        section: Section,
        domain: str,
        due_at_ms: int,
        priority: Priority | None = None,
    ) -> None:
        """Overwrite the due time, later or not.

        Every lane of the section that already holds ``domain`` is rewritten;
        if none does, the entry goes into the ``priority`` lane.
        """
        keys = due_keys_for(section)
        async with self._redis.pipeline(transaction=False) as pipe:
            for key in keys:
                pipe.zscore(key, domain)
            scores = await pipe.execute()

        targets = [key for key, score in zip(keys, scores) if score is not None]
        if not targets:
            targets = [due_key(section, priority)]

        async with self._redis.pipeline(transaction=False) as pipe:
            for key in targets:
                pipe.zadd(key, {domain: due_at_ms})
            await pipe.execute()

    async def due_members(
        self,
        section: Section,
        priority: Priority | None,
        now_ms: int,
        limit: int,
    ) -> list[tuple[str, float]]:
        """Earliest-due ``(domain, score)`` pairs at or before ``now_ms``."""
        if limit <= 0:
            return []
        return await self._redis.zrangebyscore(
            due_key(section, priority), "-inf", now_ms, start=0, num=limit, withscores=True
        )

    async def remove_drained(self, entries: Iterable[tuple[str, str, float]]) -> int:
        """Remove ``(key, domain, score)`` entries that still carry the drained score.

        An entry rescheduled since it was read keeps its new time.

        Returns:
            Number of entries removed.
        """
        entries = list(entries)
        if not entries:
            return 0
        async with self._redis.pipeline(transaction=False) as pipe:
            for key, domain, score in entries:
                pipe.eval(REMOVE_IF_SCORE, 1, key, domain, str(score))
            results = await pipe.execute()
        return sum(int(result) for result in results)

    async def restore_drained(self, entries: Iterable[tuple[str, str, float]]) -> None:
        """Put drained entries back at their drained time unless already earlier."""
        async with self._redis.pipeline(transaction=False) as pipe:
            for key, domain, score in entries:
                pipe.zadd(key, {domain: score}, lt=True)
            await pipe.execute()

    async def remove_everywhere(self, domain: str) -> None:
        """Drop ``domain`` from every lane of every section."""
        async with self._redis.pipeline(transaction=False) as pipe:
            for section in Section:
                for priority in PRIORITY_LANES:
                    pipe.zrem(due_key(section, priority), domain)
            await pipe.execute()
