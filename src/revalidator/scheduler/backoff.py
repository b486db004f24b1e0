"""Failure counters and exponential backoff."""

from __future__ import annotations

from typing import TYPE_CHECKING

from revalidator.main.clock import Clock
from revalidator.main.logging import get_logger
from revalidator.scheduler.keys import dlq_key, task_key
from revalidator.scheduler.scheduler_config import SchedulerConfig
from revalidator.sections.section import Priority, Section

if TYPE_CHECKING:
    import redis.asyncio as aioredis

    from revalidator.scheduler.dead_letter import DeadLetterQueue
    from revalidator.scheduler.due_queue import DueQueue

logger = get_logger(__name__)

# Any larger counter hits the cap anyway
_MAX_EXPONENT = 62


def backoff_ms_for_attempts(attempts: int, base_seconds: int, max_seconds: int) -> int:
    """``clamp(base * 2**(attempts - 1), base, max)`` in milliseconds."""
    exponent = min(max(0, attempts - 1), _MAX_EXPONENT)
    seconds = min(max_seconds, max(base_seconds, base_seconds * 2**exponent))
    return seconds * 1000


class FailureTracker:
    """Per (section, domain) attempt counters stored in ``task:{section}`` hashes.

    Args:
        redis_client: Async Redis connection.
        due_queue: Queue the backoff time is written into.
        config: Backoff base, cap and optional DLQ threshold.
        clock: Time source.
        dead_letter: Target for automatic DLQ moves when a threshold is set.
    """

    def __init__(
        self,
        redis_client: aioredis.Redis,
        due_queue: DueQueue,
        config: SchedulerConfig,
        clock: Clock,
        dead_letter: DeadLetterQueue | None = None,
    ) -> None:
        self._redis = redis_client
        self._due_queue = due_queue
        self._config = config
        self._clock = clock
        self._dead_letter = dead_letter

    async def _increment(self, section: Section, domain: str) -> int:
        try:
            attempts = await self._redis.hincrby(task_key(section), domain, 1)
            return int(attempts)
        except Exception as exc:
            logger.warning(
                "Failed to increment failure counter, assuming first attempt",
                extra={"section": section.value, "domain": domain, "error": str(exc)},
            )
            return 1

    async def _parked_until(self, section: Section, domain: str) -> int | None:
        try:
            cooldown_until = await self._redis.zscore(dlq_key(section), domain)
        except Exception as exc:
            logger.warning(
                "Failed to read dead letter queue, recording failure anyway",
                extra={"section": section.value, "domain": domain, "error": str(exc)},
            )
            return None
        return int(cooldown_until) if cooldown_until is not None else None

    async def record_failure_and_backoff(
        self,
        section: Section,
        domain: str,
        priority: Priority | None = None,
    ) -> int:
        """Count a failed fetch and push the domain's due time out.

        Returns:
            The new due time in ms, or the DLQ cooldown expiry when the pair
            is parked there or the configured failure threshold was reached.
        """
        # A parked pair keeps no counter and no due entry
        parked_until = await self._parked_until(section, domain)
        if parked_until is not None:
            logger.debug(
                "Ignoring failure for domain held in dead letter queue",
                extra={"section": section.value, "domain": domain},
            )
            return parked_until

        attempts = await self._increment(section, domain)

        threshold = self._config.dlq_failure_threshold
        if threshold is not None and self._dead_letter is not None and attempts >= threshold:
            await self._dead_letter.move_to_dlq(section, domain)
            return self._dead_letter.cooldown_until()

        delay_ms = backoff_ms_for_attempts(
            attempts,
            self._config.backoff_base_seconds,
            self._config.backoff_max_seconds,
        )
        next_at_ms = self._clock.now_ms() + delay_ms

        try:
            await self._due_queue.force_schedule(section, domain, next_at_ms, priority)
        except Exception as exc:
            logger.warning(
                "Failed to write backoff due time",
                extra={"section": section.value, "domain": domain, "error": str(exc)},
            )

        logger.debug(
            "Recorded section failure",
            extra={
                "section": section.value,
                "domain": domain,
                "attempts": attempts,
                "delay_ms": delay_ms,
            },
        )
        return next_at_ms

    async def reset(self, section: Section, domain: str) -> None:
        try:
            await self._redis.hdel(task_key(section), domain)
        except Exception:
            logger.debug(
                "Failed to reset failure counter",
                extra={"section": section.value, "domain": domain},
            )

    async def get_attempts(self, section: Section, domain: str) -> int:
        """Current attempt count; 0 when absent or unreadable."""
        try:
            value = await self._redis.hget(task_key(section), domain)
            return int(value) if value is not None else 0
        except Exception as exc:
            logger.warning(
                "Failed to read failure counter",
                extra={"section": section.value, "domain": domain, "error": str(exc)},
            )
            return 0
