"""Garbage collection of queue entries whose domain no longer exists."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from revalidator.domains.domain_repo import DomainRegistry
from revalidator.main.logging import get_logger
from revalidator.main.run_context import bound_run
from revalidator.scheduler.keys import dlq_key, due_keys_for, lease_key, task_key
from revalidator.sections.section import Section

if TYPE_CHECKING:
    import redis.asyncio as aioredis

logger = get_logger(__name__)


@dataclass
class CleanupResult:
    removed: int = 0
    checked: int = 0


class OrphanCleanup:
    def __init__(self, redis_client: aioredis.Redis, registry: DomainRegistry) -> None:
        self._redis = redis_client
        self._registry = registry

    async def _members(self, section: Section) -> list[str]:
        async with self._redis.pipeline(transaction=False) as pipe:
            for key in due_keys_for(section):
                pipe.zrange(key, 0, -1)
            pipe.zrange(dlq_key(section), 0, -1)
            pipe.hkeys(task_key(section))
            results = await pipe.execute()

        members: dict[str, None] = {}
        for names in results:
            members.update(dict.fromkeys(names))
        return list(members)

    async def _sweep_section(self, section: Section) -> CleanupResult:
        members = await self._members(section)
        if not members:
            return CleanupResult()

        existing = await self._registry.filter_existing(members)
        orphans = [domain for domain in members if domain not in existing]

        if orphans:
            async with self._redis.pipeline(transaction=False) as pipe:
                for key in due_keys_for(section):
                    pipe.zrem(key, *orphans)
                pipe.zrem(dlq_key(section), *orphans)
                pipe.hdel(task_key(section), *orphans)
                pipe.delete(*(lease_key(section, domain) for domain in orphans))
                await pipe.execute()

            logger.debug(
                "Removed orphaned queue entries",
                extra={"section": section.value, "removed": len(orphans)},
            )

        return CleanupResult(removed=len(orphans), checked=len(members))

    async def run(self) -> CleanupResult:
        """Sweep every section; a failing section is logged and skipped."""
        total = CleanupResult()
        with bound_run("queue_cleanup"):
            for section in Section:
                try:
                    result = await self._sweep_section(section)
                except Exception as exc:
                    logger.warning(
                        "Orphan cleanup failed for section",
                        extra={"section": section.value, "error": str(exc)},
                    )
                    continue
                total.removed += result.removed
                total.checked += result.checked

            logger.info(
                "Queue cleanup finished",
                extra={"removed": total.removed, "checked": total.checked},
            )
        return total
