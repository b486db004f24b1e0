"""Hand drained events to the worker queue.

Draining selects, leases and unqueues work. This step enqueues one
``revalidate_sections`` job per event. If enqueueing fails, the drained
entries of every event not yet handed off are put back, and they become
eligible again when their leases expire.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from pydantic import BaseModel

from revalidator.main.logging import get_logger
from revalidator.scheduler.drain import DrainEvent
from revalidator.scheduler.revalidation_scheduler import RevalidationScheduler
from revalidator.worker.revalidation_tasks import RevalidateSectionsParams

if TYPE_CHECKING:
    from arq.connections import ArqRedis

logger = get_logger(__name__)

REVALIDATE_SECTIONS_JOB = "revalidate_sections"


class DueDrainSummary(BaseModel):
    emitted: int = 0
    groups: int = 0
    duration_ms: int = 0


class DueDrainService:
    def __init__(
        self,
        scheduler: RevalidationScheduler,
        arq_redis: ArqRedis,
        batch_size: int = 200,
    ) -> None:
        self._scheduler = scheduler
        self._arq_redis = arq_redis
        self._batch_size = batch_size

    async def _enqueue(self, event: DrainEvent) -> None:
        params = RevalidateSectionsParams(domain=event.domain, sections=event.sections)
        await self._arq_redis.enqueue_job(REVALIDATE_SECTIONS_JOB, params)

    async def _restore_undispatched(self, events: list[DrainEvent]) -> None:
        entries = [
            (key, event.domain, score)
            for event in events
            for key, score in event.due_entries
        ]
        try:
            await self._scheduler.due_queue.restore_drained(entries)
        except Exception as exc:
            logger.error(
                "Failed to restore undispatched due entries",
                extra={"events": len(events), "error": str(exc)},
            )

    async def run(self) -> DueDrainSummary:
        started_at = time.monotonic()
        result = await self._scheduler.drain_due_domains_once()

        emitted = 0
        for start in range(0, len(result.events), self._batch_size):
            chunk = result.events[start : start + self._batch_size]
            for event in chunk:
                try:
                    await self._enqueue(event)
                except Exception:
                    await self._restore_undispatched(result.events[emitted:])
                    raise
                emitted += 1
            logger.debug("Dispatched event chunk", extra={"events": len(chunk)})

        summary = DueDrainSummary(
            emitted=emitted,
            groups=result.groups,
            duration_ms=int((time.monotonic() - started_at) * 1000),
        )
        logger.info("Due drain dispatched", extra=summary.model_dump())
        return summary
