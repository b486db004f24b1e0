from __future__ import annotations

import asyncio

from revalidator.scheduler.due_queue import DueQueue
from revalidator.scheduler.scheduler_config import SchedulerConfig
from revalidator.sections.dependencies import dependencies_of
from revalidator.sections.section import Priority, Section


class DependencyPropagator:
    """Schedules a section's prerequisites slightly ahead of it.

    Propagation is one level deep: a dependency that gets scheduled does not
    fan out to its own dependencies.
    """

    def __init__(self, due_queue: DueQueue, config: SchedulerConfig) -> None:
        self._due_queue = due_queue
        self._lead_ms = config.dependency_lead_seconds * 1000

    async def propagate(
        self,
        section: Section,
        domain: str,
        due_at_ms: float,
        priority: Priority | None = None,
    ) -> list[Section]:
        """Returns the dependencies whose due time was actually moved."""
        dependencies = dependencies_of(section)
        if not dependencies:
            return []

        # Clamped at 0; the minimum TTL floor still applies downstream
        dependency_due_at = max(0, due_at_ms - self._lead_ms)
        results = await asyncio.gather(
            *(
                self._due_queue.schedule_if_earlier(
                    dependency, domain, dependency_due_at, priority
                )
                for dependency in dependencies
            )
        )
        return [dep for dep, scheduled in zip(dependencies, results) if scheduled]
