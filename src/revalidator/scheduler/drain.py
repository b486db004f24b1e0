"""One pass over the due queues.

The drain walks sections in declaration order and, inside each section, the
priority lanes from high to unlabeled. Every (section, domain) pair it picks
is guarded by a lease so concurrent drains never hand out the same pair, and
the picks are grouped into one event per domain.

Leased entries are removed from their lane as part of the drain, but only
while they still carry the score that was read. Each event keeps the drained
entries so a dispatcher that fails to hand it off can put them back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from revalidator.domains.domain_repo import DomainRegistry
from revalidator.main.clock import Clock
from revalidator.main.logging import get_logger
from revalidator.main.run_context import bound_run
from revalidator.scheduler.due_queue import DueQueue
from revalidator.scheduler.keys import due_key
from revalidator.scheduler.leases import LeaseStore
from revalidator.scheduler.scheduler_config import SchedulerConfig
from revalidator.sections.priority import as_utc
from revalidator.sections.section import PRIORITY_LANES, Section

logger = get_logger(__name__)


@dataclass
class DrainEvent:
    domain: str
    sections: list[Section] = field(default_factory=list)
    # (due key, drained score) for every lane entry the sections came from
    due_entries: list[tuple[str, float]] = field(default_factory=list, repr=False, compare=False)

    def to_payload(self) -> dict:
        return {
            "domain": self.domain,
            "sections": [section.value for section in self.sections],
        }


@dataclass
class DrainResult:
    events: list[DrainEvent] = field(default_factory=list)
    groups: int = 0
    evicted: list[str] = field(default_factory=list)


class DrainLoop:
    """Selects due work under per-section and global budgets.

    Args:
        due_queue: Source of due entries.
        leases: Lease store guarding each (section, domain) pair.
        registry: System of record used for the staleness check.
        config: Batch sizes, global budget and staleness threshold.
        clock: Time source.
    """

    def __init__(
        self,
        due_queue: DueQueue,
        leases: LeaseStore,
        registry: DomainRegistry,
        config: SchedulerConfig,
        clock: Clock,
    ) -> None:
        self._due_queue = due_queue
        self._leases = leases
        self._registry = registry
        self._config = config
        self._clock = clock

    async def _is_stale(self, domain: str, now_ms: int) -> bool:
        try:
            last_accessed_at = await self._registry.get_last_accessed_at(domain)
        except Exception as exc:
            logger.warning(
                "Staleness lookup failed, treating domain as fresh",
                extra={"domain": domain, "error": str(exc)},
            )
            return False

        if last_accessed_at is None:
            return False

        now = datetime.fromtimestamp(now_ms / 1000, tz=timezone.utc)
        threshold = timedelta(days=self._config.stale_access_threshold_days)
        return now - as_utc(last_accessed_at) > threshold

    async def _evict(self, domain: str) -> None:
        try:
            await self._due_queue.remove_everywhere(domain)
            logger.info("Evicted stale domain from due queues", extra={"domain": domain})
        except Exception as exc:
            logger.warning(
                "Failed to evict stale domain",
                extra={"domain": domain, "error": str(exc)},
            )

    async def _remove_drained(
        self, section: Section, key: str, drained: list[tuple[str, str, float]]
    ) -> None:
        if not drained:
            return
        try:
            await self._due_queue.remove_drained(drained)
        except Exception as exc:
            # Leases keep the pairs away until they expire
            logger.warning(
                "Failed to remove drained due entries",
                extra={
                    "section": section.value,
                    "due_key": key,
                    "entries": len(drained),
                    "error": str(exc),
                },
            )

    async def drain_once(self) -> DrainResult:
        with bound_run("due_drain"):
            result = await self._drain()
            logger.info(
                "Due drain finished",
                extra={
                    "groups": result.groups,
                    "evicted": len(result.evicted),
                    "pairs": sum(len(event.sections) for event in result.events),
                },
            )
            return result

    async def _drain(self) -> DrainResult:
        global_max = self._config.max_events_per_run
        dispatched = 0
        events: dict[str, DrainEvent] = {}
        checked: set[str] = set()
        evicted: list[str] = []

        for section in Section:
            if dispatched >= global_max:
                break

            for priority in PRIORITY_LANES:
                remaining = global_max - dispatched
                if remaining <= 0:
                    break

                key = due_key(section, priority)
                now = self._clock.now_ms()
                fetch_count = min(self._config.per_section_batch, remaining)

                try:
                    members = await self._due_queue.due_members(
                        section, priority, now, fetch_count
                    )
                except Exception as exc:
                    logger.warning(
                        "Failed to read due queue, skipping lane",
                        extra={"section": section.value, "due_key": key, "error": str(exc)},
                    )
                    continue

                scores = dict(members)
                drained: list[tuple[str, str, float]] = []
                candidates: list[str] = []
                new_domains = 0
                for domain, score in members:
                    if domain in evicted:
                        continue

                    event = events.get(domain)
                    if event is not None:
                        if section in event.sections:
                            # Same pair sitting in a second lane; already leased
                            event.due_entries.append((key, score))
                            drained.append((key, domain, score))
                        else:
                            candidates.append(domain)
                        continue

                    if domain not in checked:
                        checked.add(domain)
                        if await self._is_stale(domain, now):
                            await self._evict(domain)
                            evicted.append(domain)
                            continue

                    # Only as many unseen domains as the budget can still take
                    if new_domains >= remaining:
                        continue
                    new_domains += 1
                    candidates.append(domain)

                acquired: list[str] = []
                if candidates:
                    try:
                        acquired = await self._leases.try_acquire_many(section, candidates)
                    except Exception as exc:
                        logger.warning(
                            "Lease batch failed, skipping lane",
                            extra={"section": section.value, "due_key": key, "error": str(exc)},
                        )

                for domain in acquired:
                    event = events.get(domain)
                    if event is None:
                        if dispatched >= global_max:
                            continue
                        dispatched += 1
                        event = events[domain] = DrainEvent(domain=domain)
                    event.sections.append(section)
                    event.due_entries.append((key, scores[domain]))
                    drained.append((key, domain, scores[domain]))

                await self._remove_drained(section, key, drained)

        return DrainResult(
            events=list(events.values()),
            groups=len(events),
            evicted=evicted,
        )
