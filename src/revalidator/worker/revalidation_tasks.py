"""Refresh of the sections named in a drain event.

Fetchers are external collaborators: each one refreshes a single section for
a domain and returns the time (ms) until which its result stays valid. The
task feeds that answer, or the failure, back into the scheduler.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Protocol

from pydantic import BaseModel

from revalidator.main.logging import get_logger
from revalidator.scheduler.revalidation_scheduler import RevalidationScheduler
from revalidator.sections.section import Section

logger = get_logger(__name__)


class SectionFetcher(Protocol):
    async def __call__(self, domain: str) -> int: ...


class RevalidateSectionsParams(BaseModel):
    # Used verbatim: it is the key the sections were drained and leased under
    domain: str
    sections: list[Section]


class RevalidateSectionsResult(BaseModel):
    domain: str
    succeeded: list[Section] = []
    failed: list[Section] = []
    skipped: list[Section] = []


class FetcherRegistry:
    def __init__(self) -> None:
        self._fetchers: dict[Section, SectionFetcher] = {}

    def register(self, section: Section, fetcher: SectionFetcher) -> None:
        self._fetchers[section] = fetcher

    def get(self, section: Section) -> SectionFetcher | None:
        return self._fetchers.get(section)

    def clear(self) -> None:
        self._fetchers.clear()

    def fetcher(
        self, section: Section
    ) -> Callable[[Callable[[str], Awaitable[int]]], Callable[[str], Awaitable[int]]]:
        """Decorator form of ``register``."""

        def decorator(func):
            self.register(section, func)
            return func

        return decorator


fetchers = FetcherRegistry()


async def revalidate_sections_task(
    params: RevalidateSectionsParams,
    scheduler: RevalidationScheduler,
    registry: FetcherRegistry = fetchers,
) -> RevalidateSectionsResult:
    domain = params.domain
    result = RevalidateSectionsResult(domain=domain)

    if not params.sections:
        logger.debug("No sections to revalidate", extra={"domain": domain})
        return result

    priority = await scheduler.priority_for_domain(domain)

    for section in params.sections:
        fetcher = registry.get(section)
        if fetcher is None:
            logger.warning(
                "No fetcher registered for section",
                extra={"section": section.value, "domain": domain},
            )
            result.skipped.append(section)
            continue

        try:
            due_at_ms = await fetcher(domain)
        except Exception as exc:
            next_at_ms = await scheduler.record_failure_and_backoff(
                section, domain, priority
            )
            logger.warning(
                "Section revalidation failed",
                extra={
                    "section": section.value,
                    "domain": domain,
                    "error": str(exc),
                    "next_at_ms": next_at_ms,
                },
            )
            result.failed.append(section)
            continue

        await scheduler.reset_failure_backoff(section, domain)
        await scheduler.schedule_section_if_earlier(section, domain, due_at_ms, priority)
        logger.info(
            "Section revalidated",
            extra={"section": section.value, "domain": domain, "due_at_ms": due_at_ms},
        )
        result.succeeded.append(section)

    return result
