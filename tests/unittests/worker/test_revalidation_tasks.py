"""Unit tests for the section revalidation job."""

import pytest
from datetime import timedelta
from unittest.mock import AsyncMock

from revalidator.sections.section import Section
from revalidator.worker.revalidation_tasks import (
    FetcherRegistry,
    RevalidateSectionsParams,
    revalidate_sections_task,
)

DAY_MS = 24 * 60 * 60 * 1000


def test_params_keep_domain_key_verbatim():
    params = RevalidateSectionsParams(domain="Example.COM", sections=["dns"])

    assert params.domain == "Example.COM"
    assert params.sections == [Section.DNS]


class TestRevalidateSections:
    @pytest.mark.asyncio
    async def test_mixed_case_key_is_rescheduled_under_same_key(self, scheduler, redis, clock):
        registry = FetcherRegistry()
        due_at = clock.now_ms() + DAY_MS
        registry.register(Section.SEO, AsyncMock(return_value=due_at))
        redis.hashes["task:seo"] = {"Example.COM": "2"}

        await revalidate_sections_task(
            RevalidateSectionsParams(domain="Example.COM", sections=[Section.SEO]),
            scheduler,
            registry=registry,
        )

        assert redis.zsets["due:seo"] == {"Example.COM": due_at}
        assert redis.hashes["task:seo"] == {}

    @pytest.mark.asyncio
    async def test_success_resets_backoff_and_reschedules(self, scheduler, redis, clock):
        registry = FetcherRegistry()
        due_at = clock.now_ms() + 2 * DAY_MS
        registry.register(Section.SEO, AsyncMock(return_value=due_at))
        redis.hashes["task:seo"] = {"example.com": "3"}

        result = await revalidate_sections_task(
            RevalidateSectionsParams(domain="example.com", sections=[Section.SEO]),
            scheduler,
            registry=registry,
        )

        assert result.succeeded == [Section.SEO]
        assert redis.hashes["task:seo"] == {}
        assert redis.zsets["due:seo"]["example.com"] == due_at

    @pytest.mark.asyncio
    async def test_failure_records_backoff(self, scheduler, redis, clock):
        registry = FetcherRegistry()
        registry.register(Section.DNS, AsyncMock(side_effect=TimeoutError("resolver")))

        result = await revalidate_sections_task(
            RevalidateSectionsParams(domain="example.com", sections=[Section.DNS]),
            scheduler,
            registry=registry,
        )

        assert result.failed == [Section.DNS]
        assert redis.hashes["task:dns"]["example.com"] == "1"
        assert redis.zsets["due:dns"]["example.com"] == clock.now_ms() + 300 * 1000

    @pytest.mark.asyncio
    async def test_missing_fetcher_is_skipped(self, scheduler, redis):
        result = await revalidate_sections_task(
            RevalidateSectionsParams(domain="example.com", sections=[Section.HEADERS]),
            scheduler,
            registry=FetcherRegistry(),
        )

        assert result.skipped == [Section.HEADERS]
        assert redis.zsets == {}

    @pytest.mark.asyncio
    async def test_one_failure_does_not_stop_other_sections(self, scheduler, clock):
        registry = FetcherRegistry()
        registry.register(Section.DNS, AsyncMock(side_effect=RuntimeError("boom")))

        @registry.fetcher(Section.HEADERS)
        async def fetch_headers(domain: str) -> int:
            return clock.now_ms() + DAY_MS

        result = await revalidate_sections_task(
            RevalidateSectionsParams(
                domain="example.com", sections=[Section.DNS, Section.HEADERS]
            ),
            scheduler,
            registry=registry,
        )

        assert result.failed == [Section.DNS]
        assert result.succeeded == [Section.HEADERS]

    @pytest.mark.asyncio
    async def test_empty_sections_is_a_no_op(self):
        scheduler = AsyncMock()

        result = await revalidate_sections_task(
            RevalidateSectionsParams(domain="example.com", sections=[]),
            scheduler,
            registry=FetcherRegistry(),
        )

        assert result.succeeded == result.failed == result.skipped == []
        scheduler.schedule_section_if_earlier.assert_not_called()


class TestLaneSelection:
    @pytest.mark.asyncio
    async def test_recently_accessed_domain_is_rescheduled_in_high_lane(
        self, scheduler, redis, registry, clock
    ):
        registry.last_accessed["example.com"] = clock.now_datetime() - timedelta(hours=2)
        fetchers = FetcherRegistry()
        due_at = clock.now_ms() + DAY_MS
        fetchers.register(Section.SEO, AsyncMock(return_value=due_at))

        await revalidate_sections_task(
            RevalidateSectionsParams(domain="example.com", sections=[Section.SEO]),
            scheduler,
            registry=fetchers,
        )

        assert redis.zsets == {"due:seo:high": {"example.com": due_at}}

    @pytest.mark.asyncio
    async def test_failure_backoff_goes_into_derived_lane(
        self, scheduler, redis, registry, clock
    ):
        registry.last_accessed["example.com"] = clock.now_datetime() - timedelta(days=3)
        fetchers = FetcherRegistry()
        fetchers.register(Section.SEO, AsyncMock(side_effect=TimeoutError("slow")))

        await revalidate_sections_task(
            RevalidateSectionsParams(domain="example.com", sections=[Section.SEO]),
            scheduler,
            registry=fetchers,
        )

        assert redis.zsets == {"due:seo:normal": {"example.com": clock.now_ms() + 300 * 1000}}

    @pytest.mark.asyncio
    async def test_lookup_failure_uses_unlabeled_lane(self, scheduler, redis, registry, clock):
        registry.fail_lookup = True
        fetchers = FetcherRegistry()
        due_at = clock.now_ms() + DAY_MS
        fetchers.register(Section.SEO, AsyncMock(return_value=due_at))

        result = await revalidate_sections_task(
            RevalidateSectionsParams(domain="example.com", sections=[Section.SEO]),
            scheduler,
            registry=fetchers,
        )

        assert result.succeeded == [Section.SEO]
        assert redis.zsets == {"due:seo": {"example.com": due_at}}
