"""Unit tests for the ARQ registrations and their context wiring."""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from revalidator.main.config import set_settings
from revalidator.sections.section import Section
from revalidator.worker import routes
from revalidator.worker.due_drain import DueDrainService
from revalidator.worker.revalidation_tasks import RevalidateSectionsParams
from revalidator.worker.worker import Worker


def test_worker_settings_register_jobs():
    from revalidator.worker.arq import WorkerSettings

    function_names = {func.__name__ for func in WorkerSettings.functions}
    cron_names = {job.name for job in WorkerSettings.cron_jobs}

    assert "revalidate_sections" in function_names
    assert cron_names == {"cron:drain_due_domains", "cron:queue_cleanup"}
    assert WorkerSettings.retry_jobs is False


def test_drain_minutes_follow_cadence(test_settings):
    set_settings(test_settings.model_copy(update={"drain_cron_minutes": 15}))

    assert routes._drain_minutes() == {0, 15, 30, 45}


@pytest.mark.asyncio
async def test_revalidate_sections_job_uses_context_scheduler(scheduler):
    ctx = {"job_id": "job-1", "scheduler": scheduler}
    params = RevalidateSectionsParams(domain="example.com", sections=[Section.DNS])

    with patch.object(routes, "revalidate_sections_task", AsyncMock()) as task:
        task.return_value = MagicMock(model_dump=MagicMock(return_value={"ok": True}))
        result = await routes.revalidate_sections(ctx, params)

    assert result == {"ok": True}
    task.assert_awaited_once_with(params=params, scheduler=scheduler)


@pytest.mark.asyncio
async def test_drain_cron_dispatches_due_work(scheduler, redis, clock):
    redis.zsets["due:dns"] = {"example.com": float(clock.now_ms() - 1)}
    arq_redis = AsyncMock()
    ctx = {"scheduler": scheduler, "due_drain": DueDrainService(scheduler, arq_redis)}

    result = await routes.drain_due_domains(ctx)

    assert result["emitted"] == 1
    assert result["groups"] == 1
    arq_redis.enqueue_job.assert_awaited_once()


@pytest.mark.asyncio
async def test_cleanup_cron_sweeps_and_restores_dlq(scheduler, redis, registry, clock):
    registry.existing = {"example.com"}
    redis.zsets["due:seo"] = {"gone.com": float(clock.now_ms())}
    redis.zsets["dlq:dns"] = {"example.com": float(clock.now_ms() - 1)}
    ctx = {"scheduler": scheduler}

    result = await routes.queue_cleanup(ctx)

    assert result == {"removed": 1, "checked": 2, "restored": 1}
    assert "example.com" in redis.zsets["due:dns"]


class TestCronJobWiring:
    @pytest.mark.asyncio
    async def test_cron_job_receives_only_declared_dependencies(self):
        worker = Worker()
        received = {}

        @worker.cron_job(minute=0)
        async def needs_scheduler(scheduler):
            received.update(scheduler=scheduler)

        ctx = {"scheduler": "the-scheduler"}
        await needs_scheduler(ctx)

        assert received == {"scheduler": "the-scheduler"}

    @pytest.mark.asyncio
    async def test_startup_builds_dispatch_service_from_arq_pool(self, test_settings):
        set_settings(test_settings)
        worker = Worker()
        arq_redis = AsyncMock()
        ctx = {"redis": arq_redis}

        with patch("revalidator.worker.worker.sessionmanager") as sessionmanager:
            await worker.startup(ctx)

        sessionmanager.init.assert_called_once_with(test_settings.database_url)
        assert isinstance(ctx["due_drain"], DueDrainService)
        assert ctx["due_drain"]._arq_redis is arq_redis
        assert ctx["due_drain"]._scheduler is ctx["scheduler"]

        await ctx["scheduler_redis"].aclose()
