from revalidator.main.config import get_settings
from revalidator.main.logging import get_logger
from revalidator.scheduler.revalidation_scheduler import RevalidationScheduler
from revalidator.worker.due_drain import DueDrainService
from revalidator.worker.revalidation_tasks import (
    RevalidateSectionsParams,
    revalidate_sections_task,
)
from revalidator.worker.worker import Worker

logger = get_logger(__name__)

worker = Worker()


def _drain_minutes() -> set[int]:
    step = get_settings().drain_cron_minutes
    return set(range(0, 60, step))


@worker.function()
async def revalidate_sections(
    job_id: str, params: RevalidateSectionsParams, scheduler: RevalidationScheduler
):
    result = await revalidate_sections_task(params=params, scheduler=scheduler)
    return result.model_dump(mode="json")


@worker.cron_job(minute=_drain_minutes(), run_at_startup=False)
async def drain_due_domains(due_drain: DueDrainService):
    """Dispatch everything that has come due since the last run."""
    summary = await due_drain.run()
    return summary.model_dump()


@worker.cron_job(hour=3, minute=30)
async def queue_cleanup(scheduler: RevalidationScheduler):
    """Daily garbage collection, plus restoring DLQ entries whose cooldown passed."""
    cleanup = await scheduler.cleanup_orphaned_queue_entries()
    restored = await scheduler.restore_expired_dlq_entries()
    return {"removed": cleanup.removed, "checked": cleanup.checked, "restored": restored}
