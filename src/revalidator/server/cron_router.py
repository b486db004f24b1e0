"""HTTP triggers for the periodic runs.

An external scheduler calls these with ``Authorization: Bearer <CRON_SECRET>``.
"""

from __future__ import annotations

import hmac
import time
from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse

from revalidator.jobs.job_manager import job_manager
from revalidator.main.config import get_settings
from revalidator.main.logging import get_logger
from revalidator.scheduler.revalidation_scheduler import RevalidationScheduler
from revalidator.worker.due_drain import DueDrainService

logger = get_logger(__name__)

router = APIRouter()


def get_scheduler(request: Request) -> RevalidationScheduler:
    return request.app.state.scheduler


def get_due_drain_service(request: Request) -> DueDrainService:
    return DueDrainService(
        request.app.state.scheduler,
        job_manager.redis,
        batch_size=get_settings().dispatch_batch_size,
    )


def _check_cron_secret(authorization: str | None) -> JSONResponse | None:
    secret = get_settings().cron_secret
    if not secret:
        return JSONResponse(
            status_code=500, content={"error": "CRON_SECRET not configured"}
        )

    expected = f"Bearer {secret}"
    if authorization is None or not hmac.compare_digest(authorization, expected):
        return JSONResponse(status_code=401, content={"error": "Unauthorized"})

    return None


def _internal_error(job: str, exc: Exception) -> JSONResponse:
    logger.exception(f"{job} cron failed", extra={"job": job})
    return JSONResponse(
        status_code=500,
        content={"error": "Internal error", "message": str(exc) or "unknown"},
    )


@router.get("/due-drain")
async def due_drain(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
):
    denied = _check_cron_secret(authorization)
    if denied is not None:
        return denied

    try:
        summary = await get_due_drain_service(request).run()
    except Exception as exc:
        return _internal_error("due_drain", exc)

    if summary.emitted == 0:
        return {"success": True, "emitted": 0, "groups": 0, "message": "nothing due"}

    return {
        "success": True,
        "emitted": summary.emitted,
        "groups": summary.groups,
        "durationMs": summary.duration_ms,
    }


@router.get("/queue-cleanup")
async def queue_cleanup(
    scheduler: Annotated[RevalidationScheduler, Depends(get_scheduler)],
    authorization: Annotated[str | None, Header()] = None,
):
    denied = _check_cron_secret(authorization)
    if denied is not None:
        return denied

    started_at = time.monotonic()
    try:
        result = await scheduler.cleanup_orphaned_queue_entries()
        restored = await scheduler.restore_expired_dlq_entries()
    except Exception as exc:
        return _internal_error("queue_cleanup", exc)

    return {
        "success": True,
        "removed": result.removed,
        "checked": result.checked,
        "restored": restored,
        "durationMs": int((time.monotonic() - started_at) * 1000),
    }
