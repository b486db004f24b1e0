from __future__ import annotations

import inspect
from functools import wraps
from typing import Callable

from arq.cron import cron

from revalidator.database.database import sessionmanager
from revalidator.domains.domain_repo import DomainRepository
from revalidator.main.config import get_settings
from revalidator.main.logging import get_logger
from revalidator.redis.connection import build_arq_redis_settings, create_redis_client
from revalidator.scheduler.revalidation_scheduler import RevalidationScheduler
from revalidator.worker.due_drain import DueDrainService

logger = get_logger(__name__)


class Worker:
    """
    Collects ARQ functions and cron jobs and owns the shared worker resources.

    Attributes:
        functions (list): Registered functions.
        cron_jobs (list): Registered cron jobs.
        redis_settings (RedisSettings): Redis settings for the ARQ pool.
        on_startup (callable): Called once when the worker starts.
        on_shutdown (callable): Called once when the worker stops.
        retry_jobs (bool): Whether ARQ retries failed jobs.
        job_timeout (int): Timeout for jobs in seconds.

    Methods:
        startup(ctx):
            Opens the database, the scheduler's Redis client, the scheduler and
            the dispatch service, and stores them in the ARQ context.

        shutdown(ctx):
            Closes what startup opened.

        function():
            Decorator to register a job receiving the scheduler.

        cron_job(**decorator_kwargs):
            Decorator to register a cron job receiving the scheduler and/or the
            dispatch service, whichever it declares.

        include_subworker(sub_worker: Worker):
            Includes functions and cron jobs from a sub-worker.
    """

    def __init__(self):
        settings = get_settings()
        self.functions = []
        self.cron_jobs = []
        self.redis_settings = build_arq_redis_settings(settings)
        self.on_startup = self.startup
        self.on_shutdown = self.shutdown
        # Failures already go through the scheduler's backoff
        self.retry_jobs = False
        self.job_timeout = settings.lease_seconds

    async def startup(self, ctx):
        settings = get_settings()
        sessionmanager.init(settings.database_url)

        redis_client = create_redis_client(settings)
        scheduler = RevalidationScheduler.from_settings(
            redis_client, DomainRepository(), settings=settings
        )

        ctx["scheduler_redis"] = redis_client
        ctx["scheduler"] = scheduler
        ctx["due_drain"] = DueDrainService(
            scheduler, ctx["redis"], batch_size=settings.dispatch_batch_size
        )
        logger.info("Revalidation worker started")

    async def shutdown(self, ctx):
        redis_client = ctx.get("scheduler_redis")
        if redis_client is not None:
            await redis_client.aclose()

        await sessionmanager.close()
        logger.info("Revalidation worker stopped")

    def _get_kwargs(self, func: Callable, ctx: dict) -> dict:
        parameters = inspect.signature(func).parameters
        kwargs = {}

        if "scheduler" in parameters:
            kwargs["scheduler"] = ctx["scheduler"]
        if "due_drain" in parameters:
            kwargs["due_drain"] = ctx["due_drain"]

        return kwargs

    def function(self):
        def decorator(func):
            @wraps(func)
            async def wrapper(*args):
                ctx, params = args[0], args[1]
                logger.debug(
                    f"Executing {func.__name__} with params {params}",
                    extra={"job_id": ctx.get("job_id")},
                )
                return await func(ctx["job_id"], params, scheduler=ctx["scheduler"])

            self.functions.append(wrapper)
            return wrapper

        return decorator

    def cron_job(self, **decorator_kwargs):
        def decorator(func):
            @wraps(func)
            async def wrapper(*args):
                ctx = args[0]
                logger.debug(f"Executing {func.__name__}")

                return await func(**self._get_kwargs(func, ctx))

            self.cron_jobs.append(cron(wrapper, **decorator_kwargs))
            return wrapper

        return decorator

    def include_subworker(self, sub_worker: Worker):
        self.functions.extend(sub_worker.functions)
        self.cron_jobs.extend(sub_worker.cron_jobs)

        logger.debug(
            "Included sub worker",
            extra={
                "functions": len(sub_worker.functions),
                "cron_jobs": len(sub_worker.cron_jobs),
            },
        )
