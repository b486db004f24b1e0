from contextlib import asynccontextmanager

from fastapi import FastAPI

from revalidator.database.database import sessionmanager
from revalidator.domains.domain_repo import DomainRepository
from revalidator.jobs.job_manager import job_manager
from revalidator.main.config import get_settings
from revalidator.redis.connection import create_redis_client
from revalidator.scheduler.revalidation_scheduler import RevalidationScheduler


@asynccontextmanager
async def lifespan(app: FastAPI):
    await startup(app)
    yield
    await shutdown(app)


async def startup(app: FastAPI):
    settings = get_settings()

    sessionmanager.init(settings.database_url)
    await job_manager.init()

    redis_client = create_redis_client(settings)
    app.state.redis = redis_client
    app.state.scheduler = RevalidationScheduler.from_settings(
        redis_client, DomainRepository(), settings=settings
    )


async def shutdown(app: FastAPI):
    redis_client = getattr(app.state, "redis", None)
    if redis_client is not None:
        await redis_client.aclose()

    await sessionmanager.close()
    await job_manager.close()
