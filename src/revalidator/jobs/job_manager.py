from __future__ import annotations

from arq import create_pool
from arq.connections import ArqRedis

from revalidator.main.config import get_settings
from revalidator.main.exceptions import NotReadyException
from revalidator.main.logging import get_logger
from revalidator.redis.connection import build_arq_redis_settings

logger = get_logger(__name__)


class JobManager:
    """Process-wide ARQ pool used by the HTTP surface to enqueue jobs."""

    def __init__(self):
        self._redis: ArqRedis | None = None

    @property
    def redis(self) -> ArqRedis:
        if self._redis is None:
            raise NotReadyException("Job manager is not initialized!")
        return self._redis

    async def init(self):
        settings = get_settings()
        self._redis = await create_pool(build_arq_redis_settings(settings))

        logger.debug(
            f"Job manager connected to redis on host {settings.redis_host}"
            f" and port {settings.redis_port}"
        )

    async def close(self):
        if self._redis is None:
            return
        await self._redis.aclose()
        self._redis = None


job_manager = JobManager()
