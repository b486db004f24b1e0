"""Per (section, domain) leases.

A lease is a Redis string created with SET NX EX. While it exists no other
drain may dispatch the same pair; it is never released explicitly and simply
expires, which also covers crashed or hung workers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

from revalidator.main.logging import get_logger
from revalidator.scheduler.keys import lease_key
from revalidator.sections.section import Section

if TYPE_CHECKING:
    import redis.asyncio as aioredis

logger = get_logger(__name__)


class LeaseStore:
    """Atomic create-if-absent leases with TTL.

    Args:
        redis_client: Async Redis connection.
        lease_seconds: Lease expiry time.
    """

    def __init__(self, redis_client: aioredis.Redis, lease_seconds: int) -> None:
        self._redis = redis_client
        self._ttl = lease_seconds

    async def try_acquire_many(self, section: Section, domains: Iterable[str]) -> list[str]:
        """Attempt one lease per domain in a single pipelined round trip.

        Each SET NX is atomic on its own; the batch is not all-or-nothing.

        Returns:
            The domains whose lease was acquired, in input order.
        """
        candidates = list(domains)
        if not candidates:
            return []

        async with self._redis.pipeline(transaction=False) as pipe:
            for domain in candidates:
                pipe.set(lease_key(section, domain), "1", nx=True, ex=self._ttl)
            results = await pipe.execute(raise_on_error=False)

        acquired = []
        for domain, result in zip(candidates, results):
            if isinstance(result, Exception):
                logger.warning(
                    "Lease attempt errored",
                    extra={"section": section.value, "domain": domain, "error": str(result)},
                )
                continue
            # None means another drain holds the lease; expected, not an error
            if result:
                acquired.append(domain)
        return acquired
