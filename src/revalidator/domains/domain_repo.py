"""System-of-record lookups used by the scheduler.

The scheduler only needs two answers from the relational store: when a domain
was last looked at by a user, and which of a batch of domains still exist.
"""

from __future__ import annotations

from datetime import datetime
from typing import AsyncContextManager, Callable, Iterable, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from revalidator.database.database import sessionmanager
from revalidator.database.tables.domains_table import Domains


class DomainRegistry(Protocol):
    async def get_last_accessed_at(self, name: str) -> datetime | None: ...

    async def filter_existing(self, names: Iterable[str]) -> set[str]: ...


class DomainRepository:
    """Reads the ``domains`` table.

    Args:
        session_factory: Callable returning an async session context manager.
            Defaults to the process-wide session manager.
        chunk_size: Maximum names per ``IN (...)`` query.
    """

    def __init__(
        self,
        session_factory: Callable[[], AsyncContextManager[AsyncSession]] | None = None,
        chunk_size: int = 500,
    ) -> None:
        self._session_factory = session_factory or sessionmanager.session
        self._chunk_size = chunk_size

    async def get_last_accessed_at(self, name: str) -> datetime | None:
        stmt = select(Domains.last_accessed_at).where(Domains.name == name)
        async with self._session_factory() as session, session.begin():
            result = await session.execute(stmt)
            return result.scalar_one_or_none()

    async def filter_existing(self, names: Iterable[str]) -> set[str]:
        """Return the subset of ``names`` present in the table."""
        unique_names = list(dict.fromkeys(names))
        existing: set[str] = set()
        if not unique_names:
            return existing

        async with self._session_factory() as session, session.begin():
            for start in range(0, len(unique_names), self._chunk_size):
                chunk = unique_names[start : start + self._chunk_size]
                result = await session.execute(
                    select(Domains.name).where(Domains.name.in_(chunk))
                )
                existing.update(result.scalars().all())

        return existing
