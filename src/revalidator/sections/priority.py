from __future__ import annotations

from datetime import datetime, timedelta, timezone

from revalidator.sections.section import Priority

HIGH_PRIORITY_WINDOW = timedelta(days=1)
NORMAL_PRIORITY_WINDOW = timedelta(days=7)


def as_utc(value: datetime) -> datetime:
    """Naive database timestamps are stored in UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def priority_for_last_access(
    last_accessed_at: datetime | None, now: datetime
) -> Priority | None:
    """Pick a due-queue lane from how recently a user looked at the domain.

    Returns None (the unlabeled lane) when the domain was never accessed.
    """
    if last_accessed_at is None:
        return None

    age = as_utc(now) - as_utc(last_accessed_at)
    if age <= HIGH_PRIORITY_WINDOW:
        return Priority.HIGH
    if age <= NORMAL_PRIORITY_WINDOW:
        return Priority.NORMAL
    return Priority.LOW
