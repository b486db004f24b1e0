"""Key layout in the shared store.

Collaborators read and write the same keys, so the layout is fixed:

- ``due:{section}`` / ``due:{section}:{priority}``: sorted set, domain -> due ms
- ``lease:{section}:{domain}``: string with TTL
- ``task:{section}``: hash, domain -> consecutive failure count
- ``dlq:{section}``: sorted set, domain -> cooldown expiry ms
"""

from __future__ import annotations

from revalidator.sections.section import PRIORITY_LANES, Priority, Section


def ns(*parts: str) -> str:
    return ":".join(parts)


def due_key(section: Section, priority: Priority | None = None) -> str:
    if priority is None:
        return ns("due", section.value)
    return ns("due", section.value, priority.value)


def due_keys_for(section: Section) -> list[str]:
    """All lane keys of a section, in drain order."""
    return [due_key(section, priority) for priority in PRIORITY_LANES]


def lease_key(section: Section, domain: str) -> str:
    return ns("lease", section.value, domain)


def task_key(section: Section) -> str:
    return ns("task", section.value)


def dlq_key(section: Section) -> str:
    return ns("dlq", section.value)
