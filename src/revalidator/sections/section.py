from __future__ import annotations

from enum import Enum


class Section(str, Enum):
    """Independently revalidated category of domain facts.

    Declaration order is the order in which the drain loop visits sections.
    """

    DNS = "dns"
    HEADERS = "headers"
    HOSTING = "hosting"
    CERTIFICATES = "certificates"
    SEO = "seo"
    REGISTRATION = "registration"


class Priority(str, Enum):
    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"


# Drain order within a section; None is the unlabeled (legacy) lane
PRIORITY_LANES: tuple[Priority | None, ...] = (
    Priority.HIGH,
    Priority.NORMAL,
    Priority.LOW,
    None,
)


def all_sections() -> list[Section]:
    return list(Section)


def parse_sections(values: list[str]) -> list[Section]:
    """Convert raw section names, dropping unknown ones and duplicates."""
    known = {section.value: section for section in Section}
    parsed: list[Section] = []
    for value in values:
        section = known.get(value)
        if section is not None and section not in parsed:
            parsed.append(section)
    return parsed
