from revalidator.sections.dependencies import SECTION_DEPENDENCIES, dependencies_of
from revalidator.sections.priority import priority_for_last_access
from revalidator.sections.section import (
    PRIORITY_LANES,
    Priority,
    Section,
    all_sections,
    parse_sections,
)

__all__ = [
    "PRIORITY_LANES",
    "Priority",
    "SECTION_DEPENDENCIES",
    "Section",
    "all_sections",
    "dependencies_of",
    "parse_sections",
    "priority_for_last_access",
]
