"""Static dependency graph between sections.

A section listed as a key reads data produced by the sections it maps to, so
those prerequisites are refreshed slightly ahead of it.
"""

from __future__ import annotations

from revalidator.sections.section import Section

SECTION_DEPENDENCIES: dict[Section, tuple[Section, ...]] = {
    Section.HOSTING: (Section.DNS,),
    Section.CERTIFICATES: (Section.DNS,),
}


def dependencies_of(section: Section) -> tuple[Section, ...]:
    return SECTION_DEPENDENCIES.get(section, ())
