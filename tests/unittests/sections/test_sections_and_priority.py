from datetime import datetime, timedelta, timezone

import pytest

from revalidator.sections import (
    PRIORITY_LANES,
    Priority,
    Section,
    all_sections,
    dependencies_of,
    parse_sections,
    priority_for_last_access,
)

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def test_sections_are_in_drain_order():
    assert [s.value for s in all_sections()] == [
        "dns",
        "headers",
        "hosting",
        "certificates",
        "seo",
        "registration",
    ]


def test_lane_order():
    assert PRIORITY_LANES == (Priority.HIGH, Priority.NORMAL, Priority.LOW, None)


def test_parse_sections_drops_unknown_and_duplicates():
    assert parse_sections(["seo", "bogus", "dns", "seo"]) == [Section.SEO, Section.DNS]


def test_dependency_graph():
    assert dependencies_of(Section.HOSTING) == (Section.DNS,)
    assert dependencies_of(Section.CERTIFICATES) == (Section.DNS,)
    assert dependencies_of(Section.DNS) == ()
    assert dependencies_of(Section.SEO) == ()


@pytest.mark.parametrize(
    "age,expected",
    [
        (timedelta(hours=3), Priority.HIGH),
        (timedelta(days=1), Priority.HIGH),
        (timedelta(days=3), Priority.NORMAL),
        (timedelta(days=7), Priority.NORMAL),
        (timedelta(days=8), Priority.LOW),
    ],
)
def test_priority_for_last_access(age, expected):
    assert priority_for_last_access(NOW - age, NOW) is expected


def test_never_accessed_uses_unlabeled_lane():
    assert priority_for_last_access(None, NOW) is None


def test_naive_last_access_is_read_as_utc():
    naive = (NOW - timedelta(days=3)).replace(tzinfo=None)

    assert priority_for_last_access(naive, NOW) is Priority.NORMAL
