"""Unit tests for per-run logging context and the JSON formatter."""

import json
import logging

from revalidator.main.logging import ContextJSONFormatter
from revalidator.main.run_context import (
    bound_run,
    clear_run_context,
    get_run_context,
    set_run_context,
)


def _record(**extra):
    record = logging.LogRecord(
        name="revalidator.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="hello %s",
        args=("world",),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_bound_run_sets_and_restores_context():
    set_run_context(tenant="outer")

    with bound_run("due_drain") as run_id:
        context = get_run_context()
        assert context["run_id"] == run_id
        assert context["job"] == "due_drain"
        assert context["tenant"] == "outer"
        assert len(run_id) == 12

    assert get_run_context() == {"tenant": "outer"}
    clear_run_context()
    assert get_run_context() == {}


def test_set_run_context_none_clears_key():
    set_run_context(job="a", section="dns")
    set_run_context(section=None)

    assert get_run_context() == {"job": "a"}
    clear_run_context()


def test_formatter_includes_run_context_and_extras():
    formatter = ContextJSONFormatter()

    with bound_run("queue_cleanup") as run_id:
        payload = json.loads(formatter.format(_record(section="dns", domain="example.com")))

    assert payload["message"] == "hello world"
    assert payload["level"] == "info"
    assert payload["run_id"] == run_id
    assert payload["job"] == "queue_cleanup"
    assert payload["section"] == "dns"
    assert payload["domain"] == "example.com"


def test_formatter_skips_none_extras():
    payload = json.loads(ContextJSONFormatter().format(_record(domain=None)))

    assert "domain" not in payload
