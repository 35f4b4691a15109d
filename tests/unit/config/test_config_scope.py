"""Tests for entry-time configuration scopes."""

import asyncio

import pytest

from quiz_worker import QuizWorker, ResolverResult, WorkOptions
from quiz_worker.config import config_override, config_scope, resolve_config

pytestmark = pytest.mark.unit


def test_scope_is_reset_after_exception():
    with pytest.raises(RuntimeError), config_override(retry=0):
        raise RuntimeError("boom")
    assert resolve_config().retry == 2


def test_scope_replaces_resolution():
    scoped = resolve_config().with_overrides(retry=9)
    with config_scope(scoped):
        assert resolve_config() is scoped
        assert resolve_config({"period": 0}).period == 0
    assert resolve_config().retry == 2


def test_override_marks_origin():
    with config_override(timeout=3.0):
        resolved = resolve_config()
    assert resolved.timeout == 3.0
    assert resolved.origin["timeout"] == "programmatic"


def test_nested_overrides_accumulate():
    with config_override(retry=0), config_override(period=0):
        resolved = resolve_config()
    assert (resolved.retry, resolved.period) == (0, 0)


def test_worker_freezes_config_at_construction(question_roots):
    async def answerer(elements, work_type, ctx):
        return None

    options = WorkOptions(
        root=question_roots,
        elements={},
        work=lambda ctx: ResolverResult(),
        answerer=answerer,
    )
    with config_override(retry=7):
        worker = QuizWorker(options)
    assert worker.retry == 7


@pytest.mark.asyncio
async def test_scope_does_not_leak_into_other_tasks():
    async def read_retry():
        return resolve_config().retry

    with config_override(retry=5):
        inside = await read_retry()
    outside = await asyncio.create_task(read_retry())
    assert (inside, outside) == (5, 2)

