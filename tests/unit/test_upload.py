"""Tests for completion rate and upload decisions."""

import logging

import pytest

from quiz_worker.core.types import ResolverResult, WorkResult
from quiz_worker.upload import (
    UploadDecision,
    UploadMode,
    decide_upload,
    evaluate_policy,
    finish_rate,
    parse_upload_policy,
    upload_handler,
)

pytestmark = pytest.mark.unit


def _results(*finished):
    return [
        WorkResult(time=0.0, ctx=None, result=ResolverResult(finish=f), consume=0.0)
        for f in finished
    ]


def test_finish_rate():
    assert finish_rate(_results(True, False, True, False)) == 50
    assert finish_rate(_results(True, True)) == 100
    assert finish_rate([]) == 0


@pytest.mark.parametrize(
    ("policy", "expected"),
    [
        ("nomove", UploadMode.NOMOVE),
        ("FORCE", UploadMode.FORCE),
        (UploadMode.SAVE, UploadMode.SAVE),
        ("80", 80.0),
        ("66.5%", 66.5),
        (90, 90.0),
        ("abc", None),
        (True, None),
    ],
)
def test_parse_upload_policy(policy, expected):
    assert parse_upload_policy(policy) == expected


class TestEvaluatePolicy:
    """Named policies and numeric thresholds."""

    def test_nomove_skips_callback(self):
        assert evaluate_policy(100, "nomove") is None

    def test_force_and_save(self):
        assert evaluate_policy(0, "force") is True
        assert evaluate_policy(100, "save") is False

    def test_threshold_is_inclusive(self):
        assert evaluate_policy(79.9, "80") is False
        assert evaluate_policy(80, "80") is True

    def test_policy_without_number_never_uploads(self, caplog):
        with caplog.at_level(logging.WARNING, logger="quiz_worker.upload"):
            assert evaluate_policy(100, "whenever") is False
        assert "no threshold" in caplog.text


def test_decide_upload_carries_rate():
    assert decide_upload(_results(True, False), "force") == UploadDecision(50, True)
    assert decide_upload(_results(True), "nomove") is None


class TestUploadHandler:
    """The callback is invoked per policy and awaited."""

    @pytest.mark.asyncio
    async def test_nomove_never_calls_back(self):
        calls = []
        decision = await upload_handler(_results(True), "nomove", lambda *a: calls.append(a))
        assert decision is None
        assert calls == []

    @pytest.mark.asyncio
    async def test_sync_callback(self):
        calls = []
        await upload_handler(_results(True, False), "50", lambda *a: calls.append(a))
        assert calls == [(50.0, True)]

    @pytest.mark.asyncio
    async def test_async_callback_is_awaited(self):
        calls = []

        async def callback(rate, uploadable):
            calls.append((rate, uploadable))

        decision = await upload_handler(_results(False), "save", callback)
        assert calls == [(0, False)]
        assert decision == UploadDecision(rate=0, uploadable=False)
