"""Tests for the immutable data types flowing through the worker."""

import dataclasses

import pytest

from quiz_worker.core.types import (
    AnswerCandidate,
    ExtractedElements,
    ResolverResult,
    SearchResult,
    WorkContext,
    WorkResult,
)

pytestmark = pytest.mark.unit


class TestAnswerNormalization:
    """Absent candidate values normalize to the empty string."""

    def test_none_answer_normalizes_to_empty_string(self):
        assert AnswerCandidate("q", None).normalized().answer == ""

    def test_present_answer_is_kept(self):
        candidate = AnswerCandidate("q", "Paris")
        assert candidate.normalized() is candidate

    def test_search_result_normalizes_every_candidate(self, make_search_result):
        result = make_search_result(None, "", "x").normalized()
        assert [a.answer for a in result.answers] == ["", "", "x"]

    def test_answer_type_is_validated(self):
        with pytest.raises(TypeError, match="answer"):
            AnswerCandidate("q", 42)  # type: ignore[arg-type]


def test_extra_metadata_is_read_only():
    candidate = AnswerCandidate("q", "a", extra={"score": 1})
    with pytest.raises(TypeError):
        candidate.extra["score"] = 2  # type: ignore[index]


def test_search_result_answers_become_tuple():
    result = SearchResult(name="src", answers=[AnswerCandidate("q", "a")])
    assert isinstance(result.answers, tuple)


class TestExtractedElements:
    """Element groups are frozen and expose ``options``."""

    def test_groups_are_tuples(self, question_roots):
        elements = ExtractedElements({"options": question_roots[0].select(".option")})
        assert isinstance(elements["options"], tuple)
        assert len(elements.options) == 4

    def test_options_none_when_not_extracted(self, question_roots):
        elements = ExtractedElements({"title": question_roots[0].select(".title")})
        assert elements.options is None
        assert "options" not in elements

    def test_empty_options_are_not_none(self):
        assert ExtractedElements({"options": []}).options == ()


def test_work_context_is_frozen(question_roots):
    ctx = WorkContext([], question_roots[0], ExtractedElements())
    assert ctx.search_results == ()
    with pytest.raises(dataclasses.FrozenInstanceError):
        ctx.root = question_roots[1]  # type: ignore[misc]


def test_work_result_finished_mirrors_resolver_result():
    record = WorkResult(time=0.0, ctx=None, result=ResolverResult(finish=True), consume=0.1)
    assert record.finished is True
    assert record.error is None
    assert record.type is None
