"""Tests for the default question type heuristic."""

import pytest

from quiz_worker.core.types import ExtractedElements, WorkContext
from quiz_worker.dom import dom_search_all, parse_document
from quiz_worker.resolvers.type_resolver import (
    COMPLETION,
    JUDGEMENT,
    MULTIPLE,
    SINGLE,
    default_work_type_resolver,
)

pytestmark = pytest.mark.unit


def _context(root, spec=None):
    elements = dom_search_all(spec or {"options": ".option"}, root)
    return WorkContext((), root, elements)


@pytest.mark.parametrize(
    ("index", "expected"),
    [(0, SINGLE), (1, MULTIPLE), (2, JUDGEMENT), (3, COMPLETION)],
)
def test_quiz_questions_resolve_to_expected_type(question_roots, index, expected):
    assert default_work_type_resolver(_context(question_roots[index])) == expected


def test_role_attributes_count_as_inputs():
    root = parse_document(
        '<div><span class="option" role="radio">Yes</span>'
        '<span class="option" role="radio">No</span></div>'
    )
    assert default_work_type_resolver(_context(root)) == JUDGEMENT


def test_two_checkboxes_are_not_multiple_choice():
    root = parse_document(
        '<div><input class="option" type="checkbox"><input class="option" type="checkbox"></div>'
    )
    assert default_work_type_resolver(_context(root)) is None


def test_textarea_is_completion():
    root = parse_document('<div><textarea class="option"></textarea></div>')
    assert default_work_type_resolver(_context(root)) == COMPLETION


def test_missing_options_resolve_to_none(question_roots):
    ctx = WorkContext((), question_roots[0], ExtractedElements({"title": []}))
    assert default_work_type_resolver(ctx) is None
