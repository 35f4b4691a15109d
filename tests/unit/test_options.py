"""Tests for run options and work plan normalization."""

import pytest

from quiz_worker.options import (
    ComputedType,
    CustomHandler,
    FixedType,
    StrategyWork,
    WorkOptions,
    plan_work,
)
from quiz_worker.resolvers.type_resolver import default_work_type_resolver

pytestmark = pytest.mark.unit


def handler(work_type, answer, option, ctx):
    return None


def custom(ctx):
    return None


async def answerer(elements, work_type, ctx):
    return []


class TestPlanWork:
    """Every accepted ``work`` shape maps to exactly one plan."""

    def test_plans_pass_through(self):
        plan = FixedType("single", handler)
        assert plan_work(plan) is plan

    def test_named_type(self):
        assert plan_work(StrategyWork(handler, type="multiple")) == FixedType(
            "multiple", handler
        )

    def test_missing_type_uses_default_heuristic(self):
        assert plan_work(StrategyWork(handler)) == ComputedType(
            default_work_type_resolver, handler
        )

    def test_type_resolver(self):
        def resolver(ctx):
            return "single"

        assert plan_work(StrategyWork(handler, type=resolver)) == ComputedType(
            resolver, handler
        )

    def test_bare_callable_is_custom(self):
        assert plan_work(custom) == CustomHandler(custom)

    def test_unsupported_shape(self):
        with pytest.raises(TypeError, match="Unsupported work"):
            plan_work(42)  # type: ignore[arg-type]

    def test_fixed_type_requires_str(self):
        with pytest.raises(TypeError, match="type"):
            FixedType(None, handler)  # type: ignore[arg-type]

    def test_empty_type_name_is_kept_for_dispatch(self):
        assert plan_work(StrategyWork(handler, type="")) == FixedType("", handler)


class TestWorkOptions:
    """Field validation happens at construction."""

    def test_selector_root_requires_document(self):
        with pytest.raises(ValueError, match="root"):
            WorkOptions(root=".question", elements={}, work=custom, answerer=answerer)

    def test_tag_roots_need_no_document(self, question_roots):
        options = WorkOptions(
            root=question_roots, elements={"options": ".option"}, work=custom, answerer=answerer
        )
        assert options.plan == CustomHandler(custom)

    @pytest.mark.parametrize(
        ("field", "value"), [("timeout", 0), ("retry", -1), ("period", -0.5)]
    )
    def test_numeric_bounds(self, question_roots, field, value):
        with pytest.raises(ValueError, match=field):
            WorkOptions(
                root=question_roots,
                elements={},
                work=custom,
                answerer=answerer,
                **{field: value},
            )

    def test_answerer_must_be_callable(self, question_roots):
        with pytest.raises(TypeError, match="answerer"):
            WorkOptions(root=question_roots, elements={}, work=custom, answerer=None)

    def test_elements_are_read_only(self, question_roots):
        options = WorkOptions(
            root=question_roots, elements={"options": ".option"}, work=custom, answerer=answerer
        )
        with pytest.raises(TypeError):
            options.elements["title"] = ".title"
