"""Caller-facing run options and the work plan they resolve to.

``work`` accepts several shapes for convenience; ``plan_work`` normalizes
them once into one of three plans:

- ``FixedType``: the caller names the question type.
- ``ComputedType``: a resolver computes the type from the unit's context.
- ``CustomHandler``: the caller processes the unit itself, bypassing the
  strategy table.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping, Sequence
import dataclasses
import typing

from quiz_worker.core.types import _freeze_mapping, _require
from quiz_worker.resolvers.type_resolver import default_work_type_resolver

if typing.TYPE_CHECKING:
    from bs4 import Tag

    from quiz_worker.core.types import (
        Answerer,
        AnswerHandler,
        CustomWorkHandler,
        Strategy,
        TypeResolver,
        WorkResult,
    )
    from quiz_worker.dom import ElementSpec

# --- Work plans ---


@dataclasses.dataclass(frozen=True, slots=True)
class FixedType:
    """Dispatch every unit as ``type`` through the strategy table."""

    type: str
    handler: AnswerHandler

    def __post_init__(self) -> None:
        """Validate the type name; an empty one fails each unit at dispatch."""
        _require(
            condition=isinstance(self.type, str),
            message="must be a str",
            field_name="type",
            exc=TypeError,
        )


@dataclasses.dataclass(frozen=True, slots=True)
class ComputedType:
    """Compute each unit's type with ``resolver``, then dispatch it."""

    resolver: TypeResolver
    handler: AnswerHandler


@dataclasses.dataclass(frozen=True, slots=True)
class CustomHandler:
    """Process each unit with ``handler`` instead of the strategy table."""

    handler: CustomWorkHandler


type WorkPlan = FixedType | ComputedType | CustomHandler


@dataclasses.dataclass(frozen=True, slots=True)
class StrategyWork:
    """Shorthand for the strategy path.

    ``type`` may be a type name, a type resolver, or None for the default
    heuristic.
    """

    handler: AnswerHandler
    type: str | TypeResolver | None = None


type WorkSpec = WorkPlan | StrategyWork | CustomWorkHandler


def plan_work(work: WorkSpec) -> WorkPlan:
    """Normalize a ``WorkOptions.work`` value into a work plan.

    Raises:
        TypeError: If ``work`` is none of the accepted shapes.
    """
    match work:
        case FixedType() | ComputedType() | CustomHandler():
            return work
        case StrategyWork(handler=handler, type=str() as name):
            return FixedType(name, handler)
        case StrategyWork(handler=handler, type=None):
            return ComputedType(default_work_type_resolver, handler)
        case StrategyWork(handler=handler, type=resolver) if callable(resolver):
            return ComputedType(resolver, handler)
        case _ if callable(work):
            return CustomHandler(work)
        case _:
            raise TypeError(f"Unsupported work specification: {work!r}")


# --- Run options ---


type ResultCallback = Callable[[WorkResult], Awaitable[object] | object]


@dataclasses.dataclass(frozen=True)
class WorkOptions:
    """Everything one run needs from the caller.

    Attributes:
        root: A CSS selector resolved against ``document``, or the unit roots.
        elements: Extraction spec: group name -> selector(s).
        work: How each unit is processed (see ``plan_work``).
        answerer: Async lookup of candidate answers for a unit.
        document: HTML text or parsed document; required with a selector root.
        timeout: Seconds per answerer attempt; None uses the configuration.
        retry: Extra attempts after a result-less one; None uses the configuration.
        period: Seconds between units; None uses the configuration.
        stop_when_error: End the run at the first failure; None uses the configuration.
        on_result: Called with each recorded WorkResult; may be async.
        strategies: Entries merged over the default strategy table.
    """

    root: str | Sequence[Tag]
    elements: ElementSpec
    work: WorkSpec
    answerer: Answerer
    document: str | bytes | Tag | None = None
    timeout: float | None = None
    retry: int | None = None
    period: float | None = None
    stop_when_error: bool | None = None
    on_result: ResultCallback | None = None
    strategies: Mapping[str, Strategy] | None = None

    def __post_init__(self) -> None:
        """Validate the combination of fields and freeze mappings."""
        _require(
            condition=not isinstance(self.root, str) or self.document is not None,
            message="a selector root requires a document",
            field_name="root",
        )
        _require(
            condition=callable(self.answerer),
            message="must be callable",
            field_name="answerer",
            exc=TypeError,
        )
        _require(
            condition=self.timeout is None or self.timeout > 0,
            message="must be > 0",
            field_name="timeout",
        )
        _require(
            condition=self.retry is None or self.retry >= 0,
            message="must be >= 0",
            field_name="retry",
        )
        _require(
            condition=self.period is None or self.period >= 0,
            message="must be >= 0",
            field_name="period",
        )
        object.__setattr__(self, "elements", _freeze_mapping(self.elements))
        if self.strategies is not None:
            object.__setattr__(self, "strategies", _freeze_mapping(self.strategies))

    @property
    def plan(self) -> WorkPlan:
        """Return the normalized work plan."""
        return plan_work(self.work)
