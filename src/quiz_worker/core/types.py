"""Core data types that flow through the worker.

These immutable structures describe one work unit as it moves from extraction
through answer acquisition to the recorded result. Each step produces a new
value instead of mutating the previous one, so observers holding a reference
mid-iteration always see a consistent snapshot.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterator, Mapping, Sequence
import dataclasses
from types import MappingProxyType
import typing

if typing.TYPE_CHECKING:
    from bs4 import Tag

# --- Minimal guard helpers ---

T = typing.TypeVar("T")


def _freeze_mapping(m: typing.Mapping[str, T] | None) -> typing.Mapping[str, T]:
    """Return an immutable mapping view (empty when ``m`` is None)."""
    if isinstance(m, MappingProxyType):
        return m
    return MappingProxyType(dict(m or {}))


def _require(
    *,
    condition: bool,
    message: str,
    exc: type[Exception] = ValueError,
    field_name: str | None = None,
) -> None:
    """Centralized validation with optional field context for clearer errors."""
    if not condition:
        if field_name:
            raise exc(f"{field_name}: {message}")
        raise exc(message)


# --- Answers ---


@dataclasses.dataclass(frozen=True, slots=True)
class AnswerCandidate:
    """One candidate answer returned by an answer source.

    Attributes:
        question: The question text the source matched.
        answer: The answer value; ``None`` when the source had none.
        extra: Source-specific metadata strategies may use.
    """

    question: str = ""
    answer: str | None = None
    extra: typing.Mapping[str, typing.Any] = dataclasses.field(
        default_factory=lambda: MappingProxyType({})
    )

    def __post_init__(self) -> None:
        """Validate field types and freeze metadata."""
        _require(
            condition=isinstance(self.question, str),
            message="must be str",
            field_name="question",
            exc=TypeError,
        )
        _require(
            condition=self.answer is None or isinstance(self.answer, str),
            message="must be str | None",
            field_name="answer",
            exc=TypeError,
        )
        object.__setattr__(self, "extra", _freeze_mapping(self.extra))

    def normalized(self) -> AnswerCandidate:
        """Return this candidate with an absent answer replaced by ``""``."""
        if self.answer is not None:
            return self
        return dataclasses.replace(self, answer="")


@dataclasses.dataclass(frozen=True, slots=True)
class SearchResult:
    """Candidates produced by a single answer source for one question."""

    name: str
    answers: tuple[AnswerCandidate, ...] = ()
    homepage: str | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        """Coerce ``answers`` to a tuple so results stay immutable."""
        object.__setattr__(self, "answers", tuple(self.answers))

    def normalized(self) -> SearchResult:
        """Return this result with every candidate's absent value set to ``""``."""
        return dataclasses.replace(
            self, answers=tuple(a.normalized() for a in self.answers)
        )


@dataclasses.dataclass(frozen=True, slots=True)
class ResolverResult:
    """Outcome of processing one work unit.

    Attributes:
        finish: Whether the unit was answered.
        ratings: Match score per option element, when the strategy computes one.
    """

    finish: bool = False
    ratings: tuple[float, ...] = ()


# --- Extraction ---


class ExtractedElements(Mapping[str, tuple["Tag", ...]]):
    """Named element groups extracted from one work unit root.

    Produced once per unit and read-only afterwards. ``options`` is the group
    the default strategies act on; it is ``None`` when the extraction spec did
    not ask for it (an empty tuple means it was asked for but nothing matched).
    """

    __slots__ = ("_groups",)

    def __init__(self, groups: Mapping[str, typing.Iterable[Tag]] | None = None):
        """Freeze each group into a tuple behind a read-only mapping."""
        self._groups: Mapping[str, tuple[Tag, ...]] = MappingProxyType(
            {name: tuple(els) for name, els in (groups or {}).items()}
        )

    def __getitem__(self, key: str) -> tuple[Tag, ...]:
        return self._groups[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._groups)

    def __len__(self) -> int:
        return len(self._groups)

    def __repr__(self) -> str:
        sizes = ", ".join(f"{k}={len(v)}" for k, v in self._groups.items())
        return f"ExtractedElements({sizes})"

    @property
    def options(self) -> tuple[Tag, ...] | None:
        """Return the option elements, or None when they were not extracted."""
        return self._groups.get("options")


# --- Context and records ---


@dataclasses.dataclass(frozen=True, slots=True)
class WorkContext:
    """Binding of the current work unit, replaced wholesale when it changes."""

    search_results: tuple[SearchResult, ...]
    root: Tag
    elements: ExtractedElements

    def __post_init__(self) -> None:
        """Coerce ``search_results`` to a tuple."""
        object.__setattr__(self, "search_results", tuple(self.search_results))


@dataclasses.dataclass(frozen=True, slots=True)
class WorkResult:
    """Immutable record of one processed work unit.

    Attributes:
        time: Epoch seconds at which processing of the unit started.
        ctx: The context current when the unit finished (or failed).
        result: The resolver outcome; ``finish=False`` on failure.
        consume: Seconds spent on the unit, excluding the inter-unit delay.
        error: The failure raised while processing the unit, if any.
        type: The resolved question type, if any.
    """

    time: float
    ctx: WorkContext | None
    result: ResolverResult
    consume: float
    error: Exception | None = None
    type: str | None = None

    @property
    def finished(self) -> bool:
        """Return True when the unit's resolver reported completion."""
        return self.result.finish


# --- Caller-supplied callables ---

# Looks up candidate answers for a unit; None means "no result".
type Answerer = Callable[
    [ExtractedElements, str | None, WorkContext],
    Awaitable[Sequence[SearchResult] | None],
]

# Realizes one answer on one option element: (type, answer, option, ctx).
type AnswerHandler = Callable[[str, str, Tag, WorkContext], Awaitable[object] | object]

type TypeResolver = Callable[[WorkContext], str | None]

type Strategy = Callable[
    [Sequence[SearchResult], Sequence[Tag], AnswerHandler],
    Awaitable[ResolverResult],
]

type CustomWorkHandler = Callable[[WorkContext], ResolverResult | Awaitable[ResolverResult]]
