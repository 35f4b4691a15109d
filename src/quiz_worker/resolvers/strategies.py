"""Default strategy table: apply candidate answers to option elements.

A strategy receives the normalized search results of one unit, the unit's
option elements and the caller's answer handler. It decides which options the
answers correspond to, calls the handler once per chosen option and reports a
``ResolverResult``. Strategies never click or type themselves; realizing the
answer is always the handler's job.
"""

from __future__ import annotations

from collections.abc import Sequence
from difflib import SequenceMatcher
from functools import partial
import inspect
import logging
import re
import typing

from quiz_worker.core.types import ResolverResult
from quiz_worker.dom import element_text
from quiz_worker.resolvers.type_resolver import COMPLETION, JUDGEMENT, MULTIPLE, SINGLE

if typing.TYPE_CHECKING:
    from collections.abc import Mapping

    from bs4 import Tag

    from quiz_worker.core.types import (
        AnswerHandler,
        SearchResult,
        Strategy,
        WorkContext,
    )

log = logging.getLogger(__name__)

# Minimum similarity for an option to count as matching an answer.
MATCH_THRESHOLD = 0.6

CORRECT_WORDS = frozenset(
    ["是", "对", "正确", "确定", "√", "对的", "是的", "正确的", "true", "yes", "t", "y", "1"]
)
INCORRECT_WORDS = frozenset(
    ["非", "否", "错", "错误", "×", "x", "错的", "不对", "不正确", "不是", "false", "no", "f", "n", "0"]
)

_SEPARATORS = re.compile(r"===|---|#|\||;|；")
_OPTION_LABEL = re.compile(r"^\s*[A-Za-z]\s*[.．、:：)）]\s*")
_LETTER_NOISE = re.compile(r"[\s,，、#|;；]")
_NON_WORD = re.compile(r"[\W_]+")


# --- Text helpers ---


def normalize_text(text: str) -> str:
    """Lowercase and drop whitespace/punctuation for fuzzy comparison."""
    return _NON_WORD.sub("", text.lower())


def similarity(a: str, b: str) -> float:
    """Return a 0..1 similarity score between two texts after normalization."""
    na, nb = normalize_text(a), normalize_text(b)
    if not na or not nb:
        return 0.0
    if na == nb:
        return 1.0
    return SequenceMatcher(None, na, nb).ratio()


def option_text(option: Tag) -> str:
    """Return an option's text without its leading ``A.``-style label."""
    return _OPTION_LABEL.sub("", element_text(option), count=1).strip()


def split_answer(answer: str) -> list[str]:
    """Split a combined answer (``a#b``, ``a===b``, ``a;b``) into its parts."""
    return [part.strip() for part in _SEPARATORS.split(answer) if part.strip()]


def letter_indexes(answer: str, option_count: int) -> list[int]:
    """Interpret an answer such as ``"B"`` or ``"A,C"`` as option positions.

    Returns an empty list when the answer is not a plain run of distinct
    option letters within range.
    """
    letters = _LETTER_NOISE.sub("", answer.upper())
    if not letters or not re.fullmatch(r"[A-Z]+", letters) or len(set(letters)) != len(letters):
        return []
    indexes = [ord(c) - ord("A") for c in letters]
    if any(i >= option_count for i in indexes):
        return []
    return indexes


def judge_polarity(text: str) -> bool | None:
    """Classify a true/false answer or option text; None when it is neither."""
    cleaned = _OPTION_LABEL.sub("", text.strip(), count=1).strip().lower().strip("。.!！ ")
    if cleaned in CORRECT_WORDS:
        return True
    if cleaned in INCORRECT_WORDS:
        return False
    return None


def valid_answers(results: Sequence[SearchResult]) -> list[str]:
    """Flatten every non-empty candidate answer across all search results."""
    return [c.answer for r in results for c in r.answers if c.answer]


async def _apply(
    handler: AnswerHandler, work_type: str, answer: str, option: Tag, ctx: WorkContext
) -> None:
    outcome = handler(work_type, answer, option, ctx)
    if inspect.isawaitable(outcome):
        await outcome


def _best_match(text: str, answers: Sequence[str]) -> tuple[float, str | None]:
    best: tuple[float, str | None] = (0.0, None)
    for answer in answers:
        score = similarity(text, answer)
        if score > best[0]:
            best = (score, answer)
    return best


# --- Strategies ---


async def resolve_single(
    results: Sequence[SearchResult],
    options: Sequence[Tag],
    handler: AnswerHandler,
    *,
    ctx: WorkContext,
) -> ResolverResult:
    """Choose the one option that best matches any candidate answer."""
    answers = valid_answers(results)
    matches = [_best_match(option_text(o), answers) for o in options]
    ratings = tuple(score for score, _ in matches)

    if ratings and max(ratings) >= MATCH_THRESHOLD:
        index = ratings.index(max(ratings))
        await _apply(handler, SINGLE, matches[index][1] or "", options[index], ctx)
        return ResolverResult(finish=True, ratings=ratings)

    for answer in answers:
        indexes = letter_indexes(answer, len(options))
        if len(indexes) == 1:
            await _apply(handler, SINGLE, answer, options[indexes[0]], ctx)
            return ResolverResult(finish=True, ratings=ratings)

    log.debug("No single-choice option matched %d answer(s)", len(answers))
    return ResolverResult(finish=False, ratings=ratings)


async def resolve_multiple(
    results: Sequence[SearchResult],
    options: Sequence[Tag],
    handler: AnswerHandler,
    *,
    ctx: WorkContext,
) -> ResolverResult:
    """Choose every option that matches a part of a candidate answer."""
    answers = valid_answers(results)
    parts = [part for answer in answers for part in split_answer(answer)]
    matches = [_best_match(option_text(o), parts) for o in options]
    ratings = tuple(score for score, _ in matches)

    chosen = [
        (i, matched or "")
        for i, (score, matched) in enumerate(matches)
        if score >= MATCH_THRESHOLD
    ]
    if not chosen:
        for answer in answers:
            indexes = letter_indexes(answer, len(options))
            if indexes:
                chosen = [(i, chr(ord("A") + i)) for i in indexes]
                break

    for index, answer in chosen:
        await _apply(handler, MULTIPLE, answer, options[index], ctx)
    return ResolverResult(finish=bool(chosen), ratings=ratings)


async def resolve_judgement(
    results: Sequence[SearchResult],
    options: Sequence[Tag],
    handler: AnswerHandler,
    *,
    ctx: WorkContext,
) -> ResolverResult:
    """Pick the true or false option matching the answer's polarity.

    An answer naming a single option letter, such as ``"B"``, picks that
    option when no answer carries a polarity.
    """
    if not options:
        return ResolverResult(finish=False)
    candidates = valid_answers(results)
    answer, polarity = None, None
    for candidate in candidates:
        polarity = judge_polarity(candidate)
        if polarity is not None:
            answer = candidate
            break
    if answer is None or polarity is None:
        for candidate in candidates:
            indexes = letter_indexes(candidate, len(options))
            if len(indexes) == 1:
                index = indexes[0]
                await _apply(handler, JUDGEMENT, candidate, options[index], ctx)
                ratings = tuple(1.0 if i == index else 0.0 for i in range(len(options)))
                return ResolverResult(finish=True, ratings=ratings)
        return ResolverResult(finish=False)

    polarities = [judge_polarity(option_text(o)) for o in options]
    ratings = tuple(1.0 if p is polarity else 0.0 for p in polarities)
    if polarity in polarities:
        index = polarities.index(polarity)
    else:
        # Unlabelled options: conventionally "true" first, "false" second.
        index = 0 if polarity else 1
        if index >= len(options):
            return ResolverResult(finish=False, ratings=ratings)

    await _apply(handler, JUDGEMENT, answer, options[index], ctx)
    return ResolverResult(finish=True, ratings=ratings)


async def resolve_completion(
    results: Sequence[SearchResult],
    options: Sequence[Tag],
    handler: AnswerHandler,
    *,
    ctx: WorkContext,
) -> ResolverResult:
    """Fill each blank, in order, with the corresponding answer part."""
    answers = valid_answers(results)
    if not answers or not options:
        return ResolverResult(finish=False)

    parts = split_answer(answers[0]) or [answers[0]]
    if len(parts) == 1 and len(options) > 1 and len(answers) > 1:
        parts = answers

    filled = 0
    for option, part in zip(options, parts, strict=False):
        await _apply(handler, COMPLETION, part, option, ctx)
        filled += 1
    ratings = tuple(1.0 if i < filled else 0.0 for i in range(len(options)))
    return ResolverResult(finish=filled > 0, ratings=ratings)


_DEFAULT_STRATEGIES = {
    SINGLE: resolve_single,
    MULTIPLE: resolve_multiple,
    JUDGEMENT: resolve_judgement,
    COMPLETION: resolve_completion,
}


def default_question_resolve(
    ctx: WorkContext,
    overrides: Mapping[str, Strategy] | None = None,
) -> dict[str, Strategy]:
    """Return the strategy table bound to the current unit's context.

    Args:
        ctx: The context of the unit being dispatched.
        overrides: Caller strategies, merged over (and replacing) the defaults.
            They receive ``(results, options, handler)`` without the context.
    """
    table: dict[str, Strategy] = {
        name: partial(strategy, ctx=ctx) for name, strategy in _DEFAULT_STRATEGIES.items()
    }
    if overrides:
        table.update(overrides)
    return table
