"""Completion rate and upload decision after a run.

The upload policy decides whether the caller may submit the answered quiz:

- ``nomove``: never call back (leave the quiz untouched)
- ``force``: call back with ``uploadable=True`` whatever the rate
- ``save``: call back with ``uploadable=False`` (save without submitting)
- a number such as ``"80"``: call back with ``uploadable = rate >= 80``
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
import dataclasses
import enum
import inspect
import logging
import re
import typing

if typing.TYPE_CHECKING:
    from quiz_worker.core.types import WorkResult

log = logging.getLogger(__name__)


class UploadMode(enum.StrEnum):
    """Named upload policies."""

    NOMOVE = "nomove"
    FORCE = "force"
    SAVE = "save"


type UploadPolicy = UploadMode | str | int | float
type UploadCallback = Callable[[float, bool], Awaitable[object] | object]

_NUMERIC_PREFIX = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


@dataclasses.dataclass(frozen=True, slots=True)
class UploadDecision:
    """Completion rate (0-100) and whether submission is permitted."""

    rate: float
    uploadable: bool


def parse_upload_policy(policy: UploadPolicy) -> UploadMode | float | None:
    """Return the named mode or numeric threshold of ``policy``.

    A string threshold uses its leading numeric part (``"80%"`` is 80). Returns
    None when the policy is neither a known name nor starts with a number.
    """
    if isinstance(policy, UploadMode):
        return policy
    if isinstance(policy, bool):
        return None
    if isinstance(policy, int | float):
        return float(policy)
    text = str(policy).strip()
    try:
        return UploadMode(text.lower())
    except ValueError:
        pass
    match = _NUMERIC_PREFIX.match(text)
    return float(match.group(0)) if match else None


def finish_rate(results: Sequence[WorkResult]) -> float:
    """Return the percentage of results whose resolver reported ``finish``."""
    if not results:
        return 0
    finished = sum(1 for r in results if r.result.finish)
    return finished / len(results) * 100


def evaluate_policy(rate: float, policy: UploadPolicy) -> bool | None:
    """Return whether ``rate`` permits upload, or None when no callback is due."""
    parsed = parse_upload_policy(policy)
    match parsed:
        case UploadMode.NOMOVE:
            return None
        case UploadMode.FORCE:
            return True
        case UploadMode.SAVE:
            return False
        case float() as threshold:
            return rate >= threshold
        case _:
            log.warning("Upload policy %r has no threshold; upload not permitted", policy)
            return False


def decide_upload(
    results: Sequence[WorkResult], policy: UploadPolicy
) -> UploadDecision | None:
    """Compute the completion rate and apply ``policy`` to it."""
    rate = finish_rate(results)
    uploadable = evaluate_policy(rate, policy)
    if uploadable is None:
        return None
    return UploadDecision(rate=rate, uploadable=uploadable)


async def upload_handler(
    results: Sequence[WorkResult],
    policy: UploadPolicy,
    callback: UploadCallback,
) -> UploadDecision | None:
    """Invoke ``callback(rate, uploadable)`` according to ``policy``.

    The callback may be synchronous or a coroutine function; it is awaited
    before returning.

    Returns:
        The decision passed to the callback, or None when the policy skipped it.
    """
    decision = decide_upload(results, policy)
    if decision is None:
        log.info("Upload policy 'nomove': leaving %d result(s) unsubmitted", len(results))
        return None
    log.info(
        "Completion rate %.1f%%, uploadable=%s (policy %r)",
        decision.rate,
        decision.uploadable,
        policy,
    )
    outcome = callback(decision.rate, decision.uploadable)
    if inspect.isawaitable(outcome):
        await outcome
    return decision
