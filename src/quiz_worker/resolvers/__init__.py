"""Question type detection and the default strategy table."""

from quiz_worker.resolvers.strategies import (
    MATCH_THRESHOLD,
    default_question_resolve,
    resolve_completion,
    resolve_judgement,
    resolve_multiple,
    resolve_single,
    similarity,
    split_answer,
)
from quiz_worker.resolvers.type_resolver import (
    COMPLETION,
    JUDGEMENT,
    MULTIPLE,
    SINGLE,
    default_work_type_resolver,
)

__all__ = [  # noqa: RUF022
    "SINGLE",
    "MULTIPLE",
    "JUDGEMENT",
    "COMPLETION",
    "MATCH_THRESHOLD",
    "default_work_type_resolver",
    "default_question_resolve",
    "resolve_single",
    "resolve_multiple",
    "resolve_judgement",
    "resolve_completion",
    "similarity",
    "split_answer",
]
