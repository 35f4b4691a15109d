"""Exception hierarchy for the quiz worker.

Every per-unit failure the worker catches is either one of these types or an
arbitrary exception raised by a caller-supplied strategy or handler.
"""

from __future__ import annotations


class QuizWorkerError(Exception):
    """Base exception for quiz worker errors."""


class AnswerNotFoundError(QuizWorkerError):
    """Raised when answer acquisition exhausted its retries without a result."""

    def __init__(self, attempts: int) -> None:
        """Record how many answerer attempts were made."""
        self.attempts = attempts
        super().__init__(
            f"No answer returned after {attempts} attempt(s); rerun or skip this question."
        )


class EmptyAnswerError(QuizWorkerError):
    """Raised when acquisition succeeded but no candidate carried a value."""

    def __init__(self) -> None:  # noqa: D107
        super().__init__("No valid answer found; rerun or skip this question.")


class ConfigurationError(QuizWorkerError):
    """Raised when the work configuration cannot process a unit."""


class MissingOptionsError(ConfigurationError):
    """Raised when the strategy path is used but no option elements were extracted."""

    def __init__(self) -> None:  # noqa: D107
        super().__init__(
            "elements.options is empty; the default strategies require an 'options' selector."
        )


class UnresolvedTypeError(ConfigurationError):
    """Raised when no usable type or no strategy for the type is available."""

    def __init__(self, work_type: str | None) -> None:
        """Keep the offending type for diagnostics."""
        self.work_type = work_type
        if work_type:
            message = f"No strategy registered for question type {work_type!r}."
        else:
            message = (
                "Question type could not be resolved; provide a type resolver "
                "or skip this question."
            )
        super().__init__(message)
