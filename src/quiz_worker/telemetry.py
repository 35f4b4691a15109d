"""Telemetry context and reporter interfaces.

The worker times each unit and counts retries, timeouts, errors and results
through a telemetry context. When disabled (the default) the context is a
shared no-op; set QUIZ_WORKER_TELEMETRY=1 (or DEBUG=1) to enable reporting.

Usage::

    reporter = MemoryReporter()
    worker = QuizWorker(options, telemetry=TelemetryContext(reporter))
    await worker.do_work()
    print(reporter.get_report())
"""

from collections import deque
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
import logging
import os
import time
from types import TracebackType
from typing import Any, Protocol, Self, runtime_checkable

log = logging.getLogger(__name__)

# Nested scope names for the current task
_scope_stack_var: ContextVar[tuple[str, ...]] = ContextVar(
    "quiz_worker_scope_stack",
    default=(),
)


def telemetry_enabled() -> bool:
    """Return whether the environment asks for telemetry."""
    return os.getenv("QUIZ_WORKER_TELEMETRY") == "1" or os.getenv("DEBUG") == "1"


@runtime_checkable
class TelemetryReporter(Protocol):
    """Duck-typed protocol for telemetry reporters."""

    def record_timing(self, scope: str, duration: float, **metadata: Any) -> None: ...  # noqa: D102
    def record_metric(self, scope: str, value: Any, **metadata: Any) -> None: ...  # noqa: D102


@dataclass(frozen=True, slots=True)
class _NoOpTelemetryContext:
    """Stateless context used when telemetry is disabled."""

    enabled = False

    def __call__(self, name: str, **metadata: Any) -> Self:  # noqa: ARG002
        return self

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> bool | None:
        return None

    def metric(self, name: str, value: Any, **metadata: Any) -> None:
        pass

    def count(self, name: str, increment: int = 1, **metadata: Any) -> None:
        pass


class _EnabledTelemetryContext:
    """Context that forwards timings and metrics to its reporters."""

    __slots__ = ("reporters",)

    enabled = True

    def __init__(self, *reporters: TelemetryReporter):
        self.reporters = reporters

    def __call__(
        self, name: str, **metadata: Any
    ) -> AbstractContextManager["_EnabledTelemetryContext"]:
        return self._scope(name, **metadata)

    @contextmanager
    def _scope(self, name: str, **metadata: Any) -> Iterator["_EnabledTelemetryContext"]:
        if not name or not isinstance(name, str):
            raise ValueError("Scope name must be a non-empty string")

        stack = _scope_stack_var.get()
        scope_path = ".".join((*stack, name))
        token = _scope_stack_var.set((*stack, name))
        start = time.perf_counter()
        try:
            yield self
        finally:
            duration = time.perf_counter() - start
            _scope_stack_var.reset(token)
            self._report(
                "record_timing",
                scope_path,
                duration,
                depth=len(stack),
                parent_scope=".".join(stack) if stack else None,
                **metadata,
            )

    def metric(self, name: str, value: Any, **metadata: Any) -> None:
        """Record a metric within the current scope."""
        stack = _scope_stack_var.get()
        self._report(
            "record_metric",
            ".".join((*stack, name)),
            value,
            depth=len(stack),
            parent_scope=".".join(stack) if stack else None,
            **metadata,
        )

    def count(self, name: str, increment: int = 1, **metadata: Any) -> None:
        """Record a counter metric."""
        self.metric(name, increment, metric_type="counter", **metadata)

    def _report(self, method: str, scope: str, value: Any, **metadata: Any) -> None:
        for reporter in self.reporters:
            try:
                getattr(reporter, method)(scope, value, **metadata)
            except Exception as e:
                log.error(
                    "Telemetry reporter '%s' failed: %s",
                    type(reporter).__name__,
                    e,
                    exc_info=True,
                )


_NO_OP_SINGLETON = _NoOpTelemetryContext()

type TelemetryContextProtocol = _EnabledTelemetryContext | _NoOpTelemetryContext


def TelemetryContext(  # noqa: N802
    *reporters: TelemetryReporter, enabled: bool | None = None
) -> TelemetryContextProtocol:
    """Return a telemetry context.

    Args:
        *reporters: Receivers of timings and metrics.
        enabled: Force telemetry on or off; None reads the environment.

    Returns:
        A reporting context, or the shared no-op instance when telemetry is
        disabled or no reporter was given.
    """
    if enabled is None:
        enabled = telemetry_enabled()
    if enabled and reporters:
        return _EnabledTelemetryContext(*reporters)
    return _NO_OP_SINGLETON


class MemoryReporter:
    """In-memory reporter for development and tests.

    Keeps the most recent ``max_entries_per_scope`` entries per scope.
    """

    def __init__(self, max_entries_per_scope: int = 1000):
        self.max_entries = max_entries_per_scope
        self.timings: dict[str, deque[tuple[float, dict[str, Any]]]] = {}
        self.metrics: dict[str, deque[tuple[Any, dict[str, Any]]]] = {}

    def record_timing(self, scope: str, duration: float, **metadata: Any) -> None:
        self.timings.setdefault(scope, deque(maxlen=self.max_entries)).append(
            (duration, metadata)
        )

    def record_metric(self, scope: str, value: Any, **metadata: Any) -> None:
        self.metrics.setdefault(scope, deque(maxlen=self.max_entries)).append(
            (value, metadata)
        )

    def total(self, scope: str) -> float:
        """Sum the numeric values recorded for a metric scope."""
        return sum(
            v for v, _ in self.metrics.get(scope, ()) if isinstance(v, int | float)
        )

    def get_report(self) -> str:
        """Return a plain-text summary of timings and metrics."""
        lines = ["=== Telemetry Report ==="]
        if self.timings:
            lines.append("--- Timings ---")
            for scope, values in sorted(self.timings.items()):
                durations = [d for d, _ in values]
                lines.append(
                    f"{scope:<30} | Calls: {len(durations):<4} | "
                    f"Avg: {sum(durations) / len(durations):.4f}s | "
                    f"Total: {sum(durations):.4f}s"
                )
        if self.metrics:
            lines.append("--- Metrics ---")
            for scope in sorted(self.metrics):
                lines.append(
                    f"{scope:<30} | Count: {len(self.metrics[scope]):<4} | "
                    f"Total: {self.total(scope):,.0f}"
                )
        return "\n".join(lines)
