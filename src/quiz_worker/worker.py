"""Execution engine: the pausable, closable loop over work units.

A run processes its units strictly in order. For each unit the worker
extracts the named element groups, resolves the question type, waits while
paused, acquires candidate answers (retrying result-less attempts, each one
raced against a timeout), dispatches them to a strategy or to the caller's
custom handler and records a ``WorkResult``. Failures are contained per unit
unless ``stop_when_error`` is set.

Signals (``stop``, ``continuate``, ``close``) are ordinary events: they may
be emitted from listeners, from other tasks on the loop, or from another
thread through ``loop.call_soon_threadsafe(worker.close)``.

Example::

    worker = QuizWorker(
        WorkOptions(
            root=".question",
            document=html,
            elements={"title": ".title", "options": ".option"},
            work=StrategyWork(handler=click),
            answerer=lookup,
        )
    )
    results = await worker.do_work()
    await worker.upload_handler(results, "80", submit)
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
import inspect
import logging
import time
import typing

from quiz_worker.config import FrozenConfig, ResolvedConfig, resolve_config
from quiz_worker.core.events import (
    Closed,
    Continuated,
    Done,
    ElementsSearched,
    ErrorRaised,
    EventBus,
    Started,
    Stopped,
    WorkerEvent,
)
from quiz_worker.core.exceptions import (
    AnswerNotFoundError,
    EmptyAnswerError,
    MissingOptionsError,
    QuizWorkerError,
    UnresolvedTypeError,
)
from quiz_worker.core.types import ResolverResult, WorkContext, WorkResult
from quiz_worker.dom import dom_search_all, dom_search_roots
from quiz_worker.options import ComputedType, CustomHandler, FixedType
from quiz_worker.resolvers.strategies import default_question_resolve
from quiz_worker.telemetry import TelemetryContext
from quiz_worker.upload import upload_handler

if typing.TYPE_CHECKING:
    from bs4 import Tag

    from quiz_worker.core.events import Listener, WorkerSignal
    from quiz_worker.core.types import ExtractedElements, SearchResult
    from quiz_worker.options import WorkOptions
    from quiz_worker.telemetry import TelemetryContextProtocol
    from quiz_worker.upload import UploadCallback, UploadDecision, UploadPolicy

log = logging.getLogger(__name__)


class QuizWorker:
    """Runs one ``WorkOptions`` job and exposes its lifecycle.

    Attributes:
        is_running: True between the ``start`` and ``done`` emissions.
        is_stop: True while paused.
        is_close: True once close was requested; never reset.
    """

    def __init__(
        self,
        options: WorkOptions,
        *,
        config: FrozenConfig | ResolvedConfig | None = None,
        telemetry: TelemetryContextProtocol | None = None,
    ) -> None:
        """Bind the options and freeze the effective configuration.

        Args:
            options: The caller's run options.
            config: Defaults for unset options; resolved from the environment
                and configuration files when omitted.
            telemetry: Telemetry context; a no-op one when omitted.
        """
        if config is None:
            config = resolve_config()
            log.debug("Worker configuration:\n%s", config.audit())
        if isinstance(config, ResolvedConfig):
            config = config.to_frozen()
        self.options = options
        self.config = config
        self.plan = options.plan

        self.timeout = config.timeout if options.timeout is None else options.timeout
        self.retry = config.retry if options.retry is None else options.retry
        self.period = config.period if options.period is None else options.period
        self.stop_when_error = (
            config.stop_when_error
            if options.stop_when_error is None
            else options.stop_when_error
        )

        self.is_running = False
        self.is_stop = False
        self.is_close = False
        self._ctx: WorkContext | None = None
        self._resumed = asyncio.Event()
        self._resumed.set()
        self._abandoned: set[asyncio.Future[typing.Any]] = set()
        self._tele = telemetry if telemetry is not None else TelemetryContext()

        self._bus = EventBus()
        self._bus.on(WorkerEvent.START, self._on_start)
        self._bus.on(WorkerEvent.DONE, self._on_done)
        self._bus.on(WorkerEvent.CLOSE, self._on_close)
        self._bus.on(WorkerEvent.STOP, self._on_stop)
        self._bus.on(WorkerEvent.CONTINUATE, self._on_continuate)

    # --- Events ---

    def on(self, kind: WorkerEvent, listener: Listener) -> None:
        """Subscribe ``listener`` to ``kind``."""
        self._bus.on(kind, listener)

    def once(self, kind: WorkerEvent, listener: Listener) -> None:
        """Subscribe ``listener`` to the next ``kind`` event only."""
        self._bus.once(kind, listener)

    def off(self, kind: WorkerEvent, listener: Listener) -> None:
        """Unsubscribe ``listener`` from ``kind``."""
        self._bus.off(kind, listener)

    def emit(self, event: WorkerSignal) -> bool:
        """Deliver ``event`` to its listeners, the worker's own included."""
        return self._bus.emit(event)

    def stop(self) -> None:
        """Pause before the next answer acquisition."""
        self.emit(Stopped())

    def continuate(self) -> None:
        """Resume a paused run."""
        self.emit(Continuated())

    def close(self) -> None:
        """End the run once the current unit has been recorded."""
        self.emit(Closed())

    def _on_start(self, _event: Started) -> None:
        self.is_running = True

    def _on_done(self, _event: Done) -> None:
        self.is_running = False

    def _on_close(self, _event: Closed) -> None:
        self.is_close = True
        # A paused unit must not block the close forever
        self._resumed.set()

    def _on_stop(self, _event: Stopped) -> None:
        self.is_stop = True
        self._resumed.clear()

    def _on_continuate(self, _event: Continuated) -> None:
        self.is_stop = False
        self._resumed.set()

    @property
    def current_context(self) -> WorkContext | None:
        """Return the context of the unit being processed, if any."""
        return self._ctx

    # --- Run ---

    async def do_work(self) -> list[WorkResult]:
        """Process every unit in order and return the recorded results.

        Returns early, with the results recorded so far, when close was
        requested or when a unit failed with ``stop_when_error`` set.
        """
        roots = self._resolve_roots()
        results: list[WorkResult] = []

        self.emit(Started())
        log.info("Starting run over %d work unit(s)", len(roots))

        closed = False
        try:
            with self._tele("worker", units=len(roots)):
                for index, root in enumerate(roots):
                    if self.is_close:
                        log.info(
                            "Run closed after %d of %d unit(s)", len(results), len(roots)
                        )
                        closed = True
                        break

                    record = await self._run_unit(index, root)
                    if record is None:
                        log.warning("Run stopped at unit %d after an error", index)
                        break

                    results.append(record)
                    self._tele.count("result", finish=record.finished)

                    if self.options.on_result is not None:
                        outcome = self.options.on_result(record)
                        if inspect.isawaitable(outcome):
                            await outcome

                    await asyncio.sleep(self.period)
                else:
                    log.info("Run finished: %d unit(s) processed", len(results))
        finally:
            # Also reached when on_result raises or the run is cancelled
            self._finish(closed=closed)
        return results

    def _finish(self, *, closed: bool = False) -> None:
        self.is_running = False
        if closed:
            self.emit(Closed())
        self.emit(Done())

    def _resolve_roots(self) -> list[Tag]:
        root = self.options.root
        if isinstance(root, str):
            return dom_search_roots(root, self.options.document)
        return list(root)

    async def _run_unit(self, index: int, root: Tag) -> WorkResult | None:
        """Process one unit; None means the run must end without recording it."""
        started = time.time()
        clock = time.perf_counter()
        result = ResolverResult(finish=False)
        error: Exception | None = None
        work_type: str | None = None
        self._ctx = None

        with self._tele("unit", index=index):
            try:
                elements = dom_search_all(self.options.elements, root)
                self.emit(ElementsSearched(elements))
                self._ctx = WorkContext((), root, elements)

                work_type = self._resolve_type(self._ctx)
                await self._wait_while_paused()

                search_results = await self._acquire_answers(
                    elements, work_type, self._ctx
                )
                if search_results is None:
                    raise AnswerNotFoundError(self.retry + 1)

                normalized = tuple(r.normalized() for r in search_results)
                self._ctx = WorkContext(normalized, root, elements)
                if not any(c.answer for r in normalized for c in r.answers):
                    raise EmptyAnswerError()

                result = await self._dispatch(work_type, self._ctx)
            except Exception as e:
                error = e
                self._tele.count("error", error=type(e).__name__)
                if isinstance(e, QuizWorkerError):
                    log.warning("Unit %d failed: %s", index, e)
                else:
                    log.error("Unit %d handler failed: %s", index, e, exc_info=True)
                self.emit(ErrorRaised(e, self._ctx))
                if self.stop_when_error:
                    return None

        return WorkResult(
            time=started,
            ctx=self._ctx,
            result=result,
            consume=time.perf_counter() - clock,
            error=error,
            type=work_type,
        )

    def _resolve_type(self, ctx: WorkContext) -> str | None:
        match self.plan:
            case FixedType(type=work_type):
                return work_type
            case ComputedType(resolver=resolver):
                return resolver(ctx)
            case CustomHandler():
                return None

    async def _wait_while_paused(self) -> None:
        if not self.is_stop:
            return
        log.warning("Worker paused; waiting for continuate")
        while self.is_stop and not self.is_close:
            await self._resumed.wait()
        log.info("Worker resumed")

    async def _dispatch(self, work_type: str | None, ctx: WorkContext) -> ResolverResult:
        match self.plan:
            case CustomHandler(handler=handler):
                outcome = handler(ctx)
                if inspect.isawaitable(outcome):
                    outcome = await outcome
                return outcome
            case FixedType(handler=handler) | ComputedType(handler=handler):
                options = ctx.elements.options
                if options is None:
                    raise MissingOptionsError()
                table = default_question_resolve(ctx, self.options.strategies)
                if not work_type or work_type not in table:
                    raise UnresolvedTypeError(work_type)
                return await table[work_type](ctx.search_results, options, handler)

    # --- Answer acquisition ---

    async def _acquire_answers(
        self,
        elements: ExtractedElements,
        work_type: str | None,
        ctx: WorkContext,
    ) -> Sequence[SearchResult] | None:
        """Call the answerer until it yields a result or attempts run out.

        Each attempt is raced against ``timeout``; a slow attempt counts as
        no result and keeps running in the background. An exception raised by
        the answerer in time propagates.
        """
        attempts = self.retry + 1
        for attempt in range(1, attempts + 1):
            task = asyncio.ensure_future(self.options.answerer(elements, work_type, ctx))
            done, _ = await asyncio.wait({task}, timeout=self.timeout)
            if task in done:
                search_results = task.result()
            else:
                self._abandon(task)
                self._tele.count("timeout")
                log.debug("Answerer attempt %d timed out after %ss", attempt, self.timeout)
                search_results = None

            if search_results is not None:
                return search_results
            if attempt < attempts:
                self._tele.count("retry")
                log.debug("Answerer attempt %d had no result; retrying", attempt)
        return None

    def _abandon(self, task: asyncio.Future[typing.Any]) -> None:
        self._abandoned.add(task)
        task.add_done_callback(self._drain_abandoned)

    def _drain_abandoned(self, task: asyncio.Future[typing.Any]) -> None:
        self._abandoned.discard(task)
        if task.cancelled():
            log.debug("Abandoned answerer attempt was cancelled")
            return
        exc = task.exception()
        if exc is not None:
            log.debug("Abandoned answerer attempt failed: %r", exc)
        else:
            log.debug("Abandoned answerer attempt finished late")

    # --- Upload ---

    async def upload_handler(
        self,
        results: Sequence[WorkResult],
        type: UploadPolicy | None,  # noqa: A002
        callback: UploadCallback,
    ) -> UploadDecision | None:
        """Apply an upload policy (the configured one when ``type`` is None)."""
        policy = self.config.upload if type is None else type
        return await upload_handler(results, policy, callback)
