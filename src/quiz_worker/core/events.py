"""Typed lifecycle events and a minimal publish/subscribe registry.

Each event kind has exactly one payload type. Listeners subscribe by
``WorkerEvent`` and receive the payload instance; emission is synchronous, so
a listener runs to completion before the worker continues. A failing
listener is logged and never prevents the remaining listeners from running.

Usage::

    worker.on(WorkerEvent.ERROR, lambda event: print(event.error))
    worker.emit(Stopped())
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable
import dataclasses
import enum
import logging
import typing

if typing.TYPE_CHECKING:
    from quiz_worker.core.types import ExtractedElements, WorkContext

log = logging.getLogger(__name__)


class WorkerEvent(enum.StrEnum):
    """Lifecycle event kinds emitted by (or delivered to) a worker."""

    START = "start"
    DONE = "done"
    CLOSE = "close"
    STOP = "stop"
    CONTINUATE = "continuate"
    ELEMENT_SEARCHED = "element-searched"
    ERROR = "error"


@dataclasses.dataclass(frozen=True, slots=True)
class Started:
    """A run began."""

    kind: typing.ClassVar[WorkerEvent] = WorkerEvent.START


@dataclasses.dataclass(frozen=True, slots=True)
class Done:
    """A run ended, normally or early."""

    kind: typing.ClassVar[WorkerEvent] = WorkerEvent.DONE


@dataclasses.dataclass(frozen=True, slots=True)
class Closed:
    """Close was requested, or the run observed it and ended early."""

    kind: typing.ClassVar[WorkerEvent] = WorkerEvent.CLOSE


@dataclasses.dataclass(frozen=True, slots=True)
class Stopped:
    """Pause was requested."""

    kind: typing.ClassVar[WorkerEvent] = WorkerEvent.STOP


@dataclasses.dataclass(frozen=True, slots=True)
class Continuated:
    """Resume was requested."""

    kind: typing.ClassVar[WorkerEvent] = WorkerEvent.CONTINUATE


@dataclasses.dataclass(frozen=True, slots=True)
class ElementsSearched:
    """Elements were extracted from the current unit. Observers must not mutate them."""

    elements: ExtractedElements
    kind: typing.ClassVar[WorkerEvent] = WorkerEvent.ELEMENT_SEARCHED


@dataclasses.dataclass(frozen=True, slots=True)
class ErrorRaised:
    """Processing of the current unit failed."""

    error: Exception
    context: WorkContext | None = None
    kind: typing.ClassVar[WorkerEvent] = WorkerEvent.ERROR


type WorkerSignal = (
    Started | Done | Closed | Stopped | Continuated | ElementsSearched | ErrorRaised
)

type Listener = Callable[[typing.Any], object]


class EventBus:
    """In-process synchronous event registry keyed by ``WorkerEvent``.

    A listener holds at most one persistent and one once-only registration
    per kind; the two are independent.
    """

    def __init__(self) -> None:
        """Initialize empty registration lists."""
        # (listener, once) in registration order
        self._entries: defaultdict[WorkerEvent, list[tuple[Listener, bool]]] = (
            defaultdict(list)
        )

    def on(self, kind: WorkerEvent, listener: Listener) -> None:
        """Register ``listener`` for ``kind`` (registering twice is a no-op)."""
        self._add(kind, (listener, False))

    def once(self, kind: WorkerEvent, listener: Listener) -> None:
        """Register ``listener`` for the next emission of ``kind`` only."""
        self._add(kind, (listener, True))

    def _add(self, kind: WorkerEvent, entry: tuple[Listener, bool]) -> None:
        if entry not in self._entries[kind]:
            self._entries[kind].append(entry)

    def off(self, kind: WorkerEvent, listener: Listener) -> None:
        """Remove every registration of ``listener`` for ``kind``.

        Unknown listeners are ignored.
        """
        entries = self._entries.get(kind)
        if entries:
            entries[:] = [entry for entry in entries if entry[0] != listener]

    def listener_count(self, kind: WorkerEvent) -> int:
        """Return how many registrations ``kind`` has."""
        return len(self._entries.get(kind, ()))

    def emit(self, event: WorkerSignal) -> bool:
        """Deliver ``event`` to every listener of its kind.

        Once-only registrations are dropped before their listener runs.

        Returns:
            True if at least one listener was registered for the event kind.
        """
        kind = event.kind
        entries = list(self._entries.get(kind, ()))
        for entry in entries:
            listener, once = entry
            if once:
                self._discard(kind, entry)
            try:
                listener(event)
            except Exception as e:
                log.error(
                    "Listener %r failed on event '%s': %s",
                    listener,
                    kind,
                    e,
                    exc_info=True,
                )
        return bool(entries)

    def _discard(self, kind: WorkerEvent, entry: tuple[Listener, bool]) -> None:
        entries = self._entries[kind]
        # An earlier listener may have called off()
        if entry in entries:
            entries.remove(entry)

    def clear(self, kind: WorkerEvent | None = None) -> None:
        """Drop listeners for ``kind``, or all listeners when ``kind`` is None."""
        if kind is None:
            self._entries.clear()
            return
        self._entries.pop(kind, None)
