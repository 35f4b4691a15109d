"""Pausable, closable quiz answering worker."""

import importlib.metadata
import logging

from quiz_worker.config import FrozenConfig, ResolvedConfig, resolve_config
from quiz_worker.core.events import (
    Closed,
    Continuated,
    Done,
    ElementsSearched,
    ErrorRaised,
    Started,
    Stopped,
    WorkerEvent,
)
from quiz_worker.core.exceptions import (
    AnswerNotFoundError,
    ConfigurationError,
    EmptyAnswerError,
    MissingOptionsError,
    QuizWorkerError,
    UnresolvedTypeError,
)
from quiz_worker.core.types import (
    AnswerCandidate,
    ExtractedElements,
    ResolverResult,
    SearchResult,
    WorkContext,
    WorkResult,
)
from quiz_worker.options import (
    ComputedType,
    CustomHandler,
    FixedType,
    StrategyWork,
    WorkOptions,
    plan_work,
)
from quiz_worker.telemetry import MemoryReporter, TelemetryContext, TelemetryReporter
from quiz_worker.upload import UploadDecision, UploadMode
from quiz_worker.worker import QuizWorker

# Version handling
try:
    __version__ = importlib.metadata.version("quiz-worker")
except importlib.metadata.PackageNotFoundError:
    __version__ = "development"

# Set up a null handler for the library's root logger.
# This prevents 'No handler found' errors if the consuming app has no logging configured.
logging.getLogger(__name__).addHandler(logging.NullHandler())

# Public API
__all__ = [  # noqa: RUF022
    # Engine
    "QuizWorker",
    "WorkOptions",
    "StrategyWork",
    "FixedType",
    "ComputedType",
    "CustomHandler",
    "plan_work",
    # Data
    "AnswerCandidate",
    "SearchResult",
    "ExtractedElements",
    "ResolverResult",
    "WorkContext",
    "WorkResult",
    "UploadDecision",
    "UploadMode",
    # Events
    "WorkerEvent",
    "Started",
    "Done",
    "Closed",
    "Stopped",
    "Continuated",
    "ElementsSearched",
    "ErrorRaised",
    # Errors
    "QuizWorkerError",
    "AnswerNotFoundError",
    "EmptyAnswerError",
    "ConfigurationError",
    "MissingOptionsError",
    "UnresolvedTypeError",
    # Configuration
    "resolve_config",
    "ResolvedConfig",
    "FrozenConfig",
    # Telemetry (extension points)
    "TelemetryContext",
    "TelemetryReporter",
    "MemoryReporter",
]
