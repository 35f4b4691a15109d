"""Entry points for worker configuration.

``resolve_config()`` is what ``QuizWorker`` calls when it is built without an
explicit configuration. ``config_scope()`` and ``config_override()`` change
what that call returns for the code running inside them, which is how a test
or an application configures workers it does not construct itself.
"""

from collections.abc import Iterator
from contextlib import contextmanager
import contextvars
from pathlib import Path
from typing import Any

from .resolver import ConfigResolver
from .types import ResolvedConfig

_resolver = ConfigResolver()

# Set by config_scope(); follows the current task's context
_scoped: contextvars.ContextVar[ResolvedConfig | None] = contextvars.ContextVar(
    "quiz_worker_scoped_config", default=None
)


def resolve_config(
    programmatic: dict[str, Any] | None = None,
    *,
    profile: str | None = None,
    use_env_file: str | Path | None = None,
    project_root: Path | None = None,
) -> ResolvedConfig:
    """Return the configuration a new worker should freeze.

    Inside ``config_scope()`` the scoped configuration is returned, with
    ``programmatic`` applied on top; the file and environment arguments are
    then ignored. Outside a scope every source is read afresh.

    Example:
        config = resolve_config({"retry": 0}, profile="exam")
        worker = QuizWorker(options, config=config)
    """
    scoped = _scoped.get()
    if scoped is not None:
        return scoped.with_overrides(**programmatic) if programmatic else scoped
    return _resolver.resolve(
        programmatic,
        profile=profile,
        use_env_file=use_env_file,
        project_root=project_root,
    )


@contextmanager
def config_scope(config: ResolvedConfig) -> Iterator[ResolvedConfig]:
    """Make ``config`` what ``resolve_config()`` returns within the block.

    Workers built inside the block keep the configuration after it exits;
    tasks created outside it never see it.
    """
    token = _scoped.set(config)
    try:
        yield config
    finally:
        _scoped.reset(token)


@contextmanager
def config_override(**fields: Any) -> Iterator[ResolvedConfig]:
    """Scope the current configuration with some fields replaced.

    Example:
        with config_override(period=0, stop_when_error=True):
            results = await QuizWorker(options).do_work()
    """
    with config_scope(resolve_config().with_overrides(**fields)) as config:
        yield config
