"""Configuration management for the quiz worker.

Configuration is resolved once from programmatic overrides, environment
variables, project and home TOML files and defaults, then frozen and attached
to a worker:

- ResolvedConfig: Post-resolution configuration with audit metadata
- FrozenConfig: Immutable configuration a worker reads its defaults from
- SourceMap: Audit tracking of configuration value origins
"""

from .api import config_override, config_scope, resolve_config
from .file_loader import ConfigFileError
from .schema import WorkerSettings
from .types import ConfigOrigin, FrozenConfig, ResolvedConfig, SourceMap

__all__ = [
    "ConfigFileError",
    "ConfigOrigin",
    "FrozenConfig",
    "ResolvedConfig",
    "SourceMap",
    "WorkerSettings",
    "config_override",
    "config_scope",
    "resolve_config",
]
