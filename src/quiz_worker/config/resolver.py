"""Layered configuration resolution.

Each source contributes a layer of field values. Layers are applied from the
lowest to the highest precedence, so a later layer wins field by field:

    defaults < home file < project file < environment < programmatic

The field's winning layer is recorded in ``ResolvedConfig.origin``.
"""

import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .env_loader import EnvironmentConfigLoader
from .file_loader import ConfigFileError, FileConfigLoader
from .schema import WorkerSettings
from .types import FIELD_ORDER, ConfigOrigin, ResolvedConfig

log = logging.getLogger(__name__)

type Layer = tuple[ConfigOrigin, dict[str, Any]]


class ConfigResolver:
    """Builds a validated ``ResolvedConfig`` from every configuration source."""

    def __init__(self) -> None:
        """Create the file and environment loaders."""
        self.file_loader = FileConfigLoader()
        self.env_loader = EnvironmentConfigLoader()

    def resolve(
        self,
        programmatic: dict[str, Any] | None = None,
        *,
        profile: str | None = None,
        use_env_file: str | Path | None = None,
        project_root: Path | None = None,
    ) -> ResolvedConfig:
        """Merge all layers and validate the result.

        Args:
            programmatic: Explicit field values; unknown fields are ignored.
            profile: Profile to read from both files; defaults to
                ``$QUIZ_WORKER_PROFILE``.
            use_env_file: Optional .env file loaded before reading the environment.
            project_root: Where the upward pyproject.toml search starts.

        Raises:
            ValueError: If the environment or the merged values are invalid.
            ConfigFileError: If the project file's base section is malformed.
        """
        if profile is None:
            profile = os.getenv("QUIZ_WORKER_PROFILE")

        layers: list[Layer] = [
            ("default", WorkerSettings.model_construct().to_dict()),
            ("file", self._home_layer(profile)),
            ("file", self._project_layer(profile, project_root)),
            ("env", self._env_layer(use_env_file)),
            ("programmatic", dict(programmatic or {})),
        ]

        values: dict[str, Any] = {}
        origin: dict[str, ConfigOrigin] = {}
        for source, layer in layers:
            for field in FIELD_ORDER:
                if field in layer:
                    values[field] = layer[field]
                    origin[field] = source

        try:
            validated = WorkerSettings(**values).to_dict()
        except ValidationError as e:
            raise ValueError(f"Configuration validation failed: {e}") from e

        log.debug("Resolved worker configuration (profile=%s): %s", profile, origin)
        return ResolvedConfig(**validated, origin=origin)

    def _home_layer(self, profile: str | None) -> dict[str, Any]:
        # The home file is personal; a broken one must not stop a run
        try:
            return self.file_loader.load_home_config(profile=profile)
        except ConfigFileError as e:
            log.warning("Skipping home configuration: %s", e)
            return {}

    def _project_layer(self, profile: str | None, project_root: Path | None) -> dict[str, Any]:
        try:
            return self.file_loader.load_project_config(
                project_root=project_root, profile=profile
            )
        except ConfigFileError as e:
            # A profile may live in the home file only; parse errors still surface
            if profile is None or e.cause is not None:
                raise
            return {}

    def _env_layer(self, env_file: str | Path | None) -> dict[str, Any]:
        try:
            return self.env_loader.load_env_config(env_file=env_file)
        except (ValueError, FileNotFoundError) as e:
            raise ValueError(f"Environment configuration error: {e}") from e
