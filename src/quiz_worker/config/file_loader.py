"""File-based configuration loading with profile support.

This module handles loading configuration from TOML files, supporting both
project-level (``[tool.quiz_worker]`` in pyproject.toml) and home-level
(``~/.config/quiz_worker.toml``) configuration with named profiles.
"""

import os
from pathlib import Path
import tomllib
from typing import Any


class ConfigFileError(Exception):
    """Raised when configuration file loading fails."""

    def __init__(
        self, file_path: Path, message: str, cause: Exception | None = None
    ) -> None:
        """Initialize with file path, message, and optional cause.

        Args:
            file_path: The file that failed to load
            message: Human-readable error message
            cause: The underlying exception that caused the failure
        """
        self.file_path = file_path
        self.message = message
        self.cause = cause
        super().__init__(f"Config file error in {file_path}: {message}")


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open(mode="rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigFileError(path, f"Failed to parse TOML: {e}", cause=e) from e


def _select_profile(
    path: Path, section: dict[str, Any], profile: str | None
) -> dict[str, Any]:
    """Return the base section (without profiles) or the named profile."""
    if profile:
        profiles = section.get("profiles", {})
        if profile not in profiles:
            available = list(profiles.keys()) if profiles else []
            raise ConfigFileError(
                path, f"Profile '{profile}' not found. Available profiles: {available}"
            )
        return dict(profiles[profile])
    config = dict(section)
    config.pop("profiles", None)
    return config


class FileConfigLoader:
    """Loads configuration from TOML files with profile support."""

    def load_project_config(
        self, project_root: Path | None = None, profile: str | None = None
    ) -> dict[str, Any]:
        """Load configuration from pyproject.toml in the project root.

        Args:
            project_root: Directory to search for pyproject.toml. If None,
                searches current directory and parents.
            profile: Optional profile name to load from
                ``[tool.quiz_worker.profiles.<name>]``. If None, loads from
                ``[tool.quiz_worker]``.

        Returns:
            Dictionary of configuration values from the file. Empty dict if
            the file doesn't exist or has no quiz_worker section.

        Raises:
            ConfigFileError: If the file cannot be parsed or the profile is missing.
        """
        pyproject_path = self._find_pyproject_toml(project_root)
        if not pyproject_path:
            return {}

        data = _read_toml(pyproject_path)
        section = data.get("tool", {}).get("quiz_worker", {})
        if not section:
            return {}
        return _select_profile(pyproject_path, section, profile)

    def load_home_config(self, profile: str | None = None) -> dict[str, Any]:
        """Load configuration from the home configuration file.

        Args:
            profile: Optional profile name to load from ``[profiles.<name>]``.
                If None, loads from the root level.

        Returns:
            Dictionary of configuration values. Empty dict if the file doesn't exist.

        Raises:
            ConfigFileError: If the file cannot be parsed or the profile is missing.
        """
        home_config_path = self._get_home_config_path()
        if not home_config_path.exists():
            return {}
        return _select_profile(home_config_path, _read_toml(home_config_path), profile)

    def _find_pyproject_toml(self, start_dir: Path | None = None) -> Path | None:
        """Find pyproject.toml by searching up the directory tree."""
        current = Path(start_dir or Path.cwd()).resolve()
        while current != current.parent:
            pyproject_path = current / "pyproject.toml"
            if pyproject_path.exists():
                return pyproject_path
            current = current.parent
        return None

    def _get_home_config_path(self) -> Path:
        """Return ``$QUIZ_WORKER_CONFIG_HOME`` or ``~/.config/quiz_worker.toml``."""
        override = os.getenv("QUIZ_WORKER_CONFIG_HOME")
        if override:
            return Path(override)
        return Path.home() / ".config" / "quiz_worker.toml"
