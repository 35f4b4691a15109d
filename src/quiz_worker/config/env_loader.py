"""Environment variable configuration loading.

This module handles loading configuration from environment variables with
the QUIZ_WORKER_ prefix, including optional .env file support and type
coercion.
"""

import os
from pathlib import Path
from typing import Any

from .schema import WorkerSettings

ENV_VARS = {
    "QUIZ_WORKER_TIMEOUT": "timeout",
    "QUIZ_WORKER_RETRY": "retry",
    "QUIZ_WORKER_PERIOD": "period",
    "QUIZ_WORKER_STOP_WHEN_ERROR": "stop_when_error",
    "QUIZ_WORKER_UPLOAD": "upload",
}


class EnvironmentConfigLoader:
    """Loads configuration from QUIZ_WORKER_* environment variables."""

    def load_env_config(self, env_file: str | Path | None = None) -> dict[str, Any]:
        """Load configuration from environment variables.

        Args:
            env_file: Optional path to a .env file loaded into the environment
                first. Variables already set are not overridden.

        Returns:
            Dictionary of configuration values found in environment.
            Only includes fields that are actually set (not defaults).

        Raises:
            ValueError: If environment variables contain invalid values.
        """
        if env_file:
            self._load_env_file(env_file)

        env_values = {
            field: os.environ[var] for var, field in ENV_VARS.items() if var in os.environ
        }
        if not env_values:
            return {}

        try:
            settings = WorkerSettings(**env_values)
        except Exception as e:
            env_var_list = [
                f"{var}={os.environ[var]}"
                for var, field in ENV_VARS.items()
                if field in env_values
            ]
            raise ValueError(
                f"Invalid environment variable values: {', '.join(env_var_list)}. "
                f"Error: {e}"
            ) from e

        return {field: getattr(settings, field) for field in env_values}

    def _load_env_file(self, env_file: str | Path) -> None:
        """Load KEY=VALUE lines from a .env file into the environment.

        Raises:
            FileNotFoundError: If the .env file doesn't exist.
            ValueError: If the .env file has invalid format.
        """
        env_path = Path(env_file)
        if not env_path.exists():
            raise FileNotFoundError(f"Environment file not found: {env_path}")

        try:
            with env_path.open(encoding="utf-8") as f:
                for line_num, raw in enumerate(f, 1):
                    line = raw.strip()
                    if not line or line.startswith("#"):
                        continue
                    if "=" not in line:
                        raise ValueError(
                            f"Invalid format at line {line_num}: {line}. "
                            "Expected KEY=VALUE format."
                        )
                    key, value = (part.strip() for part in line.split("=", 1))
                    if (value.startswith('"') and value.endswith('"')) or (
                        value.startswith("'") and value.endswith("'")
                    ):
                        value = value[1:-1]
                    if key not in os.environ:
                        os.environ[key] = value
        except OSError as e:
            raise ValueError(f"Failed to read environment file {env_path}: {e}") from e
