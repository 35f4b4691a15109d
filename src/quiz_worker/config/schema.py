"""Configuration schema and validation using Pydantic.

This module defines the settings schema that validates and coerces worker
configuration values from various sources (environment, files, programmatic)
into the correct types with proper defaults.
"""

from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from quiz_worker.upload import parse_upload_policy


class WorkerSettings(BaseSettings):
    """Pydantic settings schema for worker configuration.

    Durations are seconds. Values here are defaults for every run; a
    ``WorkOptions`` field that is set explicitly always wins.
    """

    model_config = SettingsConfigDict(
        env_prefix="QUIZ_WORKER_",
        env_file=None,  # Only used when explicitly requested
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    timeout: float = Field(
        default=60.0,
        description="Seconds an answerer attempt may take before it is abandoned",
        gt=0,
    )

    retry: int = Field(
        default=2,
        description="Extra answerer attempts after a first attempt without result",
        ge=0,
    )

    period: float = Field(
        default=3.0,
        description="Seconds to wait between two work units",
        ge=0,
    )

    stop_when_error: bool = Field(
        default=False,
        description="End the run at the first failing work unit",
    )

    upload: str = Field(
        default="nomove",
        description="Upload policy: nomove, force, save or a numeric threshold",
        min_length=1,
    )

    @field_validator("upload", mode="before")
    @classmethod
    def parse_upload(cls, v: Any) -> str:
        """Accept the named policies or a numeric threshold."""
        if isinstance(v, int | float) and not isinstance(v, bool):
            v = str(v)
        if not isinstance(v, str):
            raise ValueError(f"Invalid upload policy: {v!r}")
        v = v.strip()
        if parse_upload_policy(v) is None:
            raise ValueError(
                f"Invalid upload policy: {v!r}. Must be nomove, force, save or a number"
            )
        return v

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary suitable for source tracking."""
        return {
            "timeout": self.timeout,
            "retry": self.retry,
            "period": self.period,
            "stop_when_error": self.stop_when_error,
            "upload": self.upload,
        }
