"""Core configuration data types for the quiz worker.

This module defines the fundamental data structures used throughout the
configuration system, following the resolve-once, freeze-then-flow pattern.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Literal, NamedTuple

# --- Source Tracking Types ---

ConfigOrigin = Literal["programmatic", "env", "file", "default"]
SourceMap = Mapping[str, ConfigOrigin]

FIELD_ORDER = ("timeout", "retry", "period", "stop_when_error", "upload")

# --- Core Configuration Data ---


class ResolvedConfig(NamedTuple):
    """Configuration after resolution from all sources, before freezing.

    This represents the validated, merged result of combining programmatic
    overrides, environment variables, files, and defaults. It includes audit
    metadata recording where each value came from.
    """

    timeout: float
    retry: int
    period: float
    stop_when_error: bool
    upload: str

    # Audit metadata - tracks where each field value came from
    origin: SourceMap

    def to_frozen(self) -> "FrozenConfig":
        """Convert to the immutable configuration handed to workers.

        Returns:
            FrozenConfig with the same field values, excluding audit metadata.
        """
        return FrozenConfig(
            timeout=self.timeout,
            retry=self.retry,
            period=self.period,
            stop_when_error=self.stop_when_error,
            upload=self.upload,
        )

    def with_overrides(self, **overrides: object) -> "ResolvedConfig":
        """Create a new ResolvedConfig with programmatic overrides applied.

        Args:
            **overrides: Field values to override. Unknown fields are ignored.

        Returns:
            New ResolvedConfig with overrides applied and origin updated.
        """
        new_values = self._asdict()
        new_origin = dict(self.origin)

        for field, value in overrides.items():
            if field in FIELD_ORDER:
                new_values[field] = value
                new_origin[field] = "programmatic"

        new_values["origin"] = new_origin
        return ResolvedConfig(**new_values)

    def audit(self) -> str:
        """Generate a report showing the origin of each field.

        Returns:
            One ``field: origin:value`` line per known field.
        """
        lines = []
        for field in FIELD_ORDER:
            if field not in self.origin:
                continue
            origin = self.origin[field]
            value = getattr(self, field)
            if origin == "env":
                lines.append(f"{field}: env:QUIZ_WORKER_{field.upper()}={value}")
            else:
                lines.append(f"{field}: {origin}:{value}")
        return "\n".join(lines)


@dataclass(frozen=True)
class FrozenConfig:
    """Immutable configuration attached to a worker.

    This is the final form of configuration a worker reads its defaults from.
    Any attempt to modify this object will raise an exception.
    """

    timeout: float = 60.0
    retry: int = 2
    period: float = 3.0
    stop_when_error: bool = False
    upload: str = "nomove"
