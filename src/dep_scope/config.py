"""Runtime configuration module.

Configuration is read from environment variables.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class AnalyzerConfig:
    """Runtime configuration container.

    Attributes:
        log_level: Name of the stdlib logging level, e.g. "INFO"
        log_file: File to append log records to; stderr when None
    """

    log_level: str = "WARNING"
    log_file: Path | None = None

    @classmethod
    def from_env(cls) -> "AnalyzerConfig":
        """Create configuration from environment variables.

        Environment variables:
            DEPSCOPE_LOG_LEVEL: Logging level name (default: "WARNING")
            DEPSCOPE_LOG_FILE: Log file path (default: log to stderr)
        """
        log_file = os.getenv("DEPSCOPE_LOG_FILE")

        return cls(
            log_level=os.getenv("DEPSCOPE_LOG_LEVEL", "WARNING").strip().upper(),
            log_file=Path(log_file).resolve() if log_file else None,
        )

    def validate(self) -> None:
        """Validate the configuration.

        Raises:
            ValueError: If the log level is not a known level name.
        """
        if self.log_level not in LOG_LEVELS:
            raise ValueError(
                f"Unsupported log level: {self.log_level} (expected one of {', '.join(LOG_LEVELS)})"
            )
