"""Process-wide logging setup driven by `AnalyzerConfig`."""

from __future__ import annotations

import logging

from dep_scope.config import AnalyzerConfig

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_CONFIGURED = False


def configure_logging(config: AnalyzerConfig | None = None) -> None:
    """Configure logging for the `dep_scope` package once per process.

    Raises:
        ValueError: If the configuration is invalid.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    config = config or AnalyzerConfig.from_env()
    config.validate()

    if config.log_file is not None:
        config.log_file.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(config.log_file, mode="a", encoding="utf-8")
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))

    logger = logging.getLogger("dep_scope")
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, config.log_level))
    _CONFIGURED = True
