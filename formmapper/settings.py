"""Environment-driven configuration and logging setup."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

LOG_ENV_VAR = "FORMMAPPER_LOG"
BACKEND_ENV_VAR = "FORMMAPPER_FILL_BACKEND"
FILL_BACKENDS = ("pymupdf", "pypdf")
_LOG_FORMAT = "[%(levelname)s] %(name)s: %(message)s"


@dataclass(frozen=True)
class Settings:
    log_level: str = "INFO"
    fill_backend: str = "pymupdf"


def load_settings() -> Settings:
    """Read settings from the environment, falling back to defaults."""

    level_name = os.getenv(LOG_ENV_VAR, "INFO").strip().upper() or "INFO"
    backend = os.getenv(BACKEND_ENV_VAR, "pymupdf").strip().lower() or "pymupdf"
    return Settings(log_level=level_name, fill_backend=backend)


def get_logger(name: str) -> logging.Logger:
    """Return a module logger with a stream handler and the configured level."""

    logger = logging.getLogger(name)
    level = getattr(logging, load_settings().log_level, logging.INFO)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        logger.addHandler(handler)
    logger.setLevel(level)
    return logger


__all__ = ["Settings", "load_settings", "get_logger", "FILL_BACKENDS", "LOG_ENV_VAR", "BACKEND_ENV_VAR"]
