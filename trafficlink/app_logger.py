"""
Application logging setup.

All modules log through logging.getLogger(__name__) under the
"trafficlink" namespace; init() attaches a console handler and a
rotating file handler to that namespace once per process.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOGGER_NAME = "trafficlink"
LEVEL_ENV_VAR = "TRAFFICLINK_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

MAX_LOG_BYTES = 1_000_000
BACKUP_COUNT = 5

_initialized = False


def _resolve_level(level: str | int | None) -> int:
    if level is None:
        level = os.environ.get(LEVEL_ENV_VAR, "INFO")
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved


def init(level: str | int | None = None, log_dir: str | None = "logs") -> logging.Logger:
    """
    Configure the package logger.

    Calling init() again only updates the level.

    Args:
        level: Level name or number. Falls back to $TRAFFICLINK_LOG_LEVEL,
               then INFO.
        log_dir: Directory for app.log (None disables file output)

    Returns:
        The package logger
    """
    global _initialized
    root = logging.getLogger(LOGGER_NAME)
    root.setLevel(_resolve_level(level))

    if _initialized:
        return root

    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    root.addHandler(console)

    if log_dir:
        try:
            path = Path(log_dir)
            path.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                path / "app.log",
                maxBytes=MAX_LOG_BYTES,
                backupCount=BACKUP_COUNT,
                encoding="utf-8",
            )
        except OSError as e:
            root.warning("File logging disabled for %s: %s", log_dir, e)
        else:
            file_handler.setFormatter(formatter)
            root.addHandler(file_handler)

    _initialized = True
    return root


def set_level(level: str | int) -> None:
    logging.getLogger(LOGGER_NAME).setLevel(_resolve_level(level))


def get_level() -> str:
    return logging.getLevelName(logging.getLogger(LOGGER_NAME).getEffectiveLevel())
