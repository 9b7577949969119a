"""
Logging configuration for date_gutter.

The TUI owns the terminal, so the editor logs to a rotating file only; the
headless resync command also logs to stderr. Levels come from the [logging]
section of config.toml and can be overridden with DATE_GUTTER_LOG_LEVEL.
"""

import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional
from loguru import logger

from .config import get_cli_log_file_path


def configure_logging(config: Dict[str, Any], console: bool = True,
                      log_file: Optional[Path] = None) -> Optional[Path]:
    """
    Replace loguru's default handler with the configured sinks.

    Should be called once at startup. Returns the log file path in use, or
    None if the file sink could not be created.
    """
    logging_config = config.get("logging", {}) if isinstance(config, dict) else {}
    console_level = os.environ.get("DATE_GUTTER_LOG_LEVEL", logging_config.get("log_level", "INFO")).upper()
    file_level = str(logging_config.get("file_log_level", "DEBUG")).upper()

    logger.remove()  # Remove default handler

    if console:
        logger.add(
            sink=sys.stderr,
            level=console_level,
            colorize=True
        )

    log_path = Path(log_file) if log_file is not None else get_cli_log_file_path(config)
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            sink=str(log_path),
            level=file_level,
            rotation=logging_config.get("log_rotation", "10 MB"),
            retention=logging_config.get("log_retention", 5),
            enqueue=False,
        )
    except (OSError, ValueError, TypeError) as e:
        logger.warning(f"File logging disabled, could not open {log_path}: {e}")
        log_path = None

    logger.info(f"date_gutter logging configured: console={console_level if console else 'off'}, file={log_path}")
    return log_path
