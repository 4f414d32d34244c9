from __future__ import annotations

import logging
import os
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from .settings import Settings

LOG_FILE_NAME = "cirrus.log"
_NOISY_LOGGERS = ("botocore", "boto3", "urllib3", "s3transfer")


def setup_logging(settings: Settings) -> Path:
    """Configure Python logging to write to a rotating diagnostic log file.

    Returns the resolved log file path.

    Rotation:
      - Daily rotation at midnight.
      - Keep the last `CIRRUS_LOG_BACKUP_COUNT` rotated files.

    Notes:
      - There is no console handler; the terminal is owned by the TUI.
      - This function is safe to call multiple times (it resets handlers).
    """

    log_dir = Path(settings.CIRRUS_LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)

    log_file = log_dir / LOG_FILE_NAME

    level_name = str(settings.CIRRUS_LOG_LEVEL or "INFO").upper().strip()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

    file_handler = TimedRotatingFileHandler(
        filename=str(log_file),
        when="midnight",
        interval=1,
        backupCount=max(0, int(settings.CIRRUS_LOG_BACKUP_COUNT or 0)),
        encoding="utf-8",
        utc=False,
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(fmt))

    # Reset root handlers so we don't duplicate logs on repeated starts.
    root = logging.getLogger()
    for handler in root.handlers:
        handler.close()
    root.handlers = []
    root.setLevel(level)
    root.addHandler(file_handler)

    # AWS SDK debug output drowns everything else.
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    logging.getLogger("cirrus").info(
        "cirrus logging enabled (file=%s, level=%s)",
        os.fspath(log_file),
        level_name,
    )

    return log_file
