from __future__ import annotations

import logging
import os
from pathlib import Path

from kaizen.constants import LOG_LEVEL_ENV


def default_log_file() -> Path:
    return Path.home() / ".local" / "state" / "kaizen" / "kaizen.log"


def setup_logger(log_level: str | None = None, log_file: Path | None = None) -> None:
    """Configure root logging to a file and stderr.

    The level falls back to $KAIZEN_LOG_LEVEL, then INFO.
    """
    level_name = (log_level or os.getenv(LOG_LEVEL_ENV) or "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    log_path = log_file or default_log_file()
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.FileHandler(log_path, encoding="utf-8"),
            logging.StreamHandler(),
        ],
    )
