from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

from .config import LOG_FILE, LOG_LEVEL


def setup_logging(level: str = LOG_LEVEL, log_file: str = LOG_FILE) -> None:
    """Console logging always, plus a rotating file when ``log_file`` is set.

    Safe to call more than once; handlers are not added twice.
    """
    log_formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    root = logging.getLogger()
    root.setLevel(level)

    if not any(type(h) is logging.StreamHandler for h in root.handlers):
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(log_formatter)
        root.addHandler(console_handler)

    if log_file and not any(
        isinstance(h, RotatingFileHandler) and h.baseFilename == os.path.abspath(log_file)
        for h in root.handlers
    ):
        file_handler = RotatingFileHandler(log_file, maxBytes=10 * 1024 * 1024, backupCount=5)
        file_handler.setFormatter(log_formatter)
        root.addHandler(file_handler)

    # uvicorn logs every request itself
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
