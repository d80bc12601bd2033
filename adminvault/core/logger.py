from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler


LOGGER_NAME = "adminvault"
LOG_FILE = "adminvault.log"


def setup_logging(
    log_dir: str = "logs",
    *,
    level: str = "INFO",
    console: bool = True,
    max_bytes: int = 1_000_000,
    backup_count: int = 5,
) -> logging.Logger:
    """
    Configure the `adminvault` logger: a rotating text log in `log_dir`, plus a
    console handler unless disabled. Repeated calls reuse the attached handlers.
    """
    os.makedirs(log_dir, exist_ok=True)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    logger.propagate = False

    file_path = os.path.abspath(os.path.join(log_dir, LOG_FILE))
    if not any(isinstance(h, RotatingFileHandler) and h.baseFilename == file_path for h in logger.handlers):
        fh = RotatingFileHandler(file_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
        fh.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s"))
        logger.addHandler(fh)

    has_console = any(type(h) is logging.StreamHandler for h in logger.handlers)
    if console and not has_console:
        sh = logging.StreamHandler()
        sh.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
        logger.addHandler(sh)

    return logger


def get_logger(component: str = "") -> logging.Logger:
    return logging.getLogger(f"{LOGGER_NAME}.{component}" if component else LOGGER_NAME)
