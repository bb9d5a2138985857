from __future__ import annotations

import contextlib
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterator
import os


LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
ROOT = "booktask"

_configured = False


def _env_level() -> int:
    level = os.getenv("BOOKTASK_LOG_LEVEL", "INFO").upper()
    return getattr(logging, level, logging.INFO)


def _ensure_base_logger() -> None:
    global _configured
    if _configured:
        return
    logging.basicConfig(level=_env_level(), format=LOG_FORMAT)
    # basicConfig is a no-op once the root logger has handlers
    logging.getLogger(ROOT).setLevel(_env_level())
    _configured = True


def refresh_level() -> None:
    """Re-read BOOKTASK_LOG_LEVEL, e.g. after a .env file was loaded."""
    _ensure_base_logger()
    logging.getLogger(ROOT).setLevel(_env_level())


def _file_handler(log_file: Path) -> RotatingFileHandler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_file, maxBytes=1_000_000, backupCount=3, encoding="utf-8"
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def get_logger(name: str) -> logging.Logger:
    _ensure_base_logger()
    return logging.getLogger(name)


@contextlib.contextmanager
def log_to_file(log_file: Path | None) -> Iterator[None]:
    """Copy every ``booktask.*`` record to ``log_file`` for the duration of the block."""
    if log_file is None:
        yield
        return
    logger = logging.getLogger(ROOT)
    handler = _file_handler(Path(log_file))
    logger.addHandler(handler)
    try:
        yield
    finally:
        logger.removeHandler(handler)
        handler.close()
