from __future__ import annotations

import logging
import os

DEV_FORMAT = "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d: %(message)s"
PROD_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_NOISY_LOGGERS = ("sqlalchemy.engine", "uvicorn.access")


def configure_logging(level=None, fmt: str | None = None) -> None:
    level = _coerce_level(level if level is not None else os.getenv("LOG_LEVEL", "INFO"))
    fmt = (fmt or os.getenv("LOG_FORMAT", "dev")).strip().lower()

    root = logging.getLogger()
    root.setLevel(level)
    if not root.handlers:
        root.addHandler(logging.StreamHandler())

    formatter = logging.Formatter(PROD_FORMAT if fmt == "prod" else DEV_FORMAT)
    for handler in root.handlers:
        handler.setFormatter(formatter)

    if level > logging.DEBUG:
        for noisy in _NOISY_LOGGERS:
            logging.getLogger(noisy).setLevel(logging.WARNING)


def _coerce_level(raw_level) -> int:
    if isinstance(raw_level, int):
        return raw_level
    if isinstance(raw_level, str):
        candidate = raw_level.strip().upper()
        if candidate.isdigit():
            return int(candidate)
        level = getattr(logging, candidate, None)
        if isinstance(level, int):
            return level
    return logging.INFO
