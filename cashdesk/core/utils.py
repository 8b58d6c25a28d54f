"""Shared utility functions for the cash-shift ledger."""

import logging
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path

import colorlog


def get_logger(name: str) -> logging.Logger:
    """Get a logger with a colorized format for the project."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = colorlog.ColoredFormatter(
            "%(log_color)s%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "bold_red",
            },
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.propagate = False
    return logger


def ensure_dir(path: str | Path) -> None:
    """Ensure a directory exists (like mkdir -p)."""
    Path(path).mkdir(parents=True, exist_ok=True)


def to_decimal(val: object, default: Decimal | None = None) -> Decimal | None:
    """Convert a number or numeric string (``"50 000"``, ``"12,5"``) to Decimal, returning default on failure."""
    if val is None or isinstance(val, bool):
        return default
    if isinstance(val, Decimal):
        return val
    if isinstance(val, int | float):
        return Decimal(str(val))
    text = str(val).replace(" ", "").replace(" ", "").replace(",", ".")
    try:
        return Decimal(text)
    except InvalidOperation:
        return default


def utcnow() -> datetime:
    """Get the current UTC time as a naive datetime (the store keeps naive UTC timestamps)."""
    return datetime.now(UTC).replace(tzinfo=None)
