# indicator_lab/config.py
"""Environment-driven settings and logger setup for the indicator lab.

Values are read once at import time.  Anything that changes how an
indicator is computed (squeeze threshold, display budgets) is a fixed
constant in the module that uses it, not a setting.
"""
from __future__ import annotations

import logging
import os
from typing import Optional

# ──────────────────────────────────────────────────────────────────────────────
# Settings read from INDICATOR_LAB_* variables
# ──────────────────────────────────────────────────────────────────────────────

_QUOTES = ('"', "'")


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    """Read an env var, dropping surrounding whitespace and one pair of quotes."""
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in _QUOTES:
        value = value[1:-1].strip()
    return value or default


def _env_float(name: str, default: float) -> float:
    raw = _env(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = _env(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


LOG_LEVEL = (_env("INDICATOR_LAB_LOG_LEVEL", "INFO") or "INFO").upper()
MIN_REFRESH_INTERVAL_SECS = _env_float("INDICATOR_LAB_MIN_REFRESH_SECS", 1.0)
PATTERN_LOOKBACK = _env_int("INDICATOR_LAB_PATTERN_LOOKBACK", 80)

_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"

# ──────────────────────────────────────────────────────────────────────────────
# Logging
# ──────────────────────────────────────────────────────────────────────────────

def get_logger(name: str) -> logging.Logger:
    """Return a named logger with a single stream handler attached."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(handler)
    try:
        logger.setLevel(LOG_LEVEL)
    except ValueError:
        logger.setLevel(logging.INFO)
    return logger
