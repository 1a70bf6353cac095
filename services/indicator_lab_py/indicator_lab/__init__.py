"""Core of the indicator lab dashboard.

This package computes technical indicators over OHLCV candles, scans the
results for crossover/squeeze events and divergence hints, and turns the
latest values into plain-language readings.  All functions are
side‑effect free and deterministic when given the same inputs.
"""

from .candles import Candle, CandleDataError, to_candles, to_frame
from .indicators import (
    compute_sma,
    compute_ema,
    compute_bollinger,
    compute_rsi,
    compute_true_range,
    compute_atr,
    compute_stochastic,
    compute_stoch_rsi,
    compute_macd,
    compute_obv,
    compute_adx,
    compute_support_resistance,
)
from .schema import INDICATOR_CONFIGS, PRESETS, IndicatorId, resolve_parameters
from .engine import calculate_indicator, calculate_indicators
from .events import (
    EventPin,
    PatternHint,
    build_event_pins,
    detect_pattern_hints,
    find_swing_points,
)
from .readings import build_checklist, compute_readings, generate_insights
from .snapshot import SKIPPED, RefreshThrottle, Snapshot, analyze

__all__ = [
    "Candle",
    "CandleDataError",
    "to_candles",
    "to_frame",
    "compute_sma",
    "compute_ema",
    "compute_bollinger",
    "compute_rsi",
    "compute_true_range",
    "compute_atr",
    "compute_stochastic",
    "compute_stoch_rsi",
    "compute_macd",
    "compute_obv",
    "compute_adx",
    "compute_support_resistance",
    "INDICATOR_CONFIGS",
    "PRESETS",
    "IndicatorId",
    "resolve_parameters",
    "calculate_indicator",
    "calculate_indicators",
    "EventPin",
    "PatternHint",
    "build_event_pins",
    "detect_pattern_hints",
    "find_swing_points",
    "build_checklist",
    "compute_readings",
    "generate_insights",
    "RefreshThrottle",
    "SKIPPED",
    "Snapshot",
    "analyze",
]
