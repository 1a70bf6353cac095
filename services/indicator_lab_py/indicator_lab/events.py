"""
Scan computed indicator series for discrete, chart-pinnable events and
for higher-level pattern hints.

Events are tied to one candle (price crossing the EMA, RSI crossing its
midline, a Bollinger squeeze starting).  Hints describe the recent window
as a whole (RSI divergences, an ongoing squeeze).  Both are descriptive:
they say what happened, not what to trade.  With too little data both
functions return an empty list instead of raising.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

import numpy as np
import pandas as pd

from .candles import CandleInput, to_frame
from .config import PATTERN_LOOKBACK
from .schema import IndicatorId

SQUEEZE_THRESHOLD_PCT = 6.0
RSI_MIDLINE = 50.0
DIVERGENCE_MIN_RSI_GAP = 0.5
MAX_EVENTS = 12
MAX_HINTS = 3
MIN_EVENT_CANDLES = 3
MIN_PATTERN_CANDLES = 20

COLOR_BULLISH = "bullish"
COLOR_BEARISH = "bearish"
COLOR_VOLATILITY = "volatility"

SeriesLookup = Mapping[str, Mapping[str, Sequence[Optional[float]]]]


@dataclass(frozen=True)
class EventPin:
    index: int
    timestamp: int
    label: str
    detail: str
    color_tag: str


@dataclass(frozen=True)
class PatternHint:
    title: str
    description: str
    severity: str  # "info" | "watch"


@dataclass(frozen=True)
class SwingPoint:
    index: int
    price: float


def _selected_ids(selected: Optional[Iterable[Any]]) -> Set[IndicatorId]:
    ids = (IndicatorId.parse(s) for s in (selected or ()))
    return {i for i in ids if i is not None}


def _series(series_map: SeriesLookup, indicator: str, name: str, n: int) -> Optional[pd.Series]:
    """Fetch one sub-series as floats (None -> NaN), padded/cut to ``n``."""
    values = (series_map.get(indicator) or {}).get(name)
    if values is None:
        return None
    s = pd.Series(list(values), dtype=float).replace([np.inf, -np.inf], np.nan)
    return s.reindex(range(n))


def _cross_up(diff: pd.Series, level: float = 0.0) -> pd.Series:
    """Return True where ``diff`` moves from <= level to > level."""
    prev = diff.shift(1)
    return (prev <= level) & (diff > level)


def _cross_down(diff: pd.Series, level: float = 0.0) -> pd.Series:
    """Return True where ``diff`` moves from >= level to < level."""
    prev = diff.shift(1)
    return (prev >= level) & (diff < level)


def band_width_pct(upper: Any, lower: Any, middle: Any) -> Any:
    """Bollinger band width as a percentage of the middle band."""
    with np.errstate(divide="ignore", invalid="ignore"):
        width = (upper - lower) / middle * 100.0
    if isinstance(width, pd.Series):
        return width.replace([np.inf, -np.inf], np.nan)
    return width


def build_event_pins(
    candles: CandleInput,
    series_map: SeriesLookup,
    selected: Optional[Iterable[Any]] = None,
) -> List[EventPin]:
    """
    Build the event pins shown on the chart, oldest first, keeping only
    the most recent ``MAX_EVENTS``.
    """
    df = to_frame(candles)
    n = len(df)
    if n < MIN_EVENT_CANDLES:
        return []
    ids = _selected_ids(selected)
    close = df["close"]
    timestamps = df["timestamp"].to_numpy()
    found: List[EventPin] = []

    def _emit(mask: pd.Series, label: str, detail: str, color: str) -> None:
        for i in np.flatnonzero(mask.to_numpy(dtype=bool)):
            found.append(EventPin(int(i), int(timestamps[i]), label, detail, color))

    ema = _series(series_map, "ema", "value", n)
    if IndicatorId.EMA in ids and ema is not None:
        diff = close - ema
        _emit(_cross_up(diff), "Price > EMA", "Close pushed back above EMA", COLOR_BULLISH)
        _emit(_cross_down(diff), "Price < EMA", "Close slipped below EMA", COLOR_BEARISH)

    rsi = _series(series_map, "rsi", "value", n)
    if IndicatorId.RSI in ids and rsi is not None:
        _emit(_cross_up(rsi, RSI_MIDLINE), "RSI > 50", "Momentum flipped constructive", COLOR_BULLISH)
        _emit(_cross_down(rsi, RSI_MIDLINE), "RSI < 50", "Momentum flipped defensive", COLOR_BEARISH)

    upper = _series(series_map, "bbands", "upper", n)
    lower = _series(series_map, "bbands", "lower", n)
    middle = _series(series_map, "bbands", "middle", n)
    if IndicatorId.BBANDS in ids and upper is not None and lower is not None and middle is not None:
        width = band_width_pct(upper, lower, middle)
        squeeze = (width.shift(1) >= SQUEEZE_THRESHOLD_PCT) & (width < SQUEEZE_THRESHOLD_PCT)
        _emit(squeeze, "BB squeeze", "Volatility compressed; watch for expansion", COLOR_VOLATILITY)

    found.sort(key=lambda e: e.index)
    return found[-MAX_EVENTS:]


def find_swing_points(
    closes: Any, lookback: int = PATTERN_LOOKBACK
) -> Tuple[List[SwingPoint], List[SwingPoint]]:
    """
    Return (swing highs, swing lows) in the trailing ``lookback`` closes.

    A swing point is a close strictly above (or below) both neighbours.
    The first two and the last two closes are never swing points.
    """
    c = pd.Series(list(closes), dtype=float).reset_index(drop=True)
    n = len(c)
    start = max(2, n - int(lookback))
    prev, nxt = c.shift(1), c.shift(-1)
    in_window = (c.index >= start) & (c.index < n - 2)
    highs = (c > prev) & (c > nxt) & in_window
    lows = (c < prev) & (c < nxt) & in_window
    return (
        [SwingPoint(int(i), float(c.iloc[i])) for i in np.flatnonzero(highs.to_numpy())],
        [SwingPoint(int(i), float(c.iloc[i])) for i in np.flatnonzero(lows.to_numpy())],
    )


def _last_two_rsi(points: List[SwingPoint], rsi: pd.Series) -> Optional[Tuple[SwingPoint, SwingPoint, float, float]]:
    if len(points) < 2:
        return None
    first, second = points[-2], points[-1]
    r1, r2 = rsi.iloc[first.index], rsi.iloc[second.index]
    if pd.isna(r1) or pd.isna(r2):
        return None
    return first, second, float(r1), float(r2)


def detect_pattern_hints(
    candles: CandleInput,
    series_map: SeriesLookup,
    selected: Optional[Iterable[Any]] = None,
    lookback: int = PATTERN_LOOKBACK,
) -> List[PatternHint]:
    """
    Look for RSI divergences at the last two swing points and for an
    ongoing Bollinger squeeze.  At most ``MAX_HINTS`` are returned.
    """
    df = to_frame(candles)
    n = len(df)
    if n < MIN_PATTERN_CANDLES:
        return []
    ids = _selected_ids(selected)
    hints: List[PatternHint] = []

    highs, lows = find_swing_points(df["close"], lookback)
    rsi = _series(series_map, "rsi", "value", n)
    if IndicatorId.RSI in ids and rsi is not None and rsi.notna().any():
        pair = _last_two_rsi(lows, rsi)
        if pair is not None:
            first, second, r1, r2 = pair
            if second.price < first.price and r2 > r1 + DIVERGENCE_MIN_RSI_GAP:
                hints.append(PatternHint(
                    "Bullish divergence",
                    "Price made a lower low while RSI made a higher low — momentum "
                    "loss, not a guarantee of reversal.",
                    "watch",
                ))
        pair = _last_two_rsi(highs, rsi)
        if pair is not None:
            first, second, r1, r2 = pair
            if second.price > first.price and r2 < r1 - DIVERGENCE_MIN_RSI_GAP:
                hints.append(PatternHint(
                    "Bearish divergence",
                    "Price made a higher high while RSI made a lower high — uptrend "
                    "momentum is fading.",
                    "watch",
                ))

    upper = _series(series_map, "bbands", "upper", n)
    lower = _series(series_map, "bbands", "lower", n)
    middle = _series(series_map, "bbands", "middle", n)
    if IndicatorId.BBANDS in ids and upper is not None and lower is not None and middle is not None:
        width = band_width_pct(upper.iloc[-1], lower.iloc[-1], middle.iloc[-1])
        if pd.notna(width) and np.isfinite(width) and width < SQUEEZE_THRESHOLD_PCT:
            hints.append(PatternHint(
                "Volatility squeeze",
                f"Bands are tight ({width:.1f}% of price). Expansions often follow "
                "squeezes; direction still comes from price.",
                "info",
            ))

    return hints[-MAX_HINTS:]
