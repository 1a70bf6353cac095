"""Implement the technical indicators used by the dashboard with pandas/numpy.

Every function accepts plain sequences or pandas Series and returns a
Series (or a DataFrame of named columns) with the same length and index
as its input.  Positions without enough history hold NaN; infinite
inputs are treated as NaN, and any window that touches an undefined
sample is itself undefined.  Degenerate periods (zero, negative, NaN)
produce an all-NaN result instead of raising.
"""

from __future__ import annotations

import math
from typing import Any, Optional, Tuple

import numpy as np
import pandas as pd
from numpy.lib.stride_tricks import sliding_window_view


def _as_series(values: Any) -> pd.Series:
    if isinstance(values, pd.Series):
        s = values.astype(float)
    else:
        s = pd.Series(list(values) if values is not None else [], dtype=float)
    return s.replace([np.inf, -np.inf], np.nan)


def _aligned(*columns: Any) -> Tuple[pd.Series, ...]:
    """Coerce several inputs onto the index of the last one (the close)."""
    series = [_as_series(c) for c in columns]
    index = series[-1].index
    return tuple(pd.Series(s.to_numpy(), index=index) for s in series)


def _blank(like: pd.Series) -> pd.Series:
    return pd.Series(np.nan, index=like.index, dtype=float)


def _period(value: Any) -> Optional[int]:
    """Window length as a positive int, or None when it cannot be used."""
    try:
        f = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(f) or f < 1:
        return None
    return int(f)


def _window_means(arr: np.ndarray, window: int) -> np.ndarray:
    # mean of each full trailing window, one entry per index >= window-1
    return sliding_window_view(arr, window).mean(axis=1)


def compute_sma(close: Any, window: int) -> pd.Series:
    """
    Compute the simple moving average (SMA) over the given window.
    The first ``window - 1`` entries remain NaN.
    """
    s = _as_series(close)
    out = _blank(s)
    w = _period(window)
    if w is None or len(s) < w:
        return out
    out.iloc[w - 1:] = _window_means(s.to_numpy(), w)
    return out


def compute_ema(close: Any, window: int) -> pd.Series:
    """
    Compute the exponential moving average (EMA).

    The first defined value is the SMA of the first ``window`` samples;
    afterwards ``ema[i] = (x[i] - ema[i-1]) * 2/(window+1) + ema[i-1]``.
    An undefined sample breaks the chain: the output is NaN there and
    the EMA seeds again from the SMA of the next ``window`` consecutive
    defined samples.  Leading NaNs are the same case, so the EMA of a
    derived series seeds over its first defined values.
    """
    s = _as_series(close)
    out = _blank(s)
    w = _period(window)
    if w is None or len(s) < w:
        return out

    values = s.to_numpy()
    alpha = 2.0 / (w + 1)
    result = np.full(len(values), np.nan)
    prev = np.nan
    run = 0
    for i, x in enumerate(values):
        if np.isnan(x):
            prev = np.nan
            run = 0
            continue
        run += 1
        if np.isnan(prev):
            if run < w:
                continue
            prev = _window_means(values[i - w + 1:i + 1], w)[0]
        else:
            prev = (x - prev) * alpha + prev
        result[i] = prev
    out[:] = result
    return out


def compute_bollinger(
    close: Any, window: int = 20, n_std: float = 2.0
) -> pd.DataFrame:
    """
    Compute Bollinger Bands (upper, middle, lower).  The middle band is
    the SMA; the band offset uses the population standard deviation of
    the same window (divide by ``window``, not ``window - 1``).
    """
    s = _as_series(close)
    middle = compute_sma(s, window)
    std = _blank(s)
    w = _period(window)
    if w is not None and len(s) >= w:
        std.iloc[w - 1:] = sliding_window_view(s.to_numpy(), w).std(axis=1)
    try:
        k = float(n_std)
    except (TypeError, ValueError):
        k = float("nan")
    upper = middle + k * std
    lower = middle - k * std
    return pd.DataFrame({"upper": upper, "middle": middle, "lower": lower})


def compute_rsi(close: Any, window: int = 14) -> pd.Series:
    """
    Compute the Relative Strength Index (RSI).

    Each value re-averages the trailing ``window`` gains and losses
    (no exponential smoothing), so the first reading sits at index
    ``window``.  A window without losses reads exactly 100.
    """
    s = _as_series(close)
    out = _blank(s)
    w = _period(window)
    if w is None or len(s) <= w:
        return out
    delta = np.diff(s.to_numpy())
    gains = np.clip(delta, 0.0, None)
    losses = np.clip(-delta, 0.0, None)
    avg_gain = _window_means(gains, w)
    avg_loss = _window_means(losses, w)
    with np.errstate(divide="ignore", invalid="ignore"):
        rsi = 100.0 - 100.0 / (1.0 + avg_gain / avg_loss)
    rsi = np.where(avg_loss == 0, 100.0, rsi)
    rsi = np.where(np.isnan(avg_gain) | np.isnan(avg_loss), np.nan, rsi)
    out.iloc[w:] = rsi
    return out


def compute_true_range(high: Any, low: Any, close: Any) -> pd.Series:
    """True range per candle; the first candle uses ``high - low``."""
    h, l, c = _aligned(high, low, close)
    if c.empty:
        return _blank(c)
    prev_close = c.shift(1)
    tr = pd.concat(
        [h - l, (h - prev_close).abs(), (l - prev_close).abs()], axis=1
    ).max(axis=1, skipna=False)
    tr.iloc[0] = h.iloc[0] - l.iloc[0]
    return tr


def compute_atr(high: Any, low: Any, close: Any, window: int = 14) -> pd.Series:
    """
    Average True Range: mean of the trailing ``window`` true ranges,
    reported from index ``window`` onwards.
    """
    tr = compute_true_range(high, low, close)
    out = _blank(tr)
    w = _period(window)
    if w is None or len(tr) <= w:
        return out
    out.iloc[w:] = _window_means(tr.to_numpy(), w)[1:]
    return out


def compute_stochastic(
    high: Any, low: Any, close: Any, k_window: int = 14, d_window: int = 3
) -> pd.DataFrame:
    """
    Stochastic oscillator.  %K places the close inside the high/low range
    of the last ``k_window`` candles (0-100); %D is the SMA of %K.  A flat
    range has no defined %K.
    """
    h, l, c = _aligned(high, low, close)
    k = _blank(c)
    w = _period(k_window)
    if w is not None and len(c) >= w:
        lowest = l.rolling(window=w, min_periods=w).min()
        highest = h.rolling(window=w, min_periods=w).max()
        rng = highest - lowest
        k = (c - lowest) / rng.where(rng > 0) * 100.0
    d = compute_sma(k, d_window)
    return pd.DataFrame({"k": k, "d": d})


def compute_stoch_rsi(close: Any, window: int = 14, d_window: int = 3) -> pd.DataFrame:
    """Stochastic normalisation applied to the RSI series instead of price."""
    rsi = compute_rsi(close, window)
    return compute_stochastic(rsi, rsi, rsi, k_window=window, d_window=d_window)


def compute_macd(
    close: Any, fast: int = 12, slow: int = 26, signal: int = 9
) -> pd.DataFrame:
    """
    Compute the Moving Average Convergence Divergence (MACD).
    Returns a DataFrame with columns macd, signal and histogram.
    """
    macd_line = compute_ema(close, fast) - compute_ema(close, slow)
    signal_line = compute_ema(macd_line, signal)
    histogram = macd_line - signal_line
    return pd.DataFrame(
        {"macd": macd_line, "signal": signal_line, "histogram": histogram}
    )


def compute_obv(close: Any, volume: Any) -> pd.Series:
    """
    On-Balance Volume: starts at the first volume, then adds volume on
    rising closes and subtracts it on falling closes.
    """
    v, c = _aligned(volume, close)
    if c.empty:
        return _blank(c)
    flow = v * np.sign(c.diff())
    flow.iloc[0] = v.iloc[0]
    return flow.cumsum()


def compute_adx(high: Any, low: Any, close: Any, window: int = 14) -> pd.DataFrame:
    """
    Compute Wilder's Average Directional Index with its +DI/-DI lines.

    Directional movement and true range are smoothed with Wilder's
    ``alpha = 1/window`` recurrence; ADX is the Wilder average of DX and
    first appears at index ``2 * window - 1``.  A bar range of zero leaves
    DI/DX undefined.
    """
    h, l, c = _aligned(high, low, close)
    blank = _blank(c)
    w = _period(window)
    if w is None or len(c) <= w:
        return pd.DataFrame({"adx": blank, "plus_di": blank, "minus_di": blank})

    up = h.diff()
    down = -l.diff()
    plus_dm = up.where((up > down) & (up > 0), 0.0)
    minus_dm = down.where((down > up) & (down > 0), 0.0)
    plus_dm[up.isna() | down.isna()] = np.nan
    minus_dm[up.isna() | down.isna()] = np.nan
    tr = compute_true_range(h, l, c)
    tr.iloc[0] = np.nan

    def _wilder(series: pd.Series) -> pd.Series:
        return series.ewm(alpha=1.0 / w, adjust=False, min_periods=w).mean()

    atr = _wilder(tr)
    atr = atr.where(atr > 0)
    plus_di = 100.0 * _wilder(plus_dm) / atr
    minus_di = 100.0 * _wilder(minus_dm) / atr
    di_sum = plus_di + minus_di
    dx = 100.0 * (plus_di - minus_di).abs() / di_sum.where(di_sum > 0)
    adx = _wilder(dx)

    bad = h.isna() | l.isna() | c.isna()
    for col in (adx, plus_di, minus_di):
        col[bad] = np.nan
    return pd.DataFrame({"adx": adx, "plus_di": plus_di, "minus_di": minus_di})


def compute_support_resistance(high: Any, low: Any, lookback: int = 20) -> pd.DataFrame:
    """
    Support is the lowest low and resistance the highest high of the
    trailing ``lookback`` candles.
    """
    h, l = _aligned(high, low)
    w = _period(lookback)
    if w is None or len(l) < w:
        return pd.DataFrame({"support": _blank(l), "resistance": _blank(l)})
    support = l.rolling(window=w, min_periods=w).min()
    resistance = h.rolling(window=w, min_periods=w).max()
    return pd.DataFrame({"support": support, "resistance": resistance})
