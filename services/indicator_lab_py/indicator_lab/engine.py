"""
Indicator engine: turn a candle sequence, a selection of indicator ids
and a parameter map into the series the dashboard plots.

Every series in the result has exactly one entry per candle.  Entries
that are not yet defined (warm-up, flat ranges, bad input samples) are
``None``; NaN and infinity never leave this module.
"""
from __future__ import annotations

import math
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

import pandas as pd

from .candles import CandleInput, to_frame
from .config import get_logger
from .indicators import (
    compute_adx,
    compute_atr,
    compute_bollinger,
    compute_ema,
    compute_macd,
    compute_obv,
    compute_rsi,
    compute_sma,
    compute_stoch_rsi,
    compute_stochastic,
    compute_support_resistance,
)
from .schema import IndicatorId, resolve_parameters

logger = get_logger("indicator_lab.engine")

SeriesMap = Dict[str, Dict[str, List[Optional[float]]]]
ParameterMap = Mapping[str, Mapping[str, Any]]

SUPPORT_RESISTANCE_LOOKBACK = 20
STOCHRSI_D_PERIOD = 3


def _build_rsi(df: pd.DataFrame, p: Dict[str, float]) -> Dict[str, pd.Series]:
    return {"value": compute_rsi(df["close"], p["period"])}


def _build_sma(df: pd.DataFrame, p: Dict[str, float]) -> Dict[str, pd.Series]:
    return {"value": compute_sma(df["close"], p["period"])}


def _build_ema(df: pd.DataFrame, p: Dict[str, float]) -> Dict[str, pd.Series]:
    return {"value": compute_ema(df["close"], p["period"])}


def _build_macd(df: pd.DataFrame, p: Dict[str, float]) -> Dict[str, pd.Series]:
    macd = compute_macd(
        df["close"], p["fast_period"], p["slow_period"], p["signal_period"]
    )
    return {col: macd[col] for col in ("macd", "signal", "histogram")}


def _build_bbands(df: pd.DataFrame, p: Dict[str, float]) -> Dict[str, pd.Series]:
    bb = compute_bollinger(df["close"], p["period"], p["std_dev"])
    return {col: bb[col] for col in ("upper", "middle", "lower")}


def _build_adx(df: pd.DataFrame, p: Dict[str, float]) -> Dict[str, pd.Series]:
    adx = compute_adx(df["high"], df["low"], df["close"], p["period"])
    return {"value": adx["adx"], "plus_di": adx["plus_di"], "minus_di": adx["minus_di"]}


def _build_atr(df: pd.DataFrame, p: Dict[str, float]) -> Dict[str, pd.Series]:
    return {"value": compute_atr(df["high"], df["low"], df["close"], p["period"])}


def _build_stoch(df: pd.DataFrame, p: Dict[str, float]) -> Dict[str, pd.Series]:
    st = compute_stochastic(
        df["high"], df["low"], df["close"], p["k_period"], p["d_period"]
    )
    return {"k": st["k"], "d": st["d"]}


def _build_stochrsi(df: pd.DataFrame, p: Dict[str, float]) -> Dict[str, pd.Series]:
    st = compute_stoch_rsi(df["close"], p["period"], STOCHRSI_D_PERIOD)
    return {"k": st["k"], "d": st["d"]}


def _build_obv(df: pd.DataFrame, p: Dict[str, float]) -> Dict[str, pd.Series]:
    return {"value": compute_obv(df["close"], df["volume"])}


def _build_support_resistance(df: pd.DataFrame, p: Dict[str, float]) -> Dict[str, pd.Series]:
    levels = compute_support_resistance(df["high"], df["low"], SUPPORT_RESISTANCE_LOOKBACK)
    return {"support": levels["support"], "resistance": levels["resistance"]}


_BUILDERS: Dict[IndicatorId, Callable[[pd.DataFrame, Dict[str, float]], Dict[str, pd.Series]]] = {
    IndicatorId.RSI: _build_rsi,
    IndicatorId.SMA: _build_sma,
    IndicatorId.EMA: _build_ema,
    IndicatorId.MACD: _build_macd,
    IndicatorId.BBANDS: _build_bbands,
    IndicatorId.ADX: _build_adx,
    IndicatorId.ATR: _build_atr,
    IndicatorId.STOCH: _build_stoch,
    IndicatorId.STOCHRSI: _build_stochrsi,
    IndicatorId.OBV: _build_obv,
    IndicatorId.SUPPORT_RESISTANCE: _build_support_resistance,
}


def to_optional_list(series: pd.Series) -> List[Optional[float]]:
    """Convert a float Series to a list, mapping NaN/inf to None."""
    return [float(x) if math.isfinite(x) else None for x in series.to_numpy(dtype=float)]


def calculate_indicator(
    candles: CandleInput,
    indicator: Any,
    parameters: Optional[Mapping[str, Any]] = None,
) -> Optional[Dict[str, List[Optional[float]]]]:
    """Compute a single indicator; None when the id is not in the catalogue."""
    ind = IndicatorId.parse(indicator)
    if ind is None:
        return None
    return _compute(to_frame(candles), ind, parameters)


def _compute(
    df: pd.DataFrame, ind: IndicatorId, raw: Optional[Mapping[str, Any]]
) -> Dict[str, List[Optional[float]]]:
    params = resolve_parameters(ind, raw)
    outputs = _BUILDERS[ind](df, params)
    return {name: to_optional_list(series) for name, series in outputs.items()}


def calculate_indicators(
    candles: CandleInput,
    selected: Iterable[Any],
    parameters: Optional[ParameterMap] = None,
) -> SeriesMap:
    """
    Compute every selected indicator over the candles.

    ``parameters`` maps indicator id to its parameter values; anything
    missing falls back to the schema defaults.  Ids outside the catalogue
    are skipped.  The same inputs always produce the same output.
    """
    df = to_frame(candles)
    parameters = parameters or {}
    result: SeriesMap = {}
    for raw_id in selected or ():
        ind = IndicatorId.parse(raw_id)
        if ind is None:
            logger.debug("Skipping unknown indicator id %r", raw_id)
            continue
        if ind.value in result:
            continue
        result[ind.value] = _compute(df, ind, parameters.get(ind.value))
    logger.debug("Computed %d indicator(s) over %d candles", len(result), len(df))
    return result
