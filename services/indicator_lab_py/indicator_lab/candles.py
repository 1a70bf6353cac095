# indicator_lab/candles.py
"""Candle records and their conversion into the canonical OHLCV frame.

Every calculation in the package works on a pandas DataFrame with the
columns ``timestamp, open, high, low, close, volume`` and a positional
RangeIndex, so that row ``i`` is candle ``i`` of the caller's sequence.
"""
from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Union

import pandas as pd
from pandas.api.types import is_datetime64_any_dtype
from pydantic import BaseModel, ConfigDict, ValidationError

PRICE_COLUMNS = ["open", "high", "low", "close", "volume"]
COLUMNS = ["timestamp"] + PRICE_COLUMNS

_EPOCH = pd.Timestamp("1970-01-01", tz="UTC")


class CandleDataError(ValueError):
    """Raised when candle input cannot be turned into an OHLCV frame."""


class Candle(BaseModel):
    """One OHLCV sample; ``timestamp`` is milliseconds since the epoch."""

    model_config = ConfigDict(frozen=True)

    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float


CandleInput = Union[pd.DataFrame, Iterable[Union[Candle, Mapping[str, Any]]], None]


def empty_frame() -> pd.DataFrame:
    frame = pd.DataFrame({col: pd.Series(dtype=float) for col in PRICE_COLUMNS})
    frame.insert(0, "timestamp", pd.Series(dtype="int64"))
    return frame


def _index_to_ms(index: pd.Index) -> pd.Series:
    idx = pd.DatetimeIndex(index)
    if idx.tz is None:
        idx = idx.tz_localize("UTC")
    else:
        idx = idx.tz_convert("UTC")
    ms = (idx - _EPOCH) // pd.Timedelta(milliseconds=1)
    return pd.Series(ms, dtype="int64")


def _from_dataframe(df: pd.DataFrame) -> pd.DataFrame:
    missing = [c for c in PRICE_COLUMNS if c not in df.columns]
    if missing:
        raise CandleDataError(f"candle frame is missing columns: {', '.join(missing)}")
    try:
        prices = df[PRICE_COLUMNS].apply(pd.to_numeric).astype(float).reset_index(drop=True)
    except (TypeError, ValueError) as exc:
        raise CandleDataError(f"candle frame has non-numeric prices: {exc}") from exc

    if "timestamp" in df.columns and is_datetime64_any_dtype(df["timestamp"]):
        ts = _index_to_ms(pd.DatetimeIndex(df["timestamp"]))
    elif "timestamp" in df.columns:
        try:
            ts = pd.to_numeric(df["timestamp"]).astype("int64").reset_index(drop=True)
        except (TypeError, ValueError) as exc:
            raise CandleDataError(f"candle frame has invalid timestamps: {exc}") from exc
    elif isinstance(df.index, pd.DatetimeIndex):
        ts = _index_to_ms(df.index)
    else:
        raise CandleDataError("candle frame needs a timestamp column or a DatetimeIndex")

    prices.insert(0, "timestamp", ts)
    return prices


def to_candles(records: Iterable[Union[Candle, Mapping[str, Any]]]) -> List[Candle]:
    """Validate a sequence of candle records (Candle objects or dicts)."""
    out: List[Candle] = []
    for pos, rec in enumerate(records):
        if isinstance(rec, Candle):
            out.append(rec)
            continue
        try:
            out.append(Candle.model_validate(rec))
        except ValidationError as exc:
            raise CandleDataError(f"invalid candle at position {pos}: {exc}") from exc
    return out


def to_frame(candles: CandleInput) -> pd.DataFrame:
    """
    Normalise any supported candle input into the canonical OHLCV frame.
    NaN or infinite prices are kept; the indicator functions treat them
    as undefined samples.
    """
    if candles is None:
        return empty_frame()
    if isinstance(candles, pd.DataFrame):
        if candles.empty:
            return empty_frame()
        return _from_dataframe(candles)
    rows = to_candles(candles)
    if not rows:
        return empty_frame()
    df = pd.DataFrame([c.model_dump() for c in rows], columns=COLUMNS)
    df["timestamp"] = df["timestamp"].astype("int64")
    df[PRICE_COLUMNS] = df[PRICE_COLUMNS].astype(float)
    return df
