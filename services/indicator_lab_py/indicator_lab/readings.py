"""
Plain-language readings derived from the latest indicator values.

These helpers feed the "readings", "context checklist" and "what the
indicators are saying" panels.  They describe conditions only; none of
them is a buy/sell/hold signal.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from .candles import CandleInput, to_frame
from .schema import IndicatorId, resolve_parameters

SeriesLookup = Mapping[str, Mapping[str, Sequence[Optional[float]]]]

TREND_SLOPE_LOOKBACK = 5
TREND_SLOPE_SCALE = 8.0
STOP_BALANCED_ATR = 1.5
STOP_CONSERVATIVE_ATR = 2.0
MAX_CHECKLIST = 3


@dataclass(frozen=True)
class StopDistances:
    balanced: float
    conservative: float


@dataclass(frozen=True)
class Readings:
    trend_score: Optional[float]
    trend_label: str
    momentum_score: Optional[float]
    momentum_label: str
    atr_pct: Optional[float]
    band_width: Optional[float]
    stop_distances: Optional[StopDistances]


@dataclass(frozen=True)
class ChecklistItem:
    title: str
    body: str
    type: str  # "info" | "warning"


@dataclass(frozen=True)
class Insight:
    indicator: str
    title: str
    description: str
    sentiment: str  # "bullish" | "bearish" | "neutral"
    warning: Optional[str] = None


def _clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


def _values(series_map: SeriesLookup, indicator: str, name: str) -> Optional[Sequence[Optional[float]]]:
    return (series_map.get(indicator) or {}).get(name)


def last_valid(values: Optional[Sequence[Optional[float]]]) -> Optional[float]:
    """Most recent defined entry of a series, or None."""
    if not values:
        return None
    for v in reversed(values):
        if v is not None:
            return float(v)
    return None


def _last(values: Optional[Sequence[Optional[float]]]) -> Optional[float]:
    if not values:
        return None
    v = values[-1]
    return None if v is None else float(v)


def _last_close(candles: CandleInput) -> Optional[float]:
    df = to_frame(candles)
    if df.empty:
        return None
    close = float(df["close"].iloc[-1])
    return close if math.isfinite(close) else None


def compute_readings(candles: CandleInput, series_map: SeriesLookup) -> Readings:
    """Summarise trend, momentum and volatility from the latest values."""
    close = _last_close(candles)
    ema = _values(series_map, "ema", "value")
    ema_now = last_valid(ema)
    ema_prev = None
    if ema is not None and len(ema) > TREND_SLOPE_LOOKBACK:
        ema_prev = ema[len(ema) - TREND_SLOPE_LOOKBACK - 1]

    trend_score: Optional[float] = None
    trend_label = "Add EMA to see trend"
    if ema_now is not None and ema_prev and close is not None:
        slope_pct = (ema_now - ema_prev) / ema_prev * 100.0
        trend_score = _clamp(abs(slope_pct) * TREND_SLOPE_SCALE, 0.0, 100.0)
        trend_label = "Uptrend context" if close > ema_now else "Downtrend context"

    rsi_now = last_valid(_values(series_map, "rsi", "value"))
    momentum_score: Optional[float] = None
    momentum_label = "Add RSI to see momentum"
    if rsi_now is not None:
        momentum_score = _clamp((rsi_now - 50.0) / 50.0 * 50.0 + 50.0, 0.0, 100.0)
        if rsi_now > 60:
            momentum_label = "Constructive momentum"
        elif rsi_now < 40:
            momentum_label = "Defensive momentum"
        else:
            momentum_label = "Balanced momentum"

    atr_now = last_valid(_values(series_map, "atr", "value"))
    atr_pct = atr_now / close * 100.0 if atr_now is not None and close else None

    band_width: Optional[float] = None
    upper = last_valid(_values(series_map, "bbands", "upper"))
    lower = last_valid(_values(series_map, "bbands", "lower"))
    middle = last_valid(_values(series_map, "bbands", "middle"))
    if upper is not None and lower is not None and middle:
        band_width = (upper - lower) / middle * 100.0

    stops = None
    if atr_now is not None and close is not None:
        stops = StopDistances(
            balanced=close - atr_now * STOP_BALANCED_ATR,
            conservative=close - atr_now * STOP_CONSERVATIVE_ATR,
        )

    return Readings(
        trend_score=trend_score,
        trend_label=trend_label,
        momentum_score=momentum_score,
        momentum_label=momentum_label,
        atr_pct=atr_pct,
        band_width=band_width,
        stop_distances=stops,
    )


def build_checklist(candles: CandleInput, series_map: SeriesLookup) -> List[ChecklistItem]:
    """Context checklist built from the latest close, EMA and RSI."""
    close = _last_close(candles)
    ema = _last(_values(series_map, "ema", "value"))
    rsi = _last(_values(series_map, "rsi", "value"))
    if close is None or ema is None or rsi is None:
        return [ChecklistItem(
            "Add EMA + RSI",
            "Trend/momentum checklists need EMA and RSI selected.",
            "info",
        )]

    items: List[ChecklistItem] = []
    price_above = close > ema
    near_ema = ema != 0 and abs(close - ema) / abs(ema) < 0.01
    if price_above and rsi > 50:
        items.append(ChecklistItem(
            "Uptrend context",
            "Price above EMA and RSI > 50 — continuation setups often live here.",
            "info",
        ))
    if not price_above and rsi < 50:
        items.append(ChecklistItem(
            "Downtrend context",
            "Price below EMA and RSI < 50 — rallies can fail at the EMA.",
            "warning",
        ))
    if near_ema and 45 < rsi < 55:
        items.append(ChecklistItem(
            "Range-like chop",
            "Price near EMA with RSI ~50 — breakouts can whipsaw in ranges.",
            "info",
        ))
    return items[:MAX_CHECKLIST]


def _rsi_insight(value: float) -> Insight:
    if value > 70:
        return Insight(
            "RSI",
            f"RSI at {value:.1f} — Market stretched high",
            "This means buyers have been aggressive lately. Think of it like a rubber band pulled tight.",
            "neutral",
            "This is NOT a 'sell signal'. Strong uptrends can stay overbought for weeks. "
            "It just means the market is extended.",
        )
    if value < 30:
        return Insight(
            "RSI",
            f"RSI at {value:.1f} — Market stretched low",
            "Sellers have been in control. The rubber band is pulled down.",
            "neutral",
            "This is NOT a 'buy signal'. Downtrends can stay oversold for a long time. Context matters!",
        )
    return Insight(
        "RSI",
        f"RSI at {value:.1f} — Balanced zone",
        "Neither stretched high nor low. The market is in a neutral state.",
        "neutral",
    )


def generate_insights(
    candles: CandleInput,
    series_map: SeriesLookup,
    selected: Optional[Iterable[Any]] = None,
    parameters: Optional[Mapping[str, Mapping[str, Any]]] = None,
) -> List[Insight]:
    """One plain-language insight per selected indicator with a current value."""
    close = _last_close(candles)
    if close is None:
        return []
    parameters = parameters or {}
    insights: List[Insight] = []

    for raw_id in selected or ():
        ind = IndicatorId.parse(raw_id)
        if ind is None or ind.value not in series_map:
            continue

        if ind is IndicatorId.RSI:
            value = _last(_values(series_map, "rsi", "value"))
            if value is not None:
                insights.append(_rsi_insight(value))

        elif ind is IndicatorId.MACD:
            macd = _last(_values(series_map, "macd", "macd"))
            signal = _last(_values(series_map, "macd", "signal"))
            if macd is not None and signal is not None:
                bullish = macd > signal
                insights.append(Insight(
                    "MACD",
                    f"MACD {'above' if bullish else 'below'} signal line",
                    "Short-term momentum is positive relative to longer-term. The fast average is above the slow."
                    if bullish
                    else "Short-term momentum is negative. The fast average is below the slow.",
                    "bullish" if bullish else "bearish",
                    "MACD crossovers LAG behind price. They confirm what happened, not what will happen.",
                ))

        elif ind in (IndicatorId.SMA, IndicatorId.EMA):
            value = _last(_values(series_map, ind.value, "value"))
            if value is not None:
                above = close > value
                ma_type = ind.value.upper()
                period = int(resolve_parameters(ind, parameters.get(ind.value))["period"])
                insights.append(Insight(
                    ma_type,
                    f"Price {'above' if above else 'below'} {period}-period {ma_type}",
                    f"Current price is above the {period}-period average. Often seen as short-term strength."
                    if above
                    else f"Current price is below the {period}-period average. Price has been weaker than recent average.",
                    "bullish" if above else "bearish",
                    "Moving averages lag behind price. They show where price HAS been, not where it's going.",
                ))

        elif ind is IndicatorId.BBANDS:
            upper = _last(_values(series_map, "bbands", "upper"))
            lower = _last(_values(series_map, "bbands", "lower"))
            middle = _last(_values(series_map, "bbands", "middle"))
            if upper and lower and middle:
                width = (upper - lower) / middle * 100.0
                position = "upper half" if close > middle else "lower half"
                insights.append(Insight(
                    "Bollinger Bands",
                    f"Price in {position} of bands",
                    f"Bands are wide ({width:.1f}% spread) — volatility is elevated."
                    if width > 10
                    else f"Bands are narrow ({width:.1f}% spread) — volatility is compressed. "
                    "Big moves often follow squeezes.",
                    "neutral",
                    'Price can "walk the band" in strong trends. Touching the upper band in an '
                    "uptrend is normal, not a sell signal.",
                ))

        elif ind is IndicatorId.ADX:
            value = _last(_values(series_map, "adx", "value"))
            if value is not None:
                trending = value > 25
                insights.append(Insight(
                    "ADX",
                    f"ADX at {value:.1f} — {'Trending' if trending else 'Ranging'} market",
                    "A strong trend is in place. This could be UP or DOWN — ADX only measures strength, not direction."
                    if trending
                    else "The market is choppy or sideways. Trend-following strategies may struggle here.",
                    "neutral",
                    "High ADX in a downtrend still means strong trend. ADX rising while price falls = strong downtrend!",
                ))

        elif ind is IndicatorId.ATR:
            value = _last(_values(series_map, "atr", "value"))
            if value is not None and close:
                insights.append(Insight(
                    "ATR",
                    f"ATR is {value / close * 100.0:.2f}% of price",
                    "Average range per candle. Useful for sizing positions and setting stop-losses, not for direction.",
                    "neutral",
                    "ATR shows volatility, NOT direction. A high ATR just means big moves are happening.",
                ))

    return insights
