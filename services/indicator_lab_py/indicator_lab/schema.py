"""
Static catalogue of the indicators the dashboard offers.

Each ``IndicatorId`` has one ``IndicatorConfig`` describing its
parameters (label, range, default, step) together with the short
educational texts shown next to the chart.  Range enforcement is left to
the UI; ``resolve_parameters`` only fills in defaults.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .config import get_logger

logger = get_logger("indicator_lab.schema")


class IndicatorId(str, Enum):
    RSI = "rsi"
    SMA = "sma"
    EMA = "ema"
    MACD = "macd"
    BBANDS = "bbands"
    ADX = "adx"
    ATR = "atr"
    STOCH = "stoch"
    STOCHRSI = "stochrsi"
    OBV = "obv"
    SUPPORT_RESISTANCE = "support_resistance"

    @classmethod
    def parse(cls, value: Any) -> Optional["IndicatorId"]:
        """Return the matching id, or None for anything not in the catalogue."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class IndicatorParameter:
    name: str
    label: str
    min: float
    max: float
    default: float
    step: float
    alias: Optional[str] = None  # camelCase key used by the browser


@dataclass(frozen=True)
class IndicatorConfig:
    id: IndicatorId
    name: str
    category: str  # momentum | trend | volatility
    description: str
    common_mistakes: str
    parameters: Tuple[IndicatorParameter, ...] = field(default_factory=tuple)

    def defaults(self) -> Dict[str, float]:
        return {p.name: p.default for p in self.parameters}


def _period(low: float, high: float, default: float) -> IndicatorParameter:
    return IndicatorParameter("period", "Period", low, high, default, 1)


INDICATOR_CONFIGS: Dict[IndicatorId, IndicatorConfig] = {
    cfg.id: cfg
    for cfg in (
        IndicatorConfig(
            IndicatorId.RSI,
            "RSI",
            "momentum",
            "Relative Strength Index measures the speed and magnitude of recent price "
            "changes. It oscillates between 0-100, with readings above 70 considered "
            "overbought and below 30 oversold.",
            "RSI above 70 doesn't mean \"sell now\" — strong trends can stay overbought "
            "for weeks. Use it to understand market stretch, not as a trading trigger.",
            (_period(5, 30, 14),),
        ),
        IndicatorConfig(
            IndicatorId.MACD,
            "MACD",
            "momentum",
            "Moving Average Convergence Divergence shows the relationship between two "
            "moving averages. The histogram reveals momentum shifts.",
            "MACD crossovers lag behind price action. They're better for confirming "
            "trends than predicting reversals.",
            (
                IndicatorParameter("fast_period", "Fast Period", 8, 20, 12, 1, "fastPeriod"),
                IndicatorParameter("slow_period", "Slow Period", 20, 35, 26, 1, "slowPeriod"),
                IndicatorParameter("signal_period", "Signal Period", 5, 15, 9, 1, "signalPeriod"),
            ),
        ),
        IndicatorConfig(
            IndicatorId.STOCH,
            "Stochastic",
            "momentum",
            "Stochastic Oscillator compares closing price to the price range over a "
            "period. Shows where price closed relative to recent highs/lows.",
            "Like RSI, overbought/oversold readings can persist in strong trends. "
            "It's about context, not absolutes.",
            (
                IndicatorParameter("k_period", "K Period", 5, 21, 14, 1, "kPeriod"),
                IndicatorParameter("d_period", "D Period", 1, 10, 3, 1, "dPeriod"),
            ),
        ),
        IndicatorConfig(
            IndicatorId.STOCHRSI,
            "Stoch RSI",
            "momentum",
            "Applies the Stochastic formula to RSI values instead of price. More "
            "sensitive than regular RSI.",
            "Higher sensitivity means more false signals. Great for spotting short-term "
            "shifts, not trend direction.",
            (_period(5, 21, 14),),
        ),
        IndicatorConfig(
            IndicatorId.OBV,
            "OBV",
            "momentum",
            "On-Balance Volume adds volume on up days and subtracts on down days. Shows "
            "whether volume flows into or out of an asset.",
            "OBV divergences from price can take a long time to resolve. It's a leading "
            "indicator but requires patience.",
        ),
        IndicatorConfig(
            IndicatorId.SMA,
            "SMA",
            "trend",
            "Simple Moving Average smooths price data by calculating the average over a "
            "specified period. Great for identifying trend direction.",
            "Moving averages lag behind price. They tell you where price has been, not "
            "where it's going.",
            (_period(5, 200, 20),),
        ),
        IndicatorConfig(
            IndicatorId.EMA,
            "EMA",
            "trend",
            "Exponential Moving Average gives more weight to recent prices, making it "
            "more responsive than SMA.",
            "Faster response = more whipsaws. EMA is great for trends but can generate "
            "false signals in choppy markets.",
            (_period(5, 200, 20),),
        ),
        IndicatorConfig(
            IndicatorId.ADX,
            "ADX",
            "trend",
            "Average Directional Index measures trend strength, not direction. Above "
            "25 = trending, below 20 = ranging.",
            "ADX doesn't tell you if the trend is up or down, just how strong it is. "
            "High ADX in a downtrend is still a strong trend.",
            (_period(7, 28, 14),),
        ),
        IndicatorConfig(
            IndicatorId.BBANDS,
            "Bollinger Bands",
            "volatility",
            "Bands that expand and contract based on volatility. Price touching the "
            "bands shows relative high/low.",
            "Price can \"walk the band\" in strong trends. Touching upper band doesn't "
            "mean overbought in an uptrend.",
            (
                _period(10, 30, 20),
                IndicatorParameter("std_dev", "Std Deviation", 1, 3, 2, 0.5, "stdDev"),
            ),
        ),
        IndicatorConfig(
            IndicatorId.ATR,
            "ATR",
            "volatility",
            "Average True Range measures volatility by looking at the range of each "
            "candle. Higher ATR = higher volatility.",
            "ATR doesn't indicate direction. It's useful for position sizing and "
            "setting stop-losses, not predicting moves.",
            (_period(7, 28, 14),),
        ),
        IndicatorConfig(
            IndicatorId.SUPPORT_RESISTANCE,
            "Support/Resistance",
            "volatility",
            "Key price levels where buyers (support) or sellers (resistance) have "
            "historically been active.",
            "S/R levels are zones, not exact prices. Price often overshoots before "
            "reversing — don't trade exact touches.",
        ),
    )
}

PRESETS: Dict[str, List[IndicatorId]] = {
    "momentum": [IndicatorId.RSI, IndicatorId.MACD, IndicatorId.OBV],
    "trend": [IndicatorId.SMA, IndicatorId.EMA, IndicatorId.ADX],
    "volatility": [IndicatorId.BBANDS, IndicatorId.ATR],
}


def get_config(indicator: Any) -> Optional[IndicatorConfig]:
    ind = IndicatorId.parse(indicator)
    return INDICATOR_CONFIGS.get(ind) if ind is not None else None


def resolve_parameters(
    indicator: IndicatorId, raw: Optional[Mapping[str, Any]] = None
) -> Dict[str, float]:
    """
    Merge caller-supplied parameters over the schema defaults.

    Keys may use the snake_case name or the camelCase alias.  Missing or
    None values take the default; values that are not numbers are logged
    and replaced by the default.  Out-of-range numbers pass through
    unchanged.
    """
    cfg = INDICATOR_CONFIGS[indicator]
    raw = raw or {}
    resolved: Dict[str, float] = {}
    for param in cfg.parameters:
        value = raw.get(param.name)
        if value is None and param.alias:
            value = raw.get(param.alias)
        if value is None:
            resolved[param.name] = param.default
            continue
        try:
            resolved[param.name] = float(value)
        except (TypeError, ValueError):
            logger.warning(
                "Ignoring non-numeric %s.%s=%r; using default %s",
                indicator.value, param.name, value, param.default,
            )
            resolved[param.name] = param.default
    return resolved
