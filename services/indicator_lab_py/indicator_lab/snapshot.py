"""
One-call analysis of a candle window, plus a small refresh throttle for
callers that recompute on every settings change.
"""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Optional, TypeVar

from .candles import CandleInput, to_frame
from .config import MIN_REFRESH_INTERVAL_SECS, PATTERN_LOOKBACK, get_logger
from .engine import ParameterMap, SeriesMap, calculate_indicators
from .events import EventPin, PatternHint, build_event_pins, detect_pattern_hints
from .readings import (
    ChecklistItem,
    Insight,
    Readings,
    build_checklist,
    compute_readings,
    generate_insights,
)

logger = get_logger("indicator_lab.snapshot")

T = TypeVar("T")

# returned by RefreshThrottle.run when the call was not made
SKIPPED = object()


@dataclass
class Snapshot:
    series: SeriesMap
    events: List[EventPin] = field(default_factory=list)
    hints: List[PatternHint] = field(default_factory=list)
    readings: Optional[Readings] = None
    checklist: List[ChecklistItem] = field(default_factory=list)
    insights: List[Insight] = field(default_factory=list)


def analyze(
    candles: CandleInput,
    selected: Iterable[Any],
    parameters: Optional[ParameterMap] = None,
    lookback: int = PATTERN_LOOKBACK,
) -> Snapshot:
    """
    Compute indicators, event pins, pattern hints and the plain-language
    panels for one candle window.  Pure: no caching, no shared state.
    """
    df = to_frame(candles)
    selected = list(selected or ())
    series = calculate_indicators(df, selected, parameters)
    return Snapshot(
        series=series,
        events=build_event_pins(df, series, selected),
        hints=detect_pattern_hints(df, series, selected, lookback),
        readings=compute_readings(df, series),
        checklist=build_checklist(df, series),
        insights=generate_insights(df, series, selected, parameters),
    )


class RefreshThrottle:
    """
    Enforce a minimum interval between refreshes.

    The owner decides what a refresh is (refetching candles, rerunning
    ``analyze``); the throttle only tracks when the last one happened.
    """

    def __init__(
        self,
        min_interval: float = MIN_REFRESH_INTERVAL_SECS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.min_interval = max(0.0, float(min_interval))
        self._clock = clock
        self._last: Optional[float] = None

    def remaining(self) -> float:
        """Seconds until the next refresh is allowed (0 when ready)."""
        if self._last is None:
            return 0.0
        return max(0.0, self.min_interval - (self._clock() - self._last))

    def ready(self) -> bool:
        return self.remaining() <= 0.0

    def mark(self) -> None:
        self._last = self._clock()

    def run(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> Any:
        """
        Call ``fn`` if the interval has elapsed and return its result;
        otherwise return ``SKIPPED`` without calling it.
        """
        if not self.ready():
            logger.debug("Refresh skipped; %.2fs until next slot", self.remaining())
            return SKIPPED
        self.mark()
        return fn(*args, **kwargs)
