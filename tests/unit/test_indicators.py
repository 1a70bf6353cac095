import math
import os
import sys

import numpy as np
import pandas as pd
import pytest

# add indicator_lab_py to sys.path for tests
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '../../services/indicator_lab_py')))

from indicator_lab.indicators import (
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
    compute_true_range,
)

RAMP = [float(x) for x in range(100, 130)]


def test_compute_sma():
    closes = pd.Series([42150.0, 42310.0, 42280.0, 42405.0, 42390.0])
    sma3 = compute_sma(closes, 3)
    # last three closes average to 42358.33
    assert round(sma3.iloc[-1], 2) == 42358.33
    assert sma3.iloc[:2].isna().all()


def test_sma_warmup_is_prefix():
    sma = compute_sma(list(range(10)), 4)
    assert sma.isna().sum() == 3
    assert sma.iloc[:3].isna().all()
    assert sma.iloc[3:].notna().all()


def test_sma_scenario_ramp():
    assert compute_sma(RAMP, 14).iloc[13] == 106.5


def test_ema_seed_equals_sma():
    ema = compute_ema(RAMP, 14)
    sma = compute_sma(RAMP, 14)
    assert ema.iloc[:13].isna().all()
    assert ema.iloc[13] == sma.iloc[13] == 106.5


def test_ema_recurrence():
    ema = compute_ema(RAMP, 14)
    expected = (RAMP[14] - 106.5) * (2 / 15) + 106.5
    assert ema.iloc[14] == pytest.approx(expected)


def test_ema_skips_leading_undefined_values():
    values = [np.nan, np.nan, 1.0, 2.0, 3.0, 4.0]
    ema = compute_ema(values, 3)
    assert ema.iloc[:4].isna().all()
    assert ema.iloc[4] == pytest.approx(2.0)


def test_rsi_strictly_increasing_is_100():
    rsi = compute_rsi(RAMP, 14)
    assert rsi.iloc[:14].isna().all()
    assert rsi.iloc[14] == 100.0
    assert rsi.iloc[27] == 100.0


def test_rsi_no_losses_reads_100():
    # flat window: no losses at all
    rsi = compute_rsi([1.0] * 20, 14)
    assert rsi.iloc[-1] == 100.0


def test_rsi_strictly_decreasing_is_0():
    rsi = compute_rsi(RAMP[::-1], 14)
    assert rsi.iloc[14] == pytest.approx(0.0)


def test_rsi_bounded_on_random_walk():
    rng = np.random.default_rng(7)
    closes = 100 + np.cumsum(rng.normal(0, 1, 300))
    rsi = compute_rsi(closes, 14).dropna()
    assert len(rsi) == 300 - 14
    assert ((rsi >= 0) & (rsi <= 100)).all()


def test_rsi_uses_simple_trailing_average():
    closes = [10, 11, 10, 12, 11]
    rsi = compute_rsi(closes, 2)
    # window of deltas (-1, +2): avg gain 1, avg loss 0.5 -> RS 2
    assert rsi.iloc[3] == pytest.approx(100 - 100 / 3)


def test_bollinger_constant_closes():
    bb = compute_bollinger([50.0] * 15, 10, 2)
    defined = bb.iloc[9:]
    assert (defined["upper"] == 50.0).all()
    assert (defined["middle"] == 50.0).all()
    assert (defined["lower"] == 50.0).all()
    assert bb.iloc[:9].isna().all().all()


def test_bollinger_population_std():
    bb = compute_bollinger([1.0, 2.0, 3.0, 4.0], 4, 2)
    sigma = math.sqrt(1.25)
    assert bb["middle"].iloc[3] == pytest.approx(2.5)
    assert bb["upper"].iloc[3] == pytest.approx(2.5 + 2 * sigma)
    assert bb["lower"].iloc[3] == pytest.approx(2.5 - 2 * sigma)


def test_true_range_uses_previous_close():
    tr = compute_true_range([11, 15], [9, 13], [10, 14])
    assert tr.iloc[0] == 2
    # gap up: |15 - 10| dominates
    assert tr.iloc[1] == 5


def test_atr_flat_series_is_zero():
    flat = [42.0] * 30
    atr = compute_atr(flat, flat, flat, 14)
    assert atr.iloc[:14].isna().all()
    assert (atr.iloc[14:] == 0).all()


def test_atr_averages_trailing_true_ranges():
    highs = [11.0] * 6
    lows = [9.0] * 6
    closes = [10.0] * 6
    atr = compute_atr(highs, lows, closes, 3)
    assert atr.iloc[3] == pytest.approx(2.0)


def test_stochastic_flat_range_is_undefined():
    flat = [5.0] * 20
    st = compute_stochastic(flat, flat, flat, 14, 3)
    assert st["k"].isna().all()
    assert st["d"].isna().all()


def test_stochastic_close_at_high():
    closes = RAMP
    highs = [c + 1 for c in closes]
    lows = [c - 1 for c in closes]
    st = compute_stochastic(highs, lows, closes, 5, 3)
    k = st["k"].dropna()
    assert st["k"].iloc[:4].isna().all()
    assert ((k >= 0) & (k <= 100)).all()
    # close is 1 below the window high, range is 6 -> 5/6
    assert st["k"].iloc[4] == pytest.approx(500 / 6)
    assert st["d"].iloc[6] == pytest.approx(500 / 6)


def test_stoch_rsi_normalises_rsi():
    rng = np.random.default_rng(3)
    closes = 100 + np.cumsum(rng.normal(0, 1, 120))
    rsi = compute_rsi(closes, 14)
    expected = compute_stochastic(rsi, rsi, rsi, 14, 3)
    result = compute_stoch_rsi(closes, 14, 3)
    pd.testing.assert_frame_equal(result, expected)
    assert result["k"].iloc[:27].isna().all()


def test_macd_signal_seeds_after_macd_is_defined():
    rng = np.random.default_rng(11)
    closes = 100 + np.cumsum(rng.normal(0, 1, 80))
    macd = compute_macd(closes, 12, 26, 9)
    assert macd["macd"].iloc[:25].isna().all()
    assert macd["macd"].iloc[25:].notna().all()
    assert macd["signal"].iloc[:33].isna().all()
    assert macd["signal"].iloc[33] == pytest.approx(macd["macd"].iloc[25:34].mean())
    diff = (macd["macd"] - macd["signal"]).dropna()
    pd.testing.assert_series_equal(macd["histogram"].dropna(), diff, check_names=False)


def test_obv():
    obv = compute_obv([1, 2, 2, 1], [10, 20, 30, 40])
    assert obv.tolist() == [10, 30, 30, -10]


def test_adx_strong_trend():
    closes = RAMP
    highs = [c + 1 for c in closes]
    lows = [c - 1 for c in closes]
    adx = compute_adx(highs, lows, closes, 7)
    assert adx["adx"].iloc[:12].isna().all()
    assert adx["adx"].iloc[13] == pytest.approx(100.0)
    assert adx["plus_di"].iloc[7] == pytest.approx(50.0)
    assert adx["minus_di"].iloc[7] == pytest.approx(0.0)


def test_adx_bounded_on_random_walk():
    rng = np.random.default_rng(5)
    closes = 100 + np.cumsum(rng.normal(0, 1, 200))
    highs = closes + rng.uniform(0.1, 1.0, 200)
    lows = closes - rng.uniform(0.1, 1.0, 200)
    adx = compute_adx(highs, lows, closes, 14)["adx"].dropna()
    assert len(adx) == 200 - 27
    assert ((adx >= 0) & (adx <= 100)).all()


def test_adx_flat_series_is_undefined():
    flat = [10.0] * 40
    adx = compute_adx(flat, flat, flat, 14)
    assert adx.isna().all().all()


def test_support_resistance():
    highs = [float(x) for x in range(1, 31)]
    lows = [h - 2 for h in highs]
    levels = compute_support_resistance(highs, lows, 20)
    assert levels.iloc[:19].isna().all().all()
    assert levels["support"].iloc[19] == -1
    assert levels["resistance"].iloc[29] == 30


def test_empty_input_returns_empty():
    assert compute_sma([], 5).empty
    assert compute_ema([], 5).empty
    assert compute_rsi([], 5).empty
    assert compute_atr([], [], [], 5).empty
    assert compute_obv([], []).empty
    assert compute_bollinger([], 5).empty
    assert compute_stochastic([], [], [], 5, 3).empty
    assert compute_macd([]).empty
    assert compute_adx([], [], []).empty
    assert compute_support_resistance([], []).empty


@pytest.mark.parametrize("period", [0, -3, float("nan"), None, "x"])
def test_degenerate_period_gives_undefined(period):
    assert compute_sma(RAMP, period).isna().all()
    assert compute_ema(RAMP, period).isna().all()
    assert compute_rsi(RAMP, period).isna().all()
    assert compute_atr(RAMP, RAMP, RAMP, period).isna().all()


def test_period_longer_than_input():
    assert compute_sma(RAMP[:5], 10).isna().all()
    assert compute_ema(RAMP[:5], 10).isna().all()
    assert compute_rsi(RAMP[:5], 10).isna().all()


def test_non_finite_inputs_only_poison_their_windows():
    closes = [1.0, 2.0, np.nan, 4.0, 5.0, 6.0, np.inf, 8.0, 9.0, 10.0]
    sma = compute_sma(closes, 2)
    assert sma.iloc[2:4].isna().all()
    assert sma.iloc[4] == pytest.approx(4.5)
    assert sma.iloc[6:8].isna().all()
    assert sma.iloc[9] == pytest.approx(9.5)
    assert not np.isinf(sma).any()


def test_ema_reseeds_after_undefined_close():
    closes = [float(x) for x in range(100, 160)]
    closes[30] = np.nan
    ema = compute_ema(closes, 10)
    sma = compute_sma(closes, 10)
    assert ema.iloc[29] == pytest.approx(compute_ema(closes[:30], 10).iloc[29])
    assert ema.iloc[30:40].isna().all()
    # ten clean closes after the gap give a fresh SMA seed
    assert ema.iloc[40] == pytest.approx(sma.iloc[40])
    assert ema.iloc[40:].notna().all()


def test_macd_recovers_after_undefined_close():
    closes = [float(x) for x in range(100, 160)]
    closes[30] = np.inf
    macd = compute_macd(closes, 3, 6, 3)
    assert macd["macd"].iloc[29] == pytest.approx(macd["macd"].iloc[28])
    assert macd["macd"].iloc[30:36].isna().all()
    assert macd["macd"].iloc[36:].notna().all()
    assert macd["signal"].iloc[30:38].isna().all()
    assert macd["signal"].iloc[38:].notna().all()
