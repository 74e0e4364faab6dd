"""
Unit tests for True Range and Wilder ATR.
"""

import pandas as pd
import pytest

from signal_assessor.indicators import DataValidationError, compute_atr, compute_true_range
from signal_assessor.tests.fixtures.market_data import candles_to_frame, flat_candles, make_ohlcv_df


def test_true_range_of_flat_candles():
    df = candles_to_frame(flat_candles(10))
    tr = compute_true_range(df)

    assert len(tr) == 9
    assert (tr == 1.0).all()


def test_true_range_uses_previous_close_gap():
    df = pd.DataFrame({
        'high': [101.0, 111.0],
        'low': [99.0, 109.0],
        'close': [100.0, 110.0],
    })
    # Gap up: |111 - 100| beats the 2.0 candle range
    assert compute_true_range(df).iloc[0] == 11.0


def test_atr_length_and_index():
    df = make_ohlcv_df(30)
    atr = compute_atr(df, period=14)

    assert len(atr) == 16
    assert atr.index[0] == df.index[14]
    assert atr.index[-1] == df.index[-1]


def test_atr_wilder_recurrence():
    df = make_ohlcv_df(25)
    period = 5
    tr = compute_true_range(df).to_numpy()

    expected = [tr[:period].mean()]
    for value in tr[period:]:
        expected.append((expected[-1] * (period - 1) + value) / period)

    atr = compute_atr(df, period=period)
    assert list(atr.to_numpy()) == pytest.approx(expected)


def test_atr_adapts_period_to_short_input():
    df = make_ohlcv_df(5)
    atr = compute_atr(df, period=14)

    assert len(atr) == 1
    assert atr.iloc[0] == pytest.approx(compute_true_range(df).mean())


def test_atr_needs_two_candles():
    assert compute_atr(make_ohlcv_df(1)).empty


def test_atr_missing_columns():
    with pytest.raises(DataValidationError, match="Missing required columns"):
        compute_atr(pd.DataFrame({'close': [1.0, 2.0, 3.0]}))
