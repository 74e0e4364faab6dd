"""
Unit tests for candle normalisation, validation and numeric guards.
"""

import math

import numpy as np
import pandas as pd
import pytest

from signal_assessor.indicators import DataValidationError, validate_ohlcv
from signal_assessor.shared.models.data import (
    CANDLE_COLUMNS,
    Candle,
    candle_frame_or_empty,
    candle_time,
    known_candle_time,
    to_candle_frame,
)
from signal_assessor.shared.models.indicators import Indicators
from signal_assessor.shared.utils.numeric import clamp, finite_or_zero, is_finite_number, safe_ratio
from signal_assessor.tests.fixtures.market_data import flat_candles, make_ohlcv_df


# ---------------------------------------------------------------------------
# Candle
# ---------------------------------------------------------------------------

def test_candle_rejects_inverted_range():
    with pytest.raises(ValueError, match="cannot be less than Low"):
        Candle(time=0, open=100.0, high=99.0, low=101.0, close=100.0, volume=1.0)


def test_candle_rejects_negative_volume():
    with pytest.raises(ValueError, match="Volume cannot be negative"):
        Candle(time=0, open=100.0, high=101.0, low=99.0, close=100.0, volume=-1.0)


def test_candle_from_mapping_accepts_timestamp_key():
    candle = Candle.from_mapping({'timestamp': 1000, 'open': 1, 'high': 2, 'low': 0.5, 'close': 1.5})

    assert candle.time == 1000
    assert candle.volume == 0.0


# ---------------------------------------------------------------------------
# Candle frames
# ---------------------------------------------------------------------------

def test_frame_from_candles():
    df = to_candle_frame(flat_candles(5))

    assert list(df.columns) == CANDLE_COLUMNS
    assert len(df) == 5
    assert df['close'].tolist() == [100.0] * 5


def test_frame_from_datetime_index():
    source = make_ohlcv_df(3)
    df = to_candle_frame(source)

    assert df['time'].iloc[0] == pd.Timestamp('2024-01-01', tz='UTC').timestamp() * 1000
    assert df.index.tolist() == [0, 1, 2]


def test_frame_without_time_information():
    df = to_candle_frame(pd.DataFrame({'high': [2.0], 'low': [1.0], 'close': [1.5], 'volume': [10.0]}))

    assert np.isnan(df['time'].iloc[0])
    assert df['open'].iloc[0] == 1.5


def test_frame_missing_columns_raises():
    with pytest.raises(DataValidationError, match="Missing required columns"):
        to_candle_frame(pd.DataFrame({'close': [1.0]}))


def test_frame_or_empty_swallows_structural_errors():
    df = candle_frame_or_empty(pd.DataFrame({'close': [1.0]}), 'test')

    assert df.empty
    assert list(df.columns) == CANDLE_COLUMNS


def test_empty_inputs():
    assert to_candle_frame(None).empty
    assert to_candle_frame([]).empty


def test_candle_time_fallbacks():
    assert candle_time(1234.0) == 1234
    assert candle_time(float('nan'), default=5) == 5
    assert candle_time(None) > 0


def test_known_candle_time_keeps_unknown_as_none():
    assert known_candle_time(1234.0) == 1234
    assert known_candle_time(float('nan')) is None
    assert known_candle_time(None) is None
    assert known_candle_time(0) is None


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def test_validate_reports_bad_candles():
    df = pd.DataFrame({
        'high': [10.0, 5.0, 10.0],
        'low': [9.0, 6.0, 9.0],
        'close': [9.5, -1.0, 9.5],
        'volume': [1.0, -1.0, 1.0],
    })
    result = validate_ohlcv(df, raise_on_error=False)

    assert result['valid'] is False
    assert any('inverted' in e for e in result['errors'])
    assert any('non-positive' in e for e in result['errors'])
    assert any('negative volume' in e for e in result['errors'])


def test_validate_raises_by_default():
    df = pd.DataFrame({'high': [1.0], 'low': [2.0], 'close': [1.5], 'volume': [1.0]})
    with pytest.raises(DataValidationError):
        validate_ohlcv(df)


def test_validate_min_rows():
    result = validate_ohlcv(make_ohlcv_df(5), min_rows=10, raise_on_error=False)
    assert result['valid'] is False


# ---------------------------------------------------------------------------
# Numeric guards / snapshot helpers
# ---------------------------------------------------------------------------

def test_numeric_guards():
    assert finite_or_zero(math.inf) == 0.0
    assert finite_or_zero('abc') == 0.0
    assert finite_or_zero(2) == 2.0
    assert is_finite_number(1.5)
    assert not is_finite_number(True)
    assert not is_finite_number(math.nan)
    assert clamp(5.0, 0.0, 1.0) == 1.0
    assert clamp(math.nan, -1.0, 1.0) == 0.0
    assert safe_ratio(1.0, 0.0) == 0.0
    assert safe_ratio(1.0, 4.0) == 0.25


def test_reference_price():
    assert Indicators(price=50.0).reference_price(100.0) == 50.0
    assert Indicators().reference_price(100.0) == 100.0
    assert Indicators(price=0.0).reference_price(None) == 0.0
