"""
Volatility Indicators Module

Implements the volatility measures the regime classifier needs internally:
- True Range
- ATR (Average True Range, Wilder smoothing)

All functions accept a pandas DataFrame with 'high', 'low', 'close' columns
and return pandas Series with proper index alignment.
"""

import numpy as np
import pandas as pd

from signal_assessor.indicators.validation_utils import validate_ohlcv


def compute_true_range(df: pd.DataFrame) -> pd.Series:
    """
    Compute the True Range of every candle after the first.

    True Range is the greatest of:
    - Current High - Current Low
    - |Current High - Previous Close|
    - |Current Low - Previous Close|

    Args:
        df: DataFrame with 'high', 'low', 'close' columns

    Returns:
        pd.Series: True range values, indexed like ``df.iloc[1:]``
    """
    high_low = df['high'] - df['low']
    high_close = (df['high'] - df['close'].shift()).abs()
    low_close = (df['low'] - df['close'].shift()).abs()
    true_range = pd.concat([high_low, high_close, low_close], axis=1).max(axis=1)
    return true_range.iloc[1:]


def compute_atr(df: pd.DataFrame, period: int = 14, validate_input: bool = True) -> pd.Series:
    """
    Compute Average True Range (ATR) with Wilder smoothing.

    The period adapts to short inputs: with ``n`` candles the effective period
    is ``min(period, n - 1)``. The first ATR value is the simple average of the
    first effective-period true ranges; every later value is
    ``(prev * (p - 1) + tr) / p``.

    Args:
        df: DataFrame with 'high', 'low', 'close' columns
        period: ATR period (default 14)
        validate_input: If True, validate column presence (default True)

    Returns:
        pd.Series: ATR values, one per true range from the seed onward.
        Empty when fewer than 2 candles are supplied.

    Raises:
        DataValidationError: If required columns are missing
    """
    if validate_input:
        validate_ohlcv(
            df,
            require_volume=False,
            check_nan=False,
            check_positive_prices=False,
            check_candle_integrity=False,
            raise_on_error=True,
        )

    if len(df) < 2:
        return pd.Series(dtype=float)

    true_range = compute_true_range(df).to_numpy(dtype=float)
    effective_period = min(period, len(df) - 1)

    values = [true_range[:effective_period].mean()]
    for tr in true_range[effective_period:]:
        values.append((values[-1] * (effective_period - 1) + tr) / effective_period)

    index = df.index[effective_period:]
    return pd.Series(np.asarray(values, dtype=float), index=index)
