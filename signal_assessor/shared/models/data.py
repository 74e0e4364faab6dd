"""
Data models for OHLCV candle histories.

Analysis components accept a candle history either as a sequence of
:class:`Candle` records or as a pandas DataFrame with OHLCV columns. Both are
normalised into one DataFrame shape by :func:`to_candle_frame` so that every
component reads the same numbers.
"""

from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd
from loguru import logger

from signal_assessor.indicators.validation_utils import DataValidationError, validate_ohlcv


CANDLE_COLUMNS = ['time', 'open', 'high', 'low', 'close', 'volume']


@dataclass(frozen=True)
class Candle:
    """
    Single OHLCV bar.

    Attributes:
        time: Candle open time in epoch milliseconds
        open: Opening price
        high: Highest price during period
        low: Lowest price during period
        close: Closing price
        volume: Traded volume (base units)
    """
    time: int
    open: float
    high: float
    low: float
    close: float
    volume: float

    def __post_init__(self):
        """Validate OHLCV relationships."""
        if self.high < self.low:
            raise ValueError(f"High ({self.high}) cannot be less than Low ({self.low})")
        if self.volume < 0:
            raise ValueError(f"Volume cannot be negative, got {self.volume}")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Candle":
        """Build a candle from a JSON-style mapping (``time`` or ``timestamp`` key)."""
        raw_time = data.get('time', data.get('timestamp', 0))
        if isinstance(raw_time, datetime):
            raw_time = int(raw_time.timestamp() * 1000)
        return cls(
            time=int(raw_time or 0),
            open=float(data['open']),
            high=float(data['high']),
            low=float(data['low']),
            close=float(data['close']),
            volume=float(data.get('volume', 0.0)),
        )


CandleHistory = Union[pd.DataFrame, Sequence[Candle], Sequence[Mapping[str, Any]], None]


def _to_epoch_ms(values: Any) -> np.ndarray:
    """Convert datetimes or numbers to float epoch milliseconds (NaN when unknown)."""
    series = pd.Series(values)
    if pd.api.types.is_numeric_dtype(series):
        return series.astype(float).to_numpy()
    stamps = pd.to_datetime(series, utc=True, errors='coerce')
    return np.array([ts.timestamp() * 1000.0 if not pd.isna(ts) else np.nan for ts in stamps])


def to_candle_frame(history: CandleHistory) -> pd.DataFrame:
    """
    Normalise a candle history into a DataFrame.

    Output columns are ``time, open, high, low, close, volume`` with a
    positional RangeIndex. ``time`` is float epoch milliseconds, NaN when the
    input carries no time information.

    Args:
        history: DataFrame (``time``/``timestamp`` column or DatetimeIndex),
                 sequence of Candle, or sequence of candle mappings

    Returns:
        pd.DataFrame ordered oldest -> newest as supplied

    Raises:
        DataValidationError: If required price/volume columns are missing
    """
    if history is None:
        return pd.DataFrame(columns=CANDLE_COLUMNS, dtype=float)

    if isinstance(history, pd.DataFrame):
        df = history.copy()
        df.columns = [str(col).lower() for col in df.columns]
    else:
        rows = [asdict(c) if isinstance(c, Candle) else dict(c) for c in history]
        if not rows:
            return pd.DataFrame(columns=CANDLE_COLUMNS, dtype=float)
        df = pd.DataFrame(rows)

    validate_ohlcv(
        df,
        require_volume=True,
        check_nan=False,
        check_positive_prices=False,
        check_candle_integrity=False,
        check_positive_volume=False,
        raise_on_error=True,
    )

    if 'time' in df.columns:
        times = _to_epoch_ms(df['time'])
    elif 'timestamp' in df.columns:
        times = _to_epoch_ms(df['timestamp'])
    elif isinstance(df.index, pd.DatetimeIndex):
        times = _to_epoch_ms(df.index.to_series())
    else:
        times = np.full(len(df), np.nan)

    frame = pd.DataFrame({'time': times})
    for col in CANDLE_COLUMNS[1:]:
        if col in df.columns:
            frame[col] = pd.to_numeric(df[col].reset_index(drop=True), errors='coerce').astype(float)
        else:
            # open is optional for some feeds; fall back to close
            frame[col] = pd.to_numeric(df['close'].reset_index(drop=True), errors='coerce').astype(float)

    return frame


def candle_frame_or_empty(history: CandleHistory, component: str) -> pd.DataFrame:
    """
    Normalise a history for an analysis component without raising.

    Structurally broken histories are logged and treated as empty so that the
    component returns its "no result" value.
    """
    try:
        return to_candle_frame(history)
    except DataValidationError as e:
        logger.warning(f"[{component}] Ignoring malformed candle history: {e}")
        return pd.DataFrame(columns=CANDLE_COLUMNS, dtype=float)


def known_candle_time(value: Optional[float]) -> Optional[int]:
    """Return a candle time as int milliseconds, or None when it is unknown (missing, NaN or 0)."""
    if value is None or pd.isna(value) or not value:
        return None
    return int(value)


def candle_time(value: Optional[float], default: Optional[int] = None) -> int:
    """Return a candle time as int milliseconds, falling back to ``default`` or now."""
    known = known_candle_time(value)
    if known is not None:
        return known
    if default is not None:
        return default
    return int(datetime.now().timestamp() * 1000)
