"""
Technical Indicators Package

Provides:
- Volatility indicators (True Range, Wilder ATR)
- Candle data validation utilities

Indicator snapshots (RSI, MACD, EMA, ...) are computed upstream; only the ATR
used by the regime classifier is computed here.
"""

from signal_assessor.indicators.volatility import (
    compute_atr,
    compute_true_range,
)

from signal_assessor.indicators.validation_utils import (
    validate_ohlcv,
    DataValidationError,
)

__all__ = [
    # Volatility
    'compute_atr',
    'compute_true_range',
    # Validation
    'validate_ohlcv',
    'DataValidationError',
]
