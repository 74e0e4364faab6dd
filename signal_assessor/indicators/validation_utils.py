"""
Candle Data Validation Utilities

Boundary validation for candle histories handed to the analysis core.

The analysis functions themselves never raise for bad market data; these
checks are used where data enters the system (file loaders, the candle frame
normaliser) so that structural problems surface early and with a clear message.
"""

from typing import Optional

import pandas as pd
from loguru import logger


class DataValidationError(ValueError):
    """Raised when candle data fails validation checks."""


def validate_ohlcv(
    df: pd.DataFrame,
    require_volume: bool = True,
    check_nan: bool = True,
    check_positive_prices: bool = True,
    check_candle_integrity: bool = True,
    check_positive_volume: bool = True,
    min_rows: Optional[int] = None,
    raise_on_error: bool = True,
) -> dict:
    """
    Validate a candle DataFrame.

    Args:
        df: DataFrame with OHLCV columns (lower-case names)
        require_volume: If True, require a 'volume' column
        check_nan: If True, flag NaN prices (>10% of rows is an error)
        check_positive_prices: If True, verify high/low/close > 0
        check_candle_integrity: If True, verify high >= low
        check_positive_volume: If True, verify volume >= 0
        min_rows: Minimum required rows (None = no minimum)
        raise_on_error: If True, raise DataValidationError; else return dict

    Returns:
        dict with keys ``valid`` (bool), ``errors`` and ``warnings`` (lists)

    Raises:
        DataValidationError: If validation fails and raise_on_error=True
    """
    result = {"valid": True, "errors": [], "warnings": []}

    required_cols = ["high", "low", "close"]
    if require_volume:
        required_cols.append("volume")

    missing_cols = [col for col in required_cols if col not in df.columns]
    if missing_cols:
        result["errors"].append(f"Missing required columns: {missing_cols}")
        result["valid"] = False
        if raise_on_error:
            raise DataValidationError("; ".join(result["errors"]))
        return result

    if min_rows is not None and len(df) < min_rows:
        result["errors"].append(f"Too few candles: need {min_rows}, got {len(df)}")
        result["valid"] = False

    numeric = {col: pd.to_numeric(df[col], errors="coerce") for col in required_cols}

    if check_nan and len(df) > 0:
        for col in ["high", "low", "close"]:
            nan_count = int(numeric[col].isna().sum())
            if nan_count == 0:
                continue
            nan_pct = nan_count / len(df) * 100
            message = f"Column '{col}' has {nan_count} missing values ({nan_pct:.1f}%)"
            if nan_pct > 10:
                result["errors"].append(message)
                result["valid"] = False
            else:
                result["warnings"].append(message)

    if check_positive_prices:
        for col in ["high", "low", "close"]:
            non_positive = int((numeric[col] <= 0).sum())
            if non_positive > 0:
                result["errors"].append(f"Column '{col}' has {non_positive} non-positive values")
                result["valid"] = False

    if check_candle_integrity:
        inverted = int((numeric["high"] < numeric["low"]).sum())
        if inverted > 0:
            result["errors"].append(f"Found {inverted} inverted candles (high < low)")
            result["valid"] = False

    if check_positive_volume and require_volume:
        negative_volume = int((numeric["volume"] < 0).sum())
        if negative_volume > 0:
            result["errors"].append(f"Found {negative_volume} negative volume values")
            result["valid"] = False

    for warning in result["warnings"]:
        logger.debug(f"Candle data warning: {warning}")

    if raise_on_error and not result["valid"]:
        raise DataValidationError("; ".join(result["errors"]))

    return result
