"""
OHLCV Data Validation Utilities

Centralized input checks for indicator calculations. Structural problems
(missing columns) are caller contract violations and raise
DataValidationError; data-quality issues (NaN, zero-volume runs, inverted
candles) are reported so the engine can log them and keep going.
"""

from typing import Optional
import logging

import pandas as pd

logger = logging.getLogger(__name__)


REQUIRED_COLUMNS = ("open", "high", "low", "close", "volume")


class DataValidationError(ValueError):
    """Raised when OHLCV data fails validation checks."""


def validate_ohlcv(
    df: pd.DataFrame,
    require_volume: bool = True,
    min_rows: Optional[int] = None,
    raise_on_error: bool = True,
) -> dict:
    """
    Validate an OHLCV DataFrame before indicator calculation.

    Args:
        df: DataFrame with OHLCV columns
        require_volume: If True, require 'volume' column (default True)
        min_rows: Minimum required rows (None = no minimum)
        raise_on_error: If True, raise DataValidationError on errors; else return dict

    Returns:
        dict with validation results:
            - valid: bool indicating if all checks passed
            - errors: list of error messages
            - warnings: list of warning messages

    Raises:
        DataValidationError: If validation fails and raise_on_error=True
    """
    result = {"valid": True, "errors": [], "warnings": []}

    required = [c for c in REQUIRED_COLUMNS if require_volume or c != "volume"]
    missing_cols = [col for col in required if col not in df.columns]
    if missing_cols:
        result["errors"].append(f"Missing required columns: {missing_cols}")
        result["valid"] = False
        if raise_on_error:
            raise DataValidationError("; ".join(result["errors"]))
        return result

    if min_rows is not None and len(df) < min_rows:
        result["errors"].append(f"DataFrame too short: need {min_rows} rows, got {len(df)}")
        result["valid"] = False

    for col in ("open", "high", "low", "close"):
        nan_count = int(df[col].isna().sum())
        if nan_count > 0:
            result["warnings"].append(f"Column '{col}' has {nan_count} NaN values")

    inverted = int((df["high"] < df["low"]).sum())
    if inverted > 0:
        result["warnings"].append(f"Found {inverted} inverted candles (high < low)")

    if "volume" in df.columns and len(df) > 0:
        negative_volume = int((df["volume"] < 0).sum())
        if negative_volume > 0:
            result["errors"].append(f"Found {negative_volume} negative volume values")
            result["valid"] = False

        zero_pct = float((df["volume"] == 0).mean() * 100)
        if zero_pct > 10:
            result["warnings"].append(f"{zero_pct:.1f}% of bars have zero volume")

    if not isinstance(df.index, pd.DatetimeIndex) and "timestamp" not in df.columns:
        result["warnings"].append("No timestamps: session context will be unavailable")
    elif isinstance(df.index, pd.DatetimeIndex) and len(df) > 1 and not df.index.is_monotonic_increasing:
        result["warnings"].append("Candles are not in ascending time order")

    for warning in result["warnings"]:
        logger.debug("OHLCV data quality: %s", warning)

    if raise_on_error and not result["valid"]:
        raise DataValidationError("; ".join(result["errors"]))

    return result
