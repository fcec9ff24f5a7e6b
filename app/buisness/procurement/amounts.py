"""
Numeric input checks shared by basket amounts and line quotes.

JSON parsers accept Infinity and NaN; neither can be stored or rendered back
as JSON, so both are rejected here along with negatives.
"""

import math

from app.buisness.procurement.errors import ProcurementValidationError


def non_negative_number(value, label: str, **details) -> float:
    """
    Convert `value` to a finite, non-negative float.

    Raises:
        ProcurementValidationError: If the value is not a number, not finite or negative
    """
    if isinstance(value, bool):
        raise ProcurementValidationError(f"{label} must be a number", **details)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ProcurementValidationError(f"{label} must be a number", **details)
    if not math.isfinite(number):
        raise ProcurementValidationError(f"{label} must be a finite number", **details)
    if number < 0:
        raise ProcurementValidationError(f"{label} cannot be negative", **details)
    return number


def non_negative_integer(value, label: str, **details) -> int:
    """Like non_negative_number, but the value must also be whole"""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ProcurementValidationError(f"{label} must be a non-negative integer", **details)
    if isinstance(value, float) and not math.isfinite(value):
        raise ProcurementValidationError(f"{label} must be a finite number", **details)
    if value < 0 or value != int(value):
        raise ProcurementValidationError(f"{label} must be a non-negative integer", **details)
    return int(value)
