## Numeric sanitizing helpers applied at ingestion
import math

PROGRAM_TOTAL_CREDITS = 120


def safe_number(value, default: float = 0.0) -> float:
    """Coerce to float; None, NaN, inf and unparsable values become `default`."""
    if value is None or isinstance(value, bool):
        return default
    try:
        num = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(num) or math.isinf(num):
        return default
    return num


def clamp(value, low: float, high: float) -> float:
    """Clamp into [low, high]. Non-numeric input collapses to `low`."""
    num = safe_number(value, default=low)
    return max(low, min(high, num))


def clamp_credits(value) -> int:
    return int(clamp(value, 0, PROGRAM_TOTAL_CREDITS))
