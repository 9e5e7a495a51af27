"""
core/validation.py
Range checks for integer inputs before they reach the ledger.
"""

from core.constants import STORAGE_INT_MAX
from core.errors import InvalidParameter


def require_uint(name: str, value: int, limit: int = STORAGE_INT_MAX) -> int:
    """Reject non-integers, negatives, and values the store cannot hold."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidParameter(f"{name} must be an integer, got {value!r}")
    if value < 0 or value > limit:
        raise InvalidParameter(f"{name} must be in [0, {limit}], got {value}")
    return value


def require_positive_duration(duration: int) -> int:
    """Window length in seconds; must be > 0 and keep end_time storable."""
    if isinstance(duration, bool) or not isinstance(duration, int):
        raise InvalidParameter(f"duration must be an integer, got {duration!r}")
    if duration <= 0:
        raise InvalidParameter(f"duration must be positive, got {duration}")
    return duration
