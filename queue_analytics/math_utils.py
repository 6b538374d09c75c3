"""
Numeric Utilities

Rounding and averaging helpers shared by the analyzers. All percentage and
minute values in snapshots are whole numbers produced by ``round_number``.
"""

import math
from decimal import ROUND_HALF_EVEN, ROUND_HALF_UP, Decimal
from typing import Iterable, List, Sequence

ROUNDING_HALF_UP = "half_up"
ROUNDING_HALF_EVEN = "half_even"

_ROUNDING_MODES = {
    ROUNDING_HALF_UP: ROUND_HALF_UP,
    ROUNDING_HALF_EVEN: ROUND_HALF_EVEN,
}

# Module-wide rounding mode, switched by configure_rounding()
_rounding_mode = ROUNDING_HALF_UP


def configure_rounding(mode: str) -> None:
    """
    Select the rounding mode used for all snapshot values.

    Args:
        mode: "half_up" (default) or "half_even"

    Raises:
        ValueError: If the mode is unknown
    """
    global _rounding_mode
    if mode not in _ROUNDING_MODES:
        raise ValueError(
            f"Unknown rounding mode '{mode}' - "
            f"must be one of: {', '.join(sorted(_ROUNDING_MODES))}"
        )
    _rounding_mode = mode


def get_rounding_mode() -> str:
    return _rounding_mode


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves rounding towards +infinity"""
    return int(math.floor(value + 0.5))


def round_number(value: float) -> int:
    """Round a value with the configured rounding mode"""
    if _rounding_mode == ROUNDING_HALF_UP:
        return round_half_up(value)
    return int(
        Decimal(repr(value)).quantize(
            Decimal("1"), rounding=_ROUNDING_MODES[_rounding_mode]
        )
    )


def percentage(part: int, total: int) -> int:
    """Rounded percentage of part in total, 0 when total is 0"""
    if total <= 0:
        return 0
    return round_number(part / total * 100)


def average(values: Sequence[float]) -> int:
    """Rounded mean of values, 0 for an empty sequence"""
    if not values:
        return 0
    return round_number(sum(values) / len(values))


def median(values: Iterable[float]) -> int:
    """Rounded median of values, 0 for an empty sequence"""
    ordered: List[float] = sorted(values)
    if not ordered:
        return 0
    mid = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return round_number((ordered[mid - 1] + ordered[mid]) / 2)
    return round_number(ordered[mid])


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))
