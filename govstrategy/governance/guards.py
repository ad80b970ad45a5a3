"""
Checked arithmetic and reentrancy protection for strategy bookkeeping.
"""

from ..constants import MAX_WEIGHT, WEIGHT_BITS
from ..exceptions import ArithmeticUnderflow, ReentrancyError, WeightOverflow


def checked_sub(minuend: int, subtrahend: int, what: str = "value") -> int:
    """Subtract, failing instead of going below zero."""
    if subtrahend > minuend:
        raise ArithmeticUnderflow(f"{what} underflow: {minuend} - {subtrahend}")
    return minuend - subtrahend


def to_uint96(value: int) -> int:
    """Narrow *value* to the receipt weight width."""
    if value < 0:
        raise ArithmeticUnderflow(f"Weight cannot be negative: {value}")
    if value > MAX_WEIGHT:
        raise WeightOverflow(f"Weight {value} exceeds {WEIGHT_BITS} bits")
    return value


class ReentrancyGuard:
    """
    Non-reentrant section around calls that move token custody.

        with self._guard:
            ...  # a nested `with self._guard` raises ReentrancyError
    """

    def __init__(self, name: str = "guard"):
        self.name = name
        self._entered = False

    @property
    def entered(self) -> bool:
        return self._entered

    def __enter__(self) -> "ReentrancyGuard":
        if self._entered:
            raise ReentrancyError(f"Reentrant call into {self.name}")
        self._entered = True
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self._entered = False
        return False
