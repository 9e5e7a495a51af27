"""
core/settlement_math.py
Pure outcome and payout arithmetic. No I/O, no database, integers only.
"""

from core.constants import U64_MAX, WINNER_PAYOUT_PCT


def is_winner(prediction: bool, start_price: int, end_price: int) -> bool:
    """
    Evaluate the up/down predicate.

    prediction=True  ("up")   wins iff end_price > start_price.
    prediction=False ("down") wins iff end_price < start_price.
    An unchanged price loses under either prediction.
    """
    if prediction:
        return end_price > start_price
    return end_price < start_price


def compute_payout(amount: int, winner: bool) -> int:
    """
    Amount released to the player at settlement.

    Winners receive WINNER_PAYOUT_PCT percent of the stake, truncated toward
    zero. Losers receive nothing. The result never exceeds the stake.
    """
    if amount < 0:
        raise ValueError(f"amount must be non-negative, got {amount}")
    if not winner:
        return 0
    return amount * WINNER_PAYOUT_PCT // 100


def checked_add(a: int, b: int, limit: int = U64_MAX) -> int:
    """Add two unsigned counters, refusing to exceed `limit`."""
    if a < 0 or b < 0:
        raise ValueError(f"operands must be non-negative, got {a} and {b}")
    total = a + b
    if total > limit:
        raise OverflowError(f"counter overflow: {a} + {b} > {limit}")
    return total
