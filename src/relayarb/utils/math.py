"""
Mathematical utilities for trading calculations.

Integer lamport arithmetic plus safe float helpers for prices
and percentages.
"""

from typing import Final

from relayarb.config.constants import LAMPORTS_PER_SOL


# Epsilon for floating point comparisons
EPSILON: Final[float] = 1e-10


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """
    Safely divide two numbers, returning default on division by zero.

    Args:
        numerator: The dividend.
        denominator: The divisor.
        default: Value to return if denominator is zero.

    Returns:
        Result of division or default value.
    """
    if abs(denominator) < EPSILON:
        return default
    return numerator / denominator


def lamports_to_sol(lamports: float) -> float:
    """
    Convert lamports to SOL.

    Example:
        >>> lamports_to_sol(10_000_000)
        0.01
    """
    return lamports / LAMPORTS_PER_SOL


def percent_change(start: float, end: float) -> float:
    """
    Percentage change from start to end.

    Example:
        >>> percent_change(100, 101)
        1.0
    """
    return safe_divide(end - start, start) * 100
