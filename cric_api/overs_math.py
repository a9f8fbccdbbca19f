# cric_api/overs_math.py
from __future__ import annotations

from typing import Union

BALLS_PER_OVER = 6
OversLike = Union[str, int, float]


def balls_to_overs(legal_balls: int) -> float:
    """
    Converts a legal-ball count to cricket overs notation.

    The fractional digit is completed balls in the current over (0-5), not tenths:
      0 -> 0.0, 5 -> 0.5, 6 -> 1.0, 7 -> 1.1, 13 -> 2.1
    """
    if legal_balls < 0:
        raise ValueError(f"Legal balls cannot be negative: {legal_balls}")
    completed, rest = divmod(int(legal_balls), BALLS_PER_OVER)
    # round() keeps 2 + 1/10 from surfacing as 2.1000000000000001
    return round(completed + rest / 10, 1)


def format_overs(legal_balls: int) -> str:
    return f"{balls_to_overs(legal_balls):.1f}"


def overs_to_balls(overs: OversLike) -> int:
    """
    Inverse of balls_to_overs: 19.4 -> 118, "20" -> 120.

    Floats are read at one decimal place, the way scorers type them.
    Raises ValueError for anything that is not overs notation (e.g. 2.7, -1.0, "x").
    """
    text = f"{overs:.1f}" if isinstance(overs, float) else str(overs).strip()
    completed, _, ball = text.partition(".")
    if not completed.isdigit() or not (ball == "" or (len(ball) == 1 and ball in "012345")):
        raise ValueError(f"Not in overs notation: {overs!r} (balls part must be 0-5)")
    return int(completed) * BALLS_PER_OVER + int(ball or 0)


def rate_per_over(runs: float, overs: float, ndigits: int = 2) -> float:
    """
    runs / overs, dividing by the notation as a real number (1.3 overs -> 1.3).

    This is how economy and run rate are reported across the platform, even
    though 1.3 overs is really 1.5 overs of play.
    """
    if overs <= 0:
        return 0.0
    return round(runs / overs, ndigits)


def strike_rate(runs: int, balls: int) -> float:
    if balls <= 0:
        return 0.0
    return round(runs / balls * 100, 2)
