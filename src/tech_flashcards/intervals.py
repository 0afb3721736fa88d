"""Human-readable labels for review intervals."""
import math


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round halves away from zero for positive values (32.5 -> 33).

    The builtin round() rounds halves to even, which would schedule
    32.5 days as 32.
    """
    scale = 10 ** ndigits
    return math.floor(value * scale + 0.5) / scale


def format_interval(days: int) -> str:
    """Format a day count as a short label such as '6 days' or '2 mo'."""
    if days < 0:
        raise ValueError(f"Interval cannot be negative: {days}")
    if days == 0:
        return "10 min"
    if days == 1:
        return "1 day"
    if days < 30:
        return f"{days} days"
    if days < 365:
        return f"{int(round_half_up(days / 30))} mo"
    return f"{int(round_half_up(days / 365))} yr"
