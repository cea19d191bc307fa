import math


def round_half_up(value: float) -> int:
    """Rounds .5 towards positive infinity, unlike Python's banker's rounding."""
    return int(math.floor(value + 0.5))
