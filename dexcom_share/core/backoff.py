"""Exponential backoff delay calculation."""

import random


def backoff_delay(
    attempt: int,
    base: float,
    cap: float,
    jitter: bool = True,
) -> float:
    """Compute the delay before retrying after a failed attempt.

    The raw delay doubles per attempt (``base * 2 ** (attempt - 1)``) and
    is capped at ``cap``. With ``jitter`` the result is drawn uniformly
    from ``[0, raw]`` ("full jitter"), so clients that failed together
    do not retry together.

    Args:
        attempt: 1-based attempt number that just failed
        base: Delay for the first attempt (seconds)
        cap: Upper bound on the delay (seconds)
        jitter: Randomize within ``[0, raw]``

    Returns:
        Delay in seconds

    Raises:
        ValueError: If attempt < 1 or base/cap are negative
    """
    if attempt < 1:
        raise ValueError(f"attempt must be >= 1, got {attempt}")
    if base < 0 or cap < 0:
        raise ValueError("base and cap must be non-negative")

    # Exponent clamped so huge attempt numbers cannot overflow a float
    raw = min(cap, base * 2.0 ** min(attempt - 1, 1000))
    if not jitter:
        return raw
    return random.uniform(0, raw)
