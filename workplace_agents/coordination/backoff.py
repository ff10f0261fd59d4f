"""Reconnection backoff policy."""

DEFAULT_BACKOFF_BASE_MS = 1000
DEFAULT_BACKOFF_MAX_MS = 30000


def calculate_backoff_delay(
    attempt: int,
    base_delay: int = DEFAULT_BACKOFF_BASE_MS,
    max_delay: int = DEFAULT_BACKOFF_MAX_MS
) -> int:
    """
    Exponential backoff delay, clamped to ``max_delay``.

    Args:
        attempt: Zero-based retry attempt
        base_delay: Delay for attempt 0 (milliseconds)
        max_delay: Upper bound (milliseconds)

    Returns:
        Delay in milliseconds: ``min(base_delay * 2**attempt, max_delay)``
    """
    if attempt < 0:
        raise ValueError(f"attempt must be >= 0, got {attempt}")

    if base_delay <= 0:
        return 0
    # Beyond this exponent base * 2**attempt always exceeds max_delay
    if attempt >= max_delay.bit_length() + 1:
        return max_delay

    return min(base_delay * (2 ** attempt), max_delay)
