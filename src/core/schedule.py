"""Tick scheduling - Pure functions.

Fixed-rate timers compute their next deadline here. A consumer that falls
behind has its missed ticks dropped rather than queued, so a slow refresh
or broadcast never produces a burst of catch-up ticks.
"""


def next_deadline(deadline: float, now: float, interval: float) -> tuple[float, int]:
    """Compute the next tick deadline on a fixed-rate schedule.

    Pure function.

    Args:
        deadline: The deadline that just fired
        now: Current monotonic time
        interval: Tick period in seconds (must be positive)

    Returns:
        Tuple of (first deadline strictly after now, number of ticks skipped)

    Raises:
        ValueError: If interval is not positive
    """
    if interval <= 0:
        raise ValueError(f"Interval must be positive, got {interval}")

    following = deadline + interval
    if following > now:
        return following, 0

    skipped = int((now - following) // interval) + 1
    following += skipped * interval
    # Guard against float rounding landing exactly on now
    while following <= now:
        following += interval
        skipped += 1
    return following, skipped
