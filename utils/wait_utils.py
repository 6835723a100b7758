"""
Bounded polling helpers.

The browser protocol has no reliable event for "a nested frame was inserted",
so every wait here is a fixed-interval poll with an explicit deadline.
"""
import time
from typing import Callable, Optional, TypeVar

from error_handling import RequiredElementTimeoutError

T = TypeVar("T")


def quiet_sleep(ms: float) -> None:
    if ms and ms > 0:
        time.sleep(ms / 1000.0)


def poll_until(
    condition: Callable[[], Optional[T]],
    timeout_s: float,
    interval_ms: float = 150,
) -> Optional[T]:
    """
    Call condition until it returns a truthy value or the deadline passes.

    The condition always runs at least once, even with a zero timeout.

    Returns:
        The first truthy value, or None on timeout
    """
    deadline = time.monotonic() + max(0.0, timeout_s)
    while True:
        value = condition()
        if value:
            return value
        if time.monotonic() >= deadline:
            return None
        quiet_sleep(interval_ms)


def wait_for_required(
    condition: Callable[[], Optional[T]],
    timeout_s: float,
    description: str,
    interval_ms: float = 150,
) -> T:
    """Like poll_until, but a timeout is fatal."""
    value = poll_until(condition, timeout_s, interval_ms)
    if not value:
        raise RequiredElementTimeoutError(
            f"Timed out after {timeout_s:.1f}s waiting for {description}",
            selector=description,
        )
    return value
