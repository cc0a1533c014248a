"""
Retry and polling utilities with exponential backoff.
"""
import logging
import time
from typing import Callable, TypeVar, Optional

from gazette_collector.core.config import (
    BACKOFF_BASE_DELAY,
    BACKOFF_MAX_DELAY,
    BACKOFF_MULTIPLIER,
    PDF_POLL_MAX_INTERVAL,
    PDF_POLL_MIN_INTERVAL,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PollTimeout(Exception):
    """Raised by poll_until when the condition never produced a value in time."""


class PollAborted(Exception):
    """Raised by a poll condition to stop waiting before the timeout."""


def calculate_backoff_delay(
    attempt: int,
    base_delay: float = BACKOFF_BASE_DELAY,
    max_delay: float = BACKOFF_MAX_DELAY,
    multiplier: float = BACKOFF_MULTIPLIER,
) -> float:
    """
    Calculate exponential backoff delay.

    Args:
        attempt: The retry attempt number (0-indexed)
        base_delay: Delay of the first attempt
        max_delay: Upper bound of the delay
        multiplier: Growth factor per attempt

    Returns:
        Delay in seconds
    """
    return min(base_delay * (multiplier ** attempt), max_delay)


def fetch_with_retry(
    fetch_fn: Callable[[], T],
    max_retries: int = 3,
    operation_name: str = "operation",
    retry_on: tuple = (Exception,),
) -> Optional[T]:
    """
    Execute a function with exponential backoff retry logic.

    Args:
        fetch_fn: Function to execute (should return data or raise exception)
        max_retries: Maximum number of attempts
        operation_name: Name of the operation for logging
        retry_on: Exception types that trigger a retry; others propagate at once

    Returns:
        Result of fetch_fn()

    Raises:
        Exception: Re-raises the last exception if all retries fail
    """
    last_exception = None

    for attempt in range(max_retries):
        try:
            return fetch_fn()
        except retry_on as e:
            last_exception = e
            if attempt < max_retries - 1:
                delay = calculate_backoff_delay(attempt)
                logger.warning(
                    f"{operation_name} failed (attempt {attempt + 1}/{max_retries}): {e}"
                )
                logger.info(f"Exponential backoff: {delay}s...")
                time.sleep(delay)
            else:
                logger.error(
                    f"{operation_name} failed after {max_retries} attempts: {e}"
                )

    if last_exception:
        raise last_exception

    return None


def poll_until(
    condition: Callable[[], Optional[T]],
    timeout: float,
    min_interval: float = PDF_POLL_MIN_INTERVAL,
    max_interval: float = PDF_POLL_MAX_INTERVAL,
    operation_name: str = "condition",
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> T:
    """
    Poll a condition until it returns a value, with bounded exponential backoff.

    The interval starts at min_interval, doubles on every attempt and never
    exceeds max_interval. The last sleep is shortened so the total wait never
    exceeds the timeout.

    Args:
        condition: Returns a non-None value when satisfied. May raise
                   PollAborted to stop waiting early.
        timeout: Hard limit in seconds
        min_interval: First polling interval
        max_interval: Interval cap
        operation_name: Name used in log messages
        sleep: Sleep function (injectable for tests)
        clock: Monotonic clock (injectable for tests)

    Returns:
        The first non-None value returned by condition

    Raises:
        PollTimeout: If the timeout elapses first
        PollAborted: If the condition aborted the wait
    """
    deadline = clock() + timeout
    attempt = 0

    while True:
        result = condition()
        if result is not None:
            return result

        remaining = deadline - clock()
        if remaining <= 0:
            raise PollTimeout(f"{operation_name} not satisfied within {timeout}s")

        interval = calculate_backoff_delay(attempt, min_interval, max_interval)
        logger.debug(f"Waiting {min(interval, remaining):.1f}s for {operation_name}")
        sleep(min(interval, remaining))
        attempt += 1
