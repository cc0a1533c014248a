"""
Shared helpers (retry with exponential backoff, bounded polling).
"""
from .retry import PollAborted, PollTimeout, calculate_backoff_delay, fetch_with_retry, poll_until

__all__ = [
    "PollAborted",
    "PollTimeout",
    "calculate_backoff_delay",
    "fetch_with_retry",
    "poll_until",
]
