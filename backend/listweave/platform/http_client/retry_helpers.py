"""Retry helpers for batch envelopes.

Retries throttled (429, 503) and timed out requests, honouring Retry-After.
"""

import httpx
from tenacity import retry_if_exception, wait_exponential

RETRYABLE_STATUS_CODES = (429, 503)


def should_retry_on_throttle(exception: BaseException) -> bool:
    """Check if exception is a throttling response that should be retried.

    Args:
        exception: Exception to check

    Returns:
        True if this is a 429/503 that should be retried
    """
    if isinstance(exception, httpx.HTTPStatusError):
        return exception.response.status_code in RETRYABLE_STATUS_CODES
    return False


def should_retry_on_timeout(exception: BaseException) -> bool:
    """Check if exception is a timeout that should be retried."""
    return isinstance(exception, (httpx.ConnectTimeout, httpx.ReadTimeout))


def should_retry_on_throttle_or_timeout(exception: BaseException) -> bool:
    """Combined retry condition for throttling and timeouts."""
    return should_retry_on_throttle(exception) or should_retry_on_timeout(exception)


def wait_throttle_with_backoff(retry_state) -> float:
    """Wait strategy that respects Retry-After for throttling, exponential backoff otherwise.

    For 429/503:
    - Uses Retry-After header if present (at least 1s, at most 120s)
    - Falls back to exponential backoff if no header

    For timeouts:
    - Uses exponential backoff: 2s, 4s, 8s, max 10s

    Args:
        retry_state: tenacity retry state

    Returns:
        Number of seconds to wait before retry
    """
    exception = retry_state.outcome.exception()

    if should_retry_on_throttle(exception):
        retry_after = exception.response.headers.get("Retry-After")
        if retry_after:
            try:
                return min(max(float(retry_after), 1.0), 120.0)
            except (ValueError, TypeError):
                pass
        return wait_exponential(multiplier=1, min=2, max=30)(retry_state)

    return wait_exponential(multiplier=1, min=2, max=10)(retry_state)


retry_if_throttle_or_timeout = retry_if_exception(should_retry_on_throttle_or_timeout)
