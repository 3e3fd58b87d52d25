"""Tests for retry helpers."""

from unittest.mock import MagicMock

import httpx

from listweave.platform.http_client.retry_helpers import (
    should_retry_on_throttle,
    should_retry_on_throttle_or_timeout,
    should_retry_on_timeout,
    wait_throttle_with_backoff,
)


def _status_error(status: int, headers=None) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "https://example.com/_api/$batch")
    response = httpx.Response(status, headers=headers or {}, request=request)
    return httpx.HTTPStatusError("error", request=request, response=response)


def _retry_state(exception: BaseException, attempt: int = 1):
    state = MagicMock()
    state.outcome.exception.return_value = exception
    state.attempt_number = attempt
    return state


def test_throttle_detection():
    """Test which status codes are retried."""
    assert should_retry_on_throttle(_status_error(429)) is True
    assert should_retry_on_throttle(_status_error(503)) is True
    assert should_retry_on_throttle(_status_error(400)) is False
    assert should_retry_on_throttle(ValueError("nope")) is False


def test_timeout_detection():
    """Test that timeouts are retried."""
    assert should_retry_on_timeout(httpx.ReadTimeout("slow")) is True
    assert should_retry_on_throttle_or_timeout(httpx.ConnectTimeout("slow")) is True
    assert should_retry_on_throttle_or_timeout(httpx.ConnectError("down")) is False


def test_wait_honours_retry_after():
    """Test Retry-After handling with the 1s floor and 120s cap."""
    assert wait_throttle_with_backoff(_retry_state(_status_error(429, {"Retry-After": "5"}))) == 5.0
    floor = _retry_state(_status_error(429, {"Retry-After": "0.2"}))
    assert wait_throttle_with_backoff(floor) == 1.0
    cap = _retry_state(_status_error(429, {"Retry-After": "600"}))
    assert wait_throttle_with_backoff(cap) == 120.0


def test_wait_falls_back_to_backoff():
    """Test exponential backoff without Retry-After."""
    wait = wait_throttle_with_backoff(_retry_state(_status_error(429, {"Retry-After": "soon"})))
    assert 2 <= wait <= 30

    wait = wait_throttle_with_backoff(_retry_state(httpx.ReadTimeout("slow")))
    assert 2 <= wait <= 10
