"""Tests for bounded retry with exponential backoff."""

import asyncio
import logging
import time

import pytest

from errors import ErrorKind, RetryExhaustedError, TransportError
from utils.retry import DEFAULT_RETRYABLE_ERRORS, RetryOptions, backoff_delay_ms, is_retryable, with_retry


class FlakyOperation:
    """Raises the queued errors in order, then returns 'success'."""

    def __init__(self, *errors):
        self.errors = list(errors)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return "success"


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


def run(coro):
    return asyncio.run(coro)


class TestWithRetry:
    def test_first_attempt_succeeds(self):
        op = FlakyOperation()
        assert run(with_retry(op)) == "success"
        assert op.calls == 1

    def test_retries_then_succeeds(self):
        op = FlakyOperation(Exception("ETIMEDOUT"), Exception("socket hang up: ECONNRESET"))
        sleep = RecordingSleep()
        result = run(with_retry(op, RetryOptions(backoff_ms=10), sleep=sleep))

        assert result == "success"
        assert op.calls == 3
        assert sleep.delays == [0.01, 0.02]

    def test_backoff_really_waits(self):
        op = FlakyOperation(Exception("ETIMEDOUT"), Exception("ETIMEDOUT"))
        start = time.monotonic()
        run(with_retry(op, RetryOptions(backoff_ms=20)))
        elapsed = time.monotonic() - start

        assert op.calls == 3
        # 20ms + 40ms
        assert elapsed >= 0.055

    def test_non_retryable_propagates_unchanged(self):
        error = ValueError("Invalid request")
        op = FlakyOperation(error)
        with pytest.raises(ValueError) as exc_info:
            run(with_retry(op, RetryOptions(backoff_ms=0)))

        assert exc_info.value is error
        assert op.calls == 1

    def test_exhausted(self):
        first, second = Exception("ETIMEDOUT one"), Exception("ETIMEDOUT two")
        op = FlakyOperation(first, second, Exception("never reached"))
        with pytest.raises(RetryExhaustedError) as exc_info:
            run(with_retry(op, RetryOptions(max_attempts=2, backoff_ms=0)))

        assert op.calls == 2
        assert exc_info.value.attempts == 2
        assert exc_info.value.original_error is second
        assert str(exc_info.value) == "Failed after 2 attempts: ETIMEDOUT two"

    def test_last_attempt_wraps_any_error(self):
        op = FlakyOperation(ValueError("bad input"))
        with pytest.raises(RetryExhaustedError):
            run(with_retry(op, RetryOptions(max_attempts=1)))
        assert op.calls == 1

    def test_delay_is_capped(self):
        op = FlakyOperation(*[Exception("503 Service Unavailable")] * 3)
        sleep = RecordingSleep()
        run(with_retry(op, RetryOptions(max_attempts=4, backoff_ms=1000, max_backoff_ms=1500), sleep=sleep))
        assert sleep.delays == [1.0, 1.5, 1.5]

    def test_warning_logged(self, caplog):
        op = FlakyOperation(Exception("429 Too Many Requests"))
        with caplog.at_level(logging.WARNING):
            run(with_retry(op, RetryOptions(backoff_ms=5), sleep=RecordingSleep()))
        assert "Attempt 1 failed: 429 Too Many Requests. Retrying in 5ms..." in caplog.text


class TestClassification:
    def test_markers_are_case_insensitive(self):
        assert is_retryable(Exception("read etimedout"), ["ETIMEDOUT"])
        assert not is_retryable(Exception("permission denied"), ["ETIMEDOUT"])

    def test_tagged_kind_is_judged_by_its_marker(self):
        rate_limited = TransportError("slow down", ErrorKind.RATE_LIMITED, 429)
        assert is_retryable(rate_limited, list(DEFAULT_RETRYABLE_ERRORS))
        assert not is_retryable(rate_limited, ["503"])
        assert not is_retryable(rate_limited, [])

    def test_tagged_kind_ignores_message_text(self):
        assert not is_retryable(TransportError("GitHub returned 503?", ErrorKind.CLIENT_ERROR), ["503"])
        assert is_retryable(TransportError("refused", ErrorKind.CONNECTION_REFUSED), ["econnrefused"])

    def test_narrowed_list_stops_retrying_tagged_error(self):
        op = FlakyOperation(TransportError("GitHub returned 429: slow down", ErrorKind.RATE_LIMITED, 429))
        with pytest.raises(TransportError):
            run(with_retry(op, RetryOptions(retryable_errors=["503"]), sleep=RecordingSleep()))
        assert op.calls == 1

    def test_backoff_formula(self):
        options = RetryOptions(backoff_ms=100, max_backoff_ms=350)
        assert [backoff_delay_ms(a, options) for a in (1, 2, 3, 4)] == [100, 200, 350, 350]

    def test_defaults(self):
        options = RetryOptions()
        assert options.max_attempts == 3
        assert options.backoff_ms == 1000
        assert options.max_backoff_ms == 30000
        assert set(options.retryable_errors) == {
            "ETIMEDOUT", "ECONNRESET", "ECONNREFUSED", "429", "502", "503", "504",
        }
