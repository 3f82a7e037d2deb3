# utils/retry.py
import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, TypeVar

from pydantic import BaseModel, Field

from errors import RetryExhaustedError, TransportError

T = TypeVar("T")

DEFAULT_RETRYABLE_ERRORS = ["ETIMEDOUT", "ECONNRESET", "ECONNREFUSED", "429", "502", "503", "504"]

_log = logging.getLogger(__name__)


class RetryOptions(BaseModel):
    max_attempts: int = Field(default=3, ge=1)
    backoff_ms: int = Field(default=1000, ge=0)
    max_backoff_ms: int = Field(default=30000, ge=0)
    retryable_errors: List[str] = Field(default_factory=lambda: list(DEFAULT_RETRYABLE_ERRORS))


def is_retryable(error: BaseException, retryable_errors: List[str]) -> bool:
    """
    Errors tagged at the transport boundary are judged by their kind's marker,
    so the configured list decides for them too. Anything else only has its
    text to go on, which is matched against the markers.
    """
    markers = [marker.lower() for marker in retryable_errors]
    if isinstance(error, TransportError):
        return error.kind.marker is not None and error.kind.marker.lower() in markers
    message = str(error).lower()
    return any(marker in message for marker in markers)


def backoff_delay_ms(attempt: int, options: RetryOptions) -> int:
    return min(options.backoff_ms * 2 ** (attempt - 1), options.max_backoff_ms)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    options: Optional[RetryOptions] = None,
    *,
    logger: Optional[logging.Logger] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Await operation() until it succeeds, a non-retryable error is raised, or
    max_attempts is reached. The last failure is wrapped in RetryExhaustedError.
    """
    options = options or RetryOptions()
    log = logger or _log

    attempt = 1
    while True:
        try:
            return await operation()
        except Exception as error:
            if attempt == options.max_attempts:
                raise RetryExhaustedError(error, attempt) from error

            if not is_retryable(error, options.retryable_errors):
                raise

            delay = backoff_delay_ms(attempt, options)
            log.warning(f"Attempt {attempt} failed: {error}. Retrying in {delay}ms...")
            await sleep(delay / 1000)
            attempt += 1
