"""Bounded retry with a fixed delay between attempts."""

import logging
import time
from typing import Callable, Tuple, Type, TypeVar

T = TypeVar("T")


class RetryExhaustedError(Exception):
    """Raised when every attempt failed with a retryable error."""

    def __init__(self, attempts: int, last_error: Exception) -> None:
        super().__init__(f"Gave up after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


def retry_with_delay(
    fn: Callable[[], T],
    attempts: int,
    delay: float,
    retry_on: Tuple[Type[Exception], ...] = (Exception,),
    backoff: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
    log: logging.Logger | None = None,
) -> T:
    """Call ``fn`` until it returns, at most ``attempts`` times.

    Exceptions listed in ``retry_on`` trigger a wait of ``delay`` seconds
    (multiplied by ``backoff`` after each failure); anything else
    propagates immediately. No wait follows the final attempt.

    Args:
        fn: Zero-argument callable to retry.
        attempts: Maximum number of calls (at least 1).
        delay: Seconds to wait after the first failure.
        retry_on: Exception types that count as "not yet".
        backoff: Delay multiplier applied after each failure (1.0 = fixed).
        sleep: Sleep function; tests inject a fake clock here.
        log: Optional logger for per-attempt messages.

    Returns:
        Whatever ``fn`` returned on the first successful call.

    Raises:
        RetryExhaustedError: If all attempts raised a retryable error.
        ValueError: If attempts is less than 1.
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")
    wait = delay
    last_error: Exception | None = None
    for attempt in range(1, attempts + 1):
        try:
            return fn()
        except retry_on as e:
            last_error = e
            if log:
                log.debug("Attempt %s/%s failed: %s", attempt, attempts, e)
            if attempt < attempts:
                sleep(wait)
                wait *= backoff
    assert last_error is not None
    raise RetryExhaustedError(attempts, last_error)
