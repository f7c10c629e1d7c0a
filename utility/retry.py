import asyncio
from typing import Awaitable, Callable, TypeVar

from loguru import logger
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception,
    stop_after_attempt,
    wait_fixed,
)

from utility.errors import RetryExhaustedError, is_retryable_error

T = TypeVar("T")


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception()
    logger.warning(
        f"Attempt {retry_state.attempt_number} failed ({exc!r}), "
        f"retrying in {retry_state.next_action.sleep:.1f}s"
    )


async def call_with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    max_attempts: int = 3,
    delay: float = 1.0,
    is_retryable: Callable[[BaseException], bool] = is_retryable_error,
    operation_name: str = "Translation",
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Run `operation` up to `max_attempts` times with a fixed `delay` between tries.

    Errors rejected by `is_retryable` propagate after the first call. When every
    attempt fails, RetryExhaustedError is raised with the attempt count and the
    last error.
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_fixed(delay),
        retry=retry_if_exception(is_retryable),
        before_sleep=_log_retry,
        sleep=sleep,
        reraise=False,
    )
    try:
        return await retrying(operation)
    except RetryError as e:
        last_attempt = e.last_attempt
        last_error = last_attempt.exception()
        logger.error(f"{operation_name} gave up after {last_attempt.attempt_number} attempts: {last_error!r}")
        raise RetryExhaustedError(last_attempt.attempt_number, last_error, operation_name) from last_error
