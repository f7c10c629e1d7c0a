from unittest.mock import AsyncMock

import pytest

from utility.errors import (
    MissingInputError,
    ResponseParseError,
    RetryExhaustedError,
    UpstreamError,
)
from utility.retry import call_with_retry


@pytest.mark.asyncio
async def test_succeeds_on_third_attempt():
    operation = AsyncMock(side_effect=[
        UpstreamError("Bad gateway", status_code=502),
        ResponseParseError(raw_content="not json"),
        {"translation": "Bonjour"},
    ])

    result = await call_with_retry(operation, max_attempts=3, delay=0)

    assert result == {"translation": "Bonjour"}
    assert operation.await_count == 3


@pytest.mark.asyncio
async def test_always_failing_makes_exactly_max_attempts():
    operation = AsyncMock(side_effect=UpstreamError("Rate limit reached", status_code=429))

    with pytest.raises(RetryExhaustedError) as exc_info:
        await call_with_retry(operation, max_attempts=3, delay=0)

    error = exc_info.value
    assert operation.await_count == 3
    assert error.attempts == 3
    assert str(error) == "Translation failed after 3 attempts: Rate limit reached"
    assert error.status_code == 429
    assert isinstance(error.last_error, UpstreamError)


@pytest.mark.asyncio
async def test_missing_input_is_never_retried():
    operation = AsyncMock(side_effect=MissingInputError())

    with pytest.raises(MissingInputError):
        await call_with_retry(operation, max_attempts=3, delay=0)

    assert operation.await_count == 1


@pytest.mark.asyncio
async def test_unexpected_exceptions_are_not_retried():
    operation = AsyncMock(side_effect=ValueError("API key must be provided"))

    with pytest.raises(ValueError):
        await call_with_retry(operation, max_attempts=3, delay=0)

    assert operation.await_count == 1


@pytest.mark.asyncio
async def test_custom_predicate_and_budget():
    operation = AsyncMock(side_effect=[KeyError("a"), KeyError("b"), "ok"])

    result = await call_with_retry(
        operation,
        max_attempts=5,
        delay=0,
        is_retryable=lambda exc: isinstance(exc, KeyError),
    )

    assert result == "ok"
    assert operation.await_count == 3


@pytest.mark.asyncio
async def test_waits_are_fixed_between_attempts():
    operation = AsyncMock(side_effect=UpstreamError("Server overloaded", status_code=503))
    sleep = AsyncMock()

    with pytest.raises(RetryExhaustedError):
        await call_with_retry(operation, max_attempts=3, delay=1.5, sleep=sleep)

    assert operation.await_count == 3
    assert [call.args[0] for call in sleep.await_args_list] == [1.5, 1.5]


@pytest.mark.asyncio
async def test_no_wait_after_success():
    operation = AsyncMock(side_effect=[ResponseParseError(raw_content="{"), {"translation": "Hola"}])
    sleep = AsyncMock()

    result = await call_with_retry(operation, max_attempts=3, delay=1.0, sleep=sleep)

    assert result == {"translation": "Hola"}
    sleep.assert_awaited_once_with(1.0)
