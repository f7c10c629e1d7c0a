from __future__ import annotations

from typing import Any, Optional


class GatewayError(Exception):
    """
    Base class for failures coming out of the translation/speech gateways.
    Carries the HTTP status the app should answer with and whether the
    caller-side retry policy may try again.
    """

    kind = "GatewayError"
    status_code = 500
    retryable = False

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind!r}, status={self.status_code}, message={self.message!r})"


class MissingInputError(GatewayError):
    kind = "MissingInput"
    status_code = 400

    def __init__(self, message: str = "No text provided"):
        super().__init__(message)


class UpstreamError(GatewayError):
    """Non-2xx answer from the provider. status_code is the upstream status."""

    kind = "UpstreamError"
    retryable = True

    def __init__(self, message: str = "Error from OpenAI API", status_code: int = 500,
                 payload: Any = None):
        super().__init__(message, status_code)
        self.payload = payload


class UpstreamShapeError(GatewayError):
    kind = "UpstreamShapeError"
    retryable = True

    def __init__(self, message: str = "Invalid response from translation service", payload: Any = None):
        super().__init__(message)
        self.payload = payload


class ResponseParseError(GatewayError):
    kind = "ResponseParseError"
    retryable = True

    def __init__(self, raw_content: str, message: str = "Failed to parse translation response"):
        super().__init__(message)
        self.raw_content = raw_content


class ResponseValidationError(GatewayError):
    kind = "ResponseValidationError"
    retryable = True

    def __init__(self, payload: Any, message: str = "Invalid translation response format"):
        super().__init__(message)
        self.payload = payload


class TransportError(GatewayError):
    kind = "TransportError"
    status_code = 502
    retryable = True


class RetryExhaustedError(GatewayError):
    kind = "RetryExhausted"

    def __init__(self, attempts: int, last_error: BaseException, operation: str = "Translation"):
        super().__init__(
            f"{operation} failed after {attempts} attempts: {getattr(last_error, 'message', str(last_error))}",
            getattr(last_error, "status_code", 500),
        )
        self.attempts = attempts
        self.last_error = last_error


def is_retryable_error(exc: BaseException) -> bool:
    return isinstance(exc, GatewayError) and exc.retryable
