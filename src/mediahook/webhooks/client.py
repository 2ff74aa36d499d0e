"""HTTP client with bounded exponential-backoff retry.

Only transient failures are retried: connection and timeout errors,
HTTP 429, and 5xx other than 501. Anything else fails on the first
attempt. When attempts run out the last failure is wrapped in a
TransportError.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from types import TracebackType

import httpx
from pydantic import BaseModel, ConfigDict, Field, model_validator
from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from mediahook.exceptions import TransportError
from mediahook.logging import get_logger

logger = get_logger(__name__)

DEFAULT_RETRY_WAIT_MIN = 1.0
DEFAULT_RETRY_WAIT_MAX = 30.0
DEFAULT_MAX_RETRIES = 4
DEFAULT_CLIENT_TIMEOUT = 30.0


class HTTPClientParams(BaseModel):
    """Retry policy and timeout for webhook requests.

    Attributes:
        retry_wait_min: Seconds to wait before the first retry.
        retry_wait_max: Upper bound on any single wait.
        max_retries: Retries after the first attempt (0 = try once).
        client_timeout: Per-request timeout in seconds.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    retry_wait_min: float = Field(default=DEFAULT_RETRY_WAIT_MIN, ge=0.0)
    retry_wait_max: float = Field(default=DEFAULT_RETRY_WAIT_MAX, ge=0.0)
    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=0, le=20)
    client_timeout: float = Field(default=DEFAULT_CLIENT_TIMEOUT, gt=0.0)

    @model_validator(mode="after")
    def _validate_wait_bounds(self) -> "HTTPClientParams":
        if self.retry_wait_max < self.retry_wait_min:
            raise ValueError(
                f"retry_wait_max ({self.retry_wait_max}) must be >= "
                f"retry_wait_min ({self.retry_wait_min})"
            )
        return self


class _RetryableStatus(Exception):
    """Response status that warrants another attempt."""

    def __init__(self, response: httpx.Response) -> None:
        self.status_code = response.status_code
        self.retry_after = _parse_retry_after(response)
        super().__init__(f"HTTP {response.status_code}")


def _parse_retry_after(response: httpx.Response) -> float | None:
    if response.status_code not in (429, 503):
        return None
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        seconds = float(value)
    except ValueError:
        # HTTP-date form is not honored
        return None
    return max(seconds, 0.0)


def _is_retryable_status(status_code: int) -> bool:
    return status_code == 429 or (status_code >= 500 and status_code != 501)


def _should_retry(exc: BaseException) -> bool:
    if isinstance(exc, _RetryableStatus):
        return True
    return isinstance(exc, httpx.TransportError) and not isinstance(
        exc, httpx.UnsupportedProtocol
    )


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.debug(
        "retrying webhook request",
        attempt=retry_state.attempt_number,
        wait=retry_state.next_action.sleep if retry_state.next_action else None,
        error=str(exc) if exc else None,
    )


class RetryingClient:
    """Sends requests through httpx, retrying transient failures.

    Example:
        ```python
        client = RetryingClient(HTTPClientParams(max_retries=2))
        request = client.build_request("POST", url, content=body, headers=headers)
        response = client.do(request)
        ```
    """

    def __init__(
        self,
        params: HTTPClientParams | None = None,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            params: Retry policy and timeout.
            transport: httpx transport override (e.g. httpx.MockTransport).
            sleep: Function used to wait between attempts.
        """
        self.params = params or HTTPClientParams()
        self._client = httpx.Client(timeout=self.params.client_timeout, transport=transport)
        self._sleep = sleep or time.sleep
        self._wait = wait_exponential(
            multiplier=self.params.retry_wait_min,
            min=self.params.retry_wait_min,
            max=self.params.retry_wait_max,
        )

    def build_request(
        self,
        method: str,
        url: str,
        content: bytes,
        headers: dict[str, str],
    ) -> httpx.Request:
        try:
            return self._client.build_request(method, url, content=content, headers=headers)
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as e:
            raise TransportError(f"invalid webhook URL {url!r}: {e}") from e

    def do(self, request: httpx.Request) -> httpx.Response:
        """Send ``request``, retrying transient failures.

        Returns:
            The first response with a status below 400.

        Raises:
            TransportError: On a non-retryable failure, or once retries
                are exhausted.
        """
        retrying = Retrying(
            stop=stop_after_attempt(self.params.max_retries + 1),
            wait=self._backoff,
            retry=retry_if_exception(_should_retry),
            before_sleep=_log_retry,
            sleep=self._sleep,
            reraise=False,
        )
        try:
            return retrying(self._attempt, request)
        except RetryError as e:
            attempts = e.last_attempt.attempt_number
            last = e.last_attempt.exception()
            status_code = last.status_code if isinstance(last, _RetryableStatus) else None
            raise TransportError(
                f"{request.method} {request.url} giving up after {attempts} attempt(s): {last}",
                status_code=status_code,
                attempts=attempts,
            ) from last
        except httpx.HTTPError as e:
            raise TransportError(f"{request.method} {request.url} failed: {e}") from e

    def _attempt(self, request: httpx.Request) -> httpx.Response:
        if self._client.is_closed:
            raise TransportError(f"{request.method} {request.url} failed: client is closed")
        response = self._client.send(request)
        if response.status_code < 400:
            return response

        response.close()
        if _is_retryable_status(response.status_code):
            raise _RetryableStatus(response)
        raise TransportError(
            f"{request.method} {request.url} rejected with HTTP {response.status_code}",
            status_code=response.status_code,
        )

    def _backoff(self, retry_state: RetryCallState) -> float:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        if isinstance(exc, _RetryableStatus) and exc.retry_after is not None:
            return min(exc.retry_after, self.params.retry_wait_max)
        return self._wait(retry_state)

    @property
    def closed(self) -> bool:
        return self._client.is_closed

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "RetryingClient":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()


__all__ = [
    "DEFAULT_CLIENT_TIMEOUT",
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_RETRY_WAIT_MAX",
    "DEFAULT_RETRY_WAIT_MIN",
    "HTTPClientParams",
    "RetryingClient",
]
