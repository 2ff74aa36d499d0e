"""Unit tests for the retrying HTTP client."""

from __future__ import annotations

from collections.abc import Callable

import httpx
import pytest
from conftest import WEBHOOK_URL, RecordingEndpoint
from pydantic import ValidationError

from mediahook.exceptions import TransportError
from mediahook.webhooks import HTTPClientParams, RetryingClient


def _post(client: RetryingClient) -> httpx.Response:
    request = client.build_request("POST", WEBHOOK_URL, content=b"{}", headers={})
    return client.do(request)


class TestHTTPClientParams:
    """Tests for retry policy validation."""

    def test_defaults(self) -> None:
        params = HTTPClientParams()
        assert params.retry_wait_min == 1.0
        assert params.retry_wait_max == 30.0
        assert params.max_retries == 4
        assert params.client_timeout == 30.0

    def test_wait_bounds_ordered(self) -> None:
        with pytest.raises(ValidationError):
            HTTPClientParams(retry_wait_min=5.0, retry_wait_max=1.0)

    def test_negative_retries_rejected(self) -> None:
        with pytest.raises(ValidationError):
            HTTPClientParams(max_retries=-1)


class TestRetryingClient:
    """Tests for RetryingClient.do."""

    def test_success_first_attempt(
        self, make_client: Callable[..., RetryingClient], endpoint: RecordingEndpoint
    ) -> None:
        response = _post(make_client())

        assert response.status_code == 200
        assert endpoint.count == 1

    def test_retries_server_errors_then_succeeds(
        self, make_client: Callable[..., RetryingClient], endpoint: RecordingEndpoint
    ) -> None:
        """5xx responses are retried until one succeeds."""
        endpoint.statuses = [500, 503]

        response = _post(make_client())

        assert response.status_code == 200
        assert endpoint.count == 3

    def test_gives_up_after_max_retries(
        self, make_client: Callable[..., RetryingClient], endpoint: RecordingEndpoint
    ) -> None:
        """Exhausted retries raise TransportError with the last status."""
        endpoint.default_status = 500

        with pytest.raises(TransportError) as exc_info:
            _post(make_client())

        assert endpoint.count == 3
        assert exc_info.value.attempts == 3
        assert exc_info.value.status_code == 500
        assert "giving up after 3 attempt(s)" in str(exc_info.value)

    def test_client_error_not_retried(
        self, make_client: Callable[..., RetryingClient], endpoint: RecordingEndpoint
    ) -> None:
        """4xx responses other than 429 fail immediately."""
        endpoint.default_status = 403

        with pytest.raises(TransportError) as exc_info:
            _post(make_client())

        assert endpoint.count == 1
        assert exc_info.value.status_code == 403

    def test_not_implemented_not_retried(
        self, make_client: Callable[..., RetryingClient], endpoint: RecordingEndpoint
    ) -> None:
        endpoint.default_status = 501

        with pytest.raises(TransportError):
            _post(make_client())

        assert endpoint.count == 1

    def test_too_many_requests_retried(
        self, make_client: Callable[..., RetryingClient], endpoint: RecordingEndpoint
    ) -> None:
        endpoint.statuses = [429]

        assert _post(make_client()).status_code == 200
        assert endpoint.count == 2

    def test_connection_errors_retried(self, make_client: Callable[..., RetryingClient]) -> None:
        """Transport-level failures are retried and then reported."""
        calls: list[httpx.Request] = []

        def refuse(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TransportError) as exc_info:
            _post(make_client(handler=refuse))

        assert len(calls) == 3
        assert exc_info.value.status_code is None
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    def test_zero_retries_tries_once(
        self, make_client: Callable[..., RetryingClient], endpoint: RecordingEndpoint
    ) -> None:
        endpoint.default_status = 502
        params = HTTPClientParams(retry_wait_min=0.0, retry_wait_max=0.0, max_retries=0)

        with pytest.raises(TransportError):
            _post(make_client(params=params))

        assert endpoint.count == 1

    def test_exponential_backoff_clamped(
        self, make_client: Callable[..., RetryingClient], endpoint: RecordingEndpoint
    ) -> None:
        """Waits double from retry_wait_min and stop at retry_wait_max."""
        endpoint.default_status = 500
        sleeps: list[float] = []
        params = HTTPClientParams(retry_wait_min=1.0, retry_wait_max=3.0, max_retries=3)

        with pytest.raises(TransportError):
            _post(make_client(params=params, sleep=sleeps.append))

        assert sleeps == [1.0, 2.0, 3.0]

    def test_retry_after_honored(self, make_client: Callable[..., RetryingClient]) -> None:
        """A numeric Retry-After on 429 replaces the computed backoff."""
        responses = iter(
            [httpx.Response(429, headers={"Retry-After": "2"}), httpx.Response(200)]
        )
        sleeps: list[float] = []
        params = HTTPClientParams(retry_wait_min=0.5, retry_wait_max=10.0, max_retries=2)

        response = _post(
            make_client(handler=lambda _: next(responses), params=params, sleep=sleeps.append)
        )

        assert response.status_code == 200
        assert sleeps == [2.0]

    def test_retry_after_capped_at_max_wait(
        self, make_client: Callable[..., RetryingClient]
    ) -> None:
        responses = iter(
            [httpx.Response(503, headers={"Retry-After": "120"}), httpx.Response(200)]
        )
        sleeps: list[float] = []
        params = HTTPClientParams(retry_wait_min=0.5, retry_wait_max=5.0, max_retries=2)

        _post(make_client(handler=lambda _: next(responses), params=params, sleep=sleeps.append))

        assert sleeps == [5.0]

    def test_context_manager_closes(self, make_client: Callable[..., RetryingClient]) -> None:
        with make_client() as client:
            assert _post(client).status_code == 200
        assert client.closed

    def test_closed_client_fails_without_sending(
        self, make_client: Callable[..., RetryingClient], endpoint: RecordingEndpoint
    ) -> None:
        """A request on a closed client raises TransportError and is not retried."""
        client = make_client()
        request = client.build_request("POST", WEBHOOK_URL, content=b"{}", headers={})
        client.close()

        with pytest.raises(TransportError, match="client is closed"):
            client.do(request)

        assert endpoint.count == 0
