"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import sys
import threading
import time
from collections.abc import Callable, Iterator
from pathlib import Path

import httpx
import pytest

# Add tests directory to path so helpers can be imported
tests_dir = Path(__file__).parent
if str(tests_dir) not in sys.path:
    sys.path.insert(0, str(tests_dir))

from mediahook.models import ParticipantInfo, Room, WebhookEvent  # noqa: E402
from mediahook.webhooks import HTTPClientParams, RetryingClient, URLNotifier  # noqa: E402

WEBHOOK_URL = "https://hooks.example.com/media"
API_KEY = "APItestkey"
API_SECRET = "test-secret-that-is-long-enough-for-hs256"


class RecordingEndpoint:
    """Mock webhook endpoint for httpx.MockTransport.

    Records every request and answers with scripted status codes, falling
    back to ``default_status``. Setting ``gate`` holds each request until
    the gate is opened, which keeps a worker busy while tests fill queues.
    """

    def __init__(self, statuses: list[int] | None = None, default_status: int = 200) -> None:
        self.requests: list[httpx.Request] = []
        self.statuses = list(statuses or [])
        self.default_status = default_status
        self.gate: threading.Event | None = None
        self.entered = threading.Event()
        self._lock = threading.Lock()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.entered.set()
        if self.gate is not None:
            self.gate.wait(timeout=5)
        with self._lock:
            self.requests.append(request)
            status = self.statuses.pop(0) if self.statuses else self.default_status
        return httpx.Response(status)

    def hold(self) -> threading.Event:
        """Hold requests until the returned event is set."""
        self.gate = threading.Event()
        self.entered.clear()
        return self.gate

    @property
    def count(self) -> int:
        with self._lock:
            return len(self.requests)

    def events(self) -> list[WebhookEvent]:
        with self._lock:
            return [WebhookEvent.from_json(r.content) for r in self.requests]


def wait_for(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    """Poll ``predicate`` until it is true or ``timeout`` elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


def make_event(room_name: str = "room-a", event_type: str = "participant_joined") -> WebhookEvent:
    return WebhookEvent(
        event=event_type,
        room=Room(sid=f"RM_{room_name}", name=room_name),
        participant=ParticipantInfo(sid="PA_1", identity="alice"),
    )


@pytest.fixture
def endpoint() -> RecordingEndpoint:
    return RecordingEndpoint()


@pytest.fixture
def fast_params() -> HTTPClientParams:
    """Retry policy with no waiting, two retries."""
    return HTTPClientParams(retry_wait_min=0.0, retry_wait_max=0.0, max_retries=2, client_timeout=5.0)


@pytest.fixture
def make_client(
    endpoint: RecordingEndpoint, fast_params: HTTPClientParams
) -> Callable[..., RetryingClient]:
    def _make(
        handler: Callable[[httpx.Request], httpx.Response] | None = None,
        params: HTTPClientParams | None = None,
        sleep: Callable[[float], None] | None = None,
    ) -> RetryingClient:
        return RetryingClient(
            params or fast_params,
            transport=httpx.MockTransport(handler or endpoint),
            sleep=sleep or (lambda _: None),
        )

    return _make


@pytest.fixture
def make_notifier(
    make_client: Callable[..., RetryingClient],
) -> Iterator[Callable[..., URLNotifier]]:
    """Build notifiers wired to the recording endpoint; killed at teardown."""
    created: list[URLNotifier] = []

    def _make(**kwargs: object) -> URLNotifier:
        kwargs.setdefault("url", WEBHOOK_URL)
        kwargs.setdefault("api_key", API_KEY)
        kwargs.setdefault("api_secret", API_SECRET)
        kwargs.setdefault("client", make_client())
        notifier = URLNotifier(**kwargs)  # type: ignore[arg-type]
        created.append(notifier)
        return notifier

    yield _make

    for notifier in created:
        notifier.stop(force=True)
