"""Queued, signed webhook delivery to a single URL.

Events are filtered, routed to a partition by room, and sent from worker
threads. Producers never block on the endpoint: a full partition drops
the event, and every drop (rejected enqueue or failed send) is counted.
The count is written into the next event sent, so the endpoint can see
how many notifications it missed.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, NamedTuple

import structlog

from mediahook.exceptions import ConfigurationError, MediahookError
from mediahook.logging import configure_logging, get_logger
from mediahook.models import DeliveryOutcome, WebhookEvent
from mediahook.sync import AtomicCounter, ReadWriteLock

from .client import HTTPClientParams, RetryingClient
from .filter import EventFilter, FilterParams
from .pool import DEFAULT_NUM_WORKERS, DEFAULT_QUEUE_SIZE, QueuePool
from .signing import AUTH_HEADER, CONTENT_TYPE, sign

if TYPE_CHECKING:
    from mediahook.config import Settings

ProcessedHook = Callable[[DeliveryOutcome], None]
FieldsHook = Callable[[DeliveryOutcome], None]

DEFAULT_EVENT_KEY = "default"


class _Credentials(NamedTuple):
    api_key: str
    api_secret: str


def event_key(event: WebhookEvent) -> str:
    """Partition key for an event.

    Events for the same room share a key so they are delivered in order.
    Events with no room fall back to the participant, then the track.
    """
    room_name = event.room_name()
    if room_name:
        return room_name
    if event.participant is not None and event.participant.identity:
        return event.participant.identity
    if event.track is not None and event.track.sid:
        return event.track.sid
    get_logger(__name__).warning(
        "webhook using default partition key",
        webhook_event=event.event,
        id=event.id,
    )
    return DEFAULT_EVENT_KEY


def log_fields(event: WebhookEvent, url: str) -> dict[str, Any]:
    """Structured log fields identifying an event."""
    fields: dict[str, Any] = {
        "webhook_event": event.event,
        "id": event.id,
        "webhook_time": event.created_at,
        "url": url,
    }
    if event.room is not None:
        fields["room"] = event.room.name
        fields["room_id"] = event.room.sid
    if event.participant is not None:
        fields["participant"] = event.participant.identity
        fields["participant_id"] = event.participant.sid
    if event.track is not None:
        fields["track_id"] = event.track.sid
    if event.egress_info is not None:
        fields["egress_id"] = event.egress_info.egress_id
        fields["egress_status"] = event.egress_info.status.value
        if event.egress_info.error:
            fields["egress_error"] = event.egress_info.error
    if event.ingress_info is not None:
        fields["ingress_id"] = event.ingress_info.ingress_id
        fields["ingress_state"] = event.ingress_info.state.value
    return fields


class URLNotifier:
    """Sends webhook events to one URL from a pool of worker threads.

    Handles:
    - Filtering events by type
    - Per-room ordering with cross-room concurrency
    - Signing payloads with a short-lived token
    - Retrying transient HTTP failures
    - Counting dropped events and reporting them to the endpoint

    Example:
        ```python
        notifier = URLNotifier(
            url="https://hooks.example.com/media",
            api_key="APIkey",
            api_secret="secret",
        )
        notifier.register_processed_hook(record_metrics)
        notifier.notify(WebhookEvent.for_room_started(room))
        notifier.stop()
        ```
    """

    def __init__(
        self,
        url: str,
        api_key: str,
        api_secret: str,
        queue_size: int = DEFAULT_QUEUE_SIZE,
        num_workers: int = DEFAULT_NUM_WORKERS,
        http_params: HTTPClientParams | None = None,
        filter_params: FilterParams | None = None,
        fields_hook: FieldsHook | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
        client: RetryingClient | None = None,
    ) -> None:
        """Initialize the notifier and start its workers.

        Args:
            url: Endpoint receiving POSTed events.
            api_key: Key the tokens are issued by.
            api_secret: Secret the tokens are signed with.
            queue_size: Depth of each partition queue.
            num_workers: Number of partitions/worker threads.
            http_params: Retry policy and timeout, used when ``client`` is None.
            filter_params: Event types to include or exclude.
            fields_hook: Called on each outcome before the processed hook,
                to annotate it.
            logger: Logger for delivery results.
            client: Prebuilt HTTP client.

        Raises:
            ConfigurationError: If no URL is given.
        """
        if not url:
            raise ConfigurationError("webhook URL is required")

        self.url = url
        self._mu = ReadWriteLock()
        self._credentials = _Credentials(api_key, api_secret)
        self._processed_hook: ProcessedHook | None = None
        self._fields_hook = fields_hook
        self._logger = logger or get_logger(__name__)
        self._client = client or RetryingClient(http_params)
        self._filter = EventFilter(filter_params, lock=self._mu)
        self._dropped = AtomicCounter()
        self._pool = QueuePool(num_workers=num_workers, queue_size=queue_size)
        self._stop_lock = threading.Lock()
        self._stopped = False

    @classmethod
    def from_settings(cls, settings: Settings, **overrides: Any) -> "URLNotifier":
        """Build a notifier from environment settings.

        Also configures logging from ``log_level`` and ``log_format``.
        Keyword overrides replace the corresponding constructor arguments.
        """
        configure_logging(level=settings.log_level, format=settings.log_format)
        kwargs: dict[str, Any] = {
            "url": settings.url or "",
            "api_key": settings.api_key or "",
            "api_secret": settings.api_secret or "",
            "queue_size": settings.queue_size,
            "num_workers": settings.num_workers,
            "http_params": settings.http_client_params(),
            "filter_params": settings.filter_params(),
        }
        kwargs.update(overrides)
        return cls(**kwargs)

    @property
    def dropped(self) -> int:
        """Drops counted since the last send attempt."""
        return self._dropped.load()

    @property
    def filter(self) -> EventFilter:
        return self._filter

    def set_keys(self, api_key: str, api_secret: str) -> None:
        with self._mu.write_lock():
            self._credentials = _Credentials(api_key, api_secret)

    def set_filter(self, params: FilterParams) -> None:
        self._filter.set_filter(params)

    def register_processed_hook(self, hook: ProcessedHook | None) -> None:
        with self._mu.write_lock():
            self._processed_hook = hook

    def _get_processed_hook(self) -> ProcessedHook | None:
        with self._mu.read_lock():
            return self._processed_hook

    def _get_credentials(self) -> _Credentials:
        with self._mu.read_lock():
            return self._credentials

    def notify(self, event: WebhookEvent) -> None:
        """Queue an event for delivery.

        Never blocks on the endpoint and never raises for filtered or
        dropped events. Ownership of ``event`` passes to the notifier.
        """
        if not self._filter.is_allowed(event.event):
            return

        queued_at = datetime.now(UTC)
        queued_mono = time.monotonic()

        def deliver() -> None:
            self._deliver(event, queued_at, queued_mono)

        if self._pool.submit(event_key(event), deliver):
            return

        self._dropped.inc()
        self._logger.info("dropped webhook", **log_fields(event, self.url))
        self._report(DeliveryOutcome.from_event(event, self.url, is_dropped=True))

    queue_notify = notify

    def _deliver(self, event: WebhookEvent, queued_at: datetime, queued_mono: float) -> None:
        fields = log_fields(event, self.url)
        queue_duration = time.monotonic() - queued_mono

        sent_at = datetime.now(UTC)
        send_start = time.monotonic()
        error: Exception | None = None
        try:
            self.send(event)
        except MediahookError as e:
            error = e
        except Exception as e:
            error = e
            self._logger.exception("unexpected error sending webhook", **fields)
        send_duration = time.monotonic() - send_start

        fields["queue_duration"] = queue_duration
        fields["send_duration"] = send_duration
        if error is not None:
            self._logger.warning("failed to send webhook", error=str(error), **fields)
            self._dropped.add(event.num_dropped + 1)
        else:
            self._logger.info("sent webhook", **fields)

        self._report(
            DeliveryOutcome.from_event(
                event,
                self.url,
                queued_at=queued_at,
                queue_duration=queue_duration,
                sent_at=sent_at,
                send_duration=send_duration,
                error=error,
            )
        )

    def _report(self, outcome: DeliveryOutcome) -> None:
        hook = self._get_processed_hook()
        if hook is None:
            return
        try:
            if self._fields_hook is not None:
                self._fields_hook(outcome)
            hook(outcome)
        except Exception:
            self._logger.exception(
                "webhook processed hook failed",
                webhook_event=outcome.event,
                id=outcome.event_id,
                url=self.url,
            )

    def send(self, event: WebhookEvent) -> None:
        """Sign and POST one event, retrying transient failures.

        Moves the drop count into ``event.num_dropped`` first, so the
        caller must add it back if the send fails.

        Raises:
            SerializationError: If the event cannot be encoded.
            SigningError: If no valid token can be built.
            TransportError: If the endpoint cannot be reached or rejects it.
        """
        event.num_dropped = self._dropped.swap(0)
        encoded = event.to_json()

        credentials = self._get_credentials()
        token = sign(encoded, credentials.api_key, credentials.api_secret)

        request = self._client.build_request(
            "POST",
            self.url,
            content=encoded,
            headers={
                AUTH_HEADER: token,
                # custom type so receivers verify the signature before parsing
                "Content-Type": CONTENT_TYPE,
            },
        )
        response = self._client.do(request)
        response.close()

    def stop(self, force: bool = False) -> None:
        """Shut down delivery.

        Args:
            force: If True, discard queued events and return without
                waiting. Otherwise send everything queued first.
        """
        with self._stop_lock:
            if self._stopped:
                return
            self._stopped = True

        if force:
            self._pool.kill()
            # an in-flight send fails its next attempt with TransportError
            self._client.close()
            self._logger.info("webhook notifier killed", url=self.url)
            return

        self._pool.drain()
        self._client.close()
        self._logger.info("webhook notifier drained", url=self.url)


__all__ = [
    "DEFAULT_EVENT_KEY",
    "FieldsHook",
    "ProcessedHook",
    "URLNotifier",
    "event_key",
    "log_fields",
]
