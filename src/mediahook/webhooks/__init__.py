"""Webhook delivery for mediahook.

Provides queued, signed delivery of media events to a single URL with
bounded retry and drop reporting, plus receiver-side verification.

Example:
    ```python
    from mediahook.webhooks import FilterParams, URLNotifier

    notifier = URLNotifier(
        url="https://hooks.example.com/media",
        api_key="APIkey",
        api_secret="secret",
        filter_params=FilterParams(exclude_events=("track_published",)),
    )
    notifier.notify(event)
    notifier.stop()
    ```
"""

from .client import HTTPClientParams, RetryingClient
from .filter import EventFilter, FilterParams
from .notifier import URLNotifier, event_key, log_fields
from .pool import QueuePool
from .signing import (
    AUTH_HEADER,
    CONTENT_TYPE,
    KeyProvider,
    StaticKeyProvider,
    payload_digest,
    receive,
    receive_event,
    sign,
    verify_token,
)

__all__ = [
    "AUTH_HEADER",
    "CONTENT_TYPE",
    "EventFilter",
    "FilterParams",
    "HTTPClientParams",
    "KeyProvider",
    "QueuePool",
    "RetryingClient",
    "StaticKeyProvider",
    "URLNotifier",
    "event_key",
    "log_fields",
    "payload_digest",
    "receive",
    "receive_event",
    "sign",
    "verify_token",
]
