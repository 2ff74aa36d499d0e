"""mediahook: webhook delivery for real-time media events.

Delivers room, participant, track, egress and ingress events to a single
HTTP endpoint. Delivery is queued per room, signed, retried on transient
failure, and never blocks the producer; dropped events are counted and
reported to the endpoint on the next event it receives.

Quick Start:
    from mediahook import Room, URLNotifier, WebhookEvent

    notifier = URLNotifier(
        url="https://hooks.example.com/media",
        api_key="APIkey",
        api_secret="secret",
    )
    notifier.notify(WebhookEvent.for_room_started(Room(sid="RM_1", name="standup")))
    notifier.stop()
"""

__version__ = "0.1.0"

# Exceptions
from .exceptions import (
    ConfigurationError,
    MediahookError,
    SerializationError,
    SigningError,
    TransportError,
    VerificationError,
)

# Logging
from .logging import bind_context, clear_context, configure_logging, get_logger

# Models
from .models import (
    DeliveryOutcome,
    EgressInfo,
    IngressInfo,
    ParticipantInfo,
    Room,
    TrackInfo,
    WebhookEvent,
)

# Delivery
from .webhooks import (
    EventFilter,
    FilterParams,
    HTTPClientParams,
    QueuePool,
    RetryingClient,
    StaticKeyProvider,
    URLNotifier,
    receive,
    receive_event,
    sign,
)

# Configuration
from .config import Settings

__all__ = [
    # Version
    "__version__",
    # Configuration
    "Settings",
    # Exceptions
    "ConfigurationError",
    "MediahookError",
    "SerializationError",
    "SigningError",
    "TransportError",
    "VerificationError",
    # Logging
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_logger",
    # Models
    "DeliveryOutcome",
    "EgressInfo",
    "IngressInfo",
    "ParticipantInfo",
    "Room",
    "TrackInfo",
    "WebhookEvent",
    # Delivery
    "EventFilter",
    "FilterParams",
    "HTTPClientParams",
    "QueuePool",
    "RetryingClient",
    "StaticKeyProvider",
    "URLNotifier",
    "receive",
    "receive_event",
    "sign",
]
