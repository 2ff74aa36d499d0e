"""Payload models for mediahook.

Context Records:
    - Room, ParticipantInfo, TrackInfo: media session state
    - EgressInfo, IngressInfo: recording/streaming jobs attached to a room

Delivery Types:
    - WebhookEvent: payload POSTed to the endpoint
    - DeliveryOutcome: per-attempt result reported to the processed hook
"""

from .base import WireModel, generate_id, unix_now
from .room import (
    EgressInfo,
    EgressStatus,
    IngressInfo,
    IngressState,
    ParticipantInfo,
    ParticipantState,
    Room,
    TrackInfo,
    TrackSource,
    TrackType,
)
from .webhook import (
    ALL_EVENT_TYPES,
    EVENT_EGRESS_ENDED,
    EVENT_EGRESS_STARTED,
    EVENT_EGRESS_UPDATED,
    EVENT_INGRESS_ENDED,
    EVENT_INGRESS_STARTED,
    EVENT_PARTICIPANT_CONNECTION_ABORTED,
    EVENT_PARTICIPANT_JOINED,
    EVENT_PARTICIPANT_LEFT,
    EVENT_ROOM_FINISHED,
    EVENT_ROOM_STARTED,
    EVENT_TRACK_PUBLISHED,
    EVENT_TRACK_UNPUBLISHED,
    DeliveryOutcome,
    WebhookEvent,
)

__all__ = [
    # Base
    "WireModel",
    "generate_id",
    "unix_now",
    # Context records
    "EgressInfo",
    "EgressStatus",
    "IngressInfo",
    "IngressState",
    "ParticipantInfo",
    "ParticipantState",
    "Room",
    "TrackInfo",
    "TrackSource",
    "TrackType",
    # Events
    "ALL_EVENT_TYPES",
    "EVENT_EGRESS_ENDED",
    "EVENT_EGRESS_STARTED",
    "EVENT_EGRESS_UPDATED",
    "EVENT_INGRESS_ENDED",
    "EVENT_INGRESS_STARTED",
    "EVENT_PARTICIPANT_CONNECTION_ABORTED",
    "EVENT_PARTICIPANT_JOINED",
    "EVENT_PARTICIPANT_LEFT",
    "EVENT_ROOM_FINISHED",
    "EVENT_ROOM_STARTED",
    "EVENT_TRACK_PUBLISHED",
    "EVENT_TRACK_UNPUBLISHED",
    "DeliveryOutcome",
    "WebhookEvent",
]
