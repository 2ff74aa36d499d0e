"""Webhook event payload and per-delivery outcome.

WebhookEvent is what the endpoint receives. DeliveryOutcome is what the
process-local processed hook receives after each delivery attempt.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import PydanticSerializationError

from mediahook.exceptions import MediahookError, SerializationError

from .base import WireModel, generate_id, unix_now
from .room import EgressInfo, IngressInfo, ParticipantInfo, Room, TrackInfo

EVENT_ROOM_STARTED = "room_started"
EVENT_ROOM_FINISHED = "room_finished"
EVENT_PARTICIPANT_JOINED = "participant_joined"
EVENT_PARTICIPANT_LEFT = "participant_left"
EVENT_PARTICIPANT_CONNECTION_ABORTED = "participant_connection_aborted"
EVENT_TRACK_PUBLISHED = "track_published"
EVENT_TRACK_UNPUBLISHED = "track_unpublished"
EVENT_EGRESS_STARTED = "egress_started"
EVENT_EGRESS_UPDATED = "egress_updated"
EVENT_EGRESS_ENDED = "egress_ended"
EVENT_INGRESS_STARTED = "ingress_started"
EVENT_INGRESS_ENDED = "ingress_ended"

ALL_EVENT_TYPES: tuple[str, ...] = (
    EVENT_ROOM_STARTED,
    EVENT_ROOM_FINISHED,
    EVENT_PARTICIPANT_JOINED,
    EVENT_PARTICIPANT_LEFT,
    EVENT_PARTICIPANT_CONNECTION_ABORTED,
    EVENT_TRACK_PUBLISHED,
    EVENT_TRACK_UNPUBLISHED,
    EVENT_EGRESS_STARTED,
    EVENT_EGRESS_UPDATED,
    EVENT_EGRESS_ENDED,
    EVENT_INGRESS_STARTED,
    EVENT_INGRESS_ENDED,
)


class WebhookEvent(WireModel):
    """Event payload sent to the webhook endpoint.

    Which context records are set depends on the event type: room events
    carry ``room``, participant events add ``participant``, track events
    add ``track``, egress and ingress events carry their job record.

    Attributes:
        event: Event type (room_started, participant_joined, etc.).
        id: Unique identifier for this event.
        created_at: Unix seconds when the event occurred.
        room: Room the event relates to.
        participant: Participant the event relates to.
        track: Track the event relates to.
        egress_info: Egress job the event relates to.
        ingress_info: Ingress the event relates to.
        num_dropped: Webhooks dropped since the previous send attempt.
            Overwritten by the notifier immediately before sending.
    """

    event: str = Field(description="Event type")
    id: str = Field(default_factory=lambda: generate_id("EV"))
    created_at: int = Field(default_factory=unix_now, description="Unix seconds when it occurred")
    room: Room | None = None
    participant: ParticipantInfo | None = None
    track: TrackInfo | None = None
    egress_info: EgressInfo | None = None
    ingress_info: IngressInfo | None = None
    num_dropped: int = Field(default=0, ge=0)

    def room_name(self) -> str | None:
        """Name of the room this event belongs to, if any."""
        if self.room is not None and self.room.name:
            return self.room.name
        if self.egress_info is not None and self.egress_info.room_name:
            return self.egress_info.room_name
        if self.ingress_info is not None and self.ingress_info.room_name:
            return self.ingress_info.room_name
        return None

    def to_json(self) -> bytes:
        """Encode to the canonical wire form.

        Raises:
            SerializationError: If the event cannot be encoded.
        """
        try:
            return self.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")
        except PydanticSerializationError as e:
            raise SerializationError(f"failed to encode webhook event {self.id}: {e}") from e

    @classmethod
    def from_json(cls, data: bytes | str) -> "WebhookEvent":
        """Decode a payload received from the wire.

        Raises:
            SerializationError: If the payload is not a valid event.
        """
        try:
            return cls.model_validate_json(data)
        except PydanticValidationError as e:
            raise SerializationError(f"invalid webhook event payload: {e}") from e

    @classmethod
    def for_room_started(cls, room: Room) -> "WebhookEvent":
        return cls(event=EVENT_ROOM_STARTED, room=room)

    @classmethod
    def for_room_finished(cls, room: Room) -> "WebhookEvent":
        return cls(event=EVENT_ROOM_FINISHED, room=room)

    @classmethod
    def for_participant_joined(cls, room: Room, participant: ParticipantInfo) -> "WebhookEvent":
        return cls(event=EVENT_PARTICIPANT_JOINED, room=room, participant=participant)

    @classmethod
    def for_participant_left(cls, room: Room, participant: ParticipantInfo) -> "WebhookEvent":
        return cls(event=EVENT_PARTICIPANT_LEFT, room=room, participant=participant)

    @classmethod
    def for_participant_connection_aborted(
        cls, room: Room, participant: ParticipantInfo
    ) -> "WebhookEvent":
        """Create event for a participant whose connection dropped without leaving."""
        return cls(event=EVENT_PARTICIPANT_CONNECTION_ABORTED, room=room, participant=participant)

    @classmethod
    def for_track_published(
        cls,
        room: Room,
        participant: ParticipantInfo,
        track: TrackInfo,
    ) -> "WebhookEvent":
        """Create event for a track being published by a participant."""
        return cls(
            event=EVENT_TRACK_PUBLISHED,
            room=room,
            participant=participant,
            track=track,
        )

    @classmethod
    def for_track_unpublished(
        cls,
        room: Room,
        participant: ParticipantInfo,
        track: TrackInfo,
    ) -> "WebhookEvent":
        """Create event for a track being unpublished."""
        return cls(
            event=EVENT_TRACK_UNPUBLISHED,
            room=room,
            participant=participant,
            track=track,
        )

    @classmethod
    def for_egress_started(cls, egress: EgressInfo) -> "WebhookEvent":
        return cls(event=EVENT_EGRESS_STARTED, egress_info=egress)

    @classmethod
    def for_egress_updated(cls, egress: EgressInfo) -> "WebhookEvent":
        return cls(event=EVENT_EGRESS_UPDATED, egress_info=egress)

    @classmethod
    def for_egress_ended(cls, egress: EgressInfo) -> "WebhookEvent":
        return cls(event=EVENT_EGRESS_ENDED, egress_info=egress)

    @classmethod
    def for_ingress_started(cls, ingress: IngressInfo) -> "WebhookEvent":
        return cls(event=EVENT_INGRESS_STARTED, ingress_info=ingress)

    @classmethod
    def for_ingress_ended(cls, ingress: IngressInfo) -> "WebhookEvent":
        return cls(event=EVENT_INGRESS_ENDED, ingress_info=ingress)


class DeliveryOutcome(BaseModel):
    """Result of one delivery attempt, handed to the processed hook.

    Created fresh for every enqueue attempt and discarded after the hook
    returns. Dropped events have ``is_dropped`` set and no timings.

    Attributes:
        event_id: ID of the event.
        event: Event type.
        project_id: Free slot for the fields hook to tag the owning project.
        room_name: Room the event belongs to.
        room_id: Sid of that room.
        participant_identity: Identity of the participant involved.
        participant_id: Sid of the participant involved.
        track_id: Sid of the track involved.
        egress_id: Egress job involved.
        ingress_id: Ingress involved.
        created_at: Unix seconds when the event occurred.
        queued_at: When the event was accepted into its partition queue.
        queue_duration: Seconds spent waiting in the queue.
        sent_at: When the send started.
        send_duration: Seconds spent sending, including retries.
        url: Endpoint the event was sent to.
        num_dropped: Drop count carried by this event.
        is_dropped: True if the event was rejected at enqueue.
        send_error: Error message if the send failed.
        error_code: Machine-readable code of that error.
        annotations: Extra fields added by the fields hook.
    """

    model_config = ConfigDict(extra="forbid")

    event_id: str
    event: str
    project_id: str | None = None
    room_name: str | None = None
    room_id: str | None = None
    participant_identity: str | None = None
    participant_id: str | None = None
    track_id: str | None = None
    egress_id: str | None = None
    ingress_id: str | None = None
    created_at: int = 0
    queued_at: datetime | None = None
    queue_duration: float = Field(default=0.0, ge=0.0)
    sent_at: datetime | None = None
    send_duration: float = Field(default=0.0, ge=0.0)
    url: str = ""
    num_dropped: int = 0
    is_dropped: bool = False
    send_error: str | None = None
    error_code: str | None = None
    annotations: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_event(
        cls,
        event: WebhookEvent,
        url: str,
        queued_at: datetime | None = None,
        queue_duration: float = 0.0,
        sent_at: datetime | None = None,
        send_duration: float = 0.0,
        is_dropped: bool = False,
        error: BaseException | None = None,
    ) -> "DeliveryOutcome":
        """Build an outcome from an event and its delivery timings.

        Egress and ingress records take precedence for room identity
        since those jobs name the room they operate on.
        """
        outcome = cls(
            event_id=event.id,
            event=event.event,
            created_at=event.created_at,
            queued_at=queued_at,
            queue_duration=queue_duration,
            sent_at=sent_at,
            send_duration=send_duration,
            url=url,
            num_dropped=event.num_dropped,
            is_dropped=is_dropped,
        )
        if event.room is not None:
            outcome.room_name = event.room.name
            outcome.room_id = event.room.sid
        if event.participant is not None:
            outcome.participant_identity = event.participant.identity
            outcome.participant_id = event.participant.sid
        if event.track is not None:
            outcome.track_id = event.track.sid
        if event.egress_info is not None:
            outcome.egress_id = event.egress_info.egress_id
            outcome.room_name = event.egress_info.room_name
            outcome.room_id = event.egress_info.room_id
        if event.ingress_info is not None:
            outcome.ingress_id = event.ingress_info.ingress_id
            outcome.room_name = event.ingress_info.room_name
            if event.participant is None:
                outcome.participant_identity = event.ingress_info.participant_identity
        if error is not None:
            outcome.send_error = str(error)
            outcome.error_code = (
                error.code if isinstance(error, MediahookError) else type(error).__name__
            )
        return outcome


__all__ = [
    "ALL_EVENT_TYPES",
    "DeliveryOutcome",
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
    "WebhookEvent",
]
