"""Context records attached to webhook events.

Rooms, participants, tracks, and the egress/ingress jobs that run
against a room. Only the fields a webhook receiver needs are modeled.
"""

from enum import Enum

from pydantic import Field

from .base import WireModel


class ParticipantState(str, Enum):
    """Connection lifecycle of a participant."""

    JOINING = "JOINING"
    JOINED = "JOINED"
    ACTIVE = "ACTIVE"
    DISCONNECTED = "DISCONNECTED"


class TrackType(str, Enum):
    AUDIO = "AUDIO"
    VIDEO = "VIDEO"
    DATA = "DATA"


class TrackSource(str, Enum):
    UNKNOWN = "UNKNOWN"
    CAMERA = "CAMERA"
    MICROPHONE = "MICROPHONE"
    SCREEN_SHARE = "SCREEN_SHARE"
    SCREEN_SHARE_AUDIO = "SCREEN_SHARE_AUDIO"


class EgressStatus(str, Enum):
    """Recording/streaming job status."""

    STARTING = "EGRESS_STARTING"
    ACTIVE = "EGRESS_ACTIVE"
    ENDING = "EGRESS_ENDING"
    COMPLETE = "EGRESS_COMPLETE"
    FAILED = "EGRESS_FAILED"
    ABORTED = "EGRESS_ABORTED"


class IngressState(str, Enum):
    INACTIVE = "ENDPOINT_INACTIVE"
    BUFFERING = "ENDPOINT_BUFFERING"
    PUBLISHING = "ENDPOINT_PUBLISHING"
    ERROR = "ENDPOINT_ERROR"
    COMPLETE = "ENDPOINT_COMPLETE"


class Room(WireModel):
    """A media room.

    Attributes:
        sid: Server-assigned room identifier.
        name: Room name, unique within a project.
        empty_timeout: Seconds an empty room stays open.
        max_participants: Participant cap (0 = unlimited).
        creation_time: Unix seconds when the room was created.
        metadata: Application-defined metadata.
        num_participants: Participants currently connected.
        num_publishers: Participants currently publishing.
        active_recording: Whether an egress is recording the room.
    """

    sid: str = Field(default="", description="Server-assigned room identifier")
    name: str = Field(default="", description="Room name")
    empty_timeout: int = Field(default=0, ge=0, description="Seconds an empty room stays open")
    max_participants: int = Field(default=0, ge=0, description="Participant cap (0 = unlimited)")
    creation_time: int = Field(default=0, description="Unix seconds when created")
    metadata: str = Field(default="", description="Application-defined metadata")
    num_participants: int = Field(default=0, ge=0)
    num_publishers: int = Field(default=0, ge=0)
    active_recording: bool = Field(default=False)


class ParticipantInfo(WireModel):
    """A participant connected to a room."""

    sid: str = Field(default="", description="Server-assigned participant identifier")
    identity: str = Field(default="", description="Application-assigned identity")
    name: str = Field(default="", description="Display name")
    state: ParticipantState = Field(default=ParticipantState.JOINING)
    metadata: str = Field(default="")
    joined_at: int = Field(default=0, description="Unix seconds when the participant joined")
    is_publisher: bool = Field(default=False)


class TrackInfo(WireModel):
    """A published media track."""

    sid: str = Field(default="", description="Server-assigned track identifier")
    type: TrackType = Field(default=TrackType.AUDIO)
    name: str = Field(default="")
    source: TrackSource = Field(default=TrackSource.UNKNOWN)
    mime_type: str = Field(default="")
    muted: bool = Field(default=False)
    width: int = Field(default=0, ge=0)
    height: int = Field(default=0, ge=0)


class EgressInfo(WireModel):
    """A recording or streaming job exporting media from a room."""

    egress_id: str = Field(default="", description="Egress job identifier")
    room_id: str = Field(default="", description="Sid of the source room")
    room_name: str = Field(default="", description="Name of the source room")
    status: EgressStatus = Field(default=EgressStatus.STARTING)
    started_at: int = Field(default=0)
    ended_at: int = Field(default=0)
    error: str = Field(default="")


class IngressInfo(WireModel):
    """An inbound media stream published into a room."""

    ingress_id: str = Field(default="", description="Ingress identifier")
    name: str = Field(default="")
    stream_key: str = Field(default="")
    url: str = Field(default="")
    room_name: str = Field(default="", description="Room the stream publishes into")
    participant_identity: str = Field(default="")
    state: IngressState = Field(default=IngressState.INACTIVE)


__all__ = [
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
]
