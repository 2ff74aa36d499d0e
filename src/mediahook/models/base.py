"""Base models and shared helpers for mediahook payloads."""

from __future__ import annotations

import time
from uuid import uuid4

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for records that travel in webhook payloads.

    Fields serialize under camelCase names on the wire and accept
    either camelCase or snake_case on input.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


def generate_id(prefix: str) -> str:
    """Generate a unique ID with the given prefix.

    Examples:
        generate_id("EV") -> "EV_a1b2c3d4e5f6"
    """
    return f"{prefix}_{uuid4().hex[:12]}"


def unix_now() -> int:
    """Current time in whole unix seconds."""
    return int(time.time())


__all__ = ["WireModel", "generate_id", "unix_now"]
