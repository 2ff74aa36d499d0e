"""mediahook exception hierarchy.

Provides structured exceptions for the delivery pipeline.
All exceptions inherit from MediahookError for easy catching.
"""

from __future__ import annotations


class MediahookError(Exception):
    """Base exception for all mediahook errors.

    Attributes:
        message: Human-readable error description.
        code: Machine-readable error code, reported on delivery outcomes.
    """

    code: str = "mediahook_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, object]:
        """Convert exception to a serializable dictionary."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
            }
        }


class SerializationError(MediahookError):
    """Event payload could not be encoded."""

    code: str = "serialization_error"


class SigningError(MediahookError):
    """Signed token could not be constructed.

    Raised when the API key or secret is missing, or the token
    encoder rejects the key material.
    """

    code: str = "signing_error"


class TransportError(MediahookError):
    """HTTP delivery failed after the client gave up.

    Attributes:
        status_code: Last HTTP status received, if any.
        attempts: Number of attempts made before giving up.
    """

    code: str = "transport_error"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        attempts: int = 1,
    ) -> None:
        self.status_code = status_code
        self.attempts = attempts
        super().__init__(message)

    def to_dict(self) -> dict[str, object]:
        """Convert exception to a serializable dictionary."""
        return {
            "error": {
                "code": self.code,
                "status_code": self.status_code,
                "attempts": self.attempts,
                "message": self.message,
            }
        }


class VerificationError(MediahookError):
    """Received webhook failed authentication.

    Raised on the receiving side when the token is malformed, signed
    with an unknown key, expired, or does not match the body digest.
    """

    code: str = "verification_error"


class ConfigurationError(MediahookError):
    """Configuration error.

    Raised when the notifier is constructed with invalid settings.
    """

    code: str = "configuration_error"


__all__ = [
    "ConfigurationError",
    "MediahookError",
    "SerializationError",
    "SigningError",
    "TransportError",
    "VerificationError",
]
