"""Payload signing and verification for webhook requests.

Each request carries a short-lived HS256 JWT in the Authorization header.
The token is issued by the API key, signed with the API secret, and
embeds the base64 SHA-256 digest of the exact body bytes. Receivers must
verify the token and recompute the digest before parsing the body; the
``application/webhook+json`` content type exists to stop generic JSON
middleware from parsing it first.

Example:
    ```python
    from mediahook.webhooks.signing import StaticKeyProvider, receive_event

    provider = StaticKeyProvider({"APIkey": "secret"})
    event = receive_event(request.body, request.headers["Authorization"], provider)
    ```
"""

from __future__ import annotations

import base64
import hashlib
import hmac
from collections.abc import Mapping
from datetime import UTC, datetime, timedelta
from typing import Any, Protocol

import jwt

from mediahook.exceptions import SigningError, VerificationError
from mediahook.models import WebhookEvent

AUTH_HEADER = "Authorization"
CONTENT_TYPE = "application/webhook+json"
ALGORITHM = "HS256"
DEFAULT_VALID_FOR = timedelta(minutes=5)


def payload_digest(payload: bytes) -> str:
    """Base64-encoded SHA-256 digest of the payload."""
    return base64.b64encode(hashlib.sha256(payload).digest()).decode("ascii")


def sign(
    payload: bytes,
    api_key: str,
    api_secret: str,
    valid_for: timedelta = DEFAULT_VALID_FOR,
) -> str:
    """Create a bearer token binding the payload digest to the API key.

    Args:
        payload: Exact body bytes that will be sent.
        api_key: Key identifying the signer, carried as the ``iss`` claim.
        api_secret: Secret used as the HMAC key.
        valid_for: Token lifetime.

    Returns:
        Encoded JWT.

    Raises:
        SigningError: If the key or secret is missing, or encoding fails.
    """
    if not api_key or not api_secret:
        raise SigningError("missing API key or secret")

    now = datetime.now(UTC)
    claims = {
        "iss": api_key,
        "nbf": now,
        "exp": now + valid_for,
        "sha256": payload_digest(payload),
    }
    try:
        return jwt.encode(claims, api_secret, algorithm=ALGORITHM)
    except (jwt.PyJWTError, TypeError, ValueError) as e:
        raise SigningError(f"could not sign webhook payload: {e}") from e


class KeyProvider(Protocol):
    """Looks up the secret for an API key."""

    def get_secret(self, key: str) -> str | None: ...


class StaticKeyProvider:
    """KeyProvider backed by a fixed key -> secret mapping."""

    def __init__(self, keys: Mapping[str, str]) -> None:
        self._keys = dict(keys)

    def get_secret(self, key: str) -> str | None:
        return self._keys.get(key)


def verify_token(
    token: str,
    provider: KeyProvider,
    leeway: timedelta = timedelta(seconds=0),
) -> dict[str, Any]:
    """Verify a webhook token and return its claims.

    The issuer is read before verification to find the secret, then the
    token is decoded again with signature, ``exp`` and ``nbf`` checks.

    Raises:
        VerificationError: If the token is malformed, issued by an unknown
            key, badly signed, or outside its validity window.
    """
    raw = token.strip()
    if raw.startswith("Bearer "):
        raw = raw[len("Bearer ") :].strip()
    if not raw:
        raise VerificationError("missing webhook token")

    try:
        unverified = jwt.decode(raw, options={"verify_signature": False})
    except jwt.PyJWTError as e:
        raise VerificationError(f"malformed webhook token: {e}") from e

    api_key = unverified.get("iss")
    if not api_key:
        raise VerificationError("webhook token has no issuer")

    secret = provider.get_secret(api_key)
    if not secret:
        raise VerificationError(f"unknown API key: {api_key}")

    try:
        return jwt.decode(raw, secret, algorithms=[ALGORITHM], leeway=leeway)
    except jwt.ExpiredSignatureError as e:
        raise VerificationError("webhook token has expired") from e
    except jwt.PyJWTError as e:
        raise VerificationError(f"invalid webhook token: {e}") from e


def receive(body: bytes, auth_header: str | None, provider: KeyProvider) -> bytes:
    """Authenticate a received webhook body.

    Returns:
        The body, once it is known to match the signed digest.

    Raises:
        VerificationError: If the token is invalid or the digest differs.
    """
    if not auth_header:
        raise VerificationError("missing authorization header")

    claims = verify_token(auth_header, provider)
    expected = claims.get("sha256")
    if not isinstance(expected, str):
        raise VerificationError("webhook token has no payload digest")
    if not hmac.compare_digest(expected, payload_digest(body)):
        raise VerificationError("payload digest does not match token")
    return body


def receive_event(body: bytes, auth_header: str | None, provider: KeyProvider) -> WebhookEvent:
    """Authenticate and decode a received webhook event."""
    return WebhookEvent.from_json(receive(body, auth_header, provider))


__all__ = [
    "ALGORITHM",
    "AUTH_HEADER",
    "CONTENT_TYPE",
    "DEFAULT_VALID_FOR",
    "KeyProvider",
    "StaticKeyProvider",
    "payload_digest",
    "receive",
    "receive_event",
    "sign",
    "verify_token",
]
