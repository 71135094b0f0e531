"""OIDC utility functions.

Provides utilities for decoding and inspecting JWT tokens without
verifying them. Signature verification belongs to a dedicated verifier;
nothing here attempts it.
"""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

JWT_SEPARATOR = "."

# Standard claims and their display names
CLAIM_DESCRIPTIONS = {
    "iss": "Issuer",
    "sub": "Subject (User ID)",
    "aud": "Audience",
    "exp": "Expiration Time",
    "iat": "Issued At",
    "nbf": "Not Before",
    "jti": "JWT ID",
    "nonce": "Nonce",
    "auth_time": "Authentication Time",
    "azp": "Authorized Party",
    "name": "Full Name",
    "given_name": "Given Name",
    "family_name": "Family Name",
    "preferred_username": "Preferred Username",
    "email": "Email Address",
    "email_verified": "Email Verified",
    "hd": "Hosted Domain",
    "tid": "Tenant ID",
    "oid": "Object ID",
}

TIMESTAMP_CLAIMS = ("exp", "iat", "nbf", "auth_time", "updated_at")


@dataclass
class DecodedToken:
    """Represents a decoded JWT token."""

    header: dict[str, Any] = field(default_factory=dict)
    payload: dict[str, Any] | None = None
    signature: str = ""
    separator_count: int = 0
    header_error: str | None = None
    payload_error: str | None = None

    @property
    def is_valid_format(self) -> bool:
        return self.separator_count == 2

    @property
    def algorithm(self) -> str | None:
        """Get the signing algorithm from the header."""
        return self.header.get("alg")

    @property
    def key_id(self) -> str | None:
        return self.header.get("kid")

    @property
    def expiration(self) -> datetime | None:
        if not self.payload:
            return None
        exp = self.payload.get("exp")
        if isinstance(exp, bool) or not isinstance(exp, (int, float)):
            return None
        try:
            return datetime.fromtimestamp(exp, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check if the token's ``exp`` claim is in the past."""
        expiration = self.expiration
        if expiration is None:
            return False
        return (now or datetime.now(UTC)) > expiration


def decode_base64url_json(data: str) -> Any:
    """Decode base64url-encoded JSON data.

    Args:
        data: Base64url-encoded string, with or without padding.

    Returns:
        The decoded JSON value.

    Raises:
        ValueError: If the data is not base64url or not JSON.
    """
    # Add padding if needed
    padding = 4 - len(data) % 4
    if padding != 4:
        data += "=" * padding

    try:
        decoded_bytes = base64.urlsafe_b64decode(data)
    except binascii.Error as e:
        raise ValueError(f"not base64url: {e}") from e
    return json.loads(decoded_bytes)


def decode_jwt(token: str) -> DecodedToken:
    """Split and decode a JWT without verification.

    A token that does not have exactly two separators is returned with
    only ``separator_count`` set. Otherwise header and payload are decoded
    independently; a payload that is not a JSON object is reported through
    ``payload_error`` instead of raising.
    """
    token = token.strip()
    decoded = DecodedToken(separator_count=token.count(JWT_SEPARATOR))
    if not decoded.is_valid_format:
        return decoded

    header_part, payload_part, signature = token.split(JWT_SEPARATOR)
    decoded.signature = signature

    try:
        header = decode_base64url_json(header_part)
    except ValueError as e:
        decoded.header_error = f"Could not decode token header: {e}"
    else:
        if isinstance(header, dict):
            decoded.header = header

    try:
        payload = decode_base64url_json(payload_part)
    except ValueError as e:
        decoded.payload_error = f"Could not decode token payload: {e}"
        return decoded

    if isinstance(payload, dict):
        decoded.payload = payload
    else:
        decoded.payload_error = "Token payload is not a JSON object"
    return decoded


def format_claim(key: str, value: Any) -> str:
    """Format one claim value for display."""
    if key in TIMESTAMP_CLAIMS and isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            dt = datetime.fromtimestamp(value, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return str(value)
        return f"{value} ({dt.isoformat()})"
    if isinstance(value, dict):
        return json.dumps(value, sort_keys=True)
    if isinstance(value, list):
        return ", ".join(str(v) for v in value)
    return str(value)


def format_token_claims(payload: dict[str, Any]) -> list[tuple[str, str, str]]:
    """Format token claims for display.

    Args:
        payload: JWT payload dictionary.

    Returns:
        List of (claim_name, claim_value, description) tuples.
    """
    return [
        (key, format_claim(key, value), CLAIM_DESCRIPTIONS.get(key, "Custom Claim"))
        for key, value in payload.items()
    ]
