"""OIDC configuration, JWKS and token checks.

Every function returns findings rather than raising; a malformed input
is itself a finding.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

import jwt

from ssowizard.core.findings import (
    FindingKind,
    ValidationFinding,
    error_finding,
    pass_finding,
    warning_finding,
)
from ssowizard.core.oidc.utils import decode_jwt, format_claim
from ssowizard.providers.profiles import is_http_url

# Fields a client configuration must carry; the first name found wins
REQUIRED_FIELDS = (
    ("client_id", ("client_id", "application_id")),
    ("authorization_endpoint", ("authorization_endpoint",)),
    ("token_endpoint", ("token_endpoint",)),
    ("redirect_uri", ("redirect_uri",)),
)

URL_FIELDS = (
    "issuer",
    "authorization_endpoint",
    "token_endpoint",
    "userinfo_endpoint",
    "jwks_uri",
    "end_session_endpoint",
    "redirect_uri",
    "post_logout_redirect_uri",
)

CREDENTIAL_FIELDS = ("client_id", "application_id", "client_secret")
PLACEHOLDER_PREFIX = "YOUR_"

OPENID_SCOPE = "openid"


def is_placeholder(value: Any) -> bool:
    return isinstance(value, str) and value.startswith(PLACEHOLDER_PREFIX)


def check_oidc_config(document: str) -> list[ValidationFinding]:
    """Run every structural check on an OIDC client configuration.

    JSON that does not parse, or is not an object, yields a single error.
    """
    try:
        data = json.loads(document)
    except ValueError as e:
        return [error_finding("oidc.json", f"Invalid JSON format: {e}", FindingKind.SCHEMA_VIOLATION)]
    if not isinstance(data, dict):
        return [error_finding("oidc.json", "Configuration is not a JSON object", FindingKind.SCHEMA_VIOLATION)]

    findings = [pass_finding("oidc.json", "Configuration is valid JSON")]

    for name, aliases in REQUIRED_FIELDS:
        present = next((alias for alias in aliases if data.get(alias)), None)
        if present is None:
            findings.append(
                error_finding(f"oidc.{name}", f"Missing required field: {name}", FindingKind.MISSING_FIELD)
            )
        else:
            findings.append(pass_finding(f"oidc.{name}", f"Found {present}"))

    for name in URL_FIELDS:
        value = data.get(name)
        if value and not (isinstance(value, str) and is_http_url(value)):
            findings.append(
                error_finding(
                    f"oidc.{name}.url",
                    f"{name} is not an absolute URL: {value!r}",
                    FindingKind.INVALID_URL,
                )
            )

    scope = data.get("scope")
    if not scope:
        findings.append(warning_finding("oidc.scope", "No scope configured; clients will need to request 'openid'"))
    elif not isinstance(scope, str) or OPENID_SCOPE not in scope.split():
        findings.append(
            error_finding("oidc.scope", f"Scope does not include '{OPENID_SCOPE}': {scope!r}", FindingKind.SCHEMA_VIOLATION)
        )
    else:
        findings.append(pass_finding("oidc.scope", f"Scope: {scope}"))

    for name in CREDENTIAL_FIELDS:
        if is_placeholder(data.get(name)):
            findings.append(
                warning_finding(
                    f"oidc.{name}",
                    f"{name} is still a placeholder; replace it with the value issued by the IdP",
                    FindingKind.PLACEHOLDER_CREDENTIAL,
                )
            )

    return findings


def _describe_key(index: int, key: dict[str, Any]) -> str:
    parts = [f"key {index}"]
    for name in ("kid", "kty", "alg", "use"):
        if key.get(name):
            parts.append(f"{name}={key[name]}")
    return " ".join(parts)


def check_jwks(document: Any) -> list[ValidationFinding]:
    """Check a JWKS document.

    An absent or empty ``keys`` array is a single ``EmptyJwks`` error.
    Each key is then loaded with PyJWK; keys that cannot be used are
    warnings, since the remaining keys may still verify tokens.
    """
    if not isinstance(document, dict):
        return [error_finding("jwks.format", "JWKS is not a JSON object", FindingKind.SCHEMA_VIOLATION)]

    keys = document.get("keys")
    if not isinstance(keys, list) or not keys:
        return [error_finding("jwks.keys", "JWKS contains no keys", FindingKind.EMPTY_JWKS)]

    findings = [pass_finding("jwks.keys", f"JWKS contains {len(keys)} key(s)")]
    for index, key in enumerate(keys):
        check = f"jwks.key.{index}"
        if not isinstance(key, dict):
            findings.append(warning_finding(check, f"key {index} is not a JSON object", FindingKind.INVALID_JWK))
            continue
        try:
            jwt.PyJWK(key)
        except (jwt.PyJWKError, jwt.InvalidKeyError, KeyError, ValueError, TypeError) as e:
            findings.append(
                warning_finding(check, f"{_describe_key(index, key)} is unusable: {e}", FindingKind.INVALID_JWK)
            )
        else:
            findings.append(pass_finding(check, _describe_key(index, key)))
    return findings


def check_token(token: str, now: datetime | None = None) -> list[ValidationFinding]:
    """Check a JWT's shape and decode its claims.

    The signature is never verified. A token without exactly two ``.``
    separators is a ``MalformedToken`` error; a payload that cannot be
    decoded is only a warning.
    """
    decoded = decode_jwt(token)
    if not decoded.is_valid_format:
        return [
            error_finding(
                "token.format",
                f"Invalid JWT format: expected 3 dot-separated parts, found {decoded.separator_count + 1}",
                FindingKind.MALFORMED_TOKEN,
            )
        ]

    findings = [pass_finding("token.format", "Token has header, payload and signature")]

    if decoded.header_error:
        findings.append(warning_finding("token.header", decoded.header_error))
    elif decoded.algorithm:
        header = f"Algorithm: {decoded.algorithm}"
        if decoded.key_id:
            header += f", key ID: {decoded.key_id}"
        findings.append(pass_finding("token.header", header))

    if decoded.payload is None:
        findings.append(warning_finding("token.payload", decoded.payload_error or "Token payload is empty"))
        return findings

    for claim, value in decoded.payload.items():
        findings.append(pass_finding(f"token.claim.{claim}", f"{claim} = {format_claim(claim, value)}"))

    now = now or datetime.now(UTC)
    expiration = decoded.expiration
    if expiration is not None:
        if decoded.is_expired(now):
            findings.append(warning_finding("token.expiry", f"Token expired at {expiration.isoformat()}"))
        else:
            findings.append(pass_finding("token.expiry", f"Token valid until {expiration.isoformat()}"))

    return findings
