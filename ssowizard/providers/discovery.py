"""OIDC discovery and JWKS retrieval.

Fetches the well-known configuration and key set an IdP publishes. Both
functions take an ``httpx.AsyncClient`` so callers control the transport,
timeout and TLS settings; failures are returned on the result object and
never raised.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

logger = logging.getLogger(__name__)

WELL_KNOWN_PATH = ".well-known/openid-configuration"

# Keys a discovery document must advertise for the generated config to work
DISCOVERY_ENDPOINT_KEYS = ("authorization_endpoint", "token_endpoint", "jwks_uri")


@dataclass
class OIDCDiscoveryResult:
    """Result of OIDC discovery."""

    success: bool
    url: str
    issuer: str | None = None
    authorization_endpoint: str | None = None
    token_endpoint: str | None = None
    userinfo_endpoint: str | None = None
    jwks_uri: str | None = None
    end_session_endpoint: str | None = None
    scopes_supported: list[str] = field(default_factory=list)
    error: str | None = None
    raw_config: dict[str, Any] = field(default_factory=dict)

    @property
    def missing_endpoints(self) -> list[str]:
        """Required endpoint keys absent from the document."""
        return [key for key in DISCOVERY_ENDPOINT_KEYS if not self.raw_config.get(key)]


@dataclass
class JWKSResult:
    """Result of fetching a JSON Web Key Set."""

    success: bool
    url: str
    document: dict[str, Any] = field(default_factory=dict)
    error: str | None = None


def discovery_url(issuer_or_url: str) -> str:
    """Build the discovery URL for an issuer.

    Args:
        issuer_or_url: Either an issuer URL or the full discovery URL.
    """
    url = issuer_or_url.rstrip("/")
    if not url.endswith(WELL_KNOWN_PATH):
        url = f"{url}/{WELL_KNOWN_PATH}"
    return url


async def _get_json(client: httpx.AsyncClient, url: str) -> tuple[Any, str | None]:
    try:
        response = await client.get(url)
        response.raise_for_status()
        return response.json(), None
    except httpx.TimeoutException:
        return None, f"Timeout fetching {url}"
    except httpx.HTTPStatusError as e:
        return None, f"HTTP {e.response.status_code} fetching {url}"
    except (httpx.RequestError, httpx.InvalidURL) as e:
        return None, f"Request error fetching {url}: {e}"
    except ValueError as e:  # JSON decode error
        return None, f"Invalid JSON at {url}: {e}"


async def fetch_discovery_document(client: httpx.AsyncClient, issuer: str) -> OIDCDiscoveryResult:
    """Fetch OIDC configuration from the issuer's well-known endpoint.

    Args:
        client: HTTP client to fetch with.
        issuer: Issuer URL (or full discovery URL).

    Returns:
        OIDCDiscoveryResult with the discovered configuration or an error.
    """
    url = discovery_url(issuer)
    logger.debug(f"Fetching OIDC discovery from {url}")

    config, error = await _get_json(client, url)
    if error:
        return OIDCDiscoveryResult(success=False, url=url, error=error)
    if not isinstance(config, dict):
        return OIDCDiscoveryResult(success=False, url=url, error="Discovery document is not a JSON object")

    return OIDCDiscoveryResult(
        success=True,
        url=url,
        issuer=config.get("issuer"),
        authorization_endpoint=config.get("authorization_endpoint"),
        token_endpoint=config.get("token_endpoint"),
        userinfo_endpoint=config.get("userinfo_endpoint"),
        jwks_uri=config.get("jwks_uri"),
        end_session_endpoint=config.get("end_session_endpoint"),
        scopes_supported=config.get("scopes_supported", []),
        raw_config=config,
    )


async def fetch_jwks(client: httpx.AsyncClient, jwks_uri: str) -> JWKSResult:
    """Fetch a JSON Web Key Set.

    Args:
        client: HTTP client to fetch with.
        jwks_uri: URL of the key set.
    """
    logger.debug(f"Fetching JWKS from {jwks_uri}")

    document, error = await _get_json(client, jwks_uri)
    if error:
        return JWKSResult(success=False, url=jwks_uri, error=error)
    if not isinstance(document, dict):
        return JWKSResult(success=False, url=jwks_uri, error="JWKS is not a JSON object")
    return JWKSResult(success=True, url=jwks_uri, document=document)
