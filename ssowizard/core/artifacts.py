"""Generated configuration artifacts.

An artifact is immutable once produced. Regeneration builds a new one;
writing it to disk records the paths on a copy rather than mutating the
original.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from lxml import etree

from ssowizard.core.saml.metadata import parse_xml, read_sp_metadata
from ssowizard.providers.profiles import Protocol

logger = logging.getLogger(__name__)

# Operator-supplied values, keyed by input field name
ConfigurationRequest = Mapping[str, str]

# OIDC document keys and the endpoint names used for probing
OIDC_ENDPOINT_KEYS = {
    "authorization": "authorization_endpoint",
    "token": "token_endpoint",
    "userinfo": "userinfo_endpoint",
    "jwks": "jwks_uri",
    "end_session": "end_session_endpoint",
}

DEFAULT_SCOPE = "openid profile email"


class ArtifactLoadError(Exception):
    """Raised when an artifact file cannot be read at all."""


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class SamlMetadata:
    """SP metadata for one provider."""

    entity_id: str
    acs_url: str
    slo_url: str | None
    xml_document: str
    provider_id: str = ""
    # Endpoints to probe: SP endpoints plus any IdP URL known up front
    endpoints: Mapping[str, str] = field(default_factory=dict)
    # Companion JSON (resolved endpoints, unresolved hints, attribute mapping)
    companion: Mapping[str, Any] | None = None
    generated_at: datetime = field(default_factory=_utcnow, compare=False)
    output_paths: tuple[Path, ...] = field(default=(), compare=False)

    @property
    def protocol(self) -> Protocol:
        return Protocol.SAML

    @property
    def document(self) -> str:
        return self.xml_document

    def to_dict(self) -> dict[str, Any]:
        return {
            "protocol": str(self.protocol),
            "provider": self.provider_id,
            "entity_id": self.entity_id,
            "acs_url": self.acs_url,
            "slo_url": self.slo_url,
            "endpoints": dict(self.endpoints),
            "generated_at": self.generated_at.isoformat(),
            "output_paths": [str(p) for p in self.output_paths],
        }


@dataclass(frozen=True)
class OidcConfig:
    """OIDC client configuration for one provider."""

    issuer: str
    endpoints: Mapping[str, str]
    client_id_placeholder: str
    client_secret_placeholder: str
    scope: str
    document: str
    provider_id: str = ""
    redirect_uri: str = ""
    generated_at: datetime = field(default_factory=_utcnow, compare=False)
    output_paths: tuple[Path, ...] = field(default=(), compare=False)

    @property
    def protocol(self) -> Protocol:
        return Protocol.OIDC

    def to_dict(self) -> dict[str, Any]:
        return {
            "protocol": str(self.protocol),
            "provider": self.provider_id,
            "issuer": self.issuer,
            "endpoints": dict(self.endpoints),
            "redirect_uri": self.redirect_uri,
            "scope": self.scope,
            "generated_at": self.generated_at.isoformat(),
            "output_paths": [str(p) for p in self.output_paths],
        }


GeneratedArtifact = SamlMetadata | OidcConfig


def saml_from_document(xml_document: str, provider_id: str = "") -> SamlMetadata:
    """Build a SAML artifact from existing metadata text.

    A document that does not parse still yields an artifact with empty
    fields; validation reports what is wrong with it.
    """
    try:
        info = read_sp_metadata(parse_xml(xml_document))
    except etree.XMLSyntaxError as e:
        logger.debug(f"SAML metadata is not well-formed: {e}")
        return SamlMetadata(entity_id="", acs_url="", slo_url=None, xml_document=xml_document, provider_id=provider_id)

    endpoints = {}
    if info.acs_url:
        endpoints["acs"] = info.acs_url
    if info.slo_url:
        endpoints["slo"] = info.slo_url
    return SamlMetadata(
        entity_id=info.entity_id or "",
        acs_url=info.acs_url or "",
        slo_url=info.slo_url,
        xml_document=xml_document,
        provider_id=provider_id,
        endpoints=endpoints,
    )


def oidc_from_document(document: str, provider_id: str = "") -> OidcConfig:
    """Build an OIDC artifact from existing configuration JSON.

    Unparseable or non-object JSON yields an artifact with no endpoints;
    validation reports the schema problem.
    """
    try:
        data = json.loads(document)
    except ValueError as e:
        logger.debug(f"OIDC config is not valid JSON: {e}")
        data = None
    if not isinstance(data, dict):
        return OidcConfig(
            issuer="",
            endpoints={},
            client_id_placeholder="",
            client_secret_placeholder="",
            scope="",
            document=document,
            provider_id=provider_id,
        )

    endpoints = {
        name: data[key]
        for name, key in OIDC_ENDPOINT_KEYS.items()
        if isinstance(data.get(key), str) and data[key]
    }
    return OidcConfig(
        issuer=str(data.get("issuer") or ""),
        endpoints=endpoints,
        client_id_placeholder=str(data.get("client_id") or data.get("application_id") or ""),
        client_secret_placeholder=str(data.get("client_secret") or ""),
        scope=str(data.get("scope") or ""),
        document=document,
        provider_id=str(data.get("provider") or provider_id),
        redirect_uri=str(data.get("redirect_uri") or ""),
    )


def load_artifact(path: Path) -> GeneratedArtifact:
    """Load an artifact from disk, choosing the type by content.

    ``.xml`` files and documents starting with ``<`` are SAML metadata;
    everything else is treated as OIDC JSON.

    Raises:
        ArtifactLoadError: If the file cannot be read.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ArtifactLoadError(f"Cannot read artifact {path}: {e}") from e

    provider_id = path.parent.name
    if path.suffix.lower() == ".xml" or text.lstrip().startswith("<"):
        artifact: GeneratedArtifact = saml_from_document(text, provider_id)
    else:
        artifact = oidc_from_document(text, provider_id)
    return with_output_paths(artifact, (path,))


def with_output_paths(artifact: GeneratedArtifact, paths: tuple[Path, ...]) -> GeneratedArtifact:
    """Return a copy of the artifact that records where it was written."""
    return replace(artifact, output_paths=paths)
