"""Artifact generation.

Turns a provider profile and the operator's values into SAML SP metadata
or an OIDC client configuration. ``render`` is pure and deterministic;
``generate`` renders and then writes the documents under
``<output_dir>/<provider_id>/`` using atomic replace, so an interrupted
write never leaves a truncated artifact behind.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from ssowizard.core.artifacts import (
    DEFAULT_SCOPE,
    OIDC_ENDPOINT_KEYS,
    ConfigurationRequest,
    GeneratedArtifact,
    OidcConfig,
    SamlMetadata,
    with_output_paths,
)
from ssowizard.core.findings import FindingKind
from ssowizard.core.saml.metadata import build_sp_metadata
from ssowizard.providers.profiles import (
    InputKind,
    Protocol,
    ProviderProfile,
    is_http_url,
    is_valid_host,
    resolve_template,
)

logger = logging.getLogger(__name__)

SAML_METADATA_FILENAME = "sp-metadata.xml"
OIDC_CONFIG_FILENAME = "oidc-config.json"

ARTIFACT_MODE = 0o644

RESPONSE_TYPE = "code"
GRANT_TYPE = "authorization_code"


class GenerationError(Exception):
    """Base exception for generation failures tied to one input field."""

    kind: FindingKind = FindingKind.SCHEMA_VIOLATION

    def __init__(self, field_name: str, message: str) -> None:
        self.field_name = field_name
        super().__init__(message)


class MissingFieldError(GenerationError):
    """A required input is absent or blank."""

    kind = FindingKind.MISSING_FIELD

    def __init__(self, field_name: str) -> None:
        super().__init__(field_name, f"Missing required field: {field_name}")


class InvalidUrlError(GenerationError):
    """A URL or host input does not parse."""

    kind = FindingKind.INVALID_URL

    def __init__(self, field_name: str, value: str, expected: str = "an absolute http(s) URL") -> None:
        self.value = value
        super().__init__(field_name, f"Invalid value for {field_name}: {value!r} is not {expected}")


def saml_companion_filename(provider_id: str) -> str:
    return f"{provider_id}-saml-config.json"


def check_request(profile: ProviderProfile, request: ConfigurationRequest) -> dict[str, str]:
    """Check a request against a profile and return normalized values.

    Required fields are checked first, in input order, then every
    non-blank URL or host field.

    Raises:
        MissingFieldError: For the first required field that is blank.
        InvalidUrlError: For the first URL or host field that does not parse.
    """
    values = profile.normalize(request)

    for name in profile.required_inputs:
        if not values[name]:
            raise MissingFieldError(name)

    for input_field in profile.inputs:
        value = values[input_field.name]
        if not value:
            continue
        if input_field.kind == InputKind.URL and not is_http_url(value):
            raise InvalidUrlError(input_field.name, value)
        if input_field.kind == InputKind.HOST and not is_valid_host(value):
            raise InvalidUrlError(input_field.name, value, expected="a host name")

    return values


def to_json(data: Mapping[str, Any]) -> str:
    """Serialize a document the way every artifact file is written."""
    return json.dumps(data, indent=2) + "\n"


def write_atomic(path: Path, content: str) -> None:
    """Write text to ``path`` through a temp file and ``os.replace``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_path, ARTIFACT_MODE)
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def _document_fields(profile: ProviderProfile, values: Mapping[str, str]) -> dict[str, str]:
    fields = {}
    for name, template in profile.document_fields.items():
        value = resolve_template(template, values)
        if value:
            fields[name] = value
    return fields


def render_saml(
    profile: ProviderProfile,
    values: Mapping[str, str],
    signing_cert_pem: str | None = None,
) -> SamlMetadata:
    """Render SP metadata and its companion document from checked values."""
    endpoints = profile.resolve_endpoints(values)
    entity_id = values["entity_id"]
    acs_url = endpoints["acs"]
    slo_url = endpoints.get("slo")

    xml_document = build_sp_metadata(
        entity_id=entity_id,
        acs_url=acs_url,
        slo_url=slo_url,
        authn_requests_signed=profile.authn_requests_signed,
        signing_cert_pem=signing_cert_pem,
    )

    companion: dict[str, Any] = {
        "provider": profile.provider_id,
        "protocol": str(Protocol.SAML),
        **_document_fields(profile, values),
        "entity_id": entity_id,
        "acs_url": acs_url,
    }
    if slo_url:
        companion["slo_url"] = slo_url
    companion["idp_endpoints"] = {k: v for k, v in endpoints.items() if k not in ("acs", "slo")}
    companion["attribute_mapping"] = dict(profile.attribute_mapping)
    companion["unresolved"] = dict(profile.runtime_assigned)

    return SamlMetadata(
        entity_id=entity_id,
        acs_url=acs_url,
        slo_url=slo_url,
        xml_document=xml_document,
        provider_id=profile.provider_id,
        endpoints=endpoints,
        companion=companion,
    )


def render_oidc(profile: ProviderProfile, values: Mapping[str, str]) -> OidcConfig:
    """Render an OIDC client configuration from checked values."""
    endpoints = profile.resolve_endpoints(values)
    issuer = resolve_template(profile.issuer_template or "", values) or ""

    document: dict[str, Any] = {
        "provider": profile.provider_id,
        "protocol": str(Protocol.OIDC),
        **_document_fields(profile, values),
        "issuer": issuer,
    }
    for name, key in OIDC_ENDPOINT_KEYS.items():
        if name in endpoints:
            document[key] = endpoints[name]
    document["redirect_uri"] = values["redirect_uri"]
    if values.get("post_logout_redirect_uri"):
        document["post_logout_redirect_uri"] = values["post_logout_redirect_uri"]
    document["scope"] = DEFAULT_SCOPE
    document["response_type"] = RESPONSE_TYPE
    document["grant_type"] = GRANT_TYPE
    # Credentials are issued by the IdP and must be filled in by the operator
    document["client_id"] = profile.client_id_placeholder
    document["client_secret"] = profile.client_secret_placeholder

    return OidcConfig(
        issuer=issuer,
        endpoints=endpoints,
        client_id_placeholder=profile.client_id_placeholder,
        client_secret_placeholder=profile.client_secret_placeholder,
        scope=DEFAULT_SCOPE,
        document=to_json(document),
        provider_id=profile.provider_id,
        redirect_uri=values["redirect_uri"],
    )


class ArtifactGenerator:
    """Renders artifacts and writes them under a provider-scoped directory."""

    def __init__(self, output_dir: Path | str = "output") -> None:
        self.output_dir = Path(output_dir)

    def provider_dir(self, profile: ProviderProfile) -> Path:
        return self.output_dir / profile.provider_id

    def render(
        self,
        profile: ProviderProfile,
        request: ConfigurationRequest,
        signing_cert_pem: str | None = None,
    ) -> GeneratedArtifact:
        """Render an artifact without touching the filesystem.

        Args:
            profile: Provider profile.
            request: Operator-supplied values.
            signing_cert_pem: Optional SP signing certificate (SAML only).

        Raises:
            MissingFieldError: If a required field is blank.
            InvalidUrlError: If a URL or host field does not parse.
        """
        values = check_request(profile, request)
        if profile.protocol == Protocol.SAML:
            return render_saml(profile, values, signing_cert_pem)
        return render_oidc(profile, values)

    def generate(
        self,
        profile: ProviderProfile,
        request: ConfigurationRequest,
        signing_cert_pem: str | None = None,
    ) -> GeneratedArtifact:
        """Render an artifact and write it to disk.

        Nothing is written when rendering fails.

        Returns:
            The artifact, carrying the paths that were written.
        """
        artifact = self.render(profile, request, signing_cert_pem)
        target = self.provider_dir(profile)

        if isinstance(artifact, SamlMetadata):
            metadata_path = target / SAML_METADATA_FILENAME
            companion_path = target / saml_companion_filename(profile.provider_id)
            write_atomic(metadata_path, artifact.xml_document)
            write_atomic(companion_path, to_json(artifact.companion or {}))
            paths: tuple[Path, ...] = (metadata_path, companion_path)
        else:
            config_path = target / OIDC_CONFIG_FILENAME
            write_atomic(config_path, artifact.document)
            paths = (config_path,)

        for path in paths:
            logger.info(f"Wrote {profile.protocol} artifact for {profile.provider_id}: {path}")
        return with_output_paths(artifact, paths)
