"""Declarative IdP profiles and the registry that holds them.

A profile describes one (provider, protocol) pair as data: the inputs the
operator supplies, URL templates for the IdP endpoints, attribute mapping
conventions and the console setup steps. Templates use ``str.format``
placeholders that must name declared inputs; this is checked once when the
registry is built, never per request.
"""

from __future__ import annotations

import re
import string
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from urllib.parse import urlparse


class Protocol(StrEnum):
    """Supported SSO protocols."""

    SAML = "saml"
    OIDC = "oidc"


class InputKind(StrEnum):
    """How an input value is checked before generation."""

    URL = "url"
    HOST = "host"
    TEXT = "text"


class RegistryError(Exception):
    """Raised when the provider catalog is inconsistent."""


class ProviderNotFoundError(LookupError):
    """Raised when no profile exists for a (provider, protocol) pair."""

    def __init__(self, provider_id: str, protocol: str) -> None:
        self.provider_id = provider_id
        self.protocol = protocol
        super().__init__(f"No profile for provider '{provider_id}' with protocol '{protocol}'")


# Endpoints every profile of a protocol must declare
REQUIRED_ENDPOINTS = {
    Protocol.SAML: frozenset({"acs"}),
    Protocol.OIDC: frozenset({"authorization", "token", "userinfo", "jwks"}),
}

# Extra names guide steps may reference besides the inputs
GUIDE_CONTEXT_NAMES = frozenset({"output_dir"})


def template_placeholders(template: str) -> set[str]:
    """Return the placeholder names used in a format template."""
    return {name for _, name, _, _ in string.Formatter().parse(template) if name}


def resolve_template(template: str, values: Mapping[str, str]) -> str | None:
    """Substitute values into a template.

    Returns None when any referenced value is blank, so optional inputs
    drop the whole value rather than leaving a half-built URL.
    """
    names = template_placeholders(template)
    if any(not values.get(name) for name in names):
        return None
    return template.format_map({name: values[name] for name in names})


HOST_PATTERN = re.compile(r"^[A-Za-z0-9.-]+(:\d+)?$")


def is_http_url(value: str) -> bool:
    """Check that a value is an absolute http or https URL with a host.

    Whitespace, control characters and out-of-range ports are rejected;
    they cannot be written into metadata or requested.
    """
    if any(ch.isspace() or not ch.isprintable() for ch in value):
        return False
    try:
        parsed = urlparse(value)
        return parsed.scheme in ("http", "https") and bool(parsed.netloc) and parsed.port != 0
    except ValueError:
        return False


def is_valid_host(value: str) -> bool:
    return bool(HOST_PATTERN.match(value))


def normalize_host(value: str) -> str:
    """Strip an optional scheme and trailing slash from a host value."""
    host = value.strip().rstrip("/")
    if host.startswith("https://"):
        host = host[8:]
    if host.startswith("http://"):
        host = host[7:]
    return host


@dataclass(frozen=True)
class InputField:
    """One operator-supplied value."""

    name: str
    label: str
    kind: InputKind = InputKind.TEXT
    required: bool = True
    example: str = ""

    @property
    def prompt(self) -> str:
        suffix = "" if self.required else " (optional)"
        example = f" (e.g., {self.example})" if self.example else ""
        return f"{self.label}{example}{suffix}"

    def normalize(self, value: str | None) -> str:
        """Return the value as it is substituted into templates."""
        if value is None:
            return ""
        if self.kind == InputKind.HOST:
            return normalize_host(value)
        return value.strip()


@dataclass(frozen=True)
class ProviderProfile:
    """Identifies one (IdP, protocol) pair and everything needed to configure it."""

    provider_id: str
    protocol: Protocol
    display_name: str
    inputs: tuple[InputField, ...]
    endpoint_templates: Mapping[str, str]
    attribute_mapping: Mapping[str, str] = field(default_factory=dict)
    # Values the IdP assigns only after the app exists, with a hint on where to find them
    runtime_assigned: Mapping[str, str] = field(default_factory=dict)
    # Provider-specific document fields (templates or constants)
    document_fields: Mapping[str, str] = field(default_factory=dict)
    issuer_template: str | None = None
    client_id_placeholder: str = "YOUR_CLIENT_ID"
    client_secret_placeholder: str = "YOUR_CLIENT_SECRET"
    authn_requests_signed: bool = True
    guide_title: str = ""
    guide_steps: tuple[str, ...] = ()

    @property
    def key(self) -> tuple[str, Protocol]:
        return (self.provider_id, self.protocol)

    @property
    def input_names(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.inputs)

    @property
    def required_inputs(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.inputs if f.required)

    def normalize(self, request: Mapping[str, str]) -> dict[str, str]:
        """Map every declared input to its normalized value ("" when absent)."""
        return {f.name: f.normalize(request.get(f.name)) for f in self.inputs}

    def resolve_endpoints(self, values: Mapping[str, str]) -> dict[str, str]:
        """Materialize endpoint URLs, in template order.

        Endpoints whose template references a blank value are left out.
        """
        endpoints = {}
        for name, template in self.endpoint_templates.items():
            url = resolve_template(template, values)
            if url:
                endpoints[name] = url
        return endpoints

    def templates(self) -> Iterable[tuple[str, str]]:
        """Yield (label, template) for every templated value in the profile."""
        for name, template in self.endpoint_templates.items():
            yield f"endpoint '{name}'", template
        for name, template in self.document_fields.items():
            yield f"field '{name}'", template
        if self.issuer_template:
            yield "issuer", self.issuer_template

    def check(self) -> list[str]:
        """Return every consistency problem with this profile."""
        problems = []
        declared = set(self.input_names)
        where = f"{self.provider_id}/{self.protocol}"

        if len(declared) != len(self.inputs):
            problems.append(f"{where}: duplicate input names")

        for label, template in self.templates():
            try:
                missing = template_placeholders(template) - declared
            except ValueError as e:
                problems.append(f"{where}: {label} has a malformed template: {e}")
                continue
            for name in sorted(missing):
                problems.append(f"{where}: {label} references undeclared input '{name}'")

        for step in self.guide_steps:
            for name in sorted(template_placeholders(step) - declared - GUIDE_CONTEXT_NAMES):
                problems.append(f"{where}: guide step references undeclared input '{name}'")

        required_endpoints = REQUIRED_ENDPOINTS[self.protocol]
        for name in sorted(required_endpoints - set(self.endpoint_templates)):
            problems.append(f"{where}: missing required endpoint '{name}'")

        # Required endpoints and the issuer must never be dropped for a blank optional input
        optional = declared - set(self.required_inputs)
        always_present = [(f"endpoint '{n}'", t) for n, t in self.endpoint_templates.items() if n in required_endpoints]
        if self.issuer_template:
            always_present.append(("issuer", self.issuer_template))
        for label, template in always_present:
            for name in sorted(template_placeholders(template) & optional):
                problems.append(f"{where}: {label} depends on optional input '{name}'")

        if self.protocol == Protocol.OIDC and not self.issuer_template:
            problems.append(f"{where}: OIDC profile has no issuer template")

        return problems


class ProviderRegistry:
    """Read-only catalog of provider profiles."""

    def __init__(self, profiles: Iterable[ProviderProfile], version: str = "") -> None:
        self.version = version
        self._profiles: dict[tuple[str, Protocol], ProviderProfile] = {}
        problems: list[str] = []

        for profile in profiles:
            if profile.key in self._profiles:
                problems.append(f"{profile.provider_id}/{profile.protocol}: defined twice")
            problems.extend(profile.check())
            self._profiles[profile.key] = profile

        if problems:
            raise RegistryError("Invalid provider catalog:\n  " + "\n  ".join(problems))

    def lookup(self, provider_id: str, protocol: str | Protocol) -> ProviderProfile:
        """Get the profile for a provider and protocol.

        Raises:
            ProviderNotFoundError: If the pair is not in the catalog.
        """
        try:
            key = (provider_id.lower(), Protocol(str(protocol).lower()))
        except ValueError:
            raise ProviderNotFoundError(provider_id, str(protocol)) from None
        profile = self._profiles.get(key)
        if profile is None:
            raise ProviderNotFoundError(provider_id, str(protocol))
        return profile

    def provider_ids(self) -> list[str]:
        """Provider ids in catalog order."""
        seen: dict[str, None] = {}
        for provider_id, _ in self._profiles:
            seen.setdefault(provider_id, None)
        return list(seen)

    def protocols(self, provider_id: str) -> list[Protocol]:
        return [protocol for pid, protocol in self._profiles if pid == provider_id]

    def profiles(self) -> list[ProviderProfile]:
        return list(self._profiles.values())

    def __contains__(self, key: object) -> bool:
        return key in self._profiles

    def __len__(self) -> int:
        return len(self._profiles)
