"""Identity Provider catalog.

This module builds the provider registry from the declarative profiles of
each supported IdP and renders the console setup guide shown after
generation.

Available providers:
- okta: Okta Identity
- azure-ad: Microsoft Entra ID (Azure AD)
- google-workspace: Google Workspace
- onelogin: OneLogin

Discovery functions:
- fetch_discovery_document: Fetch OIDC configuration from the well-known endpoint
- fetch_jwks: Fetch a JSON Web Key Set
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ssowizard.providers import azure_ad, google_workspace, okta, onelogin
from ssowizard.providers.discovery import (
    JWKSResult,
    OIDCDiscoveryResult,
    fetch_discovery_document,
    fetch_jwks,
)
from ssowizard.providers.profiles import (
    GUIDE_CONTEXT_NAMES,
    InputField,
    InputKind,
    Protocol,
    ProviderNotFoundError,
    ProviderProfile,
    ProviderRegistry,
    RegistryError,
    normalize_host,
    resolve_template,
    template_placeholders,
)

__all__ = [
    "CATALOG_VERSION",
    "GUIDE_CONTEXT_NAMES",
    "PROVIDERS",
    "REGISTRY",
    "InputField",
    "InputKind",
    "JWKSResult",
    "OIDCDiscoveryResult",
    "Protocol",
    "ProviderNotFoundError",
    "ProviderProfile",
    "ProviderRegistry",
    "RegistryError",
    "fetch_discovery_document",
    "fetch_jwks",
    "get_provider_info",
    "list_providers",
    "lookup",
    "normalize_host",
    "render_setup_guide",
    "resolve_template",
    "template_placeholders",
]

CATALOG_VERSION = "2024.1"

# Registry of available providers
PROVIDERS = {
    "okta": {
        "name": "Okta",
        "description": "Okta Identity cloud platform",
    },
    "azure-ad": {
        "name": "Azure AD (Microsoft Entra ID)",
        "description": "Microsoft Entra ID (formerly Azure AD)",
    },
    "google-workspace": {
        "name": "Google Workspace",
        "description": "Google Workspace (formerly G Suite)",
    },
    "onelogin": {
        "name": "OneLogin",
        "description": "OneLogin cloud directory",
    },
}

# Built at import so an inconsistent catalog stops the process immediately
REGISTRY = ProviderRegistry(
    [*okta.PROFILES, *azure_ad.PROFILES, *google_workspace.PROFILES, *onelogin.PROFILES],
    version=CATALOG_VERSION,
)


def lookup(provider_id: str, protocol: str | Protocol) -> ProviderProfile:
    """Get the profile for a provider and protocol.

    Raises:
        ProviderNotFoundError: If the pair is not in the catalog.
    """
    return REGISTRY.lookup(provider_id, protocol)


def get_provider_info(provider_id: str) -> dict[str, Any] | None:
    """Get information about a provider.

    Args:
        provider_id: Provider id (e.g., 'okta').

    Returns:
        Provider information dict or None if not found.
    """
    info = PROVIDERS.get(provider_id.lower())
    if info is None:
        return None
    return {
        "id": provider_id.lower(),
        **info,
        "supports": [str(p) for p in REGISTRY.protocols(provider_id.lower())],
    }


def list_providers() -> list[dict[str, Any]]:
    """List all available providers in catalog order.

    Returns:
        List of provider information dicts.
    """
    return [info for pid in REGISTRY.provider_ids() if (info := get_provider_info(pid))]


def render_setup_guide(
    profile: ProviderProfile,
    request: Mapping[str, str],
    output_dir: str = "output",
) -> str:
    """Render the console setup instructions for a profile.

    Steps that mention an optional input the operator left blank are
    skipped. Resolved endpoints, attribute mapping and the values the IdP
    assigns after app creation are appended as reference sections.

    Args:
        profile: Provider profile.
        request: Operator-supplied values.
        output_dir: Directory the artifacts were written to.

    Returns:
        Markdown-formatted guide.
    """
    values = profile.normalize(request)
    context = {**values, "output_dir": output_dir}

    lines = [f"## {profile.guide_title or profile.display_name}", ""]
    number = 0
    for step in profile.guide_steps:
        text = resolve_template(step, context)
        if text is None:
            continue
        number += 1
        lines.append(f"{number}. {text}")

    endpoints = profile.resolve_endpoints(values)
    if profile.issuer_template:
        issuer = resolve_template(profile.issuer_template, values)
        if issuer:
            endpoints = {"issuer": issuer, **endpoints}
    if endpoints:
        lines.extend(["", "### Endpoints", ""])
        lines.extend(f"- {name}: {url}" for name, url in endpoints.items())

    if profile.attribute_mapping:
        lines.extend(["", "### Attribute mapping", ""])
        lines.extend(f"- {claim} -> {source}" for claim, source in profile.attribute_mapping.items())

    if profile.runtime_assigned:
        lines.extend(["", "### Values assigned by the IdP", ""])
        lines.extend(f"- {name}: {hint}" for name, hint in profile.runtime_assigned.items())

    return "\n".join(lines) + "\n"

