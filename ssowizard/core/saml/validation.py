"""Structural checks for SAML SP metadata."""

from __future__ import annotations

from lxml import etree

from ssowizard.core.findings import (
    FindingKind,
    ValidationFinding,
    error_finding,
    pass_finding,
)
from ssowizard.core.saml.metadata import parse_xml
from ssowizard.providers.profiles import is_http_url

# Elements every SP metadata document needs, with the check name used for each
REQUIRED_ELEMENTS = (
    ("entity_descriptor", "EntityDescriptor"),
    ("sp_sso_descriptor", "SPSSODescriptor"),
    ("assertion_consumer_service", "AssertionConsumerService"),
)


def _find(root: etree._Element, local_name: str) -> etree._Element | None:
    # Match by local name so documents with unusual prefixes still validate
    matches = root.xpath(f'descendant-or-self::*[local-name()="{local_name}"]')
    return matches[0] if matches else None


def check_sp_metadata(document: str | bytes) -> list[ValidationFinding]:
    """Run every structural check on an SP metadata document.

    A document that is not well-formed yields a single error, since none
    of the element checks can run. Otherwise each required element gets
    its own finding.
    """
    try:
        root = parse_xml(document)
    except etree.XMLSyntaxError as e:
        return [error_finding("saml.xml", f"Invalid XML format: {e}", FindingKind.SCHEMA_VIOLATION)]

    findings = [pass_finding("saml.xml", "Metadata is well-formed XML")]
    elements = {}
    for check, local_name in REQUIRED_ELEMENTS:
        element = _find(root, local_name)
        elements[local_name] = element
        if element is None:
            findings.append(
                error_finding(f"saml.{check}", f"Missing required element: {local_name}", FindingKind.SCHEMA_VIOLATION)
            )
        else:
            findings.append(pass_finding(f"saml.{check}", f"Found {local_name}"))

    entity = elements["EntityDescriptor"]
    if entity is not None:
        entity_id = entity.get("entityID")
        if entity_id:
            findings.append(pass_finding("saml.entity_id", f"Entity ID: {entity_id}"))
        else:
            findings.append(
                error_finding("saml.entity_id", "EntityDescriptor has no entityID", FindingKind.MISSING_FIELD)
            )

    acs = elements["AssertionConsumerService"]
    if acs is not None:
        location = acs.get("Location") or ""
        if is_http_url(location):
            findings.append(pass_finding("saml.acs_location", f"ACS URL: {location}"))
        else:
            findings.append(
                error_finding(
                    "saml.acs_location",
                    f"AssertionConsumerService Location is not an absolute URL: {location!r}",
                    FindingKind.INVALID_URL,
                )
            )

    slo = _find(root, "SingleLogoutService")
    if slo is not None:
        location = slo.get("Location") or ""
        if is_http_url(location):
            findings.append(pass_finding("saml.slo_location", f"SLO URL: {location}"))
        else:
            findings.append(
                error_finding(
                    "saml.slo_location",
                    f"SingleLogoutService Location is not an absolute URL: {location!r}",
                    FindingKind.INVALID_URL,
                )
            )

    return findings
