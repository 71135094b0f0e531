"""SAML 2.0 SP metadata rendering and parsing.

Documents are built with lxml in a fixed element and attribute order and
carry no timestamps or generated IDs, so the same inputs always serialize
to the same bytes.
"""

from __future__ import annotations

import textwrap
from dataclasses import dataclass
from typing import Any

from lxml import etree

# SAML namespaces
MD_NS = "urn:oasis:names:tc:SAML:2.0:metadata"
DSIG_NS = "http://www.w3.org/2000/09/xmldsig#"

NAMESPACES = {
    "md": MD_NS,
    "ds": DSIG_NS,
}

PROTOCOL_SUPPORT = "urn:oasis:names:tc:SAML:2.0:protocol"
NAMEID_EMAIL = "urn:oasis:names:tc:SAML:1.1:nameid-format:emailAddress"
BINDING_HTTP_POST = "urn:oasis:names:tc:SAML:2.0:bindings:HTTP-POST"
BINDING_HTTP_REDIRECT = "urn:oasis:names:tc:SAML:2.0:bindings:HTTP-Redirect"


def _md(tag: str) -> str:
    return f"{{{MD_NS}}}{tag}"


def _ds(tag: str) -> str:
    return f"{{{DSIG_NS}}}{tag}"


def certificate_body(cert_pem: str) -> str:
    """Strip PEM armor and whitespace, leaving the base64 DER body."""
    lines = [
        line.strip()
        for line in cert_pem.strip().splitlines()
        if line.strip() and not line.startswith("-----")
    ]
    return "".join(lines)


def build_sp_metadata(
    entity_id: str,
    acs_url: str,
    slo_url: str | None = None,
    authn_requests_signed: bool = True,
    signing_cert_pem: str | None = None,
) -> str:
    """Render an EntityDescriptor for a Service Provider.

    Args:
        entity_id: SP entity ID.
        acs_url: Assertion Consumer Service location (HTTP-POST).
        slo_url: Single Logout location (HTTP-Redirect). The element is
            only emitted when this is non-empty.
        authn_requests_signed: Value of ``AuthnRequestsSigned``.
        signing_cert_pem: Optional PEM certificate published as the SP
            signing key.

    Returns:
        Metadata XML with an XML declaration.
    """
    root = etree.Element(_md("EntityDescriptor"), nsmap={"md": MD_NS})
    root.set("entityID", entity_id)

    sp = etree.SubElement(root, _md("SPSSODescriptor"))
    sp.set("AuthnRequestsSigned", "true" if authn_requests_signed else "false")
    sp.set("WantAssertionsSigned", "true")
    sp.set("protocolSupportEnumeration", PROTOCOL_SUPPORT)

    if signing_cert_pem:
        key_descriptor = etree.SubElement(sp, _md("KeyDescriptor"))
        key_descriptor.set("use", "signing")
        key_info = etree.SubElement(key_descriptor, _ds("KeyInfo"), nsmap={"ds": DSIG_NS})
        x509_data = etree.SubElement(key_info, _ds("X509Data"))
        x509_cert = etree.SubElement(x509_data, _ds("X509Certificate"))
        x509_cert.text = certificate_body(signing_cert_pem)

    if slo_url:
        slo = etree.SubElement(sp, _md("SingleLogoutService"))
        slo.set("Binding", BINDING_HTTP_REDIRECT)
        slo.set("Location", slo_url)

    name_id = etree.SubElement(sp, _md("NameIDFormat"))
    name_id.text = NAMEID_EMAIL

    acs = etree.SubElement(sp, _md("AssertionConsumerService"))
    acs.set("Binding", BINDING_HTTP_POST)
    acs.set("Location", acs_url)
    acs.set("index", "0")
    acs.set("isDefault", "true")

    return etree.tostring(root, xml_declaration=True, encoding="UTF-8", pretty_print=True).decode("utf-8")


def parse_xml(document: str | bytes) -> etree._Element:
    """Parse an XML document without resolving entities or fetching DTDs.

    Raises:
        etree.XMLSyntaxError: If the document is not well-formed.
    """
    if isinstance(document, str):
        document = document.encode("utf-8")
    parser = etree.XMLParser(resolve_entities=False, no_network=True)
    return etree.fromstring(document, parser=parser)


@dataclass
class SPMetadataInfo:
    """Values read back from SP metadata."""

    entity_id: str | None = None
    acs_url: str | None = None
    acs_binding: str | None = None
    slo_url: str | None = None
    authn_requests_signed: str | None = None
    want_assertions_signed: str | None = None
    signing_certificate: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "entity_id": self.entity_id,
            "acs_url": self.acs_url,
            "acs_binding": self.acs_binding,
            "slo_url": self.slo_url,
            "authn_requests_signed": self.authn_requests_signed,
            "want_assertions_signed": self.want_assertions_signed,
            "signing_certificate": self.signing_certificate,
        }


def read_sp_metadata(root: etree._Element) -> SPMetadataInfo:
    """Extract entity ID and endpoints from a parsed metadata tree.

    Missing elements leave their fields as None; structural checks are
    the validator's job.
    """
    if root.tag == _md("EntityDescriptor"):
        entity = root
    else:
        entity = root.find(".//md:EntityDescriptor", NAMESPACES)
    if entity is None:
        return SPMetadataInfo()

    info = SPMetadataInfo(entity_id=entity.get("entityID"))
    sp = entity.find("md:SPSSODescriptor", NAMESPACES)
    if sp is None:
        return info

    info.authn_requests_signed = sp.get("AuthnRequestsSigned")
    info.want_assertions_signed = sp.get("WantAssertionsSigned")

    acs_services = sp.findall("md:AssertionConsumerService", NAMESPACES)
    default = next((a for a in acs_services if a.get("isDefault") == "true"), None)
    acs = default if default is not None else (acs_services[0] if acs_services else None)
    if acs is not None:
        info.acs_url = acs.get("Location")
        info.acs_binding = acs.get("Binding")

    slo = sp.find("md:SingleLogoutService", NAMESPACES)
    if slo is not None:
        info.slo_url = slo.get("Location")

    cert = sp.find(
        "md:KeyDescriptor[@use='signing']/ds:KeyInfo/ds:X509Data/ds:X509Certificate",
        NAMESPACES,
    )
    if cert is not None and cert.text:
        body = "\n".join(textwrap.wrap("".join(cert.text.split()), 64))
        info.signing_certificate = f"-----BEGIN CERTIFICATE-----\n{body}\n-----END CERTIFICATE-----\n"

    return info
