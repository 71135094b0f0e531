"""SAML SP metadata building and checks."""

from ssowizard.core.saml.metadata import (
    BINDING_HTTP_POST,
    BINDING_HTTP_REDIRECT,
    NAMEID_EMAIL,
    SPMetadataInfo,
    build_sp_metadata,
    parse_xml,
    read_sp_metadata,
)
from ssowizard.core.saml.validation import check_sp_metadata

__all__ = [
    # Metadata
    "BINDING_HTTP_POST",
    "BINDING_HTTP_REDIRECT",
    "NAMEID_EMAIL",
    "SPMetadataInfo",
    "build_sp_metadata",
    "parse_xml",
    "read_sp_metadata",
    # Validation
    "check_sp_metadata",
]
