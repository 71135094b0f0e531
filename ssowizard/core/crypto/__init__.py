"""Certificate inspection and key material generation."""

from ssowizard.core.crypto.certs import (
    CertificateError,
    CertificateFormat,
    CertificateInfo,
    CertificateLoadError,
    CertificateNotFoundError,
    convert_certificate,
    extract_public_key_pem,
    get_certificate_info,
    get_certificate_pem,
    load_certificate,
    parse_certificate,
)
from ssowizard.core.crypto.tool import (
    CertificateToolError,
    GeneratedCertificateFiles,
    generate_certificate_pair,
    generate_csr,
    has_openssl,
)

__all__ = [
    "CertificateError",
    "CertificateFormat",
    "CertificateInfo",
    "CertificateLoadError",
    "CertificateNotFoundError",
    "CertificateToolError",
    "GeneratedCertificateFiles",
    "convert_certificate",
    "extract_public_key_pem",
    "generate_certificate_pair",
    "generate_csr",
    "get_certificate_info",
    "get_certificate_pem",
    "has_openssl",
    "load_certificate",
    "parse_certificate",
]
