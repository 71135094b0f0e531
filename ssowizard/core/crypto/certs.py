"""Certificate inspection utilities.

Loads PEM or DER X.509 certificates and extracts the details operators
need when wiring a signing certificate into an IdP: subject, issuer,
validity window and fingerprint. Key material is never generated here;
see ``ssowizard.core.crypto.tool`` for that.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from pathlib import Path
from typing import Any

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa

PEM_CERT_MARKER = b"-----BEGIN CERTIFICATE-----"


class CertificateError(Exception):
    """Base exception for certificate-related errors."""


class CertificateNotFoundError(CertificateError):
    """Raised when a certificate file is not found."""


class CertificateLoadError(CertificateError):
    """Raised when a certificate cannot be loaded."""


class CertificateFormat(StrEnum):
    """Encodings a certificate can be converted between."""

    PEM = "pem"
    DER = "der"


@dataclass
class CertificateInfo:
    """Information extracted from an X.509 certificate."""

    subject: str
    issuer: str
    serial_number: str
    not_before: datetime
    not_after: datetime
    fingerprint_sha256: str
    is_self_signed: bool
    key_type: str
    key_size: int

    def days_remaining(self, now: datetime | None = None) -> int:
        """Whole days until ``not_after`` (negative once expired)."""
        return (self.not_after - (now or datetime.now(UTC))).days

    def to_dict(self) -> dict[str, Any]:
        return {
            "subject": self.subject,
            "issuer": self.issuer,
            "serial_number": self.serial_number,
            "not_before": self.not_before.isoformat(),
            "not_after": self.not_after.isoformat(),
            "fingerprint_sha256": self.fingerprint_sha256,
            "is_self_signed": self.is_self_signed,
            "key_type": self.key_type,
            "key_size": self.key_size,
        }


def parse_certificate(data: bytes | str) -> x509.Certificate:
    """Parse certificate bytes, accepting PEM or DER.

    Raises:
        CertificateLoadError: If the data is not a certificate.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    try:
        if PEM_CERT_MARKER in data:
            return x509.load_pem_x509_certificate(data)
        return x509.load_der_x509_certificate(data)
    except ValueError as e:
        raise CertificateLoadError(f"Invalid certificate data: {e}") from e


def load_certificate(path: Path) -> x509.Certificate:
    """Load a certificate from a PEM or DER file.

    Args:
        path: Path to the certificate file.

    Returns:
        X.509 certificate.

    Raises:
        CertificateNotFoundError: If the file does not exist.
        CertificateLoadError: If the certificate cannot be loaded.
    """
    if not path.exists():
        raise CertificateNotFoundError(f"Certificate file not found: {path}")

    try:
        return parse_certificate(path.read_bytes())
    except CertificateLoadError as e:
        raise CertificateLoadError(f"Failed to load certificate from {path}: {e}") from e


def get_certificate_info(cert: x509.Certificate) -> CertificateInfo:
    """Extract information from an X.509 certificate.

    Args:
        cert: X.509 certificate.

    Returns:
        CertificateInfo with extracted details.
    """
    public_key = cert.public_key()
    if isinstance(public_key, rsa.RSAPublicKey):
        key_type = "RSA"
        key_size = public_key.key_size
    elif isinstance(public_key, ec.EllipticCurvePublicKey):
        key_type = f"EC ({public_key.curve.name})"
        key_size = public_key.key_size
    else:
        key_type = type(public_key).__name__
        key_size = 0

    return CertificateInfo(
        subject=cert.subject.rfc4514_string(),
        issuer=cert.issuer.rfc4514_string(),
        serial_number=format(cert.serial_number, "x"),
        not_before=cert.not_valid_before_utc,
        not_after=cert.not_valid_after_utc,
        fingerprint_sha256=cert.fingerprint(hashes.SHA256()).hex(),
        is_self_signed=cert.subject == cert.issuer,
        key_type=key_type,
        key_size=key_size,
    )


def get_certificate_pem(cert: x509.Certificate) -> str:
    """Get PEM-encoded string of a certificate."""
    return cert.public_bytes(serialization.Encoding.PEM).decode("utf-8")


def extract_public_key_pem(cert: x509.Certificate) -> str:
    """Get the certificate's public key as a PEM SubjectPublicKeyInfo block."""
    return (
        cert.public_key()
        .public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        .decode("utf-8")
    )


def convert_certificate(
    source: Path,
    destination: Path,
    to_format: CertificateFormat | str,
) -> Path:
    """Re-encode a certificate file as PEM or DER.

    Args:
        source: Existing certificate (PEM or DER).
        destination: File to write.
        to_format: Target encoding.

    Returns:
        The destination path.

    Raises:
        CertificateError: If the source cannot be loaded.
    """
    cert = load_certificate(source)
    encoding = (
        serialization.Encoding.PEM
        if CertificateFormat(str(to_format).lower()) == CertificateFormat.PEM
        else serialization.Encoding.DER
    )
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_bytes(cert.public_bytes(encoding))
    return destination
