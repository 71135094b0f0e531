"""Key material generation through the ``openssl`` binary.

Private keys and certificates for SAML signing are produced by the system
OpenSSL installation; this module only assembles command lines, runs them
and sets file permissions on the results.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
import subprocess
from dataclasses import dataclass
from pathlib import Path

from ssowizard.core.crypto.certs import CertificateError

logger = logging.getLogger(__name__)

OPENSSL = "openssl"
DEFAULT_KEY_SIZE = 2048
DEFAULT_DAYS_VALID = 3650

KEY_FILENAME = "saml-private.key"
CERT_FILENAME = "saml-certificate.crt"
BUNDLE_FILENAME = "saml-certificate.pem"
CSR_FILENAME = "saml-request.csr"

PRIVATE_MODE = stat.S_IRUSR | stat.S_IWUSR
PUBLIC_MODE = PRIVATE_MODE | stat.S_IRGRP | stat.S_IROTH


class CertificateToolError(CertificateError):
    """Raised when the openssl binary is missing or a command fails."""


@dataclass
class GeneratedCertificateFiles:
    """Paths written by a generation command."""

    key_path: Path
    cert_path: Path | None = None
    bundle_path: Path | None = None
    csr_path: Path | None = None


def has_openssl() -> bool:
    return shutil.which(OPENSSL) is not None


def _run_openssl(args: list[str]) -> str:
    if not has_openssl():
        raise CertificateToolError("openssl binary not found on PATH")

    command = [OPENSSL, *args]
    logger.debug(f"Running: {' '.join(command)}")
    result = subprocess.run(command, capture_output=True, text=True, check=False)
    if result.returncode != 0:
        detail = result.stderr.strip() or result.stdout.strip()
        raise CertificateToolError(f"openssl {args[0]} failed with exit code {result.returncode}: {detail}")
    return result.stdout


def _generate_key(key_path: Path, key_size: int) -> None:
    _run_openssl(["genrsa", "-out", str(key_path), str(key_size)])
    os.chmod(key_path, PRIVATE_MODE)


def _subject(common_name: str) -> str:
    if not common_name or "/" in common_name:
        raise CertificateToolError(f"Invalid common name: {common_name!r}")
    return f"/CN={common_name}"


def generate_certificate_pair(
    output_dir: Path,
    common_name: str,
    days: int = DEFAULT_DAYS_VALID,
    key_size: int = DEFAULT_KEY_SIZE,
) -> GeneratedCertificateFiles:
    """Generate a private key and self-signed certificate for SAML signing.

    Writes ``saml-private.key`` (0600), ``saml-certificate.crt`` (0644) and
    ``saml-certificate.pem`` (certificate followed by key, 0600).

    Args:
        output_dir: Directory to write into (created if missing).
        common_name: Subject CN, usually the SP's domain.
        days: Validity period in days.
        key_size: RSA key size in bits.

    Raises:
        CertificateToolError: If openssl is unavailable or fails.
    """
    subject = _subject(common_name)
    output_dir.mkdir(parents=True, exist_ok=True)
    key_path = output_dir / KEY_FILENAME
    cert_path = output_dir / CERT_FILENAME
    bundle_path = output_dir / BUNDLE_FILENAME

    _generate_key(key_path, key_size)
    _run_openssl([
        "req", "-new", "-x509",
        "-key", str(key_path),
        "-out", str(cert_path),
        "-days", str(days),
        "-subj", subject,
    ])  # fmt: skip
    os.chmod(cert_path, PUBLIC_MODE)

    bundle_path.write_bytes(cert_path.read_bytes() + key_path.read_bytes())
    os.chmod(bundle_path, PRIVATE_MODE)

    logger.info(f"Generated certificate for CN={common_name} in {output_dir}")
    return GeneratedCertificateFiles(key_path=key_path, cert_path=cert_path, bundle_path=bundle_path)


def generate_csr(
    output_dir: Path,
    common_name: str,
    key_size: int = DEFAULT_KEY_SIZE,
) -> GeneratedCertificateFiles:
    """Generate a private key and a certificate signing request.

    Writes ``saml-private.key`` (0600) and ``saml-request.csr`` (0644).

    Raises:
        CertificateToolError: If openssl is unavailable or fails.
    """
    subject = _subject(common_name)
    output_dir.mkdir(parents=True, exist_ok=True)
    key_path = output_dir / KEY_FILENAME
    csr_path = output_dir / CSR_FILENAME

    _generate_key(key_path, key_size)
    _run_openssl([
        "req", "-new",
        "-key", str(key_path),
        "-out", str(csr_path),
        "-subj", subject,
    ])  # fmt: skip
    os.chmod(csr_path, PUBLIC_MODE)

    logger.info(f"Generated CSR for CN={common_name} in {output_dir}")
    return GeneratedCertificateFiles(key_path=key_path, csr_path=csr_path)
