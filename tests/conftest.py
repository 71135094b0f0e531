"""Pytest configuration and fixtures."""

import logging
from collections.abc import Callable, Generator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from ssowizard.core.logging import ProtocolLogger, set_protocol_logger

ENV_VARS = (
    "SSOWIZARD_CONFIG",
    "SSOWIZARD_OUTPUT_DIR",
    "SSOWIZARD_PROBE_TIMEOUT",
    "SSOWIZARD_VERIFY_SSL",
    "SSOWIZARD_EXPIRY_WARNING_DAYS",
    "SSOWIZARD_LOG_LEVEL",
    "SSOWIZARD_LOG_FILE",
)


def build_certificate(
    not_before: datetime,
    not_after: datetime,
    common_name: str = "sp.example.com",
) -> x509.Certificate:
    """Build a self-signed EC certificate with the given validity window."""
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    return (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_before)
        .not_valid_after(not_after)
        .sign(key, hashes.SHA256())
    )


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Generator[None, None, None]:
    """Keep tests away from the user's config file and environment."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SSOWIZARD_CONFIG", str(tmp_path / "no-such-config.yaml"))
    set_protocol_logger(ProtocolLogger())
    yield
    # configure_logging attaches handlers to the package logger
    package_logger = logging.getLogger("ssowizard")
    for handler in package_logger.handlers:
        handler.close()
    package_logger.handlers.clear()
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def make_cert_pem() -> Callable[..., str]:
    """Factory for PEM certificates valid for a number of days from now."""

    def _make(days_valid: int = 365, common_name: str = "sp.example.com") -> str:
        now = datetime.now(UTC)
        not_after = now + timedelta(days=days_valid)
        not_before = min(now, not_after) - timedelta(days=30)
        cert = build_certificate(not_before, not_after, common_name)
        return cert.public_bytes(serialization.Encoding.PEM).decode()

    return _make


@pytest.fixture
def valid_cert_pem(make_cert_pem: Callable[..., str]) -> str:
    return make_cert_pem(365)


@pytest.fixture
def expired_cert_pem(make_cert_pem: Callable[..., str]) -> str:
    return make_cert_pem(-1)


@pytest.fixture
def expiring_cert_pem(make_cert_pem: Callable[..., str]) -> str:
    return make_cert_pem(10)


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    return tmp_path / "output"


@pytest.fixture
def okta_saml_request() -> dict[str, str]:
    return {
        "entity_id": "https://a.example/saml/metadata",
        "acs_url": "https://a.example/saml/acs",
        "slo_url": "",
    }


@pytest.fixture
def okta_oidc_request() -> dict[str, str]:
    return {
        "domain": "dev-123456.okta.com",
        "redirect_uri": "https://app.example.com/oauth/callback",
    }
