"""Validation engine.

Runs independent checks against a generated artifact, a certificate, a
JWKS document or a token, and gathers the findings into a report. Checks
never raise for bad input; every problem becomes a finding.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

from cryptography import x509

from ssowizard.core.artifacts import GeneratedArtifact, OidcConfig, SamlMetadata
from ssowizard.core.crypto.certs import CertificateLoadError, get_certificate_info, parse_certificate
from ssowizard.core.findings import (
    FindingKind,
    ValidationFinding,
    ValidationReport,
    error_finding,
    pass_finding,
    warning_finding,
)
from ssowizard.core.oidc.validation import check_jwks, check_oidc_config, check_token
from ssowizard.core.saml.metadata import parse_xml, read_sp_metadata
from ssowizard.core.saml.validation import check_sp_metadata

logger = logging.getLogger(__name__)

DEFAULT_EXPIRY_WARNING_DAYS = 30


def check_certificate(
    data: bytes | str | x509.Certificate,
    expiry_warning_days: int = DEFAULT_EXPIRY_WARNING_DAYS,
    now: datetime | None = None,
    check: str = "certificate",
) -> list[ValidationFinding]:
    """Check a certificate's encoding and validity window.

    An expired certificate yields exactly one ``ExpiredCertificate`` error;
    one that expires within ``expiry_warning_days`` yields one
    ``ExpiringCertificate`` warning instead.
    """
    if isinstance(data, x509.Certificate):
        cert = data
    else:
        try:
            cert = parse_certificate(data)
        except CertificateLoadError as e:
            return [error_finding(f"{check}.parse", str(e), FindingKind.INVALID_CERTIFICATE)]

    info = get_certificate_info(cert)
    now = now or datetime.now(UTC)
    findings = [
        pass_finding(f"{check}.subject", f"Subject: {info.subject}"),
        pass_finding(f"{check}.issuer", f"Issuer: {info.issuer}"),
    ]

    expires = info.not_after.isoformat()
    if now > info.not_after:
        findings.append(
            error_finding(f"{check}.expiry", f"Certificate expired on {expires}", FindingKind.EXPIRED_CERTIFICATE)
        )
    elif info.not_after - now <= timedelta(days=expiry_warning_days):
        findings.append(
            warning_finding(
                f"{check}.expiry",
                f"Certificate expires within {expiry_warning_days} days ({expires})",
                FindingKind.EXPIRING_CERTIFICATE,
            )
        )
    else:
        findings.append(pass_finding(f"{check}.expiry", f"Valid until {expires}"))

    findings.append(pass_finding(f"{check}.fingerprint", f"SHA-256 fingerprint: {info.fingerprint_sha256}"))
    return findings


class ValidationEngine:
    """Runs checks and builds reports.

    Args:
        expiry_warning_days: Certificates expiring within this many days
            produce a warning.
        clock: Returns the current time; tests pass a fixed clock.
    """

    def __init__(self, expiry_warning_days: int = DEFAULT_EXPIRY_WARNING_DAYS, clock=None) -> None:
        self.expiry_warning_days = expiry_warning_days
        self._clock = clock or (lambda: datetime.now(UTC))

    def validate(self, artifact: GeneratedArtifact) -> ValidationReport:
        """Validate a generated or loaded artifact."""
        if isinstance(artifact, SamlMetadata):
            report = self.validate_saml(artifact.xml_document, subject=self._subject(artifact))
        elif isinstance(artifact, OidcConfig):
            report = self.validate_oidc(artifact.document, subject=self._subject(artifact))
        else:
            raise TypeError(f"Unsupported artifact type: {type(artifact).__name__}")

        logger.info(
            f"Validated {report.subject}: {len(report.errors)} error(s), {len(report.warnings)} warning(s)"
        )
        return report

    def validate_saml(self, document: str, subject: str = "saml") -> ValidationReport:
        report = ValidationReport(subject=subject)
        report.extend(check_sp_metadata(document))

        # An embedded signing certificate is checked like a standalone one
        if not any(f.check == "saml.xml" and f.is_error for f in report.findings):
            info = read_sp_metadata(parse_xml(document))
            if info.signing_certificate:
                report.extend(
                    check_certificate(
                        info.signing_certificate,
                        self.expiry_warning_days,
                        now=self._clock(),
                        check="saml.signing_certificate",
                    )
                )
        return report

    def validate_oidc(self, document: str, subject: str = "oidc") -> ValidationReport:
        report = ValidationReport(subject=subject)
        report.extend(check_oidc_config(document))
        return report

    def validate_certificate(
        self, data: bytes | str | x509.Certificate, subject: str = "certificate"
    ) -> ValidationReport:
        report = ValidationReport(subject=subject)
        report.extend(check_certificate(data, self.expiry_warning_days, now=self._clock()))
        return report

    def validate_jwks(self, document: Any, subject: str = "jwks") -> ValidationReport:
        report = ValidationReport(subject=subject)
        report.extend(check_jwks(document))
        return report

    def validate_token(self, token: str, subject: str = "token") -> ValidationReport:
        report = ValidationReport(subject=subject)
        report.extend(check_token(token, now=self._clock()))
        return report

    @staticmethod
    def _subject(artifact: GeneratedArtifact) -> str:
        if artifact.output_paths:
            return str(artifact.output_paths[0])
        return f"{artifact.provider_id or 'unknown'}/{artifact.protocol}"


def validate(artifact: GeneratedArtifact, expiry_warning_days: int = DEFAULT_EXPIRY_WARNING_DAYS) -> ValidationReport:
    """Validate an artifact with a default engine."""
    return ValidationEngine(expiry_warning_days).validate(artifact)


def validate_certificate(
    data: bytes | str | x509.Certificate, expiry_warning_days: int = DEFAULT_EXPIRY_WARNING_DAYS
) -> ValidationReport:
    return ValidationEngine(expiry_warning_days).validate_certificate(data)


def validate_jwks(document: Any) -> ValidationReport:
    return ValidationEngine().validate_jwks(document)


def validate_token(token: str) -> ValidationReport:
    return ValidationEngine().validate_token(token)
