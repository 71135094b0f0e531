"""Validation findings and reports.

A finding is the result of one independent check. Reports collect every
finding for one artifact; the overall verdict fails if any finding has
``error`` severity, while warnings never change it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class Severity(StrEnum):
    """Severity of a single finding."""

    PASS = "pass"
    WARNING = "warning"
    ERROR = "error"


class FindingKind(StrEnum):
    """Named failure kinds, so callers can match on more than text."""

    MISSING_FIELD = "MissingField"
    INVALID_URL = "InvalidUrl"
    SCHEMA_VIOLATION = "SchemaViolation"
    EXPIRED_CERTIFICATE = "ExpiredCertificate"
    EXPIRING_CERTIFICATE = "ExpiringCertificate"
    INVALID_CERTIFICATE = "InvalidCertificate"
    EMPTY_JWKS = "EmptyJwks"
    INVALID_JWK = "InvalidJwk"
    MALFORMED_TOKEN = "MalformedToken"
    PLACEHOLDER_CREDENTIAL = "PlaceholderCredential"
    ENDPOINT_UNREACHABLE = "EndpointUnreachable"
    ENDPOINT_MISCONFIGURED = "EndpointMisconfigured"
    DISCOVERY_FAILED = "DiscoveryFailed"
    DISCOVERY_INCOMPLETE = "DiscoveryIncomplete"


@dataclass(frozen=True)
class ValidationFinding:
    """Result of a single check."""

    check: str
    severity: Severity
    message: str
    kind: FindingKind | None = None

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR

    def to_dict(self) -> dict[str, Any]:
        return {
            "check": self.check,
            "severity": self.severity.value,
            "message": self.message,
            "kind": self.kind.value if self.kind else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ValidationFinding:
        kind = data.get("kind")
        return cls(
            check=data["check"],
            severity=Severity(data["severity"]),
            message=data.get("message", ""),
            kind=FindingKind(kind) if kind else None,
        )


def pass_finding(check: str, message: str) -> ValidationFinding:
    return ValidationFinding(check=check, severity=Severity.PASS, message=message)


def warning_finding(check: str, message: str, kind: FindingKind | None = None) -> ValidationFinding:
    return ValidationFinding(check=check, severity=Severity.WARNING, message=message, kind=kind)


def error_finding(check: str, message: str, kind: FindingKind) -> ValidationFinding:
    return ValidationFinding(check=check, severity=Severity.ERROR, message=message, kind=kind)


@dataclass
class ValidationReport:
    """Ordered findings for one artifact or input."""

    subject: str
    findings: list[ValidationFinding] = field(default_factory=list)

    def add(self, finding: ValidationFinding) -> None:
        self.findings.append(finding)

    def extend(self, findings: list[ValidationFinding]) -> None:
        self.findings.extend(findings)

    @property
    def errors(self) -> list[ValidationFinding]:
        return [f for f in self.findings if f.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[ValidationFinding]:
        return [f for f in self.findings if f.severity == Severity.WARNING]

    @property
    def passed(self) -> bool:
        """Overall verdict: no error-severity findings."""
        return not self.errors

    @property
    def exit_code(self) -> int:
        return 0 if self.passed else 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "subject": self.subject,
            "passed": self.passed,
            "error_count": len(self.errors),
            "warning_count": len(self.warnings),
            "findings": [f.to_dict() for f in self.findings],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ValidationReport:
        return cls(
            subject=data.get("subject", ""),
            findings=[ValidationFinding.from_dict(f) for f in data.get("findings", [])],
        )
