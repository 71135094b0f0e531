"""Tests for the validation engine and individual checks."""

import json
from datetime import UTC, datetime, timedelta

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import ec
from jwt.algorithms import ECAlgorithm

from ssowizard.core.artifacts import oidc_from_document, saml_from_document
from ssowizard.core.crypto.certs import get_certificate_info, parse_certificate
from ssowizard.core.findings import FindingKind, Severity, ValidationReport
from ssowizard.core.oidc.validation import check_jwks, check_oidc_config, check_token
from ssowizard.core.saml.metadata import build_sp_metadata
from ssowizard.core.saml.validation import check_sp_metadata
from ssowizard.core.validation import ValidationEngine, check_certificate, validate

SIGNING_KEY = "unit-test-signing-key-0123456789abcdef"

VALID_OIDC = {
    "issuer": "https://dev-123456.okta.com",
    "authorization_endpoint": "https://dev-123456.okta.com/oauth2/v1/authorize",
    "token_endpoint": "https://dev-123456.okta.com/oauth2/v1/token",
    "jwks_uri": "https://dev-123456.okta.com/oauth2/v1/keys",
    "redirect_uri": "https://app.example.com/oauth/callback",
    "scope": "openid profile email",
    "client_id": "0oa1b2c3d4",
    "client_secret": "s3cr3t",
}


def by_check(findings, check):
    """Return the single finding for a check name."""
    matches = [f for f in findings if f.check == check]
    assert len(matches) == 1, f"expected one {check} finding, got {matches}"
    return matches[0]


def oidc_document(**overrides) -> str:
    data = {**VALID_OIDC, **overrides}
    return json.dumps({k: v for k, v in data.items() if v is not None})


class TestReport:
    """Tests for report verdicts."""

    def test_warnings_do_not_fail(self) -> None:
        """Test warnings leave the verdict passing."""
        report = ValidationReport(subject="x")
        report.extend(check_oidc_config(oidc_document(client_id="YOUR_CLIENT_ID")))
        assert report.warnings
        assert report.passed
        assert report.exit_code == 0

    def test_errors_fail(self) -> None:
        """Test any error fails the verdict."""
        report = ValidationReport(subject="x")
        report.extend(check_oidc_config(oidc_document(token_endpoint=None)))
        assert not report.passed
        assert report.exit_code == 1

    def test_round_trip(self) -> None:
        """Test a report survives to_dict/from_dict."""
        report = ValidationReport(subject="x")
        report.extend(check_oidc_config(oidc_document(scope="profile")))
        restored = ValidationReport.from_dict(report.to_dict())
        assert restored.findings == report.findings
        assert restored.to_dict()["error_count"] == 1


class TestSamlChecks:
    """Tests for SP metadata checks."""

    def test_generated_metadata_passes(self) -> None:
        """Test freshly built metadata has no errors."""
        findings = check_sp_metadata(
            build_sp_metadata("https://a.example/saml/metadata", "https://a.example/saml/acs")
        )
        assert all(f.severity == Severity.PASS for f in findings)
        assert by_check(findings, "saml.acs_location").message == "ACS URL: https://a.example/saml/acs"
        assert not [f for f in findings if f.check == "saml.slo_location"]

    def test_invalid_xml_is_single_error(self) -> None:
        """Test malformed XML yields one schema error and nothing else."""
        findings = check_sp_metadata("<md:EntityDescriptor")
        assert len(findings) == 1
        assert findings[0].check == "saml.xml"
        assert findings[0].kind == FindingKind.SCHEMA_VIOLATION

    def test_missing_acs(self) -> None:
        """Test missing AssertionConsumerService is reported."""
        document = (
            '<md:EntityDescriptor xmlns:md="urn:oasis:names:tc:SAML:2.0:metadata" entityID="https://a.example">'
            "<md:SPSSODescriptor/></md:EntityDescriptor>"
        )
        findings = check_sp_metadata(document)
        finding = by_check(findings, "saml.assertion_consumer_service")
        assert finding.is_error
        assert finding.kind == FindingKind.SCHEMA_VIOLATION

    def test_missing_entity_id(self) -> None:
        """Test an EntityDescriptor without entityID."""
        document = build_sp_metadata("", "https://a.example/saml/acs")
        finding = by_check(check_sp_metadata(document), "saml.entity_id")
        assert finding.kind == FindingKind.MISSING_FIELD

    def test_relative_acs_location(self) -> None:
        """Test a relative ACS location is an invalid URL."""
        document = build_sp_metadata("https://a.example", "/saml/acs")
        finding = by_check(check_sp_metadata(document), "saml.acs_location")
        assert finding.is_error
        assert finding.kind == FindingKind.INVALID_URL

    def test_unprefixed_namespace_accepted(self) -> None:
        """Test metadata using a default namespace still validates."""
        document = (
            '<EntityDescriptor xmlns="urn:oasis:names:tc:SAML:2.0:metadata" entityID="https://a.example">'
            "<SPSSODescriptor>"
            '<AssertionConsumerService Binding="urn:oasis:names:tc:SAML:2.0:bindings:HTTP-POST" '
            'Location="https://a.example/acs" index="0"/>'
            "</SPSSODescriptor></EntityDescriptor>"
        )
        assert not [f for f in check_sp_metadata(document) if f.is_error]

    def test_expired_embedded_certificate(self, expired_cert_pem: str) -> None:
        """Test an expired signing certificate fails SAML validation."""
        document = build_sp_metadata(
            "https://a.example", "https://a.example/acs", signing_cert_pem=expired_cert_pem
        )
        report = ValidationEngine().validate_saml(document)
        assert not report.passed
        assert [f.check for f in report.errors] == ["saml.signing_certificate.expiry"]
        assert report.errors[0].kind == FindingKind.EXPIRED_CERTIFICATE


class TestOidcChecks:
    """Tests for OIDC configuration checks."""

    def test_valid_config(self) -> None:
        """Test a complete config has only pass findings."""
        findings = check_oidc_config(oidc_document())
        assert all(f.severity == Severity.PASS for f in findings)

    def test_invalid_json(self) -> None:
        """Test unparseable JSON is one schema error."""
        findings = check_oidc_config("{not json")
        assert [(f.check, f.kind) for f in findings] == [("oidc.json", FindingKind.SCHEMA_VIOLATION)]

    def test_non_object_json(self) -> None:
        """Test a JSON array is rejected."""
        findings = check_oidc_config("[]")
        assert len(findings) == 1
        assert findings[0].is_error

    @pytest.mark.parametrize("field", ["authorization_endpoint", "token_endpoint", "redirect_uri", "client_id"])
    def test_missing_required_field(self, field: str) -> None:
        """Test each required field is checked independently."""
        findings = check_oidc_config(oidc_document(**{field: None}))
        finding = by_check(findings, f"oidc.{field}")
        assert finding.kind == FindingKind.MISSING_FIELD
        assert len([f for f in findings if f.is_error]) == 1

    def test_application_id_alias(self) -> None:
        """Test application_id satisfies the client_id requirement."""
        findings = check_oidc_config(oidc_document(client_id=None, application_id="abc"))
        assert not by_check(findings, "oidc.client_id").is_error

    def test_relative_endpoint(self) -> None:
        """Test a relative endpoint URL is an invalid URL error."""
        findings = check_oidc_config(oidc_document(token_endpoint="/oauth2/token"))
        finding = by_check(findings, "oidc.token_endpoint.url")
        assert finding.kind == FindingKind.INVALID_URL

    def test_scope_without_openid(self) -> None:
        """Test a scope missing openid is an error."""
        finding = by_check(check_oidc_config(oidc_document(scope="profile email")), "oidc.scope")
        assert finding.is_error

    def test_missing_scope_is_warning(self) -> None:
        """Test an absent scope only warns."""
        finding = by_check(check_oidc_config(oidc_document(scope=None)), "oidc.scope")
        assert finding.severity == Severity.WARNING

    def test_placeholder_credentials(self) -> None:
        """Test placeholder credentials are warnings."""
        findings = check_oidc_config(oidc_document(client_id="YOUR_CLIENT_ID", client_secret="YOUR_CLIENT_SECRET"))
        placeholders = [f for f in findings if f.kind == FindingKind.PLACEHOLDER_CREDENTIAL]
        assert len(placeholders) == 2
        assert all(f.severity == Severity.WARNING for f in placeholders)


class TestCertificateChecks:
    """Tests for certificate checks."""

    def test_valid_certificate(self, valid_cert_pem: str) -> None:
        """Test a long-lived certificate passes."""
        findings = check_certificate(valid_cert_pem)
        assert all(f.severity == Severity.PASS for f in findings)
        assert by_check(findings, "certificate.subject").message == "Subject: CN=sp.example.com"

    def test_expired_certificate_single_error(self, expired_cert_pem: str) -> None:
        """Test an expired certificate yields exactly one error."""
        findings = check_certificate(expired_cert_pem)
        errors = [f for f in findings if f.is_error]
        assert len(errors) == 1
        assert errors[0].kind == FindingKind.EXPIRED_CERTIFICATE
        assert not [f for f in findings if f.kind == FindingKind.EXPIRING_CERTIFICATE]

    def test_expiring_certificate_warning(self, expiring_cert_pem: str) -> None:
        """Test a certificate inside the warning window only warns."""
        report = ValidationEngine(expiry_warning_days=30).validate_certificate(expiring_cert_pem)
        assert report.passed
        assert [f.kind for f in report.warnings] == [FindingKind.EXPIRING_CERTIFICATE]

    def test_warning_window_configurable(self, expiring_cert_pem: str) -> None:
        """Test a shorter window turns the warning into a pass."""
        report = ValidationEngine(expiry_warning_days=5).validate_certificate(expiring_cert_pem)
        assert report.warnings == []

    def test_warning_window_boundary(self, valid_cert_pem: str) -> None:
        """Test the warning window includes its last day."""
        not_after = get_certificate_info(parse_certificate(valid_cert_pem)).not_after

        at_edge = check_certificate(valid_cert_pem, 30, now=not_after - timedelta(days=30))
        assert by_check(at_edge, "certificate.expiry").kind == FindingKind.EXPIRING_CERTIFICATE

        outside = check_certificate(valid_cert_pem, 30, now=not_after - timedelta(days=30, seconds=1))
        assert by_check(outside, "certificate.expiry").severity == Severity.PASS

        after = check_certificate(valid_cert_pem, 30, now=not_after + timedelta(seconds=1))
        assert by_check(after, "certificate.expiry").kind == FindingKind.EXPIRED_CERTIFICATE

    def test_engine_clock(self, valid_cert_pem: str) -> None:
        """Test the engine evaluates expiry against its clock."""
        future = datetime.now(UTC) + timedelta(days=400)
        report = ValidationEngine(clock=lambda: future).validate_certificate(valid_cert_pem)
        assert [f.kind for f in report.errors] == [FindingKind.EXPIRED_CERTIFICATE]

    def test_garbage_certificate(self) -> None:
        """Test unparseable data is an invalid certificate error."""
        findings = check_certificate(b"not a certificate")
        assert [(f.check, f.kind) for f in findings] == [("certificate.parse", FindingKind.INVALID_CERTIFICATE)]


class TestJwksChecks:
    """Tests for JWKS checks."""

    @pytest.fixture
    def ec_jwk(self) -> dict:
        key = ec.generate_private_key(ec.SECP256R1())
        jwk = json.loads(ECAlgorithm.to_jwk(key.public_key()))
        jwk["kid"] = "ec-1"
        return jwk

    @pytest.mark.parametrize("document", [{}, {"keys": []}, {"keys": "nope"}])
    def test_empty_jwks(self, document: dict) -> None:
        """Test an absent or empty key list is one EmptyJwks error."""
        findings = check_jwks(document)
        assert [(f.check, f.kind) for f in findings] == [("jwks.keys", FindingKind.EMPTY_JWKS)]

    def test_not_an_object(self) -> None:
        """Test a non-object document."""
        assert check_jwks([])[0].check == "jwks.format"

    def test_usable_key(self, ec_jwk: dict) -> None:
        """Test a valid EC key passes."""
        findings = check_jwks({"keys": [ec_jwk]})
        assert all(f.severity == Severity.PASS for f in findings)
        assert "kid=ec-1" in by_check(findings, "jwks.key.0").message

    def test_unusable_key_is_warning(self, ec_jwk: dict) -> None:
        """Test a broken key warns while the set still passes."""
        report = ValidationEngine().validate_jwks({"keys": [ec_jwk, {"kty": "RSA", "kid": "bad"}, "x"]})
        assert report.passed
        assert [f.check for f in report.warnings] == ["jwks.key.1", "jwks.key.2"]
        assert all(f.kind == FindingKind.INVALID_JWK for f in report.warnings)

    @pytest.mark.parametrize(
        "key",
        [
            {"kty": "oct"},
            {"kty": "RSA", "kid": "no-e", "n": "sXchDaQebHnPiGvyDOAT4saGEUetSyo9MKLOoWFsueri23bOdgWp4Dy1Wl", "d": "AQAB"},
        ],
    )
    def test_key_missing_member_is_warning(self, key: dict) -> None:
        """Test a key lacking a member its type requires is reported, not raised."""
        report = ValidationEngine().validate_jwks({"keys": [key]})
        assert [(f.check, f.kind) for f in report.warnings] == [("jwks.key.0", FindingKind.INVALID_JWK)]


class TestTokenChecks:
    """Tests for token checks."""

    def test_decodes_claims(self) -> None:
        """Test claims and header are reported."""
        exp = int((datetime.now(UTC) + timedelta(hours=1)).timestamp())
        token = jwt.encode(
            {"iss": "https://idp.example.com", "sub": "user-1", "exp": exp},
            SIGNING_KEY,
            algorithm="HS256",
            headers={"kid": "k1"},
        )
        findings = check_token(token)
        assert all(f.severity == Severity.PASS for f in findings)
        assert by_check(findings, "token.header").message == "Algorithm: HS256, key ID: k1"
        assert by_check(findings, "token.claim.sub").message == "sub = user-1"
        assert by_check(findings, "token.expiry").severity == Severity.PASS

    def test_expired_token_warns(self) -> None:
        """Test an expired token is a warning, not an error."""
        token = jwt.encode({"sub": "user-1", "exp": 1000}, SIGNING_KEY, algorithm="HS256")
        report = ValidationEngine().validate_token(token)
        assert report.passed
        assert by_check(report.findings, "token.expiry").severity == Severity.WARNING

    @pytest.mark.parametrize("token", ["abc", "a.b", "a.b.c.d", ""])
    def test_malformed_token(self, token: str) -> None:
        """Test tokens without exactly two separators."""
        findings = check_token(token)
        assert len(findings) == 1
        assert findings[0].kind == FindingKind.MALFORMED_TOKEN
        assert findings[0].is_error

    def test_undecodable_payload_warns(self) -> None:
        """Test a payload that is not JSON only warns."""
        findings = check_token("eyJhbGciOiJIUzI1NiJ9.bm90IGpzb24.sig")
        assert not [f for f in findings if f.is_error]
        assert by_check(findings, "token.payload").severity == Severity.WARNING


class TestEngine:
    """Tests for artifact dispatch."""

    def test_validate_saml_artifact(self) -> None:
        """Test SAML artifacts are dispatched by type."""
        artifact = saml_from_document(build_sp_metadata("https://a.example", "https://a.example/acs"), "okta")
        report = validate(artifact)
        assert report.subject == "okta/saml"
        assert report.passed

    def test_validate_oidc_artifact(self) -> None:
        """Test OIDC artifacts are dispatched by type."""
        report = validate(oidc_from_document(oidc_document(), "okta"))
        assert report.subject == "okta/oidc"
        assert report.passed

    def test_unsupported_artifact(self) -> None:
        """Test anything else is rejected."""
        with pytest.raises(TypeError):
            ValidationEngine().validate("not an artifact")
