"""Tests for the CLI commands."""

import json
from pathlib import Path

import httpx
import pytest
from click.testing import CliRunner

from ssowizard.cli.main import cli
from ssowizard.core.connection import ConnectionTester

OKTA_SAML_ARGS = [
    "-s", "entity_id=https://a.example/saml/metadata",
    "-s", "acs_url=https://a.example/saml/acs",
]

OKTA_OIDC_ARGS = [
    "-s", "domain=dev-123456.okta.com",
    "-s", "redirect_uri=https://app.example.com/oauth/callback",
]


def test_cli_version() -> None:
    """Test CLI version command."""
    runner = CliRunner()
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_cli_help() -> None:
    """Test CLI help command."""
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "SAML/OIDC configuration generator and validator" in result.output
    for command in ("setup", "providers", "generate", "validate", "test", "certs", "config"):
        assert command in result.output


class TestProvidersCommands:
    """Tests for providers CLI commands."""

    def setup_method(self) -> None:
        self.runner = CliRunner()

    def test_list(self) -> None:
        """Test listing providers."""
        result = self.runner.invoke(cli, ["providers", "list"])
        assert result.exit_code == 0
        assert "okta" in result.output
        assert "azure-ad" in result.output
        assert "[SAML, OIDC]" in result.output

    def test_list_json(self) -> None:
        """Test listing providers as JSON."""
        result = self.runner.invoke(cli, ["providers", "list", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["version"]
        assert [p["id"] for p in data["providers"]] == ["okta", "azure-ad", "google-workspace", "onelogin"]

    def test_show(self) -> None:
        """Test showing a provider's inputs."""
        result = self.runner.invoke(cli, ["providers", "show", "okta"])
        assert result.exit_code == 0
        assert "entity_id" in result.output
        assert "https://{domain}/oauth2/v1/token" in result.output

    def test_show_unknown(self) -> None:
        """Test showing an unknown provider."""
        result = self.runner.invoke(cli, ["providers", "show", "ping"])
        assert result.exit_code == 1
        assert "Unknown provider: ping" in result.output

    def test_show_unknown_json(self) -> None:
        """Test errors go to stderr as JSON."""
        result = self.runner.invoke(cli, ["providers", "show", "ping", "--json"])
        assert result.exit_code == 1
        assert json.loads(result.stderr) == {"error": "Unknown provider: ping"}

    def test_guide(self) -> None:
        """Test printing the console guide."""
        result = self.runner.invoke(
            cli,
            ["providers", "guide", "okta", "saml", *OKTA_SAML_ARGS, "-s", "domain=dev-1.okta.com", "-o", "out/okta"],
        )
        assert result.exit_code == 0
        assert "https://dev-1.okta.com/admin" in result.output
        assert "out/okta/idp-metadata.xml" in result.output

    def test_bad_value_syntax(self) -> None:
        """Test --set without '=' is a usage error."""
        result = self.runner.invoke(cli, ["providers", "guide", "okta", "saml", "-s", "entity_id"])
        assert result.exit_code == 2
        assert "expected name=value" in result.output


class TestGenerateCommands:
    """Tests for generate CLI commands."""

    def setup_method(self) -> None:
        self.runner = CliRunner()

    def test_generate_saml(self, output_dir: Path) -> None:
        """Test SAML metadata generation writes files and prints the guide."""
        result = self.runner.invoke(cli, ["generate", "saml", "okta", *OKTA_SAML_ARGS, "-o", str(output_dir)])
        assert result.exit_code == 0, result.output
        assert (output_dir / "okta" / "sp-metadata.xml").exists()
        assert (output_dir / "okta" / "okta-saml-config.json").exists()
        assert "SingleLogoutService omitted" in result.output
        assert "Next Steps: Configure Okta" in result.output

    def test_generate_saml_no_guide(self, output_dir: Path) -> None:
        """Test the guide can be suppressed."""
        result = self.runner.invoke(
            cli, ["generate", "saml", "okta", *OKTA_SAML_ARGS, "-o", str(output_dir), "--no-guide"]
        )
        assert result.exit_code == 0
        assert "Next Steps" not in result.output

    def test_generate_saml_stdout(self, output_dir: Path) -> None:
        """Test printing metadata without writing files."""
        result = self.runner.invoke(
            cli, ["generate", "saml", "okta", *OKTA_SAML_ARGS, "-o", str(output_dir), "--stdout"]
        )
        assert result.exit_code == 0
        assert result.stdout.startswith("<?xml")
        assert 'entityID="https://a.example/saml/metadata"' in result.stdout
        assert not output_dir.exists()

    def test_generate_saml_with_signing_cert(self, output_dir: Path, tmp_path: Path, valid_cert_pem: str) -> None:
        """Test publishing a signing certificate."""
        cert_path = tmp_path / "sp.crt"
        cert_path.write_text(valid_cert_pem)
        result = self.runner.invoke(
            cli,
            ["generate", "saml", "okta", *OKTA_SAML_ARGS, "--signing-cert", str(cert_path), "--stdout"],
        )
        assert result.exit_code == 0
        assert "X509Certificate" in result.stdout

    def test_generate_oidc_json(self, output_dir: Path) -> None:
        """Test OIDC generation with JSON output."""
        result = self.runner.invoke(
            cli, ["generate", "oidc", "okta", *OKTA_OIDC_ARGS, "-o", str(output_dir), "--json"]
        )
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["protocol"] == "oidc"
        assert data["issuer"] == "https://dev-123456.okta.com"
        assert data["output_paths"] == [str(output_dir / "okta" / "oidc-config.json")]

    def test_generate_uses_configured_output_dir(self, output_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the output directory falls back to the environment."""
        monkeypatch.setenv("SSOWIZARD_OUTPUT_DIR", str(output_dir))
        result = self.runner.invoke(cli, ["generate", "oidc", "okta", *OKTA_OIDC_ARGS, "--no-guide"])
        assert result.exit_code == 0
        assert (output_dir / "okta" / "oidc-config.json").exists()

    def test_generate_missing_field(self, output_dir: Path) -> None:
        """Test a missing required field names the field and kind."""
        result = self.runner.invoke(
            cli, ["generate", "saml", "okta", "-s", "entity_id=https://a.example", "-o", str(output_dir)]
        )
        assert result.exit_code == 1
        assert "Missing required field: acs_url [MissingField]" in result.output
        assert not output_dir.exists()

    def test_generate_invalid_url_json(self, output_dir: Path) -> None:
        """Test an invalid URL is reported as JSON on stderr."""
        result = self.runner.invoke(
            cli,
            ["generate", "saml", "okta", "-s", "entity_id=https://a.example", "-s", "acs_url=/acs",
             "-o", str(output_dir), "--json"],
        )
        assert result.exit_code == 1
        assert "[InvalidUrl]" in json.loads(result.stderr)["error"]

    def test_generate_unknown_provider(self) -> None:
        """Test an unknown provider fails cleanly."""
        result = self.runner.invoke(cli, ["generate", "oidc", "ping", *OKTA_OIDC_ARGS])
        assert result.exit_code == 1
        assert "No profile for provider 'ping'" in result.output


class TestValidateCommands:
    """Tests for validate CLI commands."""

    def setup_method(self) -> None:
        self.runner = CliRunner()

    def _generate(self, output_dir: Path, protocol: str, args: list[str]) -> Path:
        result = self.runner.invoke(cli, ["generate", protocol, "okta", *args, "-o", str(output_dir), "--no-guide"])
        assert result.exit_code == 0, result.output
        name = "sp-metadata.xml" if protocol == "saml" else "oidc-config.json"
        return output_dir / "okta" / name

    def test_validate_saml(self, output_dir: Path) -> None:
        """Test validating generated SAML metadata."""
        path = self._generate(output_dir, "saml", OKTA_SAML_ARGS)
        result = self.runner.invoke(cli, ["validate", "saml", str(path)])
        assert result.exit_code == 0
        assert "PASSED (0 error(s), 0 warning(s))" in result.output

    def test_validate_saml_invalid(self, tmp_path: Path) -> None:
        """Test malformed metadata exits 1."""
        path = tmp_path / "bad.xml"
        path.write_text("<md:EntityDescriptor")
        result = self.runner.invoke(cli, ["validate", "saml", str(path)])
        assert result.exit_code == 1
        assert "FAILED (1 error(s), 0 warning(s))" in result.output
        assert "[SchemaViolation]" in result.output

    def test_validate_oidc_placeholders_pass(self, output_dir: Path) -> None:
        """Test placeholder warnings keep exit code 0."""
        path = self._generate(output_dir, "oidc", OKTA_OIDC_ARGS)
        result = self.runner.invoke(cli, ["validate", "oidc", str(path), "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["passed"] is True
        assert data["warning_count"] == 2

    def test_validate_artifact_detects_type(self, output_dir: Path) -> None:
        """Test the artifact command picks SAML or OIDC by content."""
        path = self._generate(output_dir, "saml", OKTA_SAML_ARGS)
        result = self.runner.invoke(cli, ["validate", "artifact", str(path)])
        assert result.exit_code == 0
        assert "SAML metadata validation" in result.output

    def test_validate_certificate_expired(self, tmp_path: Path, expired_cert_pem: str) -> None:
        """Test an expired certificate exits 1."""
        path = tmp_path / "old.pem"
        path.write_text(expired_cert_pem)
        result = self.runner.invoke(cli, ["validate", "certificate", str(path), "--json"])
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert [f["kind"] for f in data["findings"] if f["severity"] == "error"] == ["ExpiredCertificate"]

    def test_validate_certificate_warning_days(self, tmp_path: Path, expiring_cert_pem: str) -> None:
        """Test --warning-days controls the expiry warning."""
        path = tmp_path / "soon.pem"
        path.write_text(expiring_cert_pem)

        result = self.runner.invoke(cli, ["validate", "certificate", str(path)])
        assert result.exit_code == 0
        assert "[ExpiringCertificate]" in result.output

        result = self.runner.invoke(cli, ["validate", "certificate", str(path), "--warning-days", "5"])
        assert result.exit_code == 0
        assert "[ExpiringCertificate]" not in result.output

    def test_validate_jwks_empty(self, tmp_path: Path) -> None:
        """Test an empty key set exits 1."""
        path = tmp_path / "jwks.json"
        path.write_text('{"keys": []}')
        result = self.runner.invoke(cli, ["validate", "jwks", str(path)])
        assert result.exit_code == 1
        assert "[EmptyJwks]" in result.output

    def test_validate_token_from_stdin(self) -> None:
        """Test reading a token from stdin."""
        token = "eyJhbGciOiJIUzI1NiJ9.eyJzdWIiOiJ1c2VyLTEifQ.c2ln"
        result = self.runner.invoke(cli, ["validate", "token"], input=token + "\n")
        assert result.exit_code == 0
        assert "sub = user-1" in result.output

    def test_validate_token_malformed(self) -> None:
        """Test a malformed token exits 1."""
        result = self.runner.invoke(cli, ["validate", "token", "not-a-token"])
        assert result.exit_code == 1
        assert "[MalformedToken]" in result.output


class TestTestCommands:
    """Tests for test CLI commands."""

    def setup_method(self) -> None:
        self.runner = CliRunner()

    @pytest.fixture
    def mock_network(self, monkeypatch: pytest.MonkeyPatch):
        """Route every probe through a mock transport."""
        statuses: dict[str, int] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            status = statuses.get(request.url.path)
            if status is None:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(status)

        original_init = ConnectionTester.__init__

        def patched_init(self, *args, **kwargs):
            kwargs["transport"] = httpx.MockTransport(handler)
            original_init(self, *args, **kwargs)

        monkeypatch.setattr(ConnectionTester, "__init__", patched_init)
        return statuses

    def _generate_saml(self, output_dir: Path) -> Path:
        result = self.runner.invoke(
            cli, ["generate", "saml", "okta", *OKTA_SAML_ARGS, "-o", str(output_dir), "--no-guide"]
        )
        assert result.exit_code == 0
        return output_dir / "okta" / "sp-metadata.xml"

    def test_connection_ok(self, output_dir: Path, mock_network: dict[str, int]) -> None:
        """Test a reachable ACS endpoint exits 0."""
        mock_network["/saml/acs"] = 405
        path = self._generate_saml(output_dir)
        result = self.runner.invoke(cli, ["test", "connection", str(path)])
        assert result.exit_code == 0, result.output
        assert "All endpoints reachable" in result.output

    def test_connection_unreachable(self, output_dir: Path, mock_network: dict[str, int]) -> None:
        """Test an unreachable endpoint exits 1."""
        path = self._generate_saml(output_dir)
        result = self.runner.invoke(cli, ["test", "connection", str(path), "--json"])
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["passed"] is False
        assert data["results"]["acs"]["classification"] == "unreachable"

    def test_connection_passes_settings(self, output_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test CLI options reach the tester."""
        from ssowizard.core.connection import ConnectionTestReport

        calls = []

        def fake_run(artifact, **kwargs):
            calls.append(kwargs)
            return ConnectionTestReport(subject="okta")

        monkeypatch.setattr("ssowizard.cli.test.run_connection_test", fake_run)
        path = self._generate_saml(output_dir)
        result = self.runner.invoke(cli, ["test", "connection", str(path), "--timeout", "2.5", "--insecure"])
        assert result.exit_code == 0
        assert calls == [{"include_discovery": False, "timeout": 2.5, "verify_ssl": False}]

    def test_connection_no_endpoints(self, tmp_path: Path) -> None:
        """Test an artifact without endpoints is rejected."""
        path = tmp_path / "empty.json"
        path.write_text("{}")
        result = self.runner.invoke(cli, ["test", "connection", str(path)])
        assert result.exit_code == 1
        assert "No endpoints found" in result.output

    def test_network_invalid_url(self) -> None:
        """Test the network check rejects relative URLs."""
        result = self.runner.invoke(cli, ["test", "network", "idp.example.com"])
        assert result.exit_code == 1
        assert "[InvalidUrl]" in result.output


class TestConfigCommands:
    """Tests for config CLI commands."""

    def setup_method(self) -> None:
        self.runner = CliRunner()

    def test_config_init(self, tmp_path: Path) -> None:
        """Test writing the default config file."""
        path = tmp_path / "config.yaml"
        result = self.runner.invoke(cli, ["config", "init", "--path", str(path)])
        assert result.exit_code == 0
        assert "expiry_warning_days: 30" in path.read_text()

    def test_config_init_existing(self, tmp_path: Path) -> None:
        """Test an existing file is kept unless forced."""
        path = tmp_path / "config.yaml"
        path.write_text("log_level: DEBUG\n")

        result = self.runner.invoke(cli, ["config", "init", "--path", str(path), "--json"])
        assert result.exit_code == 0
        assert json.loads(result.stdout)["status"] == "already_exists"
        assert path.read_text() == "log_level: DEBUG\n"

        result = self.runner.invoke(cli, ["config", "init", "--path", str(path), "--force", "--json"])
        assert json.loads(result.stdout)["status"] == "created"

    def test_config_show(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test showing the effective config with an environment override."""
        path = tmp_path / "config.yaml"
        path.write_text("probe:\n  timeout: 3\n")
        monkeypatch.setenv("SSOWIZARD_EXPIRY_WARNING_DAYS", "14")

        result = self.runner.invoke(cli, ["--config", str(path), "config", "show", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["config_path"] == str(path)
        assert data["probe"]["timeout"] == 3.0
        assert data["validation"]["expiry_warning_days"] == 14


class TestSetupCommand:
    """Tests for the interactive setup command."""

    def setup_method(self) -> None:
        self.runner = CliRunner()

    def test_setup_generates_artifacts(self, output_dir: Path) -> None:
        """Test a full interactive session."""
        answers = "\n".join([
            "1",  # Okta
            "1",  # SAML
            "",  # domain (optional)
            "https://a.example/saml/metadata",
            "https://a.example/saml/acs",
            "",  # SLO (optional)
            "n",  # connection test
            "n",  # another provider
        ]) + "\n"
        result = self.runner.invoke(cli, ["setup", "-o", str(output_dir)], input=answers)
        assert result.exit_code == 0, result.output
        assert "Setup complete." in result.output
        assert (output_dir / "okta" / "sp-metadata.xml").exists()

    def test_setup_back(self, output_dir: Path) -> None:
        """Test going back from protocol selection."""
        answers = "\n".join(["1", "b", "4", "2", "acme.onelogin.com", "https://app.example.com/cb", "", "n", "n"])
        result = self.runner.invoke(cli, ["setup", "-o", str(output_dir)], input=answers + "\n")
        assert result.exit_code == 0, result.output
        assert (output_dir / "onelogin" / "oidc-config.json").exists()

    def test_setup_cancelled(self, output_dir: Path) -> None:
        """Test end of input cancels the session."""
        result = self.runner.invoke(cli, ["setup", "-o", str(output_dir)], input="1\n")
        assert result.exit_code == 1
        assert "Setup cancelled." in result.output
        assert not output_dir.exists()
