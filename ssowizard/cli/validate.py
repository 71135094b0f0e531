"""Validation CLI commands.

Every command exits 0 when no error-severity finding was produced and 1
otherwise; warnings never change the exit code.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from ssowizard.cli.output import error_result, finish_report, get_config, json_option
from ssowizard.core.artifacts import ArtifactLoadError, SamlMetadata, load_artifact
from ssowizard.core.validation import ValidationEngine

file_argument = click.argument(
    "path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),  # type: ignore[type-var]
)


def _engine(ctx: click.Context) -> ValidationEngine:
    return ValidationEngine(expiry_warning_days=get_config(ctx).validation.expiry_warning_days)


def _read_text(path: Path, output_json: bool) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        error_result(f"Cannot read {path}: {e}", output_json)


@click.group()
def validate() -> None:
    """Validate artifacts, certificates, key sets and tokens."""
    pass


@validate.command("saml")
@file_argument
@json_option
@click.pass_context
def validate_saml(ctx: click.Context, path: Path, output_json: bool) -> None:
    """Validate SAML SP metadata.

    Checks well-formedness, the EntityDescriptor, SPSSODescriptor and
    AssertionConsumerService elements, endpoint URLs and any embedded
    signing certificate.
    """
    report = _engine(ctx).validate_saml(_read_text(path, output_json), subject=str(path))
    finish_report(report, output_json, title="SAML metadata validation")


@validate.command("oidc")
@file_argument
@json_option
@click.pass_context
def validate_oidc(ctx: click.Context, path: Path, output_json: bool) -> None:
    """Validate an OIDC client configuration.

    Checks that the JSON parses and carries client_id,
    authorization_endpoint, token_endpoint and redirect_uri, that URLs are
    absolute, that the scope includes openid, and warns about placeholder
    credentials.
    """
    report = _engine(ctx).validate_oidc(_read_text(path, output_json), subject=str(path))
    finish_report(report, output_json, title="OIDC configuration validation")


@validate.command("artifact")
@file_argument
@json_option
@click.pass_context
def validate_artifact(ctx: click.Context, path: Path, output_json: bool) -> None:
    """Validate an artifact file, detecting SAML or OIDC from its content."""
    try:
        artifact = load_artifact(path)
    except ArtifactLoadError as e:
        error_result(str(e), output_json)
    title = "SAML metadata validation" if isinstance(artifact, SamlMetadata) else "OIDC configuration validation"
    finish_report(_engine(ctx).validate(artifact), output_json, title=title)


@validate.command("certificate")
@file_argument
@click.option(
    "--warning-days",
    type=click.IntRange(min=0),
    help="Warn when the certificate expires within this many days (default: from config)",
)
@json_option
@click.pass_context
def validate_certificate(ctx: click.Context, path: Path, warning_days: int | None, output_json: bool) -> None:
    """Validate a PEM or DER certificate.

    An expired certificate is an error; one expiring soon is a warning.
    """
    engine = _engine(ctx)
    if warning_days is not None:
        engine.expiry_warning_days = warning_days
    try:
        data = path.read_bytes()
    except OSError as e:
        error_result(f"Cannot read {path}: {e}", output_json)
    finish_report(engine.validate_certificate(data, subject=str(path)), output_json, title="Certificate validation")


@validate.command("jwks")
@file_argument
@json_option
@click.pass_context
def validate_jwks(ctx: click.Context, path: Path, output_json: bool) -> None:
    """Validate a JWKS document saved to a file.

    To fetch and check a live key set, use 'ssowizard test discovery'.
    """
    text = _read_text(path, output_json)
    try:
        document = json.loads(text)
    except ValueError as e:
        error_result(f"Invalid JSON in {path}: {e}", output_json)
    finish_report(_engine(ctx).validate_jwks(document, subject=str(path)), output_json, title="JWKS validation")


@validate.command("token")
@click.argument("token", required=False)
@json_option
@click.pass_context
def validate_token(ctx: click.Context, token: str | None, output_json: bool) -> None:
    """Check a JWT's format and show its claims.

    Reads the token from stdin when TOKEN is omitted or '-'. The signature
    is NOT verified.
    """
    if token is None or token == "-":
        token = sys.stdin.read()
    token = token.strip()
    if not token:
        error_result("No token supplied", output_json)
    finish_report(_engine(ctx).validate_token(token), output_json, title="Token inspection (signature not verified)")
