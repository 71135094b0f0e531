"""Artifact generation CLI commands."""

from __future__ import annotations

from pathlib import Path

import click

from ssowizard.cli.output import error_result, get_config, json_option, output_result
from ssowizard.cli.providers import values_option
from ssowizard.core.artifacts import SamlMetadata
from ssowizard.core.crypto.certs import CertificateError, get_certificate_pem, load_certificate
from ssowizard.core.generator import ArtifactGenerator, GenerationError
from ssowizard.providers import REGISTRY, ProviderNotFoundError, render_setup_guide

output_dir_option = click.option(
    "--output-dir",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),  # type: ignore[type-var]
    help="Root output directory (default: from config)",
)

stdout_option = click.option(
    "--stdout",
    "to_stdout",
    is_flag=True,
    help="Print the document instead of writing files",
)

guide_option = click.option(
    "--guide/--no-guide",
    default=True,
    help="Print the IdP console setup steps after generating",
)


@click.group()
def generate() -> None:
    """Generate SAML SP metadata or OIDC client configuration.

    Input values are passed with --set NAME=VALUE; run
    'ssowizard providers show <provider>' to list a provider's inputs.
    """
    pass


def _run_generate(
    ctx: click.Context,
    provider_id: str,
    protocol: str,
    values: dict[str, str],
    output_dir: Path | None,
    to_stdout: bool,
    show_guide: bool,
    output_json: bool,
    signing_cert: Path | None = None,
) -> None:
    try:
        profile = REGISTRY.lookup(provider_id, protocol)
    except ProviderNotFoundError as e:
        error_result(str(e), output_json)

    signing_cert_pem = None
    if signing_cert is not None:
        try:
            signing_cert_pem = get_certificate_pem(load_certificate(signing_cert))
        except CertificateError as e:
            error_result(str(e), output_json)

    generator = ArtifactGenerator(output_dir or get_config(ctx).output_dir)
    try:
        if to_stdout:
            artifact = generator.render(profile, values, signing_cert_pem=signing_cert_pem)
        else:
            artifact = generator.generate(profile, values, signing_cert_pem=signing_cert_pem)
    except GenerationError as e:
        error_result(f"{e} [{e.kind}]", output_json)
    except OSError as e:
        error_result(f"Failed to write artifact: {e}", output_json)

    if output_json:
        output_result(artifact.to_dict(), as_json=True)
        return

    if to_stdout:
        click.echo(artifact.document, nl=False)
        return

    click.echo(f"Generated {str(profile.protocol).upper()} configuration for {profile.display_name}:")
    for path in artifact.output_paths:
        click.echo(f"  {path}")
    if isinstance(artifact, SamlMetadata) and not artifact.slo_url:
        click.echo("  (no Single Logout URL supplied; SingleLogoutService omitted)")

    if show_guide:
        click.echo("")
        click.echo(render_setup_guide(profile, values, output_dir=str(generator.provider_dir(profile))))


@generate.command("saml")
@click.argument("provider_id")
@values_option
@click.option(
    "--signing-cert",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),  # type: ignore[type-var]
    help="SP signing certificate to publish in the metadata (PEM or DER)",
)
@output_dir_option
@stdout_option
@guide_option
@json_option
@click.pass_context
def generate_saml(
    ctx: click.Context,
    provider_id: str,
    values: dict[str, str],
    signing_cert: Path | None,
    output_dir: Path | None,
    to_stdout: bool,
    guide: bool,
    output_json: bool,
) -> None:
    """Generate SAML SP metadata for a provider.

    Writes <output-dir>/<provider>/sp-metadata.xml and a companion
    <provider>-saml-config.json.

    Examples:

        ssowizard generate saml okta \\
            -s entity_id=https://app.example.com/saml/metadata \\
            -s acs_url=https://app.example.com/saml/acs
    """
    _run_generate(ctx, provider_id, "saml", values, output_dir, to_stdout, guide, output_json, signing_cert)


@generate.command("oidc")
@click.argument("provider_id")
@values_option
@output_dir_option
@stdout_option
@guide_option
@json_option
@click.pass_context
def generate_oidc(
    ctx: click.Context,
    provider_id: str,
    values: dict[str, str],
    output_dir: Path | None,
    to_stdout: bool,
    guide: bool,
    output_json: bool,
) -> None:
    """Generate an OIDC client configuration for a provider.

    Writes <output-dir>/<provider>/oidc-config.json. client_id and
    client_secret are placeholders; replace them with the values the IdP
    issues.

    Examples:

        ssowizard generate oidc azure-ad \\
            -s tenant_id=contoso.onmicrosoft.com \\
            -s redirect_uri=https://app.example.com/oauth/callback
    """
    _run_generate(ctx, provider_id, "oidc", values, output_dir, to_stdout, guide, output_json)
