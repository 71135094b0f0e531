"""Certificate management CLI commands."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

import click

from ssowizard.cli.output import error_result, get_config, json_option, output_result
from ssowizard.core.crypto import (
    CertificateError,
    CertificateFormat,
    convert_certificate,
    extract_public_key_pem,
    generate_certificate_pair,
    generate_csr,
    get_certificate_info,
    load_certificate,
)
from ssowizard.core.crypto.tool import (
    BUNDLE_FILENAME,
    CERT_FILENAME,
    CSR_FILENAME,
    DEFAULT_DAYS_VALID,
    DEFAULT_KEY_SIZE,
    KEY_FILENAME,
)

cert_argument = click.argument(
    "cert_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),  # type: ignore[type-var]
)

output_option = click.option(
    "--output",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),  # type: ignore[type-var]
    help="Output directory (default: <output_dir>/certs)",
)

common_name_option = click.option(
    "--common-name",
    "-cn",
    required=True,
    help="Common Name (CN), usually your SP's domain",
)

key_size_option = click.option(
    "--key-size",
    type=click.Choice(["2048", "3072", "4096"]),
    default=str(DEFAULT_KEY_SIZE),
    show_default=True,
    help="RSA key size in bits",
)


def _output_dir(ctx: click.Context, output: Path | None) -> Path:
    return output or get_config(ctx).output_dir / "certs"


def _refuse_overwrite(paths: list[Path], force: bool) -> None:
    existing = [p for p in paths if p.exists()]
    if existing and not force:
        names = ", ".join(str(p) for p in existing)
        raise click.ClickException(f"Refusing to overwrite {names}. Use --force to overwrite.")


@click.group()
def certs() -> None:
    """Generate and inspect SAML signing certificates.

    Key material is produced by the system's openssl binary; inspection
    and conversion work on existing PEM or DER files.
    """
    pass


@certs.command("generate")
@common_name_option
@click.option(
    "--days",
    "-d",
    type=click.IntRange(min=1),
    default=DEFAULT_DAYS_VALID,
    show_default=True,
    help="Days the certificate is valid",
)
@key_size_option
@output_option
@click.option("--force", "-f", is_flag=True, help="Overwrite existing files")
@click.pass_context
def certs_generate(
    ctx: click.Context,
    common_name: str,
    days: int,
    key_size: str,
    output: Path | None,
    force: bool,
) -> None:
    """Generate a private key and self-signed certificate for SAML signing.

    Examples:

        ssowizard certs generate --common-name app.example.com
    """
    output_dir = _output_dir(ctx, output)
    _refuse_overwrite([output_dir / name for name in (KEY_FILENAME, CERT_FILENAME, BUNDLE_FILENAME)], force)

    click.echo("Generating SAML signing certificate...")
    click.echo(f"  Common Name: {common_name}")
    click.echo(f"  Valid for: {days} days")
    click.echo("")

    try:
        files = generate_certificate_pair(output_dir, common_name, days=days, key_size=int(key_size))
        info = get_certificate_info(load_certificate(output_dir / CERT_FILENAME))
    except CertificateError as e:
        raise click.ClickException(str(e)) from None

    click.echo("Certificate generated successfully!")
    click.echo("")
    click.echo("Files created:")
    click.echo(f"  Private key: {files.key_path} (keep this secure)")
    click.echo(f"  Certificate: {files.cert_path} (upload to your IdP)")
    click.echo(f"  Bundle: {files.bundle_path}")
    click.echo("")
    click.echo("Certificate details:")
    click.echo(f"  Subject: {info.subject}")
    click.echo(f"  Valid until: {info.not_after.strftime('%Y-%m-%d %H:%M:%S UTC')}")
    click.echo(f"  Fingerprint (SHA-256): {info.fingerprint_sha256}")


@certs.command("csr")
@common_name_option
@key_size_option
@output_option
@click.option("--force", "-f", is_flag=True, help="Overwrite existing files")
@click.pass_context
def certs_csr(ctx: click.Context, common_name: str, key_size: str, output: Path | None, force: bool) -> None:
    """Generate a private key and a certificate signing request (CSR).

    Submit the CSR to your certificate authority; the signed certificate
    can then be published with 'ssowizard generate saml --signing-cert'.
    """
    output_dir = _output_dir(ctx, output)
    _refuse_overwrite([output_dir / KEY_FILENAME, output_dir / CSR_FILENAME], force)

    try:
        files = generate_csr(output_dir, common_name, key_size=int(key_size))
    except CertificateError as e:
        raise click.ClickException(str(e)) from None

    click.echo("CSR generated successfully!")
    click.echo(f"  Private key: {files.key_path}")
    click.echo(f"  CSR: {files.csr_path}")


@certs.command("info")
@cert_argument
@json_option
@click.pass_context
def certs_info(ctx: click.Context, cert_path: Path, output_json: bool) -> None:
    """Show details of a certificate."""
    try:
        info = get_certificate_info(load_certificate(cert_path))
    except CertificateError as e:
        error_result(str(e), output_json)

    days_remaining = info.days_remaining(datetime.now(UTC))
    if output_json:
        output_result({"path": str(cert_path), **info.to_dict(), "days_remaining": days_remaining}, as_json=True)
        return

    if days_remaining < 0:
        status, status_color = "EXPIRED", "red"
    elif days_remaining <= get_config(ctx).validation.expiry_warning_days:
        status, status_color = f"EXPIRES SOON ({days_remaining} days)", "yellow"
    else:
        status, status_color = f"Valid ({days_remaining} days remaining)", "green"

    click.echo(f"Certificate: {cert_path}")
    click.echo("")
    click.echo("Subject Information:")
    click.echo(f"  Subject: {info.subject}")
    click.echo(f"  Issuer: {info.issuer}")
    click.echo(f"  Serial: {info.serial_number}")
    click.echo(f"  Self-signed: {info.is_self_signed}")
    click.echo("")
    click.echo("Validity Period:")
    click.echo(f"  Not Before: {info.not_before.strftime('%Y-%m-%d %H:%M:%S UTC')}")
    click.echo(f"  Not After: {info.not_after.strftime('%Y-%m-%d %H:%M:%S UTC')}")
    click.echo(click.style(f"  Status: {status}", fg=status_color))
    click.echo("")
    click.echo("Key Information:")
    click.echo(f"  Key Type: {info.key_type}")
    click.echo(f"  Key Size: {info.key_size} bits")
    click.echo("")
    click.echo("Fingerprints:")
    click.echo(f"  SHA-256: {info.fingerprint_sha256}")


@certs.command("pubkey")
@cert_argument
def certs_pubkey(cert_path: Path) -> None:
    """Print a certificate's public key in PEM format."""
    try:
        click.echo(extract_public_key_pem(load_certificate(cert_path)), nl=False)
    except CertificateError as e:
        raise click.ClickException(str(e)) from None


@certs.command("convert")
@cert_argument
@click.argument("destination", type=click.Path(dir_okay=False, path_type=Path))  # type: ignore[type-var]
@click.option(
    "--to",
    "to_format",
    type=click.Choice([f.value for f in CertificateFormat], case_sensitive=False),
    required=True,
    help="Target encoding",
)
def certs_convert(cert_path: Path, destination: Path, to_format: str) -> None:
    """Convert a certificate between PEM and DER."""
    try:
        convert_certificate(cert_path, destination, to_format)
    except CertificateError as e:
        raise click.ClickException(str(e)) from None
    click.echo(f"Wrote {to_format.upper()} certificate: {destination}")
