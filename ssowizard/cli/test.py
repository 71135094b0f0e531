"""Connection test CLI commands."""

from __future__ import annotations

from pathlib import Path

import click

from ssowizard.cli.output import error_result, finish_report, get_config, json_option, output_result
from ssowizard.core.artifacts import ArtifactLoadError, load_artifact
from ssowizard.core.connection import (
    ConnectionTestReport,
    run_connection_test,
    run_discovery_check,
    run_network_check,
)

timeout_option = click.option(
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    help="Per-request timeout in seconds (default: from config)",
)

insecure_option = click.option(
    "--insecure",
    is_flag=True,
    help="Skip TLS certificate verification",
)


def _probe_settings(ctx: click.Context, timeout: float | None, insecure: bool) -> dict:
    probe = get_config(ctx).probe
    return {
        "timeout": timeout or probe.timeout,
        "verify_ssl": probe.verify_ssl and not insecure,
    }


def _print_connection_report(report: ConnectionTestReport) -> None:
    click.echo(f"Connection test: {report.subject}")
    click.echo("=" * 50)
    for result in report.results.values():
        color = {"ok": "green", "not-configured": "yellow"}.get(result.classification.value, "red")
        status = result.http_status if result.http_status is not None else "-"
        latency = f"{result.latency * 1000:.0f}ms" if result.latency is not None else "-"
        click.echo(
            f"  {click.style(f'{result.classification.value.upper():<15}', fg=color)} "
            f"{result.endpoint_name:<14} {status!s:>4} {latency:>7}  {result.url}"
        )
        if result.error:
            click.echo(f"      {result.error}")

    if report.discovery_findings:
        click.echo("")
        click.echo("Discovery:")
        for finding in report.discovery_findings:
            click.echo(f"  {finding.severity.value.upper():<8} {finding.check}: {finding.message}")

    click.echo("")
    if report.passed:
        click.echo(click.style("All endpoints reachable", fg="green", bold=True))
    else:
        click.echo(click.style("Connection test failed: see errors above", fg="red", bold=True))


@click.group()
def test() -> None:
    """Test live IdP and SP endpoints.

    Probes are unauthenticated; IdP endpoints commonly answer with 400,
    401 or 405, which counts as reachable and configured.
    """
    pass


@test.command("connection")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))  # type: ignore[type-var]
@timeout_option
@insecure_option
@click.option(
    "--discovery/--no-discovery",
    default=None,
    help="Also check the OIDC discovery document (default: from config)",
)
@json_option
@click.pass_context
def test_connection(
    ctx: click.Context,
    path: Path,
    timeout: float | None,
    insecure: bool,
    discovery: bool | None,
    output_json: bool,
) -> None:
    """Probe every endpoint referenced by a generated artifact.

    All probes run concurrently, each with its own timeout. Exits 1 if any
    endpoint is unreachable.

    Examples:

        ssowizard test connection output/okta/oidc-config.json
    """
    try:
        artifact = load_artifact(path)
    except ArtifactLoadError as e:
        error_result(str(e), output_json)
    if not artifact.endpoints:
        error_result(f"No endpoints found in {path}", output_json)

    include_discovery = get_config(ctx).probe.include_discovery if discovery is None else discovery
    report = run_connection_test(
        artifact,
        include_discovery=include_discovery,
        **_probe_settings(ctx, timeout, insecure),
    )

    if output_json:
        output_result(report.to_dict(), as_json=True)
    else:
        _print_connection_report(report)
    ctx.exit(report.exit_code)


@test.command("discovery")
@click.argument("issuer")
@timeout_option
@insecure_option
@json_option
@click.pass_context
def test_discovery(ctx: click.Context, issuer: str, timeout: float | None, insecure: bool, output_json: bool) -> None:
    """Fetch an issuer's discovery document and validate its JWKS.

    ISSUER may be the issuer URL or the full .well-known URL.
    """
    report = run_discovery_check(issuer, **_probe_settings(ctx, timeout, insecure))
    finish_report(report, output_json, title="OIDC discovery")


@test.command("network")
@click.argument("url")
@timeout_option
@insecure_option
@json_option
@click.pass_context
def test_network(ctx: click.Context, url: str, timeout: float | None, insecure: bool, output_json: bool) -> None:
    """Resolve a URL's host and issue one GET request."""
    report = run_network_check(url, **_probe_settings(ctx, timeout, insecure))
    finish_report(report, output_json, title="Network check")
