"""Provider catalog CLI commands."""

from __future__ import annotations

import click

from ssowizard.cli.output import error_result, get_config, json_option, output_result
from ssowizard.providers import (
    REGISTRY,
    ProviderNotFoundError,
    get_provider_info,
    list_providers,
    render_setup_guide,
)


def parse_values(_ctx: click.Context, _param: click.Parameter, values: tuple[str, ...]) -> dict[str, str]:
    """Parse repeated ``name=value`` options into a dict."""
    parsed = {}
    for item in values:
        name, sep, value = item.partition("=")
        if not sep or not name.strip():
            raise click.BadParameter(f"expected name=value, got {item!r}")
        parsed[name.strip()] = value
    return parsed


# Common option for input values
values_option = click.option(
    "--set",
    "-s",
    "values",
    multiple=True,
    callback=parse_values,
    metavar="NAME=VALUE",
    help="Input value (repeatable), e.g. --set entity_id=https://example.com/saml/metadata",
)

protocol_argument = click.argument("protocol", type=click.Choice(["saml", "oidc"], case_sensitive=False))


@click.group()
def providers() -> None:
    """Browse the supported Identity Providers."""
    pass


@providers.command("list")
@json_option
def providers_list(output_json: bool) -> None:
    """List supported Identity Providers."""
    infos = list_providers()
    if output_json:
        output_result({"version": REGISTRY.version, "providers": infos}, as_json=True)
        return

    click.echo(f"Supported Identity Providers (catalog {REGISTRY.version}):")
    click.echo("")
    for info in infos:
        supports = ", ".join(p.upper() for p in info["supports"])
        click.echo(f"  {info['id']:<18} {info['name']} [{supports}]")


@providers.command("show")
@click.argument("provider_id")
@json_option
def providers_show(provider_id: str, output_json: bool) -> None:
    """Show the inputs and endpoints of a provider's profiles."""
    info = get_provider_info(provider_id)
    if info is None:
        error_result(f"Unknown provider: {provider_id}", output_json)

    profiles = [REGISTRY.lookup(info["id"], protocol) for protocol in info["supports"]]
    if output_json:
        output_result(
            {
                **info,
                "profiles": [
                    {
                        "protocol": str(profile.protocol),
                        "inputs": [
                            {"name": f.name, "label": f.label, "kind": str(f.kind), "required": f.required}
                            for f in profile.inputs
                        ],
                        "endpoints": dict(profile.endpoint_templates),
                        "attribute_mapping": dict(profile.attribute_mapping),
                        "runtime_assigned": dict(profile.runtime_assigned),
                    }
                    for profile in profiles
                ],
            },
            as_json=True,
        )
        return

    click.echo(f"{info['name']} ({info['id']})")
    click.echo(f"  {info['description']}")
    for profile in profiles:
        click.echo("")
        click.echo(f"{str(profile.protocol).upper()}:")
        click.echo("  Inputs:")
        for f in profile.inputs:
            required = "" if f.required else " (optional)"
            click.echo(f"    {f.name:<26} {f.label}{required}")
        click.echo("  Endpoints:")
        if profile.issuer_template:
            click.echo(f"    {'issuer':<26} {profile.issuer_template}")
        for name, template in profile.endpoint_templates.items():
            click.echo(f"    {name:<26} {template}")


@providers.command("guide")
@click.argument("provider_id")
@protocol_argument
@values_option
@click.option(
    "--output-dir",
    "-o",
    help="Directory the artifacts were written to (default: from config)",
)
@click.pass_context
def providers_guide(
    ctx: click.Context,
    provider_id: str,
    protocol: str,
    values: dict[str, str],
    output_dir: str | None,
) -> None:
    """Print the console setup steps for a provider.

    Examples:

        ssowizard providers guide okta saml -s domain=dev-123456.okta.com \\
            -s entity_id=https://app.example.com/saml/metadata \\
            -s acs_url=https://app.example.com/saml/acs
    """
    try:
        profile = REGISTRY.lookup(provider_id, protocol)
    except ProviderNotFoundError as e:
        raise click.ClickException(str(e)) from None

    root = output_dir or str(get_config(ctx).output_dir / profile.provider_id)
    click.echo(render_setup_guide(profile, values, output_dir=root))
