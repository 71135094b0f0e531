"""Configuration CLI commands."""

from __future__ import annotations

from pathlib import Path

import click

from ssowizard.cli.output import get_config, json_option, output_result
from ssowizard.core.config import DEFAULT_CONFIG_FILE, get_default_config_yaml


@click.group()
def config() -> None:
    """Manage SSO Wizard configuration."""
    pass


@config.command("init")
@click.option(
    "--path",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),  # type: ignore[type-var]
    help=f"Where to write the file (default: {DEFAULT_CONFIG_FILE})",
)
@click.option("--force", is_flag=True, help="Overwrite an existing config file.")
@json_option
def config_init(config_path: Path | None, force: bool, output_json: bool) -> None:
    """Write a commented default config.yaml.

    Examples:

        # Write ~/.ssowizard/config.yaml
        ssowizard config init

        # Overwrite an existing file
        ssowizard config init --force
    """
    path = config_path or DEFAULT_CONFIG_FILE
    if path.exists() and not force:
        if output_json:
            output_result({
                "status": "already_exists",
                "path": str(path),
                "message": "Config file already exists. Use --force to overwrite.",
            }, as_json=True)
            return
        click.echo(f"Config file already exists: {path}")
        click.echo("Use --force to overwrite")
        return

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(get_default_config_yaml())

    if output_json:
        output_result({"status": "created", "path": str(path)}, as_json=True)
        return
    click.echo(f"Wrote default configuration to: {path}")


@config.command("show")
@json_option
@click.pass_context
def config_show(ctx: click.Context, output_json: bool) -> None:
    """Show the effective configuration (file plus environment)."""
    app_config = get_config(ctx)
    data = app_config.to_dict()
    data["config_path"] = str(app_config.config_path) if app_config.config_path else None

    if output_json:
        output_result(data, as_json=True)
        return

    click.echo(f"Config file: {data['config_path'] or '(none, using defaults)'}")
    click.echo(f"  Output directory: {data['output_dir']}")
    click.echo(f"  Log level: {data['log_level']}")
    if data["log_file"]:
        click.echo(f"  Log file: {data['log_file']}")
    click.echo("  Probe:")
    for key, value in data["probe"].items():
        click.echo(f"    {key}: {value}")
    click.echo("  Validation:")
    for key, value in data["validation"].items():
        click.echo(f"    {key}: {value}")
