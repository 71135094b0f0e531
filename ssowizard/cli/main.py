"""CLI entry point for SSO Wizard."""

from __future__ import annotations

from pathlib import Path

import click

from ssowizard import __version__
from ssowizard.cli import certs as certs_commands
from ssowizard.cli import config as config_commands
from ssowizard.cli import generate as generate_commands
from ssowizard.cli import providers as providers_commands
from ssowizard.cli import setup as setup_commands
from ssowizard.cli import test as test_commands
from ssowizard.cli import validate as validate_commands
from ssowizard.core.config import load_config
from ssowizard.core.logging import LogLevel, configure_logging


@click.group()
@click.version_option(version=__version__, prog_name="ssowizard")
@click.option(
    "--log-level",
    type=click.Choice([level.name for level in LogLevel], case_sensitive=False),
    help="Log level (overrides config and SSOWIZARD_LOG_LEVEL)",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),  # type: ignore[type-var]
    help="Also write logs to this file",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),  # type: ignore[type-var]
    help="Path to config.yaml (default: ~/.ssowizard/config.yaml)",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str | None, log_file: Path | None, config_path: Path | None) -> None:
    """SSO Wizard - SAML/OIDC configuration generator and validator."""
    ctx.ensure_object(dict)
    config = load_config(config_path)
    if log_level:
        config.log_level = log_level.upper()
    if log_file:
        config.log_file = str(log_file)

    configure_logging(
        level=config.log_level,
        trace_enabled=config.log_level == LogLevel.TRACE.name,
        log_file=config.log_file,
    )
    ctx.obj["config"] = config


cli.add_command(setup_commands.setup)
cli.add_command(providers_commands.providers)
cli.add_command(generate_commands.generate)
cli.add_command(validate_commands.validate)
cli.add_command(test_commands.test)
cli.add_command(certs_commands.certs)
cli.add_command(config_commands.config)
