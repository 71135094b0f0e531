"""Shared helpers for CLI commands."""

from __future__ import annotations

import json
import sys
from typing import Any, NoReturn

import click

from ssowizard.core.config import AppConfig, load_config
from ssowizard.core.findings import Severity, ValidationReport

# Common option for JSON output
json_option = click.option(
    "--json",
    "output_json",
    is_flag=True,
    help="Output results as JSON for scripting",
)

SEVERITY_STYLES = {
    Severity.PASS: ("PASS", "green"),
    Severity.WARNING: ("WARN", "yellow"),
    Severity.ERROR: ("FAIL", "red"),
}


def get_config(ctx: click.Context) -> AppConfig:
    """Get the configuration loaded by the root command."""
    obj = ctx.find_root().ensure_object(dict)
    config = obj.get("config")
    if config is None:
        config = load_config()
        obj["config"] = config
    return config


def output_result(data: dict[str, Any], as_json: bool = False) -> None:
    """Output result as JSON or formatted text.

    Args:
        data: Dictionary of data to output
        as_json: If True, output as JSON
    """
    if as_json:
        click.echo(json.dumps(data, indent=2, default=str))


def error_result(message: str, as_json: bool = False) -> NoReturn:
    """Output error message and exit.

    Args:
        message: Error message
        as_json: If True, output as JSON
    """
    if as_json:
        click.echo(json.dumps({"error": message}, indent=2), err=True)
        sys.exit(1)
    raise click.ClickException(message)


def print_report(report: ValidationReport, title: str | None = None) -> None:
    """Print findings one per line, followed by a summary."""
    click.echo(f"{title or 'Results'}: {report.subject}")
    click.echo("=" * 50)
    for finding in report.findings:
        label, color = SEVERITY_STYLES[finding.severity]
        kind = f" [{finding.kind}]" if finding.kind else ""
        click.echo(f"  {click.style(label, fg=color)}  {finding.check}: {finding.message}{kind}")
    click.echo("")

    errors = len(report.errors)
    warnings = len(report.warnings)
    if report.passed:
        summary = click.style("PASSED", fg="green", bold=True)
    else:
        summary = click.style("FAILED", fg="red", bold=True)
    click.echo(f"{summary} ({errors} error(s), {warnings} warning(s))")


def finish_report(report: ValidationReport, as_json: bool, title: str | None = None) -> NoReturn:
    """Print a report and exit with its exit code."""
    if as_json:
        output_result(report.to_dict(), as_json=True)
    else:
        print_report(report, title)
    sys.exit(report.exit_code)
