"""Interactive setup wizard CLI command."""

from __future__ import annotations

from pathlib import Path

import click

from ssowizard.cli.output import get_config, print_report
from ssowizard.core.artifacts import GeneratedArtifact
from ssowizard.core.connection import ConnectionTestReport, run_connection_test
from ssowizard.core.findings import ValidationReport
from ssowizard.core.validation import ValidationEngine
from ssowizard.core.wizard import BACK, Choice, Wizard, WizardCancelled, WizardState


class ClickWizardIO:
    """WizardIO backed by click prompts.

    Ctrl+C or Ctrl+D at any prompt cancels the session.
    """

    def choose(self, message: str, choices: list[Choice], allow_back: bool = False) -> str:
        click.echo("")
        click.echo(click.style(message, bold=True))
        for number, choice in enumerate(choices, start=1):
            click.echo(f"  {number}) {choice.label}")
        if allow_back:
            click.echo("  b) Back")

        valid = [str(n) for n in range(1, len(choices) + 1)] + (["b"] if allow_back else [])
        answer = self._ask("Select", type=click.Choice(valid, case_sensitive=False), show_choices=False)
        if answer.lower() == "b":
            return BACK
        return choices[int(answer) - 1].value

    def prompt(self, message: str, default: str = "") -> str:
        return self._ask(message, default=default, show_default=bool(default))

    def confirm(self, message: str, default: bool = False) -> bool:
        try:
            return click.confirm(message, default=default)
        except click.Abort:
            raise WizardCancelled() from None

    def show(self, text: str) -> None:
        click.echo(text)

    def show_report(self, title: str, report: ValidationReport) -> None:
        click.echo("")
        print_report(report, title)

    @staticmethod
    def _ask(message: str, **kwargs) -> str:
        try:
            return str(click.prompt(message, **kwargs))
        except click.Abort:
            raise WizardCancelled() from None


@click.command()
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),  # type: ignore[type-var]
    help="Root output directory (default: from config)",
)
@click.pass_context
def setup(ctx: click.Context, output_dir: Path | None) -> None:
    """Interactively configure SSO for an Identity Provider.

    Walks through provider and protocol selection, collects the values
    the provider needs, writes the artifacts, validates them and prints
    the IdP console steps.
    """
    app_config = get_config(ctx)

    def connection_test(artifact: GeneratedArtifact) -> ConnectionTestReport:
        return run_connection_test(
            artifact,
            timeout=app_config.probe.timeout,
            verify_ssl=app_config.probe.verify_ssl,
            include_discovery=app_config.probe.include_discovery,
        )

    click.echo(click.style("SSO Configuration Wizard", bold=True))
    click.echo("Press Ctrl+C at any time to exit.")

    wizard = Wizard(
        ClickWizardIO(),
        output_dir=output_dir or app_config.output_dir,
        validator=ValidationEngine(app_config.validation.expiry_warning_days),
        connection_test=connection_test,
    )
    state = wizard.run()

    click.echo("")
    if state == WizardState.CANCELLED:
        click.echo("Setup cancelled.")
        ctx.exit(1)
    click.echo("Setup complete.")
