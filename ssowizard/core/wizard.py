"""Interactive setup wizard.

A small state machine that walks the operator from provider selection to
generated artifacts::

    SelectProvider -> SelectProtocol -> CollectInputs -> Generate -> Report -> Done

``Back`` moves from SelectProtocol to SelectProvider and from CollectInputs
to SelectProtocol. A generation failure returns to CollectInputs with the
offending field surfaced. Cancelling is allowed in any state and discards
the values collected so far.

All terminal interaction goes through a ``WizardIO`` implementation, so
the machine itself is driven the same way by the CLI and by tests.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Protocol as TypingProtocol

from ssowizard.core.artifacts import GeneratedArtifact
from ssowizard.core.connection import ConnectionTestReport, run_connection_test
from ssowizard.core.findings import ValidationReport
from ssowizard.core.generator import ArtifactGenerator, GenerationError
from ssowizard.core.validation import ValidationEngine
from ssowizard.providers import PROVIDERS, REGISTRY, ProviderRegistry, render_setup_guide
from ssowizard.providers.profiles import Protocol, ProviderProfile

logger = logging.getLogger(__name__)

# Choice value and input text that step back one state
BACK = "back"
BACK_COMMAND = ":back"


class WizardState(StrEnum):
    """States of the setup wizard."""

    SELECT_PROVIDER = "select_provider"
    SELECT_PROTOCOL = "select_protocol"
    COLLECT_INPUTS = "collect_inputs"
    GENERATE = "generate"
    REPORT = "report"
    DONE = "done"
    CANCELLED = "cancelled"


TERMINAL_STATES = frozenset({WizardState.DONE, WizardState.CANCELLED})


class WizardCancelled(Exception):
    """Raised by a WizardIO when the operator aborts the session."""


@dataclass(frozen=True)
class Choice:
    value: str
    label: str


class WizardIO(TypingProtocol):
    """Terminal interaction used by the wizard."""

    def choose(self, message: str, choices: list[Choice], allow_back: bool = False) -> str:
        """Return the chosen value, or ``BACK``."""
        ...

    def prompt(self, message: str, default: str = "") -> str: ...

    def confirm(self, message: str, default: bool = False) -> bool: ...

    def show(self, text: str) -> None: ...

    def show_report(self, title: str, report: ValidationReport) -> None: ...


ConnectionTestRunner = Callable[[GeneratedArtifact], ConnectionTestReport]


class Wizard:
    """Drives one setup session.

    Args:
        io: Terminal interaction.
        registry: Provider catalog to choose from.
        output_dir: Root directory for generated artifacts.
        validator: Engine used in the Report state.
        connection_test: Runs the optional connection test after generation.
    """

    def __init__(
        self,
        io: WizardIO,
        registry: ProviderRegistry = REGISTRY,
        output_dir: Path | str = "output",
        validator: ValidationEngine | None = None,
        connection_test: ConnectionTestRunner | None = None,
    ) -> None:
        self.io = io
        self.registry = registry
        self.generator = ArtifactGenerator(output_dir)
        self.validator = validator or ValidationEngine()
        self.connection_test = connection_test or run_connection_test

        self.state = WizardState.SELECT_PROVIDER
        self.provider_id: str | None = None
        self.protocol: Protocol | None = None
        self.request: dict[str, str] = {}
        self.error: GenerationError | None = None
        self.artifact: GeneratedArtifact | None = None
        self.history: list[WizardState] = []

        self._handlers: dict[WizardState, Callable[[], WizardState]] = {
            WizardState.SELECT_PROVIDER: self._select_provider,
            WizardState.SELECT_PROTOCOL: self._select_protocol,
            WizardState.COLLECT_INPUTS: self._collect_inputs,
            WizardState.GENERATE: self._generate,
            WizardState.REPORT: self._report,
        }

    @property
    def profile(self) -> ProviderProfile:
        if self.provider_id is None or self.protocol is None:
            raise RuntimeError("No provider and protocol selected")
        return self.registry.lookup(self.provider_id, self.protocol)

    def step(self) -> WizardState:
        """Run the handler for the current state and move to the next one."""
        if self.state in TERMINAL_STATES:
            return self.state
        self.history.append(self.state)
        try:
            next_state = self._handlers[self.state]()
        except WizardCancelled:
            self.cancel()
            return self.state
        logger.debug(f"Wizard: {self.state} -> {next_state}")
        self.state = next_state
        return next_state

    def run(self) -> WizardState:
        """Step until the session is done or cancelled."""
        while self.state not in TERMINAL_STATES:
            self.step()
        return self.state

    def cancel(self) -> None:
        """End the session, discarding collected values.

        Artifacts already written stay on disk.
        """
        logger.info("Wizard cancelled")
        self.request = {}
        self.error = None
        self.state = WizardState.CANCELLED

    def restart(self) -> None:
        self.provider_id = None
        self.protocol = None
        self.request = {}
        self.error = None
        self.artifact = None
        self.state = WizardState.SELECT_PROVIDER

    def _select_provider(self) -> WizardState:
        choices = [
            Choice(pid, PROVIDERS.get(pid, {}).get("name", pid)) for pid in self.registry.provider_ids()
        ]
        self.provider_id = self.io.choose("Select your Identity Provider", choices)
        return WizardState.SELECT_PROTOCOL

    def _select_protocol(self) -> WizardState:
        if self.provider_id is None:
            return WizardState.SELECT_PROVIDER
        choices = [Choice(str(p), str(p).upper()) for p in self.registry.protocols(self.provider_id)]
        value = self.io.choose("Select the protocol", choices, allow_back=True)
        if value == BACK:
            self.provider_id = None
            return WizardState.SELECT_PROVIDER
        self.protocol = Protocol(value)
        self.request = {}
        self.error = None
        return WizardState.COLLECT_INPUTS

    def _collect_inputs(self) -> WizardState:
        profile = self.profile
        if self.error is not None:
            self.io.show(f"Error: {self.error}")
        else:
            protocol = str(profile.protocol).upper()
            self.io.show(f"Enter the values for {profile.display_name} {protocol} (type {BACK_COMMAND} to go back)")

        request = dict(self.request)
        for input_field in profile.inputs:
            value = self.io.prompt(input_field.prompt, default=request.get(input_field.name, ""))
            if value.strip() == BACK_COMMAND:
                self.protocol = None
                self.request = {}
                self.error = None
                return WizardState.SELECT_PROTOCOL
            request[input_field.name] = value
        self.request = request
        return WizardState.GENERATE

    def _generate(self) -> WizardState:
        try:
            self.artifact = self.generator.generate(self.profile, self.request)
        except GenerationError as e:
            logger.info(f"Generation failed on {e.field_name}: {e}")
            self.error = e
            return WizardState.COLLECT_INPUTS
        except OSError as e:
            logger.warning(f"Could not write artifacts: {e}")
            self.error = None
            self.io.show(f"Error: could not write artifacts: {e}")
            return WizardState.COLLECT_INPUTS
        self.error = None
        for path in self.artifact.output_paths:
            self.io.show(f"Generated: {path}")
        return WizardState.REPORT

    def _report(self) -> WizardState:
        if self.artifact is None:
            return WizardState.GENERATE
        profile = self.profile
        self.io.show_report("Validation", self.validator.validate(self.artifact))
        self.io.show(
            render_setup_guide(profile, self.request, output_dir=str(self.generator.provider_dir(profile)))
        )

        if self.artifact.endpoints and self.io.confirm("Test the endpoint connections now?", default=False):
            report = self.connection_test(self.artifact)
            self.io.show_report("Connection test", report.to_validation_report())

        if self.io.confirm("Configure another provider?", default=False):
            self.restart()
            return WizardState.SELECT_PROVIDER
        return WizardState.DONE
