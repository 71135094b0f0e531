"""Application configuration management.

Loads configuration from config.yaml files and environment variables.
Environment variables take precedence over config file settings.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# Default config locations
DEFAULT_CONFIG_DIR = Path.home() / ".ssowizard"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"

ENV_PREFIX = "SSOWIZARD_"

DEFAULT_PROBE_TIMEOUT = 10.0
DEFAULT_EXPIRY_WARNING_DAYS = 30


@dataclass
class ProbeSettings:
    """Connection test settings."""

    timeout: float = DEFAULT_PROBE_TIMEOUT
    verify_ssl: bool = True
    include_discovery: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProbeSettings:
        return cls(
            timeout=float(data.get("timeout", DEFAULT_PROBE_TIMEOUT)),
            verify_ssl=data.get("verify_ssl", True),
            include_discovery=data.get("include_discovery", False),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "timeout": self.timeout,
            "verify_ssl": self.verify_ssl,
            "include_discovery": self.include_discovery,
        }


@dataclass
class ValidationSettings:
    """Validation engine settings."""

    expiry_warning_days: int = DEFAULT_EXPIRY_WARNING_DAYS

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ValidationSettings:
        return cls(expiry_warning_days=int(data.get("expiry_warning_days", DEFAULT_EXPIRY_WARNING_DAYS)))

    def to_dict(self) -> dict[str, Any]:
        return {"expiry_warning_days": self.expiry_warning_days}


@dataclass
class AppConfig:
    """Main application configuration."""

    output_dir: Path = field(default_factory=lambda: Path("output"))
    log_level: str = "WARNING"
    log_file: str | None = None
    probe: ProbeSettings = field(default_factory=ProbeSettings)
    validation: ValidationSettings = field(default_factory=ValidationSettings)
    config_path: Path | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], config_path: Path | None = None) -> AppConfig:
        """Create AppConfig from a dictionary."""
        return cls(
            output_dir=Path(data["output_dir"]).expanduser() if data.get("output_dir") else Path("output"),
            log_level=str(data.get("log_level", "WARNING")).upper(),
            log_file=data.get("log_file"),
            probe=ProbeSettings.from_dict(data.get("probe") or {}),
            validation=ValidationSettings.from_dict(data.get("validation") or {}),
            config_path=config_path,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "output_dir": str(self.output_dir),
            "log_level": self.log_level,
            "log_file": self.log_file,
            "probe": self.probe.to_dict(),
            "validation": self.validation.to_dict(),
        }

    def save(self, path: Path | None = None) -> None:
        """Save configuration to a YAML file.

        Args:
            path: Path to save to. Uses config_path or default if not specified.
        """
        save_path = path or self.config_path or DEFAULT_CONFIG_FILE
        save_path.parent.mkdir(parents=True, exist_ok=True)

        with open(save_path, "w") as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False)


def _get_env_bool(key: str, default: bool) -> bool:
    value = os.environ.get(key)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


def _get_env_int(key: str, default: int) -> int:
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Ignoring non-integer value for {key}: {value!r}")
        return default


def _get_env_float(key: str, default: float) -> float:
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning(f"Ignoring non-numeric value for {key}: {value!r}")
        return default


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load application configuration.

    Configuration is loaded in this order (later values override earlier):
    1. Default values
    2. config.yaml file (if exists)
    3. Environment variables

    Args:
        config_path: Path to config file. Uses default if not specified.

    Returns:
        AppConfig with merged settings.
    """
    config = AppConfig()

    file_path = config_path or Path(os.environ.get(f"{ENV_PREFIX}CONFIG", DEFAULT_CONFIG_FILE))
    if file_path.exists():
        try:
            with open(file_path) as f:
                data = yaml.safe_load(f) or {}
            config = AppConfig.from_dict(data, config_path=file_path)
        except (OSError, yaml.YAMLError, ValueError, TypeError) as e:
            logger.warning(f"Invalid config file {file_path}, using defaults: {e}")

    if os.environ.get(f"{ENV_PREFIX}OUTPUT_DIR"):
        config.output_dir = Path(os.environ[f"{ENV_PREFIX}OUTPUT_DIR"]).expanduser()

    if os.environ.get(f"{ENV_PREFIX}LOG_LEVEL"):
        config.log_level = os.environ[f"{ENV_PREFIX}LOG_LEVEL"].upper()

    if os.environ.get(f"{ENV_PREFIX}LOG_FILE"):
        config.log_file = os.environ[f"{ENV_PREFIX}LOG_FILE"]

    config.probe.timeout = _get_env_float(f"{ENV_PREFIX}PROBE_TIMEOUT", config.probe.timeout)
    config.probe.verify_ssl = _get_env_bool(f"{ENV_PREFIX}VERIFY_SSL", config.probe.verify_ssl)
    config.validation.expiry_warning_days = _get_env_int(
        f"{ENV_PREFIX}EXPIRY_WARNING_DAYS", config.validation.expiry_warning_days
    )

    return config


def get_default_config_yaml() -> str:
    """Get the default config.yaml content as a string."""
    return """\
# SSO Wizard Configuration File
# Environment variables override these settings (prefix: SSOWIZARD_)

# Directory generated artifacts are written to (one subdirectory per provider)
output_dir: "output"

# Log level: ERROR, WARNING, INFO, DEBUG, TRACE
log_level: "WARNING"

# Optional log file
# log_file: ~/.ssowizard/ssowizard.log

probe:
  # Per-endpoint timeout in seconds for connection tests
  timeout: 10.0

  # Verify TLS certificates of probed endpoints
  verify_ssl: true

  # Also fetch the OIDC discovery document during connection tests
  include_discovery: false

validation:
  # Certificates expiring within this many days produce a warning
  expiry_warning_days: 30
"""
