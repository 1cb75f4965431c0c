"""Client configuration: ``<home>/config.yaml`` plus environment overrides."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from . import VAULT_HOME
from .models import ClientConfig

logger = logging.getLogger("nimbusvault.config")

CONFIG_FILE = "config.yaml"
API_URL_ENV = "NIMBUSVAULT_API_URL"


def resolve_home(home: Optional[Path] = None) -> Path:
    """Expand the client home directory (``~/.nimbusvault`` by default)."""
    return Path(home or VAULT_HOME).expanduser()


def load_config(home: Optional[Path] = None) -> ClientConfig:
    """Load client configuration from disk.

    A missing or unreadable file yields defaults. ``NIMBUSVAULT_API_URL``
    overrides whatever the file says.

    Args:
        home: Client home directory.

    Returns:
        ClientConfig: The effective configuration.
    """
    config_file = resolve_home(home) / CONFIG_FILE
    config = ClientConfig()
    if config_file.exists():
        try:
            data = yaml.safe_load(config_file.read_text(encoding="utf-8")) or {}
            config = ClientConfig(**data)
        except (yaml.YAMLError, ValidationError, TypeError) as exc:
            logger.warning("Failed to load config: %s (using defaults)", exc)

    env_url = os.environ.get(API_URL_ENV)
    if env_url:
        config.api_url = env_url
    return config


def save_config(config: ClientConfig, home: Optional[Path] = None) -> Path:
    """Write the configuration as YAML.

    Returns:
        Path: The file written.
    """
    home_path = resolve_home(home)
    home_path.mkdir(parents=True, exist_ok=True)
    config_file = home_path / CONFIG_FILE
    config_file.write_text(
        yaml.dump(config.model_dump(mode="json"), default_flow_style=False),
        encoding="utf-8",
    )
    logger.info("Saved config to %s", config_file)
    return config_file
