"""Configuration loading and parsing for the VPSie driver."""

import os
from pathlib import Path

import yaml

from vpsie_machine.config.models import (
    DEFAULT_DATACENTER_ID,
    DEFAULT_IMAGE_ID,
    DEFAULT_OFFER_ID,
    ConfigOverrides,
    DriverConfig,
)
from vpsie_machine.core.errors import MissingCredentialError
from vpsie_machine.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_FILE = Path("vpsie.yaml")

ENV_PREFIX = "VPSIE_"


def load_config(
    config_file: str = "",
    overrides: ConfigOverrides | None = None,
    base: DriverConfig | None = None,
) -> DriverConfig:
    """Load configuration from file or defaults, then apply overrides.

    Args:
        config_file: Path to YAML configuration file (optional)
        overrides: Configuration overrides from CLI/env (optional)
        base: Configuration to start from instead of a file, e.g. a stored
            machine record (optional)

    Returns:
        Loaded and validated configuration

    Raises:
        ValueError: If configuration is invalid
        FileNotFoundError: If specified config file doesn't exist
    """
    config: DriverConfig

    if config_file:
        config = _load_from_file(Path(config_file))
    elif base is not None:
        config = base.model_copy(deep=True)
    elif DEFAULT_CONFIG_FILE.exists():
        config = _load_from_file(DEFAULT_CONFIG_FILE)
    else:
        config = DriverConfig()

    if overrides:
        _apply_overrides(config, overrides)

    _apply_catalog_defaults(config)

    return config


def require_credentials(config: DriverConfig) -> None:
    """Check that both API credentials are present.

    Args:
        config: Configuration to check

    Raises:
        MissingCredentialError: If the client ID or secret is empty
    """
    if not config.client_id:
        raise MissingCredentialError("vpsie-client-id")
    if not config.client_secret:
        raise MissingCredentialError("vpsie-client-secret")


def _load_from_file(path: Path) -> DriverConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to configuration file

    Returns:
        Parsed configuration

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If file is invalid YAML or doesn't match schema
    """
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    logger.info("Loading configuration file", path=str(path))

    try:
        with path.open("r") as f:
            data = yaml.safe_load(f)

        # Treat empty files as empty configuration
        if data is None:
            data = {}

        if not isinstance(data, dict):
            raise ValueError("Configuration file must contain a YAML mapping")

        return DriverConfig.model_validate(data)

    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in configuration file: {e}") from e
    except Exception as e:
        raise ValueError(f"Failed to parse configuration: {e}") from e


def _apply_overrides(config: DriverConfig, overrides: ConfigOverrides) -> None:
    """Apply non-empty override values to a config object in-place.

    Args:
        config: Configuration to modify
        overrides: Override values to apply
    """
    if overrides.client_id:
        config.client_id = overrides.client_id
    if overrides.client_secret:
        config.client_secret = overrides.client_secret

    if overrides.image_id:
        config.image_id = overrides.image_id
    if overrides.offer_id:
        config.offer_id = overrides.offer_id
    if overrides.datacenter_id:
        config.datacenter_id = overrides.datacenter_id


def _apply_catalog_defaults(config: DriverConfig) -> None:
    """Fill unset catalog identifiers with the well-known defaults.

    Args:
        config: Configuration to modify
    """
    if not config.image_id:
        config.image_id = DEFAULT_IMAGE_ID
    if not config.offer_id:
        config.offer_id = DEFAULT_OFFER_ID
    if not config.datacenter_id:
        config.datacenter_id = DEFAULT_DATACENTER_ID


def get_env_overrides() -> ConfigOverrides:
    """Get configuration overrides from environment variables.

    Environment variables are prefixed with VPSIE_ (e.g. VPSIE_CLIENT_ID).

    Returns:
        ConfigOverrides populated from environment variables
    """

    def get_str(key: str) -> str:
        return os.getenv(f"{ENV_PREFIX}{key.upper()}", "")

    return ConfigOverrides(
        client_id=get_str("client_id"),
        client_secret=get_str("client_secret"),
        image_id=get_str("image_id"),
        offer_id=get_str("offer_id"),
        datacenter_id=get_str("datacenter_id"),
    )
