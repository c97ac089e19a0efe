"""Lifecycle and inspection command implementations."""

import structlog

from vpsie_machine.config.loader import load_config
from vpsie_machine.config.models import ConfigOverrides
from vpsie_machine.driver.driver import VPSieDriver
from vpsie_machine.driver.factory import create_driver
from vpsie_machine.store.record import MachineStore

logger = structlog.get_logger()

ACTIONS = ("start", "stop", "restart", "kill", "remove")


def load_driver(store: MachineStore, name: str, overrides: ConfigOverrides) -> VPSieDriver:
    """Build the driver for an existing machine from its stored record.

    Args:
        store: Machine store
        name: Machine name
        overrides: Configuration overrides from CLI/env

    Returns:
        Driver for the machine

    Raises:
        FileNotFoundError: If the machine does not exist
    """
    record = store.load(name)
    config = load_config(overrides=overrides, base=record.config)
    return create_driver(config, name, store)


def run_action(
    store: MachineStore,
    name: str,
    action: str,
    overrides: ConfigOverrides,
) -> None:
    """Run a lifecycle action against a machine.

    Removing a machine also removes its record; the key pair is kept.

    Args:
        store: Machine store
        name: Machine name
        action: One of ``ACTIONS``
        overrides: Configuration overrides from CLI/env

    Raises:
        ValueError: If the action is unknown
    """
    if action not in ACTIONS:
        raise ValueError(f"Unknown action: {action}")

    driver = load_driver(store, name, overrides)
    getattr(driver, action)()

    if action == "remove":
        store.delete(name)

    logger.info("Action completed", machine=name, action=action)


def run_state(store: MachineStore, name: str, overrides: ConfigOverrides) -> str:
    """Get a machine's lifecycle state."""
    return load_driver(store, name, overrides).get_state().value


def run_ip(store: MachineStore, name: str, overrides: ConfigOverrides) -> str:
    """Get a machine's public address."""
    return load_driver(store, name, overrides).get_ip()


def run_url(store: MachineStore, name: str, overrides: ConfigOverrides) -> str:
    """Get a running machine's Docker endpoint URL."""
    return load_driver(store, name, overrides).get_url()
