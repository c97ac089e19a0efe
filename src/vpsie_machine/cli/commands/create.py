"""Create command implementation."""

import structlog

from vpsie_machine.config.loader import load_config, require_credentials
from vpsie_machine.config.models import ConfigOverrides
from vpsie_machine.driver.factory import create_driver
from vpsie_machine.store.record import MachineRecord, MachineStore

logger = structlog.get_logger()


def run_create(
    store: MachineStore,
    name: str,
    config_file: str,
    overrides: ConfigOverrides,
) -> None:
    """Create a machine and install its SSH key.

    Args:
        store: Machine store
        name: Machine name
        config_file: Path to configuration file
        overrides: Configuration overrides from CLI/env

    Raises:
        FileExistsError: If the machine already exists
    """
    if store.exists(name):
        raise FileExistsError(f"Machine {name} already exists")

    config = load_config(config_file=config_file, overrides=overrides)
    require_credentials(config)

    logger.info(
        "Configuration loaded",
        machine=name,
        image_id=config.image_id,
        offer_id=config.offer_id,
        datacenter_id=config.datacenter_id,
    )

    driver = create_driver(config, name, store)
    driver.create()

    store.save(MachineRecord.from_instance(driver.instance, config))

    logger.info("Machine created", machine=name, ip=driver.get_ip())
