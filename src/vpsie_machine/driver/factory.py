"""Factory for creating drivers and their provider clients."""

from vpsie_machine.client.api import VPSieClient
from vpsie_machine.client.base import ProviderClient
from vpsie_machine.config.loader import require_credentials
from vpsie_machine.config.models import DriverConfig
from vpsie_machine.driver.driver import VPSieDriver
from vpsie_machine.driver.models import Instance
from vpsie_machine.ssh.session import SessionFactory, open_password_session
from vpsie_machine.store.record import MachineRecord, MachineStore


def create_client(config: DriverConfig) -> VPSieClient:
    """Create an API client from configuration.

    Args:
        config: Driver configuration

    Returns:
        VPSie API client

    Raises:
        MissingCredentialError: If the client ID or secret is empty
    """
    require_credentials(config)
    return VPSieClient(
        config.client_id,
        config.client_secret,
        base_url=config.api_url,
        timeout=config.request_timeout,
    )


def create_driver(
    config: DriverConfig,
    machine_name: str,
    store: MachineStore,
    client: ProviderClient | None = None,
    session_factory: SessionFactory = open_password_session,
) -> VPSieDriver:
    """Create a driver for a machine.

    The machine's stored record, if any, provides the instance identifier and
    address. The record is saved again as soon as creation assigns them.

    Args:
        config: Driver configuration
        machine_name: Name of the machine
        store: Machine store
        client: API client to use instead of one built from ``config``
        session_factory: Opens password-authenticated SSH sessions

    Returns:
        Driver for the machine

    Raises:
        MissingCredentialError: If no client is given and credentials are missing
    """
    if store.exists(machine_name):
        instance = store.load(machine_name).to_instance()
    else:
        instance = Instance(machine_name=machine_name)

    if client is None:
        client = create_client(config)

    def _save(created: Instance) -> None:
        store.save(MachineRecord.from_instance(created, config))

    return VPSieDriver(
        config,
        instance,
        client,
        ssh_key_path=store.key_path(machine_name),
        session_factory=session_factory,
        on_created=_save,
    )
