"""VPSie machine driver.

Implements the lifecycle contract the host orchestrator expects from every
driver (create, inspect, start, stop, restart, kill, remove) on top of the
VPSie API.
"""

import time
from collections.abc import Callable
from pathlib import Path

from vpsie_machine.client.base import ProviderClient
from vpsie_machine.client.models import CreateVPSieRequest
from vpsie_machine.config.models import DriverConfig
from vpsie_machine.core.errors import (
    AddressNotSetError,
    ConfigurationError,
    HostNotRunningError,
    UnexpectedStatusError,
)
from vpsie_machine.core.logging import get_logger
from vpsie_machine.driver.bootstrap import BootstrapBridge
from vpsie_machine.driver.models import Instance, ProvisioningParameters
from vpsie_machine.driver.state import InstanceStateReader, LifecycleState
from vpsie_machine.driver.validator import ResourceValidator
from vpsie_machine.ssh.keys import ensure_key_pair
from vpsie_machine.ssh.session import SessionFactory, open_password_session

logger = get_logger(__name__)

DRIVER_NAME = "vpsie"

# Terminal statuses the provider reports for successful actions
STATUS_STARTED = "Started"
STATUS_RESTARTED = "Restarted"
STATUS_DELETED = "Deleted"


class VPSieDriver:
    """Driver for a single VPSie instance.

    The provider client is constructed by the caller and injected, so a test
    double can stand in for the API. ``on_created`` is called right after the
    provider assigns an identifier and address, before bootstrap begins, so
    the caller can persist the record.
    """

    def __init__(
        self,
        config: DriverConfig,
        instance: Instance,
        client: ProviderClient,
        *,
        ssh_key_path: Path,
        session_factory: SessionFactory = open_password_session,
        on_created: Callable[[Instance], None] | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the driver.

        Args:
            config: Driver configuration
            instance: The machine this driver manages
            client: Provider client
            ssh_key_path: Private key path; the public key sits next to it
            session_factory: Opens password-authenticated SSH sessions
            on_created: Callback invoked once identifier and address are known
            sleep: Sleep function used while polling
        """
        self.config = config
        self.instance = instance
        self.client = client
        self.ssh_key_path = ssh_key_path
        self.on_created = on_created

        self.validator = ResourceValidator(client)
        self.state_reader = InstanceStateReader(client)
        self.bootstrap = BootstrapBridge(
            self.state_reader,
            session_factory,
            ssh_user=config.ssh_user,
            ssh_port=config.ssh_port,
            interval=config.wait_interval,
            timeout=config.wait_timeout,
            sleep=sleep,
        )

    def driver_name(self) -> str:
        """Get the driver name."""
        return DRIVER_NAME

    def provisioning_parameters(self) -> ProvisioningParameters:
        """Get the creation parameters for this machine."""
        return ProvisioningParameters(
            image_id=self.config.image_id,
            offer_id=self.config.offer_id,
            datacenter_id=self.config.datacenter_id,
            hostname=self.instance.machine_name,
        )

    def pre_create_check(self) -> None:
        """Validate image, datacenter and offer against the provider's catalogs.

        Raises:
            InvalidResourceError: If an identifier is not in its catalog
            CatalogUnavailableError: If a catalog could not be fetched
        """
        logger.info("Validating VPSie VPS parameters...")
        self.validator.validate_all(self.provisioning_parameters())

    def create(self) -> None:
        """Create the instance and install the operator's SSH key on it.

        Steps run in order and none is retried: key pair, catalog validation,
        provider create, record identifier and address, bootstrap.

        Raises:
            ConfigurationError: If the instance already exists or an identifier is invalid
            ProviderRequestError: If a provider call fails
            AddressNotSetError: If the provider returned no usable address
            BootstrapTimeoutError: If the instance or its SSH daemon never became ready
            AccessError: If installing the key failed
            OSError: If the key pair cannot be generated
        """
        if self.instance.created:
            raise ConfigurationError(
                f"Machine {self.instance.machine_name} already has instance {self.instance.instance_id}"
            )

        public_key = ensure_key_pair(self.ssh_key_path)

        params = self.provisioning_parameters()
        self.pre_create_check()

        logger.info("Creating VPSie VPS...")
        vpsie = self.client.create_vpsie(
            CreateVPSieRequest(
                hostname=params.hostname,
                offer_id=params.offer_id,
                datacenter_id=params.datacenter_id,
                os_id=params.image_id,
            )
        )

        self.instance.instance_id = vpsie.id
        self.instance.ip_address = vpsie.ipv4
        logger.info("Created VPSie VPS", instance_id=vpsie.id, ip=vpsie.ipv4)

        if self.on_created is not None:
            self.on_created(self.instance)

        # No SSH attempt without a usable address
        self.get_ssh_hostname()

        self.bootstrap.install_key(self.instance, vpsie.password, public_key)

    def get_state(self) -> LifecycleState:
        """Get the current lifecycle state from the provider.

        Raises:
            ConfigurationError: If the instance has not been created
            ProviderRequestError: If the query fails; its ``state`` is ERROR
        """
        return self.state_reader.current_state(self._instance_id())

    def get_ip(self) -> str:
        """Get the public address.

        Raises:
            AddressNotSetError: If no address has been assigned
        """
        address = self.instance.ip_address
        if not address or address == "0":
            raise AddressNotSetError()
        return address

    def get_ssh_hostname(self) -> str:
        """Get the SSH hostname (the public address)."""
        return self.get_ip()

    def get_ssh_username(self) -> str:
        """Get the SSH login user."""
        return self.config.ssh_user

    def get_ssh_port(self) -> int:
        """Get the SSH port."""
        return self.config.ssh_port

    def get_url(self) -> str:
        """Get the Docker endpoint URL of a running machine.

        Raises:
            HostNotRunningError: If the machine is not running
            AddressNotSetError: If no address has been assigned
        """
        state = self.get_state()
        if state != LifecycleState.RUNNING:
            raise HostNotRunningError(state)

        return f"tcp://{self.get_ip()}:{self.config.docker_port}"

    def start(self) -> None:
        """Start the instance.

        Raises:
            UnexpectedStatusError: If the provider does not report "Started"
        """
        status = self.client.start_vpsie(self._instance_id())
        self._expect("start", STATUS_STARTED, status)

    def stop(self) -> None:
        """Shut the instance down.

        Raises:
            UnexpectedStatusError: If the provider reports an error for the shutdown
        """
        self._shutdown("stop")

    def kill(self) -> None:
        """Shut the instance down.

        No forced stop is implemented; this issues the same shutdown as ``stop``.

        Raises:
            UnexpectedStatusError: If the provider reports an error for the shutdown
        """
        self._shutdown("kill")

    def restart(self) -> None:
        """Restart the instance.

        Raises:
            UnexpectedStatusError: If the provider does not report "Restarted"
        """
        status = self.client.restart_vpsie(self._instance_id())
        self._expect("restart", STATUS_RESTARTED, status)

    def remove(self) -> None:
        """Delete the instance on the provider side.

        The SSH key pair is kept for reuse.

        Raises:
            UnexpectedStatusError: If the provider does not report "Deleted"
        """
        status = self.client.delete_vpsie(self._instance_id())
        self._expect("remove", STATUS_DELETED, status)
        logger.info("Removed VPSie VPS", instance_id=self.instance.instance_id)

    def _shutdown(self, action: str) -> None:
        result = self.client.shutdown_vpsie(self._instance_id())
        if result.error:
            raise UnexpectedStatusError(action, "no error", result.error_code or "unknown error")

    def _expect(self, action: str, expected: str, status: str) -> None:
        if status != expected:
            raise UnexpectedStatusError(action, expected, status)
        logger.debug("Action completed", action=action, status=status)

    def _instance_id(self) -> str:
        if not self.instance.instance_id:
            raise ConfigurationError(
                f"Machine {self.instance.machine_name} has no VPSie instance ID"
            )
        return self.instance.instance_id
