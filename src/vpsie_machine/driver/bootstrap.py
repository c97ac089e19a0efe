"""Bootstrap access: wait for a new instance and install the operator's key.

A freshly created instance goes through two readiness gates before the key
can be installed:

1. The provider reports the instance as Running (hypervisor level).
2. The SSH daemon inside the guest accepts the one-time root password.

Each gate is polled with ``wait_for`` and times out on its own, so a timeout
names the gate that never opened. Once both pass, the public key is appended
to ``~/.ssh/authorized_keys`` with a single command; from then on the
password is no longer needed.
"""

import shlex
import time
from collections.abc import Callable
from enum import Enum

from vpsie_machine.core.errors import (
    AccessError,
    AddressNotSetError,
    BootstrapTimeoutError,
    ConfigurationError,
    ProviderRequestError,
)
from vpsie_machine.core.logging import get_logger
from vpsie_machine.driver.models import Instance
from vpsie_machine.driver.state import InstanceStateReader, LifecycleState
from vpsie_machine.driver.wait import wait_for
from vpsie_machine.ssh.session import SessionFactory

logger = get_logger(__name__)

READY_COMMAND = "exit 0"


class BootstrapPhase(str, Enum):
    """Position of the bootstrap state machine."""

    WAITING_FOR_RUNNING = "VM running"
    WAITING_FOR_SSH = "SSH"
    INSTALLED = "installed"
    TIMED_OUT = "timed out"


def authorized_keys_command(public_key: str) -> str:
    """Build the shell command that appends a key to root's authorized keys.

    Args:
        public_key: Public key in ``authorized_keys`` format

    Returns:
        Shell command
    """
    key = shlex.quote(public_key.strip())
    return (
        "mkdir -p ~/.ssh && chmod 700 ~/.ssh && "
        f"echo {key} >> ~/.ssh/authorized_keys && chmod 600 ~/.ssh/authorized_keys"
    )


class BootstrapBridge:
    """Installs the operator's public key on a newly created instance."""

    def __init__(
        self,
        state_reader: InstanceStateReader,
        session_factory: SessionFactory,
        *,
        ssh_user: str,
        ssh_port: int,
        interval: float,
        timeout: float,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the bridge.

        Args:
            state_reader: Reads the instance state from the provider
            session_factory: Opens password-authenticated SSH sessions
            ssh_user: Login user on the guest
            ssh_port: SSH port on the guest
            interval: Seconds between polls
            timeout: Deadline in seconds for each wait phase
            sleep: Sleep function used between polls
        """
        self.state_reader = state_reader
        self.session_factory = session_factory
        self.ssh_user = ssh_user
        self.ssh_port = ssh_port
        self.interval = interval
        self.timeout = timeout
        self.sleep = sleep
        self.phase = BootstrapPhase.WAITING_FOR_RUNNING

    def install_key(self, instance: Instance, password: str, public_key: str) -> None:
        """Wait for the instance to become reachable and install the public key.

        Args:
            instance: Created instance with identifier and address set
            password: One-time root password issued at creation
            public_key: Operator public key to install

        Raises:
            ConfigurationError: If the instance has no identifier
            AddressNotSetError: If the instance has no usable address
            BootstrapTimeoutError: If a readiness gate did not pass in time
            AccessError: If appending the key failed
        """
        if not instance.instance_id:
            raise ConfigurationError("Instance must be created before its key can be installed")
        if not instance.ip_address or instance.ip_address == "0":
            raise AddressNotSetError()

        instance_id = instance.instance_id
        host = instance.ip_address

        self.phase = BootstrapPhase.WAITING_FOR_RUNNING
        logger.info("Waiting for machine to be running, this may take a few minutes...")
        self._wait(lambda: self._is_running(instance_id))

        self.phase = BootstrapPhase.WAITING_FOR_SSH
        logger.info("Waiting for SSH to be available...")
        self._wait(lambda: self._ssh_available(host, password))

        logger.info("Installing SSH key", host=host, user=self.ssh_user)
        session = self.session_factory(host, self.ssh_port, self.ssh_user, password)
        try:
            session.output(authorized_keys_command(public_key))
        finally:
            session.close()

        self.phase = BootstrapPhase.INSTALLED
        logger.info("SSH key installed", instance_id=instance_id)

    def _wait(self, predicate: Callable[[], bool]) -> None:
        try:
            wait_for(
                predicate,
                interval=self.interval,
                timeout=self.timeout,
                phase=self.phase,
                sleep=self.sleep,
            )
        except BootstrapTimeoutError:
            self.phase = BootstrapPhase.TIMED_OUT
            raise

    def _is_running(self, instance_id: str) -> bool:
        try:
            return self.state_reader.current_state(instance_id) == LifecycleState.RUNNING
        except ProviderRequestError as e:
            logger.debug("State query failed while waiting", instance_id=instance_id, error=str(e))
            return False

    def _ssh_available(self, host: str, password: str) -> bool:
        try:
            session = self.session_factory(host, self.ssh_port, self.ssh_user, password)
            try:
                session.output(READY_COMMAND)
            finally:
                session.close()
        except AccessError as e:
            logger.debug("SSH not available yet", host=host, error=str(e))
            return False
        return True
