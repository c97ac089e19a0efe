"""Lifecycle state of a VPSie instance."""

from enum import Enum

from vpsie_machine.client.base import ProviderClient
from vpsie_machine.core.errors import ProviderRequestError
from vpsie_machine.core.logging import get_logger

logger = get_logger(__name__)


class LifecycleState(str, Enum):
    """Normalized state of a managed machine."""

    STARTING = "Starting"
    RUNNING = "Running"
    STOPPED = "Stopped"
    ERROR = "Error"
    UNKNOWN = "Unknown"


# "Started" is the boot sub-state before the machine is network-reachable
_STATUS_TABLE = {
    "Started": LifecycleState.STARTING,
    "Running": LifecycleState.RUNNING,
    "Stopped": LifecycleState.STOPPED,
}


def map_status(status: str) -> LifecycleState:
    """Map a provider status string to a lifecycle state.

    Args:
        status: Raw status reported by the provider

    Returns:
        The matching state, or ERROR for any unrecognised status
    """
    return _STATUS_TABLE.get(status, LifecycleState.ERROR)


class InstanceStateReader:
    """Reads the current state of an instance from the provider.

    State is fetched on every call and never cached.
    """

    def __init__(self, client: ProviderClient) -> None:
        """Initialize the reader.

        Args:
            client: Provider client
        """
        self.client = client

    def current_state(self, instance_id: str) -> LifecycleState:
        """Query the provider for an instance's state.

        Args:
            instance_id: Provider-assigned identifier

        Returns:
            Lifecycle state derived from the provider's status

        Raises:
            ProviderRequestError: If the query fails; its ``state`` is ERROR
        """
        try:
            vpsie = self.client.get_vpsie(instance_id)
        except ProviderRequestError as e:
            e.state = LifecycleState.ERROR
            raise

        state = map_status(vpsie.status)
        logger.debug("Queried instance state", instance_id=instance_id, status=vpsie.status, state=state.value)
        return state
