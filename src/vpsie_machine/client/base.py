"""Provider client protocol."""

from typing import Protocol, runtime_checkable

from vpsie_machine.client.models import ActionStatus, CatalogEntry, CreateVPSieRequest, VPSie


@runtime_checkable
class ProviderClient(Protocol):
    """Protocol for the provider API consumed by the driver.

    This allows both the real HTTP client and in-memory doubles for testing.
    Every method raises ``ProviderRequestError`` when the request fails.
    """

    def create_vpsie(self, request: CreateVPSieRequest) -> VPSie:
        """Create a VPS.

        Args:
            request: Creation parameters

        Returns:
            The created VPS, including its initial password
        """
        ...

    def get_vpsie(self, instance_id: str) -> VPSie:
        """Fetch a VPS by identifier."""
        ...

    def start_vpsie(self, instance_id: str) -> str:
        """Start a VPS and return the reported status."""
        ...

    def restart_vpsie(self, instance_id: str) -> str:
        """Restart a VPS and return the reported status."""
        ...

    def shutdown_vpsie(self, instance_id: str) -> ActionStatus:
        """Shut a VPS down and return the action status."""
        ...

    def delete_vpsie(self, instance_id: str) -> str:
        """Delete a VPS and return the reported status."""
        ...

    def get_images(self) -> list[CatalogEntry]:
        """List available images."""
        ...

    def get_offers(self) -> list[CatalogEntry]:
        """List available offers."""
        ...

    def get_datacenters(self) -> list[CatalogEntry]:
        """List available datacenters."""
        ...
