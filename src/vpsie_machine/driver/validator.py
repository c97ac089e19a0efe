"""Pre-flight validation of catalog identifiers."""

from vpsie_machine.client.base import ProviderClient
from vpsie_machine.client.models import CatalogEntry
from vpsie_machine.core.errors import CatalogUnavailableError, InvalidResourceError, ProviderRequestError
from vpsie_machine.core.logging import get_logger
from vpsie_machine.driver.models import ProvisioningParameters, ResourceKind

logger = get_logger(__name__)


class ResourceValidator:
    """Confirms that identifiers exist in the provider's catalogs.

    Catalogs are fetched on every call. The provider may still change them
    between validation and use, so a passing check is best-effort.
    """

    def __init__(self, client: ProviderClient) -> None:
        """Initialize the validator.

        Args:
            client: Provider client
        """
        self.client = client

    def validate(self, kind: ResourceKind, identifier: str) -> None:
        """Check that an identifier is present in a catalog.

        Args:
            kind: Which catalog to check
            identifier: Identifier to look for

        Raises:
            InvalidResourceError: If the identifier is not in the catalog
            CatalogUnavailableError: If the catalog could not be fetched
        """
        kind = ResourceKind(kind)
        try:
            entries = self._fetch(kind)
        except ProviderRequestError as e:
            raise CatalogUnavailableError(kind, e) from e

        if any(entry.id == identifier for entry in entries):
            logger.debug("Validated catalog identifier", kind=kind.value, identifier=identifier)
            return

        raise InvalidResourceError(kind, identifier)

    def validate_all(self, params: ProvisioningParameters) -> None:
        """Validate image, datacenter and offer, stopping at the first failure.

        Args:
            params: Provisioning parameters to check

        Raises:
            InvalidResourceError: If an identifier is not in its catalog
            CatalogUnavailableError: If a catalog could not be fetched
        """
        for kind, identifier in params.identifiers():
            self.validate(kind, identifier)

    def _fetch(self, kind: ResourceKind) -> list[CatalogEntry]:
        if kind is ResourceKind.IMAGE:
            return self.client.get_images()
        if kind is ResourceKind.DATACENTER:
            return self.client.get_datacenters()
        return self.client.get_offers()
