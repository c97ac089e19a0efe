"""Data models for the driver core."""

from dataclasses import dataclass
from enum import Enum


class ResourceKind(str, Enum):
    """Kinds of provider catalog."""

    IMAGE = "image"
    DATACENTER = "datacenter"
    OFFER = "offer"


@dataclass(frozen=True)
class ProvisioningParameters:
    """Immutable input to instance creation.

    Attributes:
        image_id: Image (operating system) identifier
        offer_id: Offer (plan) identifier
        datacenter_id: Datacenter identifier
        hostname: Desired hostname
    """

    image_id: str
    offer_id: str
    datacenter_id: str
    hostname: str

    def identifiers(self) -> list[tuple[ResourceKind, str]]:
        """Catalog identifiers in validation order: image, datacenter, offer."""
        return [
            (ResourceKind.IMAGE, self.image_id),
            (ResourceKind.DATACENTER, self.datacenter_id),
            (ResourceKind.OFFER, self.offer_id),
        ]


@dataclass
class Instance:
    """The managed machine as known to the driver.

    ``instance_id`` and ``ip_address`` stay None until the provider create
    call succeeds. Lifecycle state is not stored; it is always fetched.

    Attributes:
        machine_name: Operator-chosen name, also used as hostname
        instance_id: Provider-assigned identifier
        ip_address: Public IPv4 address
    """

    machine_name: str
    instance_id: str | None = None
    ip_address: str | None = None

    @property
    def created(self) -> bool:
        """Whether the provider has created this instance."""
        return bool(self.instance_id)
