"""Data models for VPSie API requests and responses.

This module provides dataclasses for the payloads exchanged with the
VPSie REST API.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class CreateVPSieRequest:
    """Parameters for creating a VPSie.

    Attributes:
        hostname: Hostname for the new VPS
        offer_id: Offer (plan) identifier
        datacenter_id: Datacenter identifier
        os_id: Image identifier
    """

    hostname: str
    offer_id: str
    datacenter_id: str
    os_id: str

    def to_payload(self) -> dict[str, str]:
        """Build the request body.

        Returns:
            JSON-serializable request body
        """
        return {
            "hostname": self.hostname,
            "offer_id": self.offer_id,
            "datacenter_id": self.datacenter_id,
            "os_id": self.os_id,
        }


@dataclass
class VPSie:
    """A VPS as reported by the provider.

    Attributes:
        id: Provider-assigned identifier
        status: Raw provider status string
        hostname: Hostname of the VPS
        ipv4: Public IPv4 address, empty until assigned
        password: Initial root password, only present in the create response
    """

    id: str
    status: str = ""
    hostname: str = ""
    ipv4: str = ""
    password: str = field(default="", repr=False)

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "VPSie":
        """Parse a VPS from an API response body.

        Args:
            data: Decoded JSON object

        Returns:
            VPSie instance

        Raises:
            ValueError: If the response has no identifier
        """
        instance_id = data.get("id")
        if not instance_id:
            raise ValueError("VPSie response is missing an id")

        return VPSie(
            id=str(instance_id),
            status=str(data.get("status") or ""),
            hostname=str(data.get("hostname") or ""),
            ipv4=str(data.get("ipv4") or data.get("ip") or ""),
            password=str(data.get("password") or ""),
        )


@dataclass(frozen=True)
class ActionStatus:
    """Result of an action that reports an error flag instead of a status.

    Attributes:
        error: Whether the provider reported a failure
        error_code: Provider error code when ``error`` is set
    """

    error: bool = False
    error_code: str = ""

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "ActionStatus":
        """Parse an action status from an API response body."""
        return ActionStatus(
            error=bool(data.get("error", False)),
            error_code=str(data.get("errorCode") or data.get("error_code") or ""),
        )


@dataclass(frozen=True)
class CatalogEntry:
    """An image, offer or datacenter published by the provider.

    Attributes:
        id: Catalog identifier
        name: Human-readable name, if any
        metadata: Remaining descriptive fields
    """

    id: str
    name: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "CatalogEntry":
        """Parse a catalog entry from an API response body."""
        metadata = {k: v for k, v in data.items() if k not in ("id", "name")}
        return CatalogEntry(
            id=str(data.get("id", "")),
            name=str(data.get("name") or ""),
            metadata=metadata,
        )
