"""Shared test doubles for the driver tests."""

from pathlib import Path

import pytest

from vpsie_machine.client.models import ActionStatus, CatalogEntry, CreateVPSieRequest, VPSie
from vpsie_machine.config.models import DriverConfig
from vpsie_machine.core.errors import AccessError, ProviderRequestError

IMAGE_ID = "image-1"
OFFER_ID = "offer-1"
DATACENTER_ID = "dc-1"


class FakeClient:
    """In-memory provider client.

    ``statuses`` are returned by successive ``get_vpsie`` calls; the last one
    repeats once the list is exhausted.
    """

    def __init__(self) -> None:
        self.images = [CatalogEntry(id=IMAGE_ID, name="Ubuntu"), CatalogEntry(id="image-2")]
        self.offers = [CatalogEntry(id=OFFER_ID, name="1GB"), CatalogEntry(id="offer-2")]
        self.datacenters = [CatalogEntry(id=DATACENTER_ID, name="Toronto")]
        self.catalog_error: ProviderRequestError | None = None

        self.created = VPSie(
            id="vps-123", status="Started", hostname="box", ipv4="198.51.100.7", password="s3cret"
        )
        self.create_error: ProviderRequestError | None = None
        self.statuses = ["Running"]
        self.get_error: ProviderRequestError | None = None

        self.start_status = "Started"
        self.restart_status = "Restarted"
        self.delete_status = "Deleted"
        self.shutdown_status = ActionStatus()

        self.calls: list[tuple[str, ...]] = []
        self.create_requests: list[CreateVPSieRequest] = []

    def _catalog(self, kind: str, entries: list[CatalogEntry]) -> list[CatalogEntry]:
        self.calls.append(("list", kind))
        if self.catalog_error is not None:
            raise self.catalog_error
        return entries

    def get_images(self) -> list[CatalogEntry]:
        return self._catalog("image", self.images)

    def get_offers(self) -> list[CatalogEntry]:
        return self._catalog("offer", self.offers)

    def get_datacenters(self) -> list[CatalogEntry]:
        return self._catalog("datacenter", self.datacenters)

    def create_vpsie(self, request: CreateVPSieRequest) -> VPSie:
        self.calls.append(("create", request.hostname))
        self.create_requests.append(request)
        if self.create_error is not None:
            raise self.create_error
        return self.created

    def get_vpsie(self, instance_id: str) -> VPSie:
        self.calls.append(("get", instance_id))
        if self.get_error is not None:
            raise self.get_error
        status = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        return VPSie(id=instance_id, status=status)

    def start_vpsie(self, instance_id: str) -> str:
        self.calls.append(("start", instance_id))
        return self.start_status

    def restart_vpsie(self, instance_id: str) -> str:
        self.calls.append(("restart", instance_id))
        return self.restart_status

    def shutdown_vpsie(self, instance_id: str) -> ActionStatus:
        self.calls.append(("shutdown", instance_id))
        return self.shutdown_status

    def delete_vpsie(self, instance_id: str) -> str:
        self.calls.append(("delete", instance_id))
        return self.delete_status

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)


class FakeSession:
    """SSH session that records commands."""

    def __init__(self, factory: "FakeSessionFactory") -> None:
        self.factory = factory
        self.closed = False

    def output(self, command: str) -> str:
        self.factory.commands.append(command)
        if "authorized_keys" in command and self.factory.append_error is not None:
            raise self.factory.append_error
        return ""

    def close(self) -> None:
        self.closed = True


class FakeSessionFactory:
    """Session factory whose first ``failures`` connections are refused."""

    def __init__(self, failures: int = 0) -> None:
        self.failures = failures
        self.connects = 0
        self.logins: list[tuple[str, int, str, str]] = []
        self.commands: list[str] = []
        self.sessions: list[FakeSession] = []
        self.append_error: AccessError | None = None

    def __call__(self, host: str, port: int, username: str, password: str) -> FakeSession:
        self.connects += 1
        self.logins.append((host, port, username, password))
        if self.connects <= self.failures:
            raise AccessError(f"SSH connection to {host}:{port} failed: Connection refused")
        session = FakeSession(self)
        self.sessions.append(session)
        return session

    @property
    def append_commands(self) -> list[str]:
        return [c for c in self.commands if "authorized_keys" in c]


def no_sleep(_seconds: float) -> None:
    """Sleep replacement that returns immediately."""


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def sessions() -> FakeSessionFactory:
    return FakeSessionFactory()


@pytest.fixture
def driver_config() -> DriverConfig:
    return DriverConfig(
        client_id="id",
        client_secret="secret",
        image_id=IMAGE_ID,
        offer_id=OFFER_ID,
        datacenter_id=DATACENTER_ID,
        wait_interval=1.0,
        wait_timeout=10.0,
    )


@pytest.fixture
def key_path(tmp_path: Path) -> Path:
    """Private key path with a pre-existing key pair, so tests skip RSA generation."""
    path = tmp_path / "keys" / "id_rsa"
    path.parent.mkdir(parents=True)
    path.write_text("PRIVATE KEY\n")
    path.with_name("id_rsa.pub").write_text("ssh-rsa AAAAB3NzaC1yc2E test@host\n")
    return path
