"""Unit tests for the VPSie driver."""

from pathlib import Path

import pytest
from conftest import DATACENTER_ID, IMAGE_ID, OFFER_ID, FakeClient, FakeSessionFactory, no_sleep

from vpsie_machine.client.models import ActionStatus
from vpsie_machine.config.models import DriverConfig
from vpsie_machine.core.errors import (
    AddressNotSetError,
    CatalogUnavailableError,
    ConfigurationError,
    HostNotRunningError,
    InvalidResourceError,
    ProviderRequestError,
    UnexpectedStatusError,
)
from vpsie_machine.driver.bootstrap import BootstrapPhase
from vpsie_machine.driver.driver import VPSieDriver
from vpsie_machine.driver.models import Instance
from vpsie_machine.driver.state import LifecycleState


def _driver(
    config: DriverConfig,
    client: FakeClient,
    sessions: FakeSessionFactory,
    key_path: Path,
    instance: Instance | None = None,
    on_created=None,
) -> VPSieDriver:
    return VPSieDriver(
        config,
        instance or Instance(machine_name="box"),
        client,
        ssh_key_path=key_path,
        session_factory=sessions,
        on_created=on_created,
        sleep=no_sleep,
    )


def _created() -> Instance:
    return Instance(machine_name="box", instance_id="vps-123", ip_address="198.51.100.7")


class TestDriverInfo:
    """Tests for static driver information."""

    def test_driver_name(self, driver_config, fake_client, sessions, key_path) -> None:
        """Test the driver name."""
        assert _driver(driver_config, fake_client, sessions, key_path).driver_name() == "vpsie"

    def test_ssh_details(self, driver_config, fake_client, sessions, key_path) -> None:
        """Test SSH user, port and hostname."""
        driver = _driver(driver_config, fake_client, sessions, key_path, instance=_created())
        assert driver.get_ssh_username() == "root"
        assert driver.get_ssh_port() == 22
        assert driver.get_ssh_hostname() == "198.51.100.7"

    def test_provisioning_parameters(self, driver_config, fake_client, sessions, key_path) -> None:
        """Test that parameters come from config and the machine name."""
        params = _driver(driver_config, fake_client, sessions, key_path).provisioning_parameters()
        assert params.image_id == IMAGE_ID
        assert params.offer_id == OFFER_ID
        assert params.datacenter_id == DATACENTER_ID
        assert params.hostname == "box"


class TestGetIp:
    """Tests for VPSieDriver.get_ip."""

    def test_address_set(self, driver_config, fake_client, sessions, key_path) -> None:
        """Test that an assigned address is returned."""
        driver = _driver(driver_config, fake_client, sessions, key_path, instance=_created())
        assert driver.get_ip() == "198.51.100.7"

    def test_address_not_set(self, driver_config, fake_client, sessions, key_path) -> None:
        """Test that missing, empty and "0" addresses are rejected."""
        for address in [None, "", "0"]:
            instance = Instance(machine_name="box", instance_id="vps-123", ip_address=address)
            driver = _driver(driver_config, fake_client, sessions, key_path, instance=instance)
            with pytest.raises(AddressNotSetError, match="IP address is not set"):
                driver.get_ip()


class TestGetState:
    """Tests for VPSieDriver.get_state and get_url."""

    def test_state_is_fetched(self, driver_config, fake_client, sessions, key_path) -> None:
        """Test that state comes from the provider on every call."""
        fake_client.statuses = ["Stopped", "Running"]
        driver = _driver(driver_config, fake_client, sessions, key_path, instance=_created())

        assert driver.get_state() == LifecycleState.STOPPED
        assert driver.get_state() == LifecycleState.RUNNING

    def test_state_query_failure(self, driver_config, fake_client, sessions, key_path) -> None:
        """Test that a failed query surfaces with an ERROR state."""
        fake_client.get_error = ProviderRequestError("API error 500", status_code=500)
        driver = _driver(driver_config, fake_client, sessions, key_path, instance=_created())

        with pytest.raises(ProviderRequestError) as exc_info:
            driver.get_state()
        assert exc_info.value.state == LifecycleState.ERROR

    def test_state_requires_instance(self, driver_config, fake_client, sessions, key_path) -> None:
        """Test that an uncreated machine has no state to query."""
        with pytest.raises(ConfigurationError, match="has no VPSie instance ID"):
            _driver(driver_config, fake_client, sessions, key_path).get_state()
        assert fake_client.calls == []

    def test_url_when_running(self, driver_config, fake_client, sessions, key_path) -> None:
        """Test the Docker URL of a running machine."""
        driver = _driver(driver_config, fake_client, sessions, key_path, instance=_created())
        assert driver.get_url() == "tcp://198.51.100.7:2376"

    def test_url_when_not_running(self, driver_config, fake_client, sessions, key_path) -> None:
        """Test that a stopped machine has no URL."""
        fake_client.statuses = ["Stopped"]
        driver = _driver(driver_config, fake_client, sessions, key_path, instance=_created())

        with pytest.raises(HostNotRunningError, match="state: Stopped") as exc_info:
            driver.get_url()
        assert exc_info.value.state == LifecycleState.STOPPED


class TestLifecycleActions:
    """Tests for start, stop, kill, restart and remove."""

    def test_start(self, driver_config, fake_client, sessions, key_path) -> None:
        """Test that start succeeds on "Started"."""
        _driver(driver_config, fake_client, sessions, key_path, instance=_created()).start()
        assert fake_client.calls == [("start", "vps-123")]

    def test_start_unexpected_status(self, driver_config, fake_client, sessions, key_path) -> None:
        """Test that any other start status is an error naming it."""
        fake_client.start_status = "Pending"
        driver = _driver(driver_config, fake_client, sessions, key_path, instance=_created())

        with pytest.raises(UnexpectedStatusError, match="Invalid status Pending after start") as exc_info:
            driver.start()
        assert exc_info.value.expected == "Started"

    def test_restart(self, driver_config, fake_client, sessions, key_path) -> None:
        """Test that restart succeeds on "Restarted" and fails otherwise."""
        driver = _driver(driver_config, fake_client, sessions, key_path, instance=_created())
        driver.restart()

        fake_client.restart_status = "Started"
        with pytest.raises(UnexpectedStatusError, match="after restart"):
            driver.restart()

    def test_remove(self, driver_config, fake_client, sessions, key_path) -> None:
        """Test that remove succeeds on "Deleted" and fails otherwise."""
        driver = _driver(driver_config, fake_client, sessions, key_path, instance=_created())
        driver.remove()
        assert ("delete", "vps-123") in fake_client.calls

        fake_client.delete_status = "Running"
        with pytest.raises(UnexpectedStatusError, match="Invalid status Running after remove"):
            driver.remove()

    def test_stop_and_kill_issue_shutdown(self, driver_config, fake_client, sessions, key_path) -> None:
        """Test that stop and kill both shut the machine down."""
        driver = _driver(driver_config, fake_client, sessions, key_path, instance=_created())
        driver.stop()
        driver.kill()
        assert fake_client.calls == [("shutdown", "vps-123"), ("shutdown", "vps-123")]

    def test_shutdown_error(self, driver_config, fake_client, sessions, key_path) -> None:
        """Test that a shutdown error flag surfaces the error code."""
        fake_client.shutdown_status = ActionStatus(error=True, error_code="E_BUSY")
        driver = _driver(driver_config, fake_client, sessions, key_path, instance=_created())

        with pytest.raises(UnexpectedStatusError, match="Invalid status E_BUSY after stop"):
            driver.stop()
        with pytest.raises(UnexpectedStatusError, match="after kill"):
            driver.kill()

    def test_actions_require_instance(self, driver_config, fake_client, sessions, key_path) -> None:
        """Test that actions on an uncreated machine make no provider call."""
        driver = _driver(driver_config, fake_client, sessions, key_path)
        for action in [driver.start, driver.stop, driver.kill, driver.restart, driver.remove]:
            with pytest.raises(ConfigurationError):
                action()
        assert fake_client.calls == []


class TestCreate:
    """Tests for VPSieDriver.create."""

    def test_create_end_to_end(self, driver_config, fake_client, key_path) -> None:
        """Test validation, creation, waiting and key install in order."""
        fake_client.statuses = ["Started", "Started", "Running"]
        sessions = FakeSessionFactory(failures=1)
        driver = _driver(driver_config, fake_client, sessions, key_path)

        driver.create()

        assert fake_client.calls[:4] == [
            ("list", "image"),
            ("list", "datacenter"),
            ("list", "offer"),
            ("create", "box"),
        ]
        assert fake_client.count("create") == 1
        assert fake_client.count("get") == 3
        assert driver.get_state() == LifecycleState.RUNNING

        request = fake_client.create_requests[0]
        assert request.os_id == IMAGE_ID
        assert request.offer_id == OFFER_ID
        assert request.datacenter_id == DATACENTER_ID

        assert driver.instance.instance_id == "vps-123"
        assert driver.instance.ip_address == "198.51.100.7"
        assert driver.bootstrap.phase == BootstrapPhase.INSTALLED

        assert len(sessions.append_commands) == 1
        assert "ssh-rsa AAAAB3NzaC1yc2E test@host" in sessions.append_commands[0]
        assert sessions.logins[-1] == ("198.51.100.7", 22, "root", "s3cret")

    def test_invalid_datacenter_creates_nothing(self, fake_client, sessions, key_path) -> None:
        """Test that validation failure stops before the create call."""
        config = DriverConfig(
            client_id="id",
            client_secret="secret",
            image_id=IMAGE_ID,
            offer_id=OFFER_ID,
            datacenter_id="X",
        )
        driver = _driver(config, fake_client, sessions, key_path)

        with pytest.raises(InvalidResourceError, match="Datacenter ID X is invalid"):
            driver.create()

        assert fake_client.count("create") == 0
        assert driver.instance.instance_id is None

    def test_catalog_unavailable_creates_nothing(self, driver_config, fake_client, sessions, key_path) -> None:
        """Test that a failed catalog listing stops before the create call."""
        fake_client.catalog_error = ProviderRequestError("API error 503", status_code=503)

        with pytest.raises(CatalogUnavailableError):
            _driver(driver_config, fake_client, sessions, key_path).create()

        assert fake_client.count("create") == 0

    def test_on_created_before_bootstrap(self, driver_config, fake_client, sessions, key_path) -> None:
        """Test that the callback sees identifier and address before any polling."""
        seen = []

        def on_created(instance: Instance) -> None:
            seen.append((instance.instance_id, instance.ip_address, fake_client.count("get"), sessions.connects))

        _driver(driver_config, fake_client, sessions, key_path, on_created=on_created).create()

        assert seen == [("vps-123", "198.51.100.7", 0, 0)]

    def test_create_failure_leaves_instance_uncreated(
        self, driver_config, fake_client, sessions, key_path
    ) -> None:
        """Test that a failed create call records nothing."""
        fake_client.create_error = ProviderRequestError("API error 500", status_code=500)
        seen = []
        driver = _driver(driver_config, fake_client, sessions, key_path, on_created=seen.append)

        with pytest.raises(ProviderRequestError):
            driver.create()

        assert driver.instance.instance_id is None
        assert seen == []

    def test_create_twice_rejected(self, driver_config, fake_client, sessions, key_path) -> None:
        """Test that an existing instance is not created again."""
        driver = _driver(driver_config, fake_client, sessions, key_path, instance=_created())

        with pytest.raises(ConfigurationError, match="already has instance vps-123"):
            driver.create()

        assert fake_client.calls == []

    def test_unusable_address_stops_before_ssh(self, driver_config, fake_client, sessions, key_path) -> None:
        """Test that a missing or "0" address fails without any SSH login."""
        for address in ["0", ""]:
            fake_client.created.ipv4 = address
            seen = []
            driver = _driver(driver_config, fake_client, sessions, key_path, on_created=seen.append)

            with pytest.raises(AddressNotSetError):
                driver.create()

            assert sessions.logins == []
            assert [instance.instance_id for instance in seen] == ["vps-123"]
            assert driver.instance.ip_address == address
