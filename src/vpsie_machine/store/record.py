"""On-disk machine records."""

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from vpsie_machine.config.models import DriverConfig
from vpsie_machine.core.logging import get_logger
from vpsie_machine.driver.models import Instance

logger = get_logger(__name__)

DEFAULT_STORE_PATH = Path.home() / ".vpsie-machine"

RECORD_FILE = "vpsie.yaml"
KEY_FILE = "id_rsa"


class MachineRecord(BaseModel):
    """Persisted state of one machine."""

    model_config = {"populate_by_name": True}

    machine_name: str = Field(alias="machine-name")
    instance_id: str | None = Field(None, alias="instance-id")
    ip_address: str | None = Field(None, alias="ip-address")
    config: DriverConfig = Field(default_factory=DriverConfig)

    @staticmethod
    def from_instance(instance: Instance, config: DriverConfig) -> "MachineRecord":
        """Build a record from a driver instance.

        Args:
            instance: The managed instance
            config: Driver configuration in effect

        Returns:
            MachineRecord
        """
        return MachineRecord(
            machine_name=instance.machine_name,
            instance_id=instance.instance_id,
            ip_address=instance.ip_address,
            config=config,
        )

    def to_instance(self) -> Instance:
        """Rebuild the driver instance from this record."""
        return Instance(
            machine_name=self.machine_name,
            instance_id=self.instance_id,
            ip_address=self.ip_address,
        )


class MachineStore:
    """Directory of machine records and key pairs.

    Each machine gets ``<root>/machines/<name>/`` holding its YAML record and
    SSH key pair.
    """

    def __init__(self, root: Path = DEFAULT_STORE_PATH) -> None:
        """Initialize the store.

        Args:
            root: Store root directory
        """
        self.root = root

    def machine_dir(self, name: str) -> Path:
        """Get a machine's directory.

        Raises:
            ValueError: If the name is not a plain path component
        """
        if not name or name in (".", "..") or "/" in name or os.sep in name:
            raise ValueError(f"Invalid machine name: {name!r}")
        return self.root / "machines" / name

    def key_path(self, name: str) -> Path:
        """Get a machine's private key path."""
        return self.machine_dir(name) / KEY_FILE

    def exists(self, name: str) -> bool:
        """Check whether a machine has a record."""
        return (self.machine_dir(name) / RECORD_FILE).exists()

    def save(self, record: MachineRecord) -> None:
        """Write a machine record.

        The record includes API credentials, so the file is readable by the
        owner only.

        Args:
            record: Record to write

        Raises:
            OSError: If the record cannot be written
        """
        directory = self.machine_dir(record.machine_name)
        directory.mkdir(parents=True, exist_ok=True)

        data = record.model_dump(mode="json", by_alias=True)
        contents = yaml.safe_dump(data, default_flow_style=False)

        path = directory / RECORD_FILE
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w") as f:
            f.write(contents)
        # os.open only applies the mode when it creates the file
        os.chmod(path, 0o600)

        logger.debug("Saved machine record", path=str(path))

    def load(self, name: str) -> MachineRecord:
        """Read a machine record.

        Args:
            name: Machine name

        Returns:
            MachineRecord

        Raises:
            FileNotFoundError: If the machine has no record
            ValueError: If the record is not valid
        """
        path = self.machine_dir(name) / RECORD_FILE
        if not path.exists():
            raise FileNotFoundError(f"Machine {name} does not exist")

        with path.open("r") as f:
            data = yaml.safe_load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Machine record {path} must contain a YAML mapping")

        logger.debug("Loaded machine record", path=str(path))
        return MachineRecord.model_validate(data)

    def delete(self, name: str) -> None:
        """Remove a machine's record, keeping its key pair.

        Args:
            name: Machine name
        """
        path = self.machine_dir(name) / RECORD_FILE
        if path.exists():
            path.unlink()
            logger.debug("Removed machine record", path=str(path))

