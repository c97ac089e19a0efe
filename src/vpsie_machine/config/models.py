"""Configuration models for the VPSie driver using Pydantic."""

from pydantic import BaseModel, Field

DEFAULT_OFFER_ID = "9a0e49c6-9f22-11e3-8af5-005056aa8af7"
DEFAULT_DATACENTER_ID = "55f06b85-c9ee-11e3-9845-005056aa8af7"
DEFAULT_IMAGE_ID = "75401d7d-d9d3-11e3-b135-005056aa8af7"
DEFAULT_API_URL = "https://api.vpsie.com/v1"

SSH_USER = "root"
SSH_PORT = 22
DOCKER_PORT = 2376


class ConfigOverrides(BaseModel):
    """CLI flag and environment variable overrides for configuration."""

    client_id: str = ""
    client_secret: str = ""
    image_id: str = ""
    offer_id: str = ""
    datacenter_id: str = ""


class DriverConfig(BaseModel):
    """Configuration for one VPSie-managed machine."""

    model_config = {"populate_by_name": True}

    client_id: str = Field("", alias="client-id")
    client_secret: str = Field("", alias="client-secret")

    image_id: str = Field(DEFAULT_IMAGE_ID, alias="image-id")
    offer_id: str = Field(DEFAULT_OFFER_ID, alias="offer-id")
    datacenter_id: str = Field(DEFAULT_DATACENTER_ID, alias="datacenter-id")

    api_url: str = Field(DEFAULT_API_URL, alias="api-url")
    request_timeout: float = Field(30.0, alias="request-timeout", gt=0)

    ssh_user: str = Field(SSH_USER, alias="ssh-user")
    ssh_port: int = Field(SSH_PORT, alias="ssh-port", gt=0, lt=65536)
    docker_port: int = Field(DOCKER_PORT, alias="docker-port", gt=0, lt=65536)

    # Bootstrap polling, applied to each wait phase separately
    wait_interval: float = Field(3.0, alias="wait-interval", gt=0)
    wait_timeout: float = Field(180.0, alias="wait-timeout", gt=0)
