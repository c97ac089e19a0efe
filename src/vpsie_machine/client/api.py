"""VPSie HTTP API client."""

import time
from collections.abc import Callable
from typing import Any

import httpx
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from vpsie_machine.client.models import ActionStatus, CatalogEntry, CreateVPSieRequest, VPSie
from vpsie_machine.config.models import DEFAULT_API_URL
from vpsie_machine.core.errors import ProviderRequestError
from vpsie_machine.core.logging import get_logger

logger = get_logger(__name__)


class VPSieClient:
    """Client for the VPSie REST API.

    Authenticates with OAuth2 client credentials on first use and reuses the
    access token for the lifetime of the client. Transport failures (connection
    refused, resets, timeouts) are retried with exponential backoff; HTTP error
    responses are not.

    Example:
        with VPSieClient(client_id, client_secret) as client:
            images = client.get_images()
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        base_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        max_attempts: int = 3,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the client.

        Args:
            client_id: API client identifier
            client_secret: API client secret
            base_url: API base URL
            timeout: Per-request timeout in seconds
            max_attempts: Attempts per request before a transport failure is reported
            transport: Optional httpx transport (used by tests)
            sleep: Sleep function used between retries
        """
        self._client_id = client_id
        self._client_secret = client_secret
        self._max_attempts = max_attempts
        self._sleep = sleep
        self._access_token: str | None = None
        self._http = httpx.Client(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    def __enter__(self) -> "VPSieClient":
        return self

    def __exit__(self, *_: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying connection pool."""
        self._http.close()

    # Instances

    def create_vpsie(self, request: CreateVPSieRequest) -> VPSie:
        """Create a VPS.

        Args:
            request: Creation parameters

        Returns:
            The created VPS, including its initial password

        Raises:
            ProviderRequestError: If the request fails or the response is malformed
        """
        data = self._request("POST", "/vpsie", json=request.to_payload())
        return self._parse_vpsie(data)

    def get_vpsie(self, instance_id: str) -> VPSie:
        """Fetch a VPS by identifier."""
        data = self._request("GET", f"/vpsie/{instance_id}")
        return self._parse_vpsie(data)

    def start_vpsie(self, instance_id: str) -> str:
        """Start a VPS and return the reported status."""
        return self._status(self._request("POST", f"/vpsie/{instance_id}/start"))

    def restart_vpsie(self, instance_id: str) -> str:
        """Restart a VPS and return the reported status."""
        return self._status(self._request("POST", f"/vpsie/{instance_id}/restart"))

    def shutdown_vpsie(self, instance_id: str) -> ActionStatus:
        """Shut a VPS down and return the action status."""
        data = self._request("POST", f"/vpsie/{instance_id}/shutdown")
        if not isinstance(data, dict):
            raise ProviderRequestError(f"Unexpected shutdown response: {data!r}")
        return ActionStatus.from_dict(data)

    def delete_vpsie(self, instance_id: str) -> str:
        """Delete a VPS and return the reported status."""
        return self._status(self._request("DELETE", f"/vpsie/{instance_id}"))

    # Catalogs

    def get_images(self) -> list[CatalogEntry]:
        """List available images."""
        return self._catalog("/images")

    def get_offers(self) -> list[CatalogEntry]:
        """List available offers."""
        return self._catalog("/offers")

    def get_datacenters(self) -> list[CatalogEntry]:
        """List available datacenters."""
        return self._catalog("/datacenters")

    # Internals

    def _catalog(self, path: str) -> list[CatalogEntry]:
        data = self._request("GET", path)
        # Listings come either bare or wrapped in a "data" envelope
        if isinstance(data, dict):
            data = data.get("data", [])
        if not isinstance(data, list):
            raise ProviderRequestError(f"Unexpected catalog response from {path}: {data!r}")
        return [CatalogEntry.from_dict(item) for item in data if isinstance(item, dict)]

    def _parse_vpsie(self, data: Any) -> VPSie:
        if not isinstance(data, dict):
            raise ProviderRequestError(f"Unexpected VPSie response: {data!r}")
        try:
            return VPSie.from_dict(data)
        except ValueError as e:
            raise ProviderRequestError(str(e)) from e

    def _status(self, data: Any) -> str:
        if isinstance(data, dict):
            return str(data.get("status") or "")
        if isinstance(data, str):
            return data
        raise ProviderRequestError(f"Unexpected status response: {data!r}")

    def _authenticate(self) -> str:
        """Fetch an access token with the client credentials.

        Returns:
            Access token

        Raises:
            ProviderRequestError: If authentication fails
        """
        logger.debug("Requesting VPSie access token", client_id=self._client_id)

        response = self._send(
            "POST",
            "/token",
            data={
                "grant_type": "client_credentials",
                "client_id": self._client_id,
                "client_secret": self._client_secret,
            },
        )
        try:
            data = response.json() if response.content else None
        except ValueError as e:
            raise ProviderRequestError(
                f"Invalid JSON from POST /token: {response.text[:200]}",
                status_code=response.status_code,
            ) from e

        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            raise ProviderRequestError("Authentication response did not include an access token")
        return str(token)

    def _request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
    ) -> Any:
        """Execute an authenticated request and return the decoded body.

        Args:
            method: HTTP method
            path: Path relative to the API base URL
            json: Optional JSON body

        Returns:
            Decoded JSON body, or None for an empty response

        Raises:
            ProviderRequestError: If the request fails
        """
        fresh_token = self._access_token is None
        if self._access_token is None:
            self._access_token = self._authenticate()

        try:
            response = self._send(
                method,
                path,
                json=json,
                headers={"Authorization": f"Bearer {self._access_token}"},
            )
        except ProviderRequestError as e:
            # A reused token may have expired; authenticate again once
            if e.status_code != 401 or fresh_token:
                raise
            logger.debug("Access token rejected, re-authenticating")
            self._access_token = self._authenticate()
            response = self._send(
                method,
                path,
                json=json,
                headers={"Authorization": f"Bearer {self._access_token}"},
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ProviderRequestError(
                f"Invalid JSON from {method} {path}: {response.text[:200]}",
                status_code=response.status_code,
            ) from e

    def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send a request, retrying transport failures.

        Raises:
            ProviderRequestError: On an HTTP error status or persistent transport failure
        """
        try:
            for attempt in Retrying(
                wait=wait_exponential(multiplier=1, min=1, max=10),
                stop=stop_after_attempt(self._max_attempts),
                retry=retry_if_exception_type(httpx.TransportError),
                sleep=self._sleep,
                reraise=True,
            ):
                with attempt:
                    logger.debug("VPSie API request", method=method, path=path)
                    response = self._http.request(method, path, **kwargs)
                    response.raise_for_status()
                    return response
        except httpx.HTTPStatusError as e:
            raise ProviderRequestError(
                f"API error {e.response.status_code} on {method} {path}: {e.response.text}",
                status_code=e.response.status_code,
            ) from e
        except httpx.TransportError as e:
            raise ProviderRequestError(f"Request {method} {path} failed: {e}") from e

        # Unreachable with reraise=True
        raise RuntimeError("Unexpected retry error")
