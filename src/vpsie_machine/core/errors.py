"""Error taxonomy for the VPSie driver.

Every failure surfaced by the driver is a ``DriverError``. The subclasses map
onto the ways a lifecycle call can fail:

- ``ConfigurationError``: bad or missing input, detected before any network call
- ``ProviderRequestError``: the remote call itself failed
- ``UnexpectedStatusError``: the provider answered with a status the action did not expect
- ``BootstrapTimeoutError``: a bootstrap wait-condition exceeded its deadline
- ``AccessError``: an SSH session or command failed
"""

from typing import Any


class DriverError(Exception):
    """Base class for all driver errors."""


class ConfigurationError(DriverError):
    """Raised when required input is missing or invalid."""


class MissingCredentialError(ConfigurationError):
    """Raised when a required credential option is empty.

    Attributes:
        option: Name of the missing option (e.g. ``vpsie-client-id``)
    """

    def __init__(self, option: str) -> None:
        self.option = option
        super().__init__(f"VPSie driver requires the --{option} option")


class InvalidResourceError(ConfigurationError):
    """Raised when an identifier is not present in the provider's catalog.

    Attributes:
        kind: Catalog kind (image, datacenter or offer)
        identifier: The identifier exactly as requested
    """

    def __init__(self, kind: Any, identifier: str) -> None:
        self.kind = kind
        self.identifier = identifier
        label = str(getattr(kind, "value", kind))
        super().__init__(f"{label.capitalize()} ID {identifier} is invalid")


class AddressNotSetError(DriverError):
    """Raised when the instance has no usable public address."""

    def __init__(self) -> None:
        super().__init__("IP address is not set")


class HostNotRunningError(DriverError):
    """Raised when an operation needs a running host.

    Attributes:
        state: The lifecycle state that was observed instead
    """

    def __init__(self, state: Any) -> None:
        self.state = state
        super().__init__(f"Host is not running (state: {getattr(state, 'value', state)})")


class ProviderRequestError(DriverError):
    """Raised when a request to the provider API fails.

    Attributes:
        status_code: HTTP status code, or None for transport failures
        state: Lifecycle state to report for the failed query, set by state readers
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        state: Any = None,
    ) -> None:
        self.status_code = status_code
        self.state = state
        super().__init__(message)


class CatalogUnavailableError(ProviderRequestError):
    """Raised when a catalog listing could not be fetched.

    Attributes:
        kind: Catalog kind that could not be listed
    """

    def __init__(self, kind: Any, cause: ProviderRequestError) -> None:
        self.kind = kind
        super().__init__(
            f"Could not fetch {getattr(kind, 'value', kind)} catalog: {cause}",
            status_code=cause.status_code,
        )


class UnexpectedStatusError(DriverError):
    """Raised when the provider reports a status the action did not expect.

    Attributes:
        action: Lifecycle action that was issued (start, stop, ...)
        expected: Status literal that means success for the action
        actual: Status or error code the provider returned
    """

    def __init__(self, action: str, expected: str, actual: str) -> None:
        self.action = action
        self.expected = expected
        self.actual = actual
        super().__init__(f"Invalid status {actual} after {action} (expected {expected})")


class BootstrapTimeoutError(DriverError):
    """Raised when a bootstrap wait-condition does not pass in time.

    Attributes:
        phase: The bootstrap phase that timed out
        timeout: Deadline in seconds
    """

    def __init__(self, phase: Any, timeout: float) -> None:
        self.phase = phase
        self.timeout = timeout
        label = getattr(phase, "value", phase)
        super().__init__(f"Timed out after {timeout:.0f}s waiting for {label}")


class AccessError(DriverError):
    """Raised when an SSH session or command fails.

    Attributes:
        command: Command being run, empty if the failure happened while connecting
        exit_status: Remote exit status, or None if no status was received
        output: Combined output received before the failure
    """

    def __init__(
        self,
        message: str,
        command: str = "",
        exit_status: int | None = None,
        output: str = "",
    ) -> None:
        self.command = command
        self.exit_status = exit_status
        self.output = output
        super().__init__(message)
