"""Password-authenticated SSH sessions used during bootstrap."""

import socket
from typing import Any, Protocol, runtime_checkable

import paramiko

from vpsie_machine.core.errors import AccessError
from vpsie_machine.core.logging import get_logger

logger = get_logger(__name__)


@runtime_checkable
class SSHSession(Protocol):
    """An open SSH session that can run commands."""

    def output(self, command: str) -> str:
        """Run a command and return its output.

        Raises:
            AccessError: If the command cannot be run or exits non-zero
        """
        ...

    def close(self) -> None:
        """Close the session."""
        ...


class SessionFactory(Protocol):
    """Callable that opens an SSH session with password authentication."""

    def __call__(self, host: str, port: int, username: str, password: str) -> SSHSession:
        """Open a session.

        Raises:
            AccessError: If the connection or authentication fails
        """
        ...


class PasswordSession:
    """SSH session authenticated with a password only.

    Keys and agents are deliberately not consulted: the session exists to
    install the first key on a fresh machine.
    """

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        timeout: float = 10.0,
    ) -> None:
        """Connect to the host.

        Args:
            host: Hostname or IP address
            port: SSH port
            username: Login user
            password: Login password
            timeout: Connect and command timeout in seconds

        Raises:
            AccessError: If the connection or authentication fails
        """
        self._host = host
        self._timeout = timeout
        self._client = paramiko.SSHClient()
        # Fresh machines have no known host key yet
        self._client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

        logger.debug("SSH connecting", host=host, port=port, user=username)
        try:
            self._client.connect(
                hostname=host,
                port=port,
                username=username,
                password=password,
                timeout=timeout,
                banner_timeout=timeout,
                auth_timeout=timeout,
                look_for_keys=False,
                allow_agent=False,
            )
        except (paramiko.SSHException, OSError) as e:
            self._client.close()
            raise AccessError(f"SSH connection to {host}:{port} failed: {e}") from e

    def __enter__(self) -> "PasswordSession":
        return self

    def __exit__(self, *_: Any) -> None:
        self.close()

    def output(self, command: str) -> str:
        """Run a command and return its combined output.

        Args:
            command: Shell command to run

        Returns:
            Command stdout and stderr

        Raises:
            AccessError: If the command cannot be run or exits non-zero
        """
        try:
            _, stdout, stderr = self._client.exec_command(command, timeout=self._timeout)
            # Drain both streams first; a full channel window blocks the exit status
            output = stdout.read().decode("utf-8", errors="replace")
            output += stderr.read().decode("utf-8", errors="replace")
            exit_status = stdout.channel.recv_exit_status()
        except (paramiko.SSHException, socket.timeout, OSError) as e:
            raise AccessError(
                f"SSH command on {self._host} failed: {e}", command=command
            ) from e

        logger.debug("SSH command output", host=self._host, exit_status=exit_status, output=output)

        if exit_status != 0:
            raise AccessError(
                f"SSH command on {self._host} exited with status {exit_status}",
                command=command,
                exit_status=exit_status,
                output=output,
            )
        return output

    def close(self) -> None:
        """Close the session."""
        self._client.close()


def open_password_session(host: str, port: int, username: str, password: str) -> PasswordSession:
    """Default ``SessionFactory``: open a ``PasswordSession``."""
    return PasswordSession(host, port, username, password)
