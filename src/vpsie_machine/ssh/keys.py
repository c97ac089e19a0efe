"""SSH key-pair management for managed machines."""

import os
from pathlib import Path

import paramiko

from vpsie_machine.core.logging import get_logger

logger = get_logger(__name__)

KEY_BITS = 2048


def public_key_path(private_path: Path) -> Path:
    """Get the public key path that belongs to a private key.

    Args:
        private_path: Path to the private key

    Returns:
        Path with a ``.pub`` suffix appended
    """
    return private_path.with_name(private_path.name + ".pub")


def ensure_key_pair(private_path: Path) -> str:
    """Generate an RSA key pair unless one already exists, and return the public key.

    An existing private key is reused; its public half is rewritten if missing.

    Args:
        private_path: Where the private key lives (the public key goes next to it)

    Returns:
        Public key in OpenSSH ``authorized_keys`` format

    Raises:
        OSError: If the key files cannot be read or written
        paramiko.SSHException: If an existing private key cannot be parsed
    """
    pub_path = public_key_path(private_path)

    if private_path.exists() and pub_path.exists():
        logger.debug("Reusing SSH key pair", path=str(private_path))
        return pub_path.read_text().strip()

    private_path.parent.mkdir(parents=True, exist_ok=True)

    if private_path.exists():
        key = paramiko.RSAKey.from_private_key_file(str(private_path))
    else:
        logger.info("Generating SSH key pair", path=str(private_path))
        key = paramiko.RSAKey.generate(bits=KEY_BITS)
        key.write_private_key_file(str(private_path))
        os.chmod(private_path, 0o600)

    public_key = f"{key.get_name()} {key.get_base64()}"
    pub_path.write_text(public_key + "\n")

    return public_key
