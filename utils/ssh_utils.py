"""SSH utilities for credential resolution and connection handling."""
import io
import os
from typing import Optional

import paramiko

from core.exceptions import CredentialUnreadable, NoCredentialConfigured, RemoteConnectionError
from core.models import ConnectionConfig, Credential, Password, PrivateKey


def load_ssh_private_key(key_material: str, passphrase: Optional[str] = None,
                         source: str = '<memory>') -> paramiko.PKey:
    """
    Parse SSH private key material with support for multiple key types.
    Tries Ed25519, RSA and ECDSA key types in order.

    Args:
        key_material: Private key text (PEM / OpenSSH format)
        passphrase: Optional passphrase for encrypted keys
        source: Where the material came from, used in error messages

    Returns:
        Loaded private key

    Raises:
        CredentialUnreadable: If key cannot be loaded with any supported type
    """
    passphrase = passphrase if passphrase else None

    key_types = [
        ('Ed25519', paramiko.Ed25519Key),
        ('RSA', paramiko.RSAKey),
        ('ECDSA', paramiko.ECDSAKey),
    ]

    last_error = None
    for key_name, key_class in key_types:
        try:
            return key_class.from_private_key(io.StringIO(key_material), password=passphrase)
        except (paramiko.SSHException, ValueError) as e:
            last_error = e
            continue

    raise CredentialUnreadable(f"Failed to load private key from {source}. Last error: {last_error}")


def resolve_credential(config: ConnectionConfig) -> Credential:
    """
    Resolve the credential for a server once, at construction time.

    A non-empty key_path wins over a password.

    Raises:
        CredentialUnreadable: If the key file is missing, unreadable or invalid
        NoCredentialConfigured: If neither key_path nor password is set
    """
    if config.key_path:
        key_path = os.path.expanduser(config.key_path)
        try:
            with open(key_path, 'r') as f:
                key_material = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise CredentialUnreadable(
                f"SSH key file not found or unreadable at {config.key_path} for server {config.name}: {e}"
            )
        pkey = load_ssh_private_key(key_material, config.passphrase, source=config.key_path)
        return PrivateKey(path=config.key_path, pkey=pkey)

    if config.password:
        return Password(config.password)

    raise NoCredentialConfigured(f"No SSH password or key_path configured for server {config.name}")


def open_ssh_client(config: ConnectionConfig, credential: Credential,
                    connect_timeout: float = 30) -> paramiko.SSHClient:
    """
    Open an authenticated SSH client for a server.

    Raises:
        RemoteConnectionError: If connecting or authenticating fails
    """
    client = paramiko.SSHClient()
    client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

    auth = {'pkey': credential.pkey} if isinstance(credential, PrivateKey) else {'password': credential.value}

    try:
        client.connect(
            hostname=config.host,
            port=config.port,
            username=config.username,
            timeout=connect_timeout,
            banner_timeout=60,
            look_for_keys=False,
            allow_agent=False,
            **auth
        )
    except (paramiko.SSHException, OSError) as e:
        client.close()
        raise RemoteConnectionError(f"SSH login failed for server {config.name} ({config.host}:{config.port}): {e}")

    return client
