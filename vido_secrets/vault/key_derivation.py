"""
Vault Key Derivation — Resolve the input and derive the process key.

Resolution order:
    1. ENCRYPTION_KEY environment variable (``KeySource.ENV_VAR``)
    2. Machine identifier (``KeySource.MACHINE_ID``)

Both go through PBKDF2 (see ``crypto.derive_key_from_string``), so the
resulting key has the same format whatever the source.
"""
import logging
from enum import Enum
from typing import Optional

from ..exceptions import EncryptionKeyNotSet
from .config import ENCRYPTION_KEY_ENV, VaultConfig, get_encryption_key_input
from .crypto import derive_key_from_string
from .machine_id import MachineIdResolver, default_resolver

logger = logging.getLogger("vido_secrets.vault")


class KeySource(str, Enum):
    """Where the encryption key came from. Informational only."""

    ENV_VAR = "env_var"
    MACHINE_ID = "machine_id"


def derive_key_from_env(env_var: str = ENCRYPTION_KEY_ENV) -> bytes:
    """Derive a key from the operator-supplied environment variable.

    Raises:
        EncryptionKeyNotSet: If the variable is unset or empty.
    """
    return derive_key_from_string(get_encryption_key_input(env_var))


def derive_key_from_machine_id(resolver: Optional[MachineIdResolver] = None) -> bytes:
    """Derive a key from this machine's identifier.

    Raises:
        MachineIdentifierNotFound: If no probe produced an identifier.
    """
    resolver = resolver or default_resolver()
    return derive_key_from_string(resolver.resolve())


def derive_key(
    config: Optional[VaultConfig] = None,
    machine_id: Optional[MachineIdResolver] = None,
) -> tuple[bytes, KeySource]:
    """Return the process encryption key, preferring the env var over machine id.

    Args:
        config: Vault configuration (env var name, machine-id file paths).
        machine_id: Resolver to use for the fallback; the platform default
            is built from ``config`` when omitted.

    Returns:
        Tuple of (32-byte key, key source).
    """
    config = config or VaultConfig()
    try:
        key = derive_key_from_env(config.encryption_key_env)
    except EncryptionKeyNotSet:
        logger.warning(
            "%s not set, using machine ID as fallback",
            config.encryption_key_env,
            extra={
                "recommendation": (
                    f"Set {config.encryption_key_env} environment variable "
                    "for better security"
                ),
            },
        )
    else:
        logger.info(
            "Using encryption key from %s environment variable",
            config.encryption_key_env,
        )
        return key, KeySource.ENV_VAR

    resolver = machine_id or default_resolver(paths=config.machine_id_paths)
    return derive_key_from_machine_id(resolver), KeySource.MACHINE_ID
