"""
Vault Configuration — Encryption key input and validated settings.

Reads the operator key-derivation input from:
    ENCRYPTION_KEY = <any non-empty string>

When it is absent the vault derives its key from a machine identifier
(see ``key_derivation``).

Security Note:
    Never log key material. Only log where the key came from.
"""
import os
import logging
import secrets
from collections.abc import Mapping
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ..exceptions import EncryptionKeyNotSet

logger = logging.getLogger("vido_secrets.vault")

ENCRYPTION_KEY_ENV = "ENCRYPTION_KEY"

DEFAULT_MACHINE_ID_PATHS = ("/etc/machine-id", "/var/lib/dbus/machine-id")

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def get_encryption_key_input(
    env_var: str = ENCRYPTION_KEY_ENV,
    environ: Optional[Mapping[str, str]] = None,
) -> str:
    """Read the operator key-derivation input from the environment.

    Args:
        env_var: Name of the environment variable to read.
        environ: Mapping to read from (defaults to ``os.environ``).

    Returns:
        The raw input string.

    Raises:
        EncryptionKeyNotSet: If the variable is unset or empty.
    """
    env = os.environ if environ is None else environ
    value = env.get(env_var, "")
    if not value:
        raise EncryptionKeyNotSet(f"{env_var} environment variable not set")
    return value


def generate_encryption_key() -> str:
    """Generate a random value suitable for ENCRYPTION_KEY.

    This is a utility for operators to provision a key.

    Returns:
        URL-safe text encoding 32 random bytes.
    """
    return secrets.token_urlsafe(32)


class VaultConfig(BaseModel):
    """Validated vault configuration."""

    encryption_key_env: str = Field(default=ENCRYPTION_KEY_ENV, min_length=1)
    machine_id_paths: tuple[str, ...] = DEFAULT_MACHINE_ID_PATHS
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a stdlib level name."""
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"Unsupported log level: {v}")
        return level

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format is supported."""
        fmt = v.lower()
        if fmt not in ("json", "console"):
            raise ValueError(f"Unsupported log format: {v}")
        return fmt

    @property
    def has_encryption_key(self) -> bool:
        """True when the operator key input is present in the environment."""
        return bool(os.environ.get(self.encryption_key_env))

    @classmethod
    def from_env(cls) -> "VaultConfig":
        """Create VaultConfig by loading values from environment.

        Returns:
            Populated VaultConfig instance.
        """
        config = cls(
            log_level=os.environ.get("VIDO_LOG_LEVEL", "INFO"),
            log_format=os.environ.get("VIDO_LOG_FORMAT", "json"),
        )
        logger.debug(
            "Vault config loaded: log_level=%s log_format=%s",
            config.log_level, config.log_format,
        )
        return config
