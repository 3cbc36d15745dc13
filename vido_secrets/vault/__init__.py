"""Vault — Encrypted storage of application secrets.

Security Note (Threat Model):
    Secrets are decrypted in process memory only for the duration of a
    ``retrieve`` call, and the key lives in process memory for the lifetime
    of the ``SecretsService``. A memory dump of the application process
    could expose both. When ENCRYPTION_KEY is not set the key is derived
    from a machine identifier, so anyone who can read that identifier and
    the database can recover the secrets. This is an accepted limitation
    for single-user installs; set ENCRYPTION_KEY everywhere else.
"""

from .secrets_service import SecretsService
from .key_derivation import KeySource, derive_key
from .config import VaultConfig, generate_encryption_key
from .stores import SecretStore, MemorySecretStore, PostgresSecretStore

__all__ = [
    "SecretsService",
    "KeySource",
    "derive_key",
    "VaultConfig",
    "generate_encryption_key",
    "SecretStore",
    "MemorySecretStore",
    "PostgresSecretStore",
]
