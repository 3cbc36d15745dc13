"""Vido Secrets.

Keeps third-party API keys and tokens encrypted at rest and masked in logs.
"""
from .version import __version__
from .exceptions import (
    VaultError,
    InvalidKeySize,
    CiphertextTooShort,
    DecryptionFailed,
    EncryptionKeyNotSet,
    MachineIdentifierNotFound,
    SecretNotFound,
    InvalidEncryptedData,
    SecretStoreError,
)
from .masking import MaskingHandler, mask_secret, mask_secret_full, is_sensitive_field
from .logging_hardening import setup_logging
from .vault import SecretsService, KeySource, VaultConfig

__all__ = [
    "__version__",
    "VaultError",
    "InvalidKeySize",
    "CiphertextTooShort",
    "DecryptionFailed",
    "EncryptionKeyNotSet",
    "MachineIdentifierNotFound",
    "SecretNotFound",
    "InvalidEncryptedData",
    "SecretStoreError",
    "MaskingHandler",
    "mask_secret",
    "mask_secret_full",
    "is_sensitive_field",
    "setup_logging",
    "SecretsService",
    "KeySource",
    "VaultConfig",
]
