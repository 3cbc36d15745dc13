"""
Vault exceptions.

Every error raised by the vault derives from ``VaultError`` and from the
builtin closest to its meaning, so callers can catch either.

Security Note:
    ``DecryptionFailed`` is raised for both a wrong key and tampered data.
    Do not add detail that tells the two apart.
"""
from typing import Optional


class VaultError(Exception):
    """Base class for vault errors.

    Carries optional call-site context (``operation`` and secret ``name``)
    that is prefixed to the message.
    """

    default_message = "vault error"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        operation: Optional[str] = None,
        name: Optional[str] = None,
    ):
        self.message = message or self.default_message
        self.operation = operation
        self.name = name
        super().__init__(self._format())

    def _format(self) -> str:
        if self.operation and self.name is not None:
            return f"{self.operation} {self.name!r}: {self.message}"
        if self.operation:
            return f"{self.operation}: {self.message}"
        if self.name is not None:
            return f"{self.message}: {self.name!r}"
        return self.message

    def with_context(self, operation: str, name: Optional[str] = None) -> "VaultError":
        """Return a copy of this error (same class) tagged with call-site context."""
        return type(self)(self.message, operation=operation, name=name)


class InvalidKeySize(VaultError, ValueError):
    default_message = "invalid key size: must be 32 bytes for AES-256"


class CiphertextTooShort(VaultError, ValueError):
    default_message = "ciphertext too short"


class DecryptionFailed(VaultError):
    default_message = "decryption failed: authentication error"


class EncryptionKeyNotSet(VaultError, RuntimeError):
    default_message = "ENCRYPTION_KEY environment variable not set"


class MachineIdentifierNotFound(VaultError, RuntimeError):
    default_message = "machine ID not found"


class SecretNotFound(VaultError, LookupError):
    default_message = "secret not found"


class InvalidEncryptedData(VaultError, ValueError):
    default_message = "invalid encrypted data"


class SecretStoreError(VaultError):
    """The persistence collaborator rejected or failed an operation."""
    default_message = "secret store error"
