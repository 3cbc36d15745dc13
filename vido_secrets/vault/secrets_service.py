"""
SecretsService — Encrypted storage of named application secrets.

Provides the public API of the vault:
- ``store(name, value)`` — encrypt and persist a secret (upsert)
- ``retrieve(name)`` — load and decrypt a secret
- ``delete(name)`` — remove a secret
- ``exists(name)`` / ``list()`` — check and enumerate secret names

The key is fixed for the lifetime of the service, either injected or
derived once at construction (``with_key_derivation``). Nothing decrypted
is cached: every ``retrieve`` decrypts the persisted blob again.

Security Note:
    Never log plaintext or ciphertext values. Values are only logged through
    ``mask_secret``; names and operations are logged as is.
"""
from __future__ import annotations

import base64
import binascii
import logging
from typing import Optional

from ..exceptions import (
    InvalidEncryptedData,
    InvalidKeySize,
    SecretNotFound,
    SecretStoreError,
    VaultError,
)
from ..masking import mask_secret
from .config import VaultConfig
from .crypto import KEY_LENGTH, decrypt, encrypt
from .key_derivation import KeySource, derive_key
from .machine_id import MachineIdResolver
from .stores import SecretStore

logger = logging.getLogger("vido_secrets.vault")


class SecretsService:
    """Encrypts secrets before they reach the store, decrypts them on the way out.

    Stored value: base64 text of ``nonce (12B) || ciphertext || tag (16B)``,
    AES-256-GCM under the service key.

    Args:
        store: Persistence collaborator (see ``stores.SecretStore``).
        key: Raw 32-byte encryption key.
        key_source: How the key was obtained, for observability only.

    Raises:
        InvalidKeySize: If key is not exactly 32 bytes.
    """

    def __init__(
        self,
        store: SecretStore,
        key: bytes,
        *,
        key_source: Optional[KeySource] = None,
    ):
        if len(key) != KEY_LENGTH:
            raise InvalidKeySize(
                f"invalid key size: must be {KEY_LENGTH} bytes for AES-256, "
                f"got {len(key)}"
            )
        self._store = store
        self._key = bytes(key)
        self._key_source = key_source

    def __repr__(self) -> str:
        source = self._key_source.value if self._key_source else "explicit"
        return f"<SecretsService store={type(self._store).__name__} key_source={source}>"

    @property
    def key_source(self) -> Optional[KeySource]:
        return self._key_source

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @classmethod
    def with_key_derivation(
        cls,
        store: SecretStore,
        config: Optional[VaultConfig] = None,
        machine_id: Optional[MachineIdResolver] = None,
    ) -> SecretsService:
        """Create a service whose key comes from ENCRYPTION_KEY or the machine id.

        Raises:
            MachineIdentifierNotFound: If no key input could be found at all.
        """
        try:
            key, source = derive_key(config, machine_id)
        except VaultError as err:
            raise err.with_context("derive encryption key") from err
        logger.info(
            "Secrets service initialized", extra={"key_source": source.value},
        )
        return cls(store, key, key_source=source)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def store(self, name: str, value: str) -> None:
        """Encrypt and persist a secret, replacing any previous value.

        Raises:
            SecretStoreError: If the store rejects or fails the write.
        """
        try:
            blob = encrypt(value.encode("utf-8"), self._key)
        except VaultError as err:
            raise err.with_context("encrypt", name) from err

        encoded = base64.b64encode(blob).decode("ascii")
        await self._call_store("store", name, self._store.set(name, encoded))
        logger.info(
            "Stored secret", extra={"entry": name, "value": mask_secret(value)},
        )

    async def retrieve(self, name: str) -> str:
        """Load and decrypt a secret.

        Raises:
            SecretNotFound: If no secret with this name exists.
            InvalidEncryptedData: If the stored value is not valid base64
                or does not decrypt to UTF-8 text.
            DecryptionFailed: If the stored value was not produced under
                this key or was modified.
        """
        logger.debug("Retrieving secret", extra={"entry": name})
        encoded = await self._call_store("retrieve", name, self._store.get(name))

        try:
            blob = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as err:
            raise InvalidEncryptedData(
                f"invalid encrypted data: base64 decode failed: {err}",
                operation="retrieve",
                name=name,
            ) from err

        try:
            plaintext = decrypt(blob, self._key)
        except VaultError as err:
            raise err.with_context("decrypt", name) from err
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as err:
            raise InvalidEncryptedData(
                "invalid encrypted data: plaintext is not UTF-8",
                operation="retrieve",
                name=name,
            ) from err

    async def delete(self, name: str) -> None:
        """Remove a secret.

        Raises:
            SecretNotFound: If no secret with this name exists.
        """
        logger.info("Deleting secret", extra={"entry": name})
        await self._call_store("delete", name, self._store.delete(name))

    async def exists(self, name: str) -> bool:
        return await self._call_store("exists", name, self._store.exists(name))

    async def list(self) -> list[str]:
        """Return the names of all stored secrets, never their values."""
        return await self._call_store("list", None, self._store.list())

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _call_store(self, operation: str, name: Optional[str], call):
        """Await a store call, attaching operation context to its failures."""
        try:
            return await call
        except SecretNotFound:
            raise
        except VaultError as err:
            raise err.with_context(operation, name) from err
        except Exception as err:
            raise SecretStoreError(
                f"secret store failed: {err}", operation=operation, name=name,
            ) from err
