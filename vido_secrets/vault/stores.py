"""
Secret stores — persistence for encrypted secrets.

A store only ever sees base64 text of ``nonce || ciphertext || tag``;
encryption happens in ``SecretsService`` before anything reaches it.

Contract (``SecretStore``):
- ``set(name, encrypted_value)`` — upsert by name (last write wins)
- ``get(name)`` — encrypted value, ``SecretNotFound`` if absent
- ``delete(name)`` — ``SecretNotFound`` if absent
- ``exists(name)`` / ``list()`` — names only, sorted alphabetically
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Protocol

from ..exceptions import SecretNotFound, SecretStoreError
from .models import Secret, SecretInfo

logger = logging.getLogger("vido_secrets.vault")


class SecretStore(Protocol):
    """Persistence collaborator used by ``SecretsService``."""

    async def set(self, name: str, encrypted_value: str) -> None:
        ...

    async def get(self, name: str) -> str:
        ...

    async def delete(self, name: str) -> None:
        ...

    async def exists(self, name: str) -> bool:
        ...

    async def list(self) -> list[str]:
        ...


def _validate_name(name: str) -> None:
    if not name:
        raise SecretStoreError("name cannot be empty")


def _validate_value(encrypted_value: str) -> None:
    if not encrypted_value:
        raise SecretStoreError("encrypted value cannot be empty")


# ---------------------------------------------------------------------------
# In-memory store
# ---------------------------------------------------------------------------

class MemorySecretStore:
    """Dict-backed store for tests and single-process deployments."""

    def __init__(self):
        self._rows: dict[str, Secret] = {}
        self._lock = asyncio.Lock()

    async def set(self, name: str, encrypted_value: str) -> None:
        _validate_name(name)
        _validate_value(encrypted_value)
        async with self._lock:
            current = self._rows.get(name)
            if current is None:
                self._rows[name] = Secret(name=name, encrypted_value=encrypted_value)
            else:
                self._rows[name] = current.model_copy(
                    update={
                        "encrypted_value": encrypted_value,
                        "updated_at": datetime.now(timezone.utc),
                    }
                )

    async def get(self, name: str) -> str:
        return (await self.get_full(name)).encrypted_value

    async def get_full(self, name: str) -> Secret:
        _validate_name(name)
        try:
            return self._rows[name]
        except KeyError:
            raise SecretNotFound(name=name) from None

    async def delete(self, name: str) -> None:
        _validate_name(name)
        async with self._lock:
            if self._rows.pop(name, None) is None:
                raise SecretNotFound(name=name)

    async def exists(self, name: str) -> bool:
        return name in self._rows

    async def list(self) -> list[str]:
        return sorted(self._rows)

    async def list_all(self) -> list[SecretInfo]:
        return [self._rows[name].to_info() for name in sorted(self._rows)]


# ---------------------------------------------------------------------------
# PostgreSQL store
# ---------------------------------------------------------------------------

_CREATE_SCHEMA = """
CREATE SCHEMA IF NOT EXISTS vault;
CREATE TABLE IF NOT EXISTS vault.secrets (
    id TEXT PRIMARY KEY,
    name TEXT UNIQUE NOT NULL,
    encrypted_value TEXT NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
"""

_UPSERT_SECRET = """
INSERT INTO vault.secrets (id, name, encrypted_value)
VALUES ($1, $2, $3)
ON CONFLICT (name)
DO UPDATE SET encrypted_value = EXCLUDED.encrypted_value,
             updated_at = NOW()
"""

_SELECT_SECRET = """
SELECT id, name, encrypted_value, created_at, updated_at
FROM vault.secrets
WHERE name = $1
"""

_DELETE_SECRET = """
DELETE FROM vault.secrets
WHERE name = $1
RETURNING id
"""

_EXISTS_SECRET = """
SELECT EXISTS (SELECT 1 FROM vault.secrets WHERE name = $1)
"""

_SELECT_NAMES = """
SELECT name FROM vault.secrets ORDER BY name
"""

_SELECT_ALL_INFO = """
SELECT id, name, created_at, updated_at
FROM vault.secrets
ORDER BY name
"""


class PostgresSecretStore:
    """Store backed by the ``vault.secrets`` table.

    Args:
        db_pool: asyncpg-compatible connection pool.
    """

    def __init__(self, db_pool: Any):
        self._db = db_pool

    async def create_schema(self) -> None:
        """Create the ``vault`` schema and ``secrets`` table if missing."""
        async with self._db.acquire() as conn:
            await conn.execute(_CREATE_SCHEMA)
        logger.info("Secrets table ready")

    async def set(self, name: str, encrypted_value: str) -> None:
        _validate_name(name)
        _validate_value(encrypted_value)
        async with self._db.acquire() as conn:
            await conn.execute(
                _UPSERT_SECRET, uuid.uuid4().hex, name, encrypted_value,
            )

    async def get(self, name: str) -> str:
        return (await self.get_full(name)).encrypted_value

    async def get_full(self, name: str) -> Secret:
        _validate_name(name)
        async with self._db.acquire() as conn:
            row = await conn.fetchrow(_SELECT_SECRET, name)
        if row is None:
            raise SecretNotFound(name=name)
        return Secret(
            id=row["id"],
            name=row["name"],
            encrypted_value=row["encrypted_value"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    async def delete(self, name: str) -> None:
        _validate_name(name)
        async with self._db.acquire() as conn:
            deleted = await conn.fetchval(_DELETE_SECRET, name)
        if deleted is None:
            raise SecretNotFound(name=name)

    async def exists(self, name: str) -> bool:
        async with self._db.acquire() as conn:
            return bool(await conn.fetchval(_EXISTS_SECRET, name))

    async def list(self) -> list[str]:
        async with self._db.acquire() as conn:
            rows = await conn.fetch(_SELECT_NAMES)
        return [row["name"] for row in rows]

    async def list_all(self) -> list[SecretInfo]:
        async with self._db.acquire() as conn:
            rows = await conn.fetch(_SELECT_ALL_INFO)
        return [
            SecretInfo(
                id=row["id"],
                name=row["name"],
                created_at=row["created_at"],
                updated_at=row["updated_at"],
            )
            for row in rows
        ]
