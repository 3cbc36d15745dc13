"""Shared fixtures for the vault test suite."""
import io
import os
import logging
from contextlib import asynccontextmanager

import pytest

from vido_secrets.handlers import JSONHandler
from vido_secrets.masking import MaskingHandler
from vido_secrets.vault.stores import MemorySecretStore
from vido_secrets.vault.secrets_service import SecretsService


class FakeConnection:
    """Tiny in-memory stand-in for an asyncpg connection on vault.secrets."""

    def __init__(self, rows: dict):
        self.rows = rows
        self.queries = []

    async def execute(self, query, *args):
        self.queries.append((query, args))
        if "INSERT INTO vault.secrets" in query:
            row_id, name, value = args
            current = self.rows.get(name)
            if current is None:
                self.rows[name] = {
                    "id": row_id,
                    "name": name,
                    "encrypted_value": value,
                    "created_at": "2024-05-01T10:00:00+00:00",
                    "updated_at": "2024-05-01T10:00:00+00:00",
                }
            else:
                current["encrypted_value"] = value
                current["updated_at"] = "2024-05-02T10:00:00+00:00"
        return "OK"

    async def fetchrow(self, query, *args):
        self.queries.append((query, args))
        return self.rows.get(args[0])

    async def fetchval(self, query, *args):
        self.queries.append((query, args))
        if query.lstrip().startswith("DELETE"):
            row = self.rows.pop(args[0], None)
            return row["id"] if row else None
        if "EXISTS" in query:
            return args[0] in self.rows
        raise AssertionError(f"unexpected query: {query}")

    async def fetch(self, query, *args):
        self.queries.append((query, args))
        return [self.rows[name] for name in sorted(self.rows)]


class FakePool:
    """asyncpg-style pool handing out a single FakeConnection."""

    def __init__(self):
        self.rows = {}
        self.conn = FakeConnection(self.rows)

    @asynccontextmanager
    async def acquire(self):
        yield self.conn


@pytest.fixture
def key():
    """A random 32-byte key."""
    return os.urandom(32)


@pytest.fixture
def store():
    return MemorySecretStore()


@pytest.fixture
def service(store, key):
    return SecretsService(store, key)


@pytest.fixture
def pool():
    return FakePool()


@pytest.fixture
def no_encryption_key(monkeypatch):
    """Make sure ENCRYPTION_KEY is not inherited from the developer shell."""
    monkeypatch.delenv("ENCRYPTION_KEY", raising=False)


@pytest.fixture
def log_stream():
    return io.StringIO()


@pytest.fixture
def masked_logger(log_stream):
    """A logger writing JSON lines through a MaskingHandler into log_stream."""
    logger = logging.getLogger("vido_secrets.tests.masked")
    logger.handlers.clear()
    logger.propagate = False
    logger.setLevel(logging.DEBUG)
    logger.addHandler(MaskingHandler(JSONHandler(log_stream)))
    yield logger
    logger.handlers.clear()
