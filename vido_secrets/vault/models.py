"""Secret record models.

``Secret`` is the persisted row; ``encrypted_value`` holds base64 text of
``nonce || ciphertext || tag`` and is never serialized.
``SecretInfo`` is the metadata-only view used for listings.
"""
import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SecretInfo(BaseModel):
    """Secret metadata without the encrypted value."""

    id: str
    name: str
    created_at: datetime
    updated_at: datetime


class Secret(BaseModel):
    """An encrypted secret as stored by a secret store."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    name: str = Field(min_length=1)
    encrypted_value: str = Field(exclude=True, repr=False)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    def to_info(self) -> SecretInfo:
        return SecretInfo(
            id=self.id,
            name=self.name,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
