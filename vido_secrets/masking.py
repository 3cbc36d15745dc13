"""
Secret masking for safe logging.

``mask_secret`` / ``mask_secret_full`` hide values explicitly;
``MaskingHandler`` wraps any structured sink and masks every attribute
whose name looks sensitive, whether passed per call (``extra=``) or bound
ahead of time (``with_attributes``).

Usage:
    >>> sink = JSONHandler(sys.stdout)
    >>> logger.addHandler(MaskingHandler(sink))
    >>> logger.info("login", extra={"username": "john", "password": "secret123"})
    {"...", "username": "john", "password": "****"}
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from .handlers import Attributes, attribute_items, extra_attributes

NOT_SET = "(not set)"
FULL_MASK = "****"

# Lowercase substrings; a field name containing any of them is sensitive.
SENSITIVE_PATTERNS = frozenset({
    "_key", "secret", "password", "token", "credential",
    "api_key", "apikey", "auth", "encryption",
})


def mask_secret(value: str) -> str:
    """Show only the first and last 4 characters of a secret.

    ``""`` gives ``"(not set)"`` and values of 8 characters or fewer are
    masked completely.
    """
    if not value:
        return NOT_SET
    if len(value) <= 8:
        return FULL_MASK
    return value[:4] + FULL_MASK + value[-4:]


def mask_secret_full(value: str) -> str:
    """Mask a secret completely, ``"(not set)"`` for an empty value."""
    if not value:
        return NOT_SET
    return FULL_MASK


def is_sensitive_field(name: str) -> bool:
    """True if the field name contains a sensitive pattern (case-insensitive)."""
    lower = name.lower()
    return any(pattern in lower for pattern in SENSITIVE_PATTERNS)


def mask_attribute(key: str, value: Any) -> Any:
    """Return the value to log for attribute ``key``.

    Strings under a sensitive key are partially masked, anything else under
    a sensitive key is replaced by ``"****"``. Mappings under other keys are
    masked recursively.
    """
    if is_sensitive_field(str(key)):
        if isinstance(value, str):
            return mask_secret(value)
        return FULL_MASK
    if isinstance(value, Mapping):
        return {k: mask_attribute(k, v) for k, v in value.items()}
    return value


class MaskingHandler:
    """Decorator over a structured sink that masks sensitive attributes.

    Holds a reference to the inner sink rather than extending it, so it can
    be layered with other wrappers. Level gating is always the inner
    sink's: ``level``, ``setLevel`` and ``enabled`` delegate unchanged.
    It can be attached to a ``logging.Logger`` like any handler.
    """

    def __init__(self, inner: Any):
        self.inner = inner

    def __repr__(self) -> str:
        return f"<MaskingHandler {self.inner!r}>"

    @property
    def level(self) -> int:
        return self.inner.level

    def setLevel(self, level: int | str) -> None:
        self.inner.setLevel(level)

    def enabled(self, level: int) -> bool:
        check = getattr(self.inner, "enabled", None)
        if check is not None:
            return check(level)
        return level >= self.inner.level

    def handle(self, record: logging.LogRecord) -> Any:
        return self.inner.handle(self.mask_record(record))

    def mask_record(self, record: logging.LogRecord) -> logging.LogRecord:
        """Return a copy of ``record`` with sensitive attributes masked.

        The original record is left untouched for other handlers. Private
        (underscore) attributes are masked as well.
        """
        masked = logging.makeLogRecord(record.__dict__)
        for key, value in extra_attributes(record).items():
            masked.__dict__[key] = mask_attribute(key, value)
        return masked

    def with_attributes(self, attrs: Attributes) -> MaskingHandler:
        masked = [
            (key, mask_attribute(key, value))
            for key, value in attribute_items(attrs)
        ]
        return MaskingHandler(self.inner.with_attributes(masked))

    def with_group(self, name: str) -> MaskingHandler:
        return MaskingHandler(self.inner.with_group(name))

    def flush(self) -> None:
        self.inner.flush()

    def close(self) -> None:
        self.inner.close()
