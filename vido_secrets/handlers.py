"""Structured logging sinks.

Standard ``logging.Handler`` subclasses that render a record together with
its structured attributes (whatever was passed through ``extra=``).

Besides the stdlib handler interface every sink supports:
- ``enabled(level)`` — level gating check
- ``with_attributes(attrs)`` — a copy with attributes bound to every record
- ``with_group(name)`` — a copy nesting later attributes under ``name``

Sinks never alter attribute values; redaction is layered on top by
``vido_secrets.masking.MaskingHandler``.
"""
from __future__ import annotations

import sys
import logging
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any, TextIO, Union

import orjson

Attributes = Union[Mapping[str, Any], Iterable[tuple[str, Any]]]

# Everything a bare LogRecord carries; anything else came in through ``extra``.
RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.NOTSET, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}

_exc_formatter = logging.Formatter()


def extra_attributes(record: logging.LogRecord) -> dict[str, Any]:
    """Return every attribute added to a record, private names included."""
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in RESERVED_ATTRS
    }


def record_attributes(record: logging.LogRecord) -> dict[str, Any]:
    """Return the structured attributes to render, in insertion order."""
    return {
        key: value
        for key, value in extra_attributes(record).items()
        if not key.startswith("_")
    }


def attribute_items(attrs: Attributes) -> list[tuple[str, Any]]:
    if isinstance(attrs, Mapping):
        return list(attrs.items())
    return list(attrs)


def _nest(payload: dict[str, Any], groups: tuple[str, ...]) -> dict[str, Any]:
    target = payload
    for group in groups:
        child = target.get(group)
        if not isinstance(child, dict):
            child = target[group] = {}
        target = child
    return target


class StructuredHandler(logging.Handler):
    """Base class for sinks that emit one line per record to a text stream."""

    def __init__(
        self,
        stream: TextIO | None = None,
        level: int | str = logging.NOTSET,
        *,
        attrs: tuple = (),
        groups: tuple[str, ...] = (),
    ):
        super().__init__(level)
        self.stream = stream if stream is not None else sys.stderr
        self._attrs = tuple(attrs)
        self._groups = tuple(groups)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} ({logging.getLevelName(self.level)})>"

    def enabled(self, level: int) -> bool:
        return level >= self.level

    def with_attributes(self, attrs: Attributes) -> StructuredHandler:
        bound = self._attrs + tuple(
            (self._groups, key, value) for key, value in attribute_items(attrs)
        )
        return self._clone(attrs=bound, groups=self._groups)

    def with_group(self, name: str) -> StructuredHandler:
        if not name:
            return self
        return self._clone(attrs=self._attrs, groups=self._groups + (name,))

    def _clone(self, *, attrs: tuple, groups: tuple[str, ...]) -> StructuredHandler:
        clone = type(self)(self.stream, self.level, attrs=attrs, groups=groups)
        clone.filters = list(self.filters)
        return clone

    def build_payload(self, record: logging.LogRecord) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for groups, key, value in self._attrs:
            _nest(payload, groups)[key] = value
        _nest(payload, self._groups).update(record_attributes(record))
        if record.exc_info:
            payload["exc"] = _exc_formatter.formatException(record.exc_info)
        return payload

    def render(self, payload: dict[str, Any]) -> str:
        raise NotImplementedError

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = self.render(self.build_payload(record))
            self.stream.write(line + "\n")
            self.flush()
        except Exception:
            self.handleError(record)

    def flush(self) -> None:
        self.acquire()
        try:
            if self.stream and hasattr(self.stream, "flush"):
                self.stream.flush()
        finally:
            self.release()


class JSONHandler(StructuredHandler):
    """One JSON object per line, for log collectors."""

    def render(self, payload: dict[str, Any]) -> str:
        return orjson.dumps(
            payload, default=str, option=orjson.OPT_NON_STR_KEYS,
        ).decode("utf-8")


class ConsoleHandler(StructuredHandler):
    """``time LEVEL logger msg key=value ...`` lines, for humans."""

    def render(self, payload: dict[str, Any]) -> str:
        payload = dict(payload)
        head = " ".join(
            str(payload.pop(field))
            for field in ("time", "level", "logger", "msg")
        )
        exc = payload.pop("exc", None)
        pairs = " ".join(f"{key}={value}" for key, value in _flatten(payload))
        line = f"{head} {pairs}" if pairs else head
        return f"{line}\n{exc}" if exc else line


def _flatten(payload: Mapping[str, Any], prefix: str = "") -> Iterable[tuple[str, Any]]:
    for key, value in payload.items():
        name = f"{prefix}{key}"
        if isinstance(value, Mapping):
            yield from _flatten(value, f"{name}.")
        else:
            yield name, value
