"""Logging setup with secret masking.

Installs a structured sink, wrapped in ``MaskingHandler``, on the package
logger so nothing logged by ``vido_secrets`` (or by the application through
the same logger tree) can carry a raw credential.
"""
import logging
from typing import Optional, TextIO

from .handlers import ConsoleHandler, JSONHandler
from .masking import MaskingHandler
from .vault.config import VaultConfig


def setup_logging(
    config: Optional[VaultConfig] = None,
    stream: Optional[TextIO] = None,
    logger_name: str = "vido_secrets",
) -> MaskingHandler:
    """Attach a masking structured handler to ``logger_name``.

    Calling it again replaces the previously installed masking handler.

    Args:
        config: Supplies ``log_level`` and ``log_format``; read from the
            environment when omitted.
        stream: Output stream (stderr by default).
        logger_name: Logger to configure; ``""`` for the root logger.

    Returns:
        The installed handler.
    """
    config = config or VaultConfig.from_env()
    sink_cls = JSONHandler if config.log_format == "json" else ConsoleHandler
    handler = MaskingHandler(sink_cls(stream, level=config.log_level))

    target = logging.getLogger(logger_name)
    for existing in list(target.handlers):
        if isinstance(existing, MaskingHandler):
            target.removeHandler(existing)
            existing.close()
    target.addHandler(handler)
    target.setLevel(config.log_level)

    target.debug("Log masking active", extra={"log_format": config.log_format})
    return handler
