"""Structured JSON logging configuration for the Treeapp provider.

Every record is emitted as one JSON object per line:
{"ts": "...", "level": "...", "name": "...", "msg": "..."}
"""

from __future__ import annotations

import logging
from typing import IO, Iterable, Optional

from pythonjsonlogger import json as jsonlogger

# httpx logs every request at INFO; keep it to warnings unless debugging the wire
_NOISY_LOGGERS = ("httpx", "httpcore")


class SecretRedactionFilter(logging.Filter):
    """Replace known secrets (the API key) with **** in messages and tracebacks."""

    def __init__(self, secrets: Iterable[str]) -> None:
        super().__init__()
        self._secrets = [s for s in secrets if s]

    def _redact(self, text: str) -> str:
        for secret in self._secrets:
            text = text.replace(secret, "****")
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        if not self._secrets:
            return True
        message = record.getMessage()
        redacted = self._redact(message)
        if redacted != message:
            record.msg, record.args = redacted, None

        # Formatters prefer exc_info over exc_text, so a scrubbed traceback
        # only survives if exc_info is dropped.
        if record.exc_info and not record.exc_text:
            record.exc_text = logging.Formatter().formatException(record.exc_info)
        if record.exc_text:
            redacted = self._redact(record.exc_text)
            if redacted != record.exc_text:
                record.exc_text, record.exc_info = redacted, None
        return True


def configure_logging(
    log_level: str,
    secrets: Iterable[str] = (),
    stream: Optional[IO[str]] = None,
) -> None:
    """Configure the root logger with structured JSON output.

    Args:
        log_level: Logging level string (e.g., "info", "debug", "warning").
                   Unknown names fall back to INFO.
        secrets:   Strings that must never appear in log output.
        stream:    Destination stream (default: stderr).
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    if not isinstance(level, int):
        level = logging.INFO

    formatter = jsonlogger.JsonFormatter(
        fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
        rename_fields={
            "asctime": "ts",
            "levelname": "level",
            "message": "msg",
        },
    )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)
    handler.addFilter(SecretRedactionFilter(secrets))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    wire_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(wire_level)
