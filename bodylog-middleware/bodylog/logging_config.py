"""Application logging configuration.

Two kinds of records pass through the root handler: diagnostics from the
``bodylog`` modules (config warnings, unknown tokens), and access lines
written through :class:`bodylog.streams.LoggingStream` to ``bodylog.access``.
Access lines already carry their own date and colors, so text mode prints
them as written; json mode wraps them like any other record.
"""

from __future__ import annotations

import logging
import sys

from pythonjsonlogger.json import JsonFormatter

from bodylog.config import Settings, settings
from bodylog.streams import ACCESS_LOGGER

TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class TextFormatter(logging.Formatter):
    """Plain formatter that leaves access lines untouched."""

    def format(self, record: logging.LogRecord) -> str:
        if record.name == ACCESS_LOGGER:
            return record.getMessage()
        return super().format(record)


def build_formatter(log_format: str) -> logging.Formatter:
    if log_format == "json":
        return JsonFormatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"asctime": "timestamp", "levelname": "level", "name": "logger"},
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )
    return TextFormatter(fmt=TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")


def setup_logging(config: Settings | None = None) -> None:
    """Configure the root handler from BODYLOG_LOG_LEVEL and BODYLOG_LOG_FORMAT.

    BODYLOG_LOG_LEVEL applies to diagnostics only. The access logger stays at
    INFO so raising the level never drops access lines.
    """
    config = config or settings
    root_logger = logging.getLogger()

    # Remove existing handlers to avoid duplicates on reload
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(build_formatter(config.log_format))
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, config.log_level, logging.INFO))

    logging.getLogger(ACCESS_LOGGER).setLevel(logging.INFO)
    # bodylog writes the access lines
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
