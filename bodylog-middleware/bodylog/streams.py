"""Output sinks for rendered lines.

Anything with a ``write(str)`` method can receive log lines. This module adds
a timer-flushed buffer and an adapter that forwards lines to stdlib logging.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

ACCESS_LOGGER = "bodylog.access"

DEFAULT_BUFFER_INTERVAL_MS = 1000


class TextStream(Protocol):
    def write(self, text: str) -> object: ...


class BufferedStream:
    """Batches writes and flushes them to ``stream`` on a fixed timer.

    The first write after a flush schedules the next flush on the running
    event loop. Lines are written in the order they were received.
    """

    def __init__(self, stream: TextStream, interval_ms: int = DEFAULT_BUFFER_INTERVAL_MS):
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        self.stream = stream
        self.interval = interval_ms / 1000
        self._buffer: list[str] = []
        self._timer: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def write(self, text: str) -> None:
        if self._timer is None:
            loop = asyncio.get_running_loop()
            self._timer = loop.call_later(self.interval, self.flush)
        self._buffer.append(text)

    def flush(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if not self._buffer:
            return
        data = "".join(self._buffer)
        self._buffer.clear()
        self.stream.write(data)

    def close(self) -> None:
        self.flush()


class LoggingStream:
    """Sink that emits each written line as a log record."""

    def __init__(self, target: logging.Logger | None = None, level: int = logging.INFO):
        self.logger = target or logging.getLogger(ACCESS_LOGGER)
        self.level = level

    def write(self, text: str) -> None:
        for line in text.splitlines():
            self.logger.log(self.level, line)
