"""Per-request state shared between the logger middlewares and tokens."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from starlette.datastructures import Headers

# (seconds, nanoseconds) on the monotonic clock
StartAt = tuple[int, int]


def hrtime() -> StartAt:
    """Monotonic clock reading split into whole seconds and nanoseconds."""
    seconds, nanoseconds = divmod(time.monotonic_ns(), 1_000_000_000)
    return seconds, nanoseconds


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ResponseInfo:
    """What the logger knows about a response while it is being sent.

    Status and headers are only meaningful once ``headers_sent`` is True.
    """

    status_code: int | None = None
    headers: Headers = field(default_factory=lambda: Headers(raw=[]))
    headers_sent: bool = False
    start_at: StartAt | None = None
    start_time: datetime | None = None
    finished: bool = False

    def record_start_time(self) -> None:
        self.start_at = hrtime()
        self.start_time = utcnow()

    def on_start(self, message: dict[str, Any]) -> None:
        """Record an ``http.response.start`` message."""
        self.record_start_time()
        self.status_code = message.get("status")
        self.headers = Headers(raw=list(message.get("headers", [])))
        self.headers_sent = True

    def get_header(self, name: str) -> str | list[str] | None:
        """Header value, a list when the header was sent more than once."""
        values = self.headers.getlist(name)
        if not values:
            return None
        if len(values) == 1:
            return values[0]
        return values
