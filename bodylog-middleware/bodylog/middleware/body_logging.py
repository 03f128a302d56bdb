"""Request/response body dumping middleware.

Buffers the request body before the app runs (replaying it unchanged) and
captures the response body as it is sent, keeping only as many bytes as
the printed output can use. JSON bodies are pretty-printed, anything
longer than ``max_body_length`` characters is cut off.
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from bodylog.formats import RESET
from bodylog.streams import TextStream

logger = logging.getLogger(__name__)

DEFAULT_MAX_BODY_LENGTH = 1000

LABEL_COLOR = "\x1b[95m"
BODY_COLOR = "\x1b[97m"
TRUNCATION_MARKER = "\n..."


def format_body(
    label: str,
    body: Any,
    max_length: int = DEFAULT_MAX_BODY_LENGTH,
    truncated: bool = False,
) -> list[str]:
    """Render a body as colored console lines; empty bodies render nothing.

    ``truncated`` marks a body that was cut short while it was captured. It
    always gets the truncation marker, and a multi-byte character split at
    the cut is dropped instead of turning the whole body into ``<Buffer>``.
    """
    if isinstance(body, (bytes, bytearray)):
        body = _decode(bytes(body), truncated)

    if isinstance(body, str):
        try:
            parsed = json.loads(body)
        except ValueError:
            parsed = body
        # Scalars keep their original text ("5", "true", "null")
        if isinstance(parsed, (dict, list, str)):
            body = parsed

    if isinstance(body, (dict, list)):
        if not body:
            return []
        text = json.dumps(body, indent="\t", ensure_ascii=False)
    elif body is None:
        return []
    elif isinstance(body, str):
        text = body
    elif isinstance(body, (bool, int, float)):
        text = json.dumps(body)
    else:
        text = str(body)

    if not text:
        return []

    if truncated or len(text) > max_length:
        text = text[:max_length] + TRUNCATION_MARKER

    lines = [f"{LABEL_COLOR}{label} Body:{RESET}"]
    lines.extend(f"{BODY_COLOR}{line}{RESET}" for line in text.split("\n"))
    return lines


def _decode(body: bytes, truncated: bool) -> str:
    try:
        return body.decode("utf-8")
    except UnicodeDecodeError as exc:
        # A UTF-8 sequence is at most 4 bytes
        if truncated and exc.start >= len(body) - 3:
            return body[: exc.start].decode("utf-8", errors="replace")
        return "<Buffer>"


def capture_limit(max_length: int) -> int:
    """Bytes of a response body worth keeping to print ``max_length`` characters."""
    return 4 * max_length + 1


async def read_body(receive: Receive) -> tuple[bytes, Receive]:
    """Drain the request body and return it with a receive that replays it."""
    chunks: list[bytes] = []
    while True:
        message = await receive()
        if message["type"] != "http.request":
            # Disconnected before the body was complete
            break
        chunks.append(message.get("body", b""))
        if not message.get("more_body", False):
            break

    body = b"".join(chunks)
    replayed = False

    async def replay() -> Message:
        nonlocal replayed
        if not replayed:
            replayed = True
            return {"type": "http.request", "body": body, "more_body": False}
        return await receive()

    return body, replay


class BodyLoggingMiddleware:
    """Dumps request and/or response bodies to a stream."""

    def __init__(
        self,
        app: ASGIApp,
        *,
        log_request_body: bool = True,
        log_response_body: bool = True,
        max_body_length: int = DEFAULT_MAX_BODY_LENGTH,
        stream: TextStream | None = None,
    ):
        self.app = app
        self.log_request_body = log_request_body
        self.log_response_body = log_response_body
        self.max_body_length = max_body_length
        self._stream = stream

    @property
    def stream(self) -> TextStream:
        return self._stream if self._stream is not None else sys.stdout

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or not (self.log_request_body or self.log_response_body):
            await self.app(scope, receive, send)
            return

        if self.log_request_body:
            body, receive = await read_body(receive)
            self.dump("Request", body)

        if not self.log_response_body:
            await self.app(scope, receive, send)
            return

        captured = bytearray()
        limit = capture_limit(self.max_body_length)
        truncated = False

        async def send_wrapper(message: Message) -> None:
            nonlocal truncated
            await send(message)
            if message["type"] != "http.response.body":
                return
            chunk = message.get("body", b"")
            room = limit - len(captured)
            if len(chunk) > room:
                truncated = True
                chunk = chunk[: max(room, 0)]
            captured.extend(chunk)
            if not message.get("more_body", False):
                self.dump("Response", captured, truncated=truncated)

        await self.app(scope, receive, send_wrapper)

    def dump(self, label: str, body: Any, truncated: bool = False) -> None:
        lines = format_body(label, body, self.max_body_length, truncated=truncated)
        if lines:
            self.stream.write("\n".join(lines) + "\n")
            logger.debug("Logged %s body (%d lines)", label.lower(), len(lines) - 1)
