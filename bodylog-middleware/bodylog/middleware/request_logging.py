"""Request/response line logging middleware.

Renders one line per request from a format and writes it to a stream,
either as soon as the request arrives (``immediate``) or once the response
has been sent.

Implemented as pure ASGI middleware (not BaseHTTPMiddleware) so the
response start and final body messages can be observed directly.
"""

from __future__ import annotations

import logging
import sys
from typing import Callable

from starlette.requests import Request
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from bodylog.compiler import Renderer
from bodylog.formats import FormatDefinition, FormatRegistry
from bodylog.state import ResponseInfo, hrtime, utcnow
from bodylog.streams import DEFAULT_BUFFER_INTERVAL_MS, BufferedStream, TextStream
from bodylog.tokens import TokenRegistry, default_tokens, get_remote_addr, request_target

logger = logging.getLogger(__name__)

SkipFunction = Callable[[Request, ResponseInfo], bool]


class RequestLoggingMiddleware:
    """Logs a formatted line for every HTTP request."""

    def __init__(
        self,
        app: ASGIApp,
        format: FormatDefinition | None = None,
        *,
        tokens: TokenRegistry | None = None,
        formats: FormatRegistry | None = None,
        immediate: bool = False,
        skip: SkipFunction | None = None,
        stream: TextStream | None = None,
        buffer: bool | int = False,
    ):
        self.app = app
        self.tokens = tokens if tokens is not None else default_tokens()
        self.formats = formats if formats is not None else FormatRegistry()
        self.format_line = self.formats.line_function(format)
        self.immediate = immediate
        self.skip = skip
        self._stream = stream

        if buffer:
            # True selects the default interval, a number is milliseconds
            interval = DEFAULT_BUFFER_INTERVAL_MS if buffer is True else int(buffer)
            self._stream = BufferedStream(stream if stream is not None else sys.stdout, interval)

        self._warn_unknown_tokens()

    @property
    def stream(self) -> TextStream:
        return self._stream if self._stream is not None else sys.stdout

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        record_request_start(request)
        response = ResponseInfo()

        if self.immediate:
            self.log(request, response)
            await self.app(scope, receive, send)
            return

        def finish() -> None:
            if response.finished:
                return
            response.finished = True
            self.log(request, response)

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                response.on_start(message)
            await send(message)
            if message["type"] == "http.response.body" and not message.get("more_body", False):
                finish()

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            # Also covers apps that fail or return without completing the body
            finish()

    def log(self, request: Request, response: ResponseInfo) -> None:
        if self.skip is not None and self.skip(request, response):
            return

        line = self.format_line(self.tokens, request, response)
        if line is None:
            return

        self.stream.write(line + "\n")

    def _warn_unknown_tokens(self) -> None:
        if not isinstance(self.format_line, Renderer):
            return
        unknown = sorted(n for n in self.format_line.token_names if n not in self.tokens)
        if unknown:
            logger.warning(
                "Format %r references unknown tokens %s; rendering it will fail",
                self.format_line.template,
                ", ".join(unknown),
            )


def record_request_start(request: Request) -> None:
    """Attach start times, client address and original URL to the request."""
    state = request.state
    state.start_at = hrtime()
    state.start_time = utcnow()
    state.remote_address = get_remote_addr(request)
    if not getattr(state, "original_url", None):
        state.original_url = request_target(request.scope)
