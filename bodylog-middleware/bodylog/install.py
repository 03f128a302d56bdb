"""One-call setup: request line, bodies and response line on a Starlette app."""

from __future__ import annotations

import logging
import sys

from starlette.applications import Starlette

from bodylog.config import Settings
from bodylog.config import settings as default_settings
from bodylog.formats import FormatRegistry, dev_request_template
from bodylog.middleware.body_logging import BodyLoggingMiddleware
from bodylog.middleware.request_logging import RequestLoggingMiddleware
from bodylog.streams import BufferedStream, TextStream
from bodylog.tokens import TokenRegistry, default_tokens

logger = logging.getLogger(__name__)

DEV_REQUEST_FORMAT = "dev-req"
DEV_RESPONSE_FORMAT = "dev-res"


def install_body_logger(
    app: Starlette,
    settings: Settings | None = None,
    *,
    stream: TextStream | None = None,
    tokens: TokenRegistry | None = None,
) -> TextStream | None:
    """Add the request, body and response loggers to ``app``.

    Middleware added later wraps earlier middleware, so the response logger is
    added first and the request logger last: the request line is written
    before the body dump, the response line after it.

    Returns the buffered stream when ``settings.buffer_ms`` is set (so the
    caller can flush it on shutdown), else ``stream``.
    """
    settings = settings or default_settings
    tokens = tokens if tokens is not None else default_tokens()

    # Each install gets its own formats so several loggers never collide
    formats = FormatRegistry()
    formats.register(
        DEV_REQUEST_FORMAT,
        dev_request_template(
            log_date_time=settings.log_req_date_time,
            log_user_agent=settings.log_req_user_agent,
            date_format=settings.date_token_format if settings.log_req_date_time else "",
        ),
    )

    if settings.buffer_ms:
        # One buffer for every line keeps request, body and response output in order
        stream = BufferedStream(stream if stream is not None else sys.stdout, settings.buffer_ms)

    app.add_middleware(
        RequestLoggingMiddleware,
        format=DEV_RESPONSE_FORMAT,
        tokens=tokens,
        formats=formats,
        stream=stream,
    )
    if settings.log_request_body or settings.log_response_body:
        app.add_middleware(
            BodyLoggingMiddleware,
            log_request_body=settings.log_request_body,
            log_response_body=settings.log_response_body,
            max_body_length=settings.max_body_length,
            stream=stream,
        )
    app.add_middleware(
        RequestLoggingMiddleware,
        format=DEV_REQUEST_FORMAT,
        tokens=tokens,
        formats=formats,
        immediate=True,
        stream=stream,
    )

    logger.debug(
        "bodylog installed (request body=%s, response body=%s, buffer=%sms)",
        settings.log_request_body,
        settings.log_response_body,
        settings.buffer_ms,
    )
    return stream
