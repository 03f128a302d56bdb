"""bodylog — HTTP request/response logging middleware for ASGI apps.

Usage::

    from fastapi import FastAPI
    from bodylog import RequestLoggingMiddleware, default_tokens

    tokens = default_tokens()
    tokens.register("request-id", lambda req, res, arg: req.headers.get("x-request-id"))

    app = FastAPI()
    app.add_middleware(
        RequestLoggingMiddleware,
        format=":method :url :status :response-time ms :request-id",
        tokens=tokens,
    )

Or, for the colored request/body/response dump::

    from bodylog import install_body_logger

    install_body_logger(app)
"""

from bodylog.compiler import Renderer, UnknownTokenError, compile_format
from bodylog.formats import FormatRegistry, dev_request_template
from bodylog.install import install_body_logger
from bodylog.middleware import BodyLoggingMiddleware, RequestLoggingMiddleware
from bodylog.state import ResponseInfo
from bodylog.streams import BufferedStream, LoggingStream
from bodylog.tokens import TokenRegistry, default_tokens

__version__ = "0.1.0"
__all__ = [
    "BodyLoggingMiddleware",
    "BufferedStream",
    "FormatRegistry",
    "LoggingStream",
    "Renderer",
    "RequestLoggingMiddleware",
    "ResponseInfo",
    "TokenRegistry",
    "UnknownTokenError",
    "compile_format",
    "default_tokens",
    "dev_request_template",
    "install_body_logger",
]
