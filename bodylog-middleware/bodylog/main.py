"""FastAPI application — bodylog demo service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from bodylog.config import settings
from bodylog.install import install_body_logger
from bodylog.logging_config import setup_logging
from bodylog.routes import echo, health
from bodylog.streams import BufferedStream

# Configure logging before anything else
setup_logging()

_logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan — flush buffered log output on shutdown."""
    yield
    if isinstance(_log_stream, BufferedStream):
        _logger.debug("Flushing buffered access log")
        _log_stream.flush()


app = FastAPI(
    title="bodylog demo",
    description="Echo service with request/response body logging",
    version="0.1.0",
    lifespan=lifespan,
)

# Request line, request/response bodies, response line
_log_stream = install_body_logger(app, settings)

app.include_router(echo.router)
app.include_router(health.router)


@app.get("/")
async def root():
    return {
        "service": "bodylog-demo",
        "version": "0.1.0",
        "docs": "/docs",
    }


def start():
    """Entry point for running the server directly."""
    import uvicorn
    uvicorn.run(
        "bodylog.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    start()
