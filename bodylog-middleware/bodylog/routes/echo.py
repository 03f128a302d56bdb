"""Echo routes, handy for watching request and response bodies in the log."""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from bodylog.models import EchoRequest, EchoResponse

router = APIRouter(prefix="/echo", tags=["echo"])


@router.post("", response_model=EchoResponse)
async def echo(body: EchoRequest):
    """Return the posted JSON body."""
    return EchoResponse(message=body.message, data=body.data, length=len(body.message))


@router.post("/text", response_class=PlainTextResponse)
async def echo_text(body: EchoRequest):
    return body.message
