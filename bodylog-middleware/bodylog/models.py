"""Pydantic models for the demo service's requests and responses."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str
    uptime_seconds: float


class EchoRequest(BaseModel):
    message: str = Field(..., min_length=1, description="Text to send back")
    data: dict[str, Any] = Field(default_factory=dict, description="Optional payload")


class EchoResponse(BaseModel):
    message: str
    data: dict[str, Any] = Field(default_factory=dict)
    length: int
