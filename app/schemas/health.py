"""Payload of GET /health, carried in the standard envelope's data field."""

from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"
    environment: str = Field(description="APP_ENV of the running process (dev or prod)")
    database: Literal["connected", "disconnected"]
    auth_configured: bool = Field(
        default=False,
        description="Whether JWT_SECRET is set; token issuing fails without it",
    )


class ServiceInfo(BaseModel):
    name: str
    version: str
    docs_url: str | None = None
