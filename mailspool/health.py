"""FastAPI health and status endpoints.

Read-only: the app reports what the coordinator and store hold, it does
not expose any control operation.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .models import ControlPhase

if TYPE_CHECKING:
    from .service import MailSpoolService


class HealthReport(BaseModel):
    """Body of the ``/health`` endpoint."""

    phase: ControlPhase = Field(description="Combined capture/watch phase")
    host: str | None = Field(default=None, description="Listener host while capturing")
    port: int | None = Field(default=None, description="Listener port while capturing")
    messages: int = Field(description="Number of messages currently known")
    uptime_seconds: float = Field(description="Seconds since the service started")


def create_health_app(service: MailSpoolService) -> FastAPI:
    """Build the probe app for *service*."""
    app = FastAPI(title="mailspool health", docs_url=None, redoc_url=None)

    @app.get("/health")
    async def health() -> JSONResponse:
        state = service.coordinator.state
        report = HealthReport(
            phase=state.phase,
            host=state.host,
            port=state.port,
            messages=len(service.store),
            uptime_seconds=time.monotonic() - service.start_time,
        )
        return JSONResponse(content=report.model_dump(mode="json"))

    @app.get("/ready")
    async def ready() -> JSONResponse:
        return JSONResponse(
            content={"ready": service.loaded},
            status_code=200 if service.loaded else 503,
        )

    @app.get("/status")
    async def status() -> JSONResponse:
        state = service.coordinator.state
        return JSONResponse(
            content={
                **state.model_dump(mode="json"),
                "phase": state.phase.value,
                "port_input_enabled": state.port_input_enabled,
            }
        )

    return app
