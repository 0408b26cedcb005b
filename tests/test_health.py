"""Tests for mailspool.health."""

from __future__ import annotations

import httpx
import pytest

from mailspool.config import MailSpoolConfig
from mailspool.health import create_health_app
from mailspool.service import MailSpoolService


@pytest.fixture
def service(config: MailSpoolConfig) -> MailSpoolService:
    return MailSpoolService(config)


def _client(service: MailSpoolService) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        transport=httpx.ASGITransport(app=create_health_app(service)),
        base_url="http://test",
    )


class TestHealthEndpoints:
    @pytest.mark.asyncio
    async def test_health_reports_phase_and_count(self, service: MailSpoolService, write_message):
        write_message("a.eml")
        write_message("b.eml")
        await service.load()

        async with _client(service) as client:
            resp = await client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["phase"] == "idle"
        assert data["messages"] == 2
        assert data["host"] is None
        assert "uptime_seconds" in data

    @pytest.mark.asyncio
    async def test_ready_before_load(self, service: MailSpoolService):
        async with _client(service) as client:
            resp = await client.get("/ready")
        assert resp.status_code == 503
        assert resp.json() == {"ready": False}

    @pytest.mark.asyncio
    async def test_ready_after_load(self, service: MailSpoolService):
        await service.load()
        async with _client(service) as client:
            resp = await client.get("/ready")
        assert resp.status_code == 200
        assert resp.json() == {"ready": True}

    @pytest.mark.asyncio
    async def test_status_snapshot(self, service: MailSpoolService):
        service.coordinator.toggle_watch()
        try:
            async with _client(service) as client:
                resp = await client.get("/status")
        finally:
            service.coordinator.toggle_watch()
        data = resp.json()
        assert data["phase"] == "watching"
        assert data["watching"] is True
        assert data["capturing"] is False
        assert data["port_input_enabled"] is True

    @pytest.mark.asyncio
    async def test_no_control_routes(self, service: MailSpoolService):
        async with _client(service) as client:
            resp = await client.post("/status")
        assert resp.status_code == 405
