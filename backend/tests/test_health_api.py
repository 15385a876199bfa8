"""Health endpoint: liveness plus configuration booleans, never secrets."""
from __future__ import annotations

import httpx
import pytest
from httpx import ASGITransport

from backend.web import main  # type: ignore

pytestmark = pytest.mark.anyio("asyncio")


async def test_health_reports_unconfigured_in_tests():
    async with httpx.AsyncClient(transport=ASGITransport(app=main.app), base_url="http://test") as c:
        r = await c.get("/health")

    assert r.status_code == 200
    assert r.headers.get("Cache-Control") == "private, no-store"
    assert r.json() == {
        "status": "ok",
        "environment": "test",
        "checks": {"supabase_configured": False, "payments_configured": False},
    }


async def test_health_flags_do_not_leak_values(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("SUPABASE_URL", "http://127.0.0.1:54321")
    monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "service-role-secret")
    monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test_secret")

    async with httpx.AsyncClient(transport=ASGITransport(app=main.app), base_url="http://test") as c:
        r = await c.get("/health")

    assert r.json()["checks"] == {"supabase_configured": True, "payments_configured": True}
    assert "secret" not in r.text
    assert "54321" not in r.text
