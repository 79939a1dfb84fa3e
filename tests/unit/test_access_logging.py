"""
Tests for the access logging middleware on a throwaway app.
"""

import logging

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from agro_auth.middleware.logging import AccessLoggingMiddleware


def _app(**options) -> FastAPI:
    app = FastAPI()
    app.add_middleware(AccessLoggingMiddleware, **options)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.post("/api/auth/verify-otp")
    def verify():
        return {"ok": True}

    return app


@pytest.fixture
def access_log(caplog):
    caplog.set_level(logging.INFO, logger="access")
    return caplog


async def _post(app: FastAPI, path: str, **kwargs):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        return await ac.post(path, **kwargs)


class TestAccessLoggingMiddleware:

    async def test_logs_request_line(self, access_log):
        response = await _post(_app(), "/api/auth/verify-otp", headers={"X-Forwarded-For": "203.0.113.9, 10.0.0.1"})

        assert response.status_code == 200
        assert "[REQUEST] API request" in access_log.text
        assert "path=/api/auth/verify-otp" in access_log.text
        assert "ip=203.0.113.9" in access_log.text
        assert f"request_id={response.headers['X-Request-ID']}" in access_log.text

    async def test_slow_request(self, access_log):
        await _post(_app(slow_threshold=-1), "/api/auth/verify-otp")

        assert "[SLOW] Slow request" in access_log.text

    async def test_health_not_logged(self, access_log):
        async with AsyncClient(transport=ASGITransport(app=_app()), base_url="http://test") as ac:
            response = await ac.get("/health")

        assert response.headers["X-Request-ID"]
        assert "API request" not in access_log.text

    async def test_disabled(self, access_log):
        response = await _post(_app(enabled=False), "/api/auth/verify-otp", headers={"X-Request-ID": "abc"})

        assert response.headers["X-Request-ID"] == "abc"
        assert "API request" not in access_log.text
