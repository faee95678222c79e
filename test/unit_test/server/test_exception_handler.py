import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from actuator_ai.server.exception_handlers import setup_exception_handlers

pytestmark = pytest.mark.asyncio


def _app() -> FastAPI:
    app = FastAPI()
    setup_exception_handlers(app)

    @app.get("/boom")
    async def boom():
        raise RuntimeError("secret connection string leaked")

    return app


async def test_unhandled_exception_returns_generic_500():
    transport = ASGITransport(app=_app(), raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://localhost") as client:
        response = await client.get("/boom")

    assert response.status_code == 500
    body = response.json()
    assert body["detail"] == "Internal server error"
    assert isinstance(body["error_id"], int)
    assert "secret" not in response.text


async def test_unhandled_exception_is_logged(caplog):
    transport = ASGITransport(app=_app(), raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://localhost") as client:
        await client.get("/boom")

    assert any("Unhandled exception" in r.getMessage() and "RuntimeError" in r.getMessage() for r in caplog.records)
