from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient

from src.backend.main import app


@pytest.fixture
async def client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def login(client):
    """Log in a fresh (or given) account and return (headers, user)."""

    async def _login(email: str | None = None, *, student: bool = False):
        if email is None:
            domain = "med-uni.example.com" if student else "example.com"
            email = f"user.{uuid4().hex[:8]}@{domain}"
        resp = await client.post("/api/v1/auth/login", json={"email": email, "password": "secret"})
        assert resp.status_code == 200, resp.text
        body = resp.json()
        return {"X-Session-Token": body["token"]}, body["user"]

    return _login
