"""Shared helpers for integration tests."""

import uuid

from httpx import AsyncClient

OPERATOR_USERNAME = f"ops_{uuid.uuid4().hex[:8]}"


async def register_and_login(client: AsyncClient, username: str | None = None) -> str:
    """Register a fresh user and return the access token."""
    username = username or f"user_{uuid.uuid4().hex[:8]}"
    password = "TestPass1"
    await client.post("/api/v1/auth/register", json={
        "username": username,
        "email": f"{username}@example.com",
        "password": password,
    })
    resp = await client.post(
        "/api/v1/auth/login", json={"username": username, "password": password}
    )
    return str(resp.json()["data"]["access_token"])


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
