"""
Tests for registration, login and the current-user endpoint
"""

import pytest

from conftest import register


@pytest.mark.asyncio
async def test_register_returns_user_and_token(client):
    resp = await client.post(
        "/api/auth/register",
        json={"email": "Ada@Example.com", "name": "Ada Lovelace", "password": "secret123"},
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["token"]
    assert body["user"]["email"] == "ada@example.com"
    assert body["user"]["name"] == "Ada Lovelace"
    assert "createdAt" in body["user"]
    assert "password" not in body["user"]
    assert "passwordHash" not in body["user"]


@pytest.mark.asyncio
async def test_duplicate_email_is_rejected(client):
    await register(client, "ada@example.com")
    resp = await client.post(
        "/api/auth/register",
        json={"email": "ada@example.com", "name": "Another Ada", "password": "secret123"},
    )
    assert resp.status_code == 400
    assert resp.json() == {"error": "User already exists"}


@pytest.mark.asyncio
async def test_register_validation_errors(client):
    resp = await client.post(
        "/api/auth/register",
        json={"email": "not-an-email", "name": "A", "password": "123"},
    )
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "Validation failed"
    assert {tuple(issue["path"]) for issue in body["details"]} == {("email",), ("name",), ("password",)}


@pytest.mark.asyncio
async def test_login_and_me(client):
    user, _ = await register(client, "ada@example.com", password="secret123")

    resp = await client.post("/api/auth/login", json={"email": "ada@example.com", "password": "secret123"})
    assert resp.status_code == 200
    token = resp.json()["token"]

    resp = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200
    assert resp.json()["user"]["id"] == user["id"]


@pytest.mark.asyncio
async def test_login_with_wrong_password(client):
    await register(client, "ada@example.com", password="secret123")
    resp = await client.post("/api/auth/login", json={"email": "ada@example.com", "password": "wrong-pass"})
    assert resp.status_code == 401
    assert resp.json() == {"error": "Invalid credentials"}


@pytest.mark.asyncio
async def test_login_unknown_email(client):
    resp = await client.post("/api/auth/login", json={"email": "nobody@example.com", "password": "secret123"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_me_requires_token(client):
    resp = await client.get("/api/auth/me")
    assert resp.status_code == 401
    assert resp.json() == {"error": "Unauthorized: No token provided"}
    assert resp.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_me_rejects_garbage_token(client):
    resp = await client.get("/api/auth/me", headers={"Authorization": "Bearer not.a.jwt"})
    assert resp.status_code == 401
    assert resp.json() == {"error": "Unauthorized: Invalid token"}
