"""
Tests for saved destinations
"""

import pytest

from odysea.core.images import FALLBACK_IMAGES


async def save(client, headers, **fields):
    payload = {"name": "Lisbon", "country": "Portugal"}
    payload.update(fields)
    resp = await client.post("/api/destinations", json=payload, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["destination"]


@pytest.mark.asyncio
async def test_create_with_defaults(client, auth_headers):
    destination = await save(client, auth_headers)
    assert destination["priority"] == "MEDIUM"
    assert destination["tags"] == []
    assert destination["imageUrl"] == FALLBACK_IMAGES[0]


@pytest.mark.asyncio
async def test_empty_image_url_gets_a_cover(client, auth_headers):
    destination = await save(client, auth_headers, imageUrl="")
    assert destination["imageUrl"] == FALLBACK_IMAGES[0]


@pytest.mark.asyncio
async def test_explicit_image_url_is_kept(client, auth_headers):
    destination = await save(client, auth_headers, imageUrl="https://example.com/lisbon.jpg")
    assert destination["imageUrl"] == "https://example.com/lisbon.jpg"


@pytest.mark.asyncio
async def test_invalid_payload(client, auth_headers):
    resp = await client.post(
        "/api/destinations",
        json={"name": "Lisbon", "country": "Portugal", "imageUrl": "nope", "priority": "URGENT"},
        headers=auth_headers,
    )
    assert resp.status_code == 400
    assert {tuple(i["path"]) for i in resp.json()["details"]} == {("imageUrl",), ("priority",)}


@pytest.mark.asyncio
async def test_list_filters(client, auth_headers, other_headers):
    await save(client, auth_headers, name="Lisbon", tags=["food", "beach"], estimatedBudget=1500, priority="HIGH")
    await save(client, auth_headers, name="Reykjavik", country="Iceland", tags=["nature"], estimatedBudget=3000)
    await save(client, auth_headers, name="Porto", tags=["wine"], estimatedBudget=900, priority="LOW")
    await save(client, other_headers, name="Elsewhere", tags=["food"])

    resp = await client.get("/api/destinations", headers=auth_headers)
    body = resp.json()
    assert body["pagination"]["total"] == 3
    assert body["filters"]["sortBy"] == "createdAt"
    assert body["filters"]["sortOrder"] == "desc"

    resp = await client.get("/api/destinations", params={"tag": "food"}, headers=auth_headers)
    assert [d["name"] for d in resp.json()["destinations"]] == ["Lisbon"]

    resp = await client.get("/api/destinations", params={"minBudget": 1000}, headers=auth_headers)
    assert {d["name"] for d in resp.json()["destinations"]} == {"Lisbon", "Reykjavik"}

    resp = await client.get("/api/destinations", params={"country": "portugal"}, headers=auth_headers)
    assert {d["name"] for d in resp.json()["destinations"]} == {"Lisbon", "Porto"}

    resp = await client.get(
        "/api/destinations", params={"sortBy": "priority", "sortOrder": "asc"}, headers=auth_headers
    )
    assert [d["priority"] for d in resp.json()["destinations"]] == ["LOW", "MEDIUM", "HIGH"]

    resp = await client.get("/api/destinations", params={"search": "reyk"}, headers=auth_headers)
    assert [d["name"] for d in resp.json()["destinations"]] == ["Reykjavik"]


@pytest.mark.asyncio
async def test_stats(client, auth_headers):
    await save(client, auth_headers, name="Lisbon", priority="HIGH")
    await save(client, auth_headers, name="Porto", priority="HIGH")
    await save(client, auth_headers, name="Reykjavik", country="Iceland")

    resp = await client.get("/api/destinations/stats/overview", headers=auth_headers)
    assert resp.json() == {"stats": {"total": 3, "highPriority": 2, "uniqueCountries": 2}}


@pytest.mark.asyncio
async def test_update_and_delete(client, auth_headers):
    destination = await save(client, auth_headers)
    url = f"/api/destinations/{destination['id']}"

    resp = await client.put(url, json={"notes": "Go in May", "tags": ["spring"]}, headers=auth_headers)
    assert resp.status_code == 200
    updated = resp.json()["destination"]
    assert updated["notes"] == "Go in May"
    assert updated["tags"] == ["spring"]
    assert updated["name"] == "Lisbon"

    resp = await client.put(url, json={"name": None}, headers=auth_headers)
    assert resp.status_code == 400

    resp = await client.delete(url, headers=auth_headers)
    assert resp.status_code == 200
    assert (await client.get(url, headers=auth_headers)).status_code == 404


@pytest.mark.asyncio
async def test_foreign_destination_is_not_found(client, auth_headers, other_headers):
    destination = await save(client, auth_headers)
    url = f"/api/destinations/{destination['id']}"

    for method in ("get", "delete"):
        resp = await getattr(client, method)(url, headers=other_headers)
        assert resp.status_code == 404
        assert resp.json() == {"error": "Destination not found"}

    resp = await client.put(url, json={"notes": "hijacked"}, headers=other_headers)
    assert resp.status_code == 404
