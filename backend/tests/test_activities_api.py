"""
Tests for activity listing, creation, reordering and ownership
"""

import pytest


def day_url(trip, day_index=0, suffix=""):
    day = trip["itineraryDays"][day_index]
    return f"/api/activities/trip/{trip['id']}/day/{day['id']}{suffix}"


@pytest.mark.asyncio
async def test_list_day_activities_in_order(client, auth_headers, generated_trip):
    resp = await client.get(day_url(generated_trip), headers=auth_headers)
    assert resp.status_code == 200
    activities = resp.json()["activities"]
    assert [a["order"] for a in activities] == [0, 1, 2, 3, 4]
    assert activities[0]["title"] == "Arrival at Rome"


@pytest.mark.asyncio
async def test_list_day_activities_filters(client, auth_headers, generated_trip):
    resp = await client.get(day_url(generated_trip), params={"category": "FOOD"}, headers=auth_headers)
    assert {a["category"] for a in resp.json()["activities"]} == {"FOOD"}

    resp = await client.get(
        day_url(generated_trip),
        params={"sortBy": "estimatedCost", "sortOrder": "desc", "maxCost": 60},
        headers=auth_headers,
    )
    costs = [a["estimatedCost"] for a in resp.json()["activities"]]
    assert costs == sorted(costs, reverse=True)
    assert max(costs) <= 60

    resp = await client.get(day_url(generated_trip), params={"search": "airport"}, headers=auth_headers)
    assert [a["title"] for a in resp.json()["activities"]] == ["Arrival at Rome"]


@pytest.mark.asyncio
async def test_day_from_another_trip_is_not_found(client, auth_headers, generated_trip):
    other = await client.post("/api/ai/generate", json={
        "destination": "Oslo",
        "country": "Norway",
        "startDate": "2025-01-01T00:00:00Z",
        "endDate": "2025-01-01T00:00:00Z",
        "budget": "LUXURY",
        "travelGroup": "FRIENDS",
    }, headers=auth_headers)
    other_day = other.json()["trip"]["itineraryDays"][0]["id"]

    resp = await client.get(
        f"/api/activities/trip/{generated_trip['id']}/day/{other_day}", headers=auth_headers
    )
    assert resp.status_code == 404
    assert resp.json() == {"error": "Day not found"}


@pytest.mark.asyncio
async def test_create_activity_appends(client, auth_headers, generated_trip):
    resp = await client.post(
        day_url(generated_trip),
        json={"title": "Gelato", "category": "FOOD", "estimatedCost": 4.5},
        headers=auth_headers,
    )
    assert resp.status_code == 201
    activity = resp.json()["activity"]
    assert activity["order"] == 5
    assert activity["itineraryDayId"] == generated_trip["itineraryDays"][0]["id"]


@pytest.mark.asyncio
async def test_bulk_create(client, auth_headers, generated_trip):
    resp = await client.post(
        day_url(generated_trip, suffix="/bulk"),
        json={"activities": [
            {"title": "Vatican Museums", "category": "SIGHTSEEING"},
            {"title": "Trastevere dinner", "category": "FOOD", "startTime": "20:00"},
        ]},
        headers=auth_headers,
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["message"] == "2 activities created"
    assert [a["order"] for a in body["activities"]] == [0, 1, 2, 3, 4, 5, 6]
    assert [a["title"] for a in body["activities"]][-2:] == ["Vatican Museums", "Trastevere dinner"]


@pytest.mark.asyncio
async def test_bulk_create_reports_failing_item(client, auth_headers, generated_trip):
    resp = await client.post(
        day_url(generated_trip, suffix="/bulk"),
        json={"activities": [
            {"title": "Vatican Museums", "category": "SIGHTSEEING"},
            {"title": "Mystery", "category": "TELEPORT"},
        ]},
        headers=auth_headers,
    )
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "Validation failed for activity 1"
    assert body["details"][0]["path"] == ["category"]

    listed = await client.get(day_url(generated_trip), headers=auth_headers)
    assert len(listed.json()["activities"]) == 5


@pytest.mark.asyncio
async def test_reorder(client, auth_headers, generated_trip):
    ids = [a["id"] for a in generated_trip["itineraryDays"][0]["activities"]]
    new_order = list(reversed(ids))

    resp = await client.put(
        day_url(generated_trip, suffix="/reorder"),
        json={"activityIds": new_order},
        headers=auth_headers,
    )
    assert resp.status_code == 200
    activities = resp.json()["activities"]
    assert [a["id"] for a in activities] == new_order
    assert [a["order"] for a in activities] == [0, 1, 2, 3, 4]

    trip = (await client.get(f"/api/trips/{generated_trip['id']}", headers=auth_headers)).json()["trip"]
    assert [a["id"] for a in trip["itineraryDays"][0]["activities"]] == new_order


@pytest.mark.asyncio
async def test_reorder_three(client, auth_headers, generated_trip):
    a, b, c = [x["id"] for x in generated_trip["itineraryDays"][1]["activities"][:3]]
    resp = await client.put(
        day_url(generated_trip, day_index=1, suffix="/reorder"),
        json={"activityIds": [c, a, b]},
        headers=auth_headers,
    )
    orders = {x["id"]: x["order"] for x in resp.json()["activities"]}
    assert (orders[c], orders[a], orders[b]) == (0, 1, 2)


@pytest.mark.asyncio
async def test_reorder_with_foreign_activity_changes_nothing(client, auth_headers, generated_trip):
    day0 = [a["id"] for a in generated_trip["itineraryDays"][0]["activities"]]
    stray = generated_trip["itineraryDays"][1]["activities"][0]["id"]

    resp = await client.put(
        day_url(generated_trip, suffix="/reorder"),
        json={"activityIds": [day0[1], stray]},
        headers=auth_headers,
    )
    assert resp.status_code == 404

    listed = await client.get(day_url(generated_trip), headers=auth_headers)
    assert [a["id"] for a in listed.json()["activities"]] == day0


@pytest.mark.asyncio
async def test_get_update_delete_activity(client, auth_headers, generated_trip):
    activity_id = generated_trip["itineraryDays"][0]["activities"][1]["id"]
    url = f"/api/activities/{activity_id}"

    resp = await client.get(url, headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["activity"]["id"] == activity_id

    resp = await client.put(url, json={"title": "Pantheon", "estimatedCost": 0}, headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["activity"]["title"] == "Pantheon"
    assert resp.json()["activity"]["estimatedCost"] == 0

    resp = await client.put(url, json={"category": None}, headers=auth_headers)
    assert resp.status_code == 400

    resp = await client.delete(url, headers=auth_headers)
    assert resp.json() == {"message": "Activity deleted successfully"}
    assert (await client.get(url, headers=auth_headers)).status_code == 404


@pytest.mark.asyncio
async def test_foreign_activities_are_not_found(client, auth_headers, other_headers, generated_trip):
    activity_id = generated_trip["itineraryDays"][0]["activities"][0]["id"]

    resp = await client.get(f"/api/activities/{activity_id}", headers=other_headers)
    assert resp.status_code == 404
    assert resp.json() == {"error": "Activity not found"}

    resp = await client.delete(f"/api/activities/{activity_id}", headers=other_headers)
    assert resp.status_code == 404

    resp = await client.get(day_url(generated_trip), headers=other_headers)
    assert resp.status_code == 404
    assert resp.json() == {"error": "Trip not found"}

    resp = await client.post(
        day_url(generated_trip, suffix="/bulk"),
        json={"activities": [{"title": "Sneaky", "category": "OTHER"}]},
        headers=other_headers,
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_over_long_fields_are_rejected(client, auth_headers, generated_trip):
    resp = await client.post(
        day_url(generated_trip),
        json={"title": "x" * 201, "category": "FOOD", "startTime": "09:00 AM - 10:30 AM"},
        headers=auth_headers,
    )
    assert resp.status_code == 400
    paths = {tuple(issue["path"]) for issue in resp.json()["details"]}
    assert paths == {("title",), ("startTime",)}
