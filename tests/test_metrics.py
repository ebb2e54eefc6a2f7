import pytest
from httpx import AsyncClient


async def _setup(client: AsyncClient) -> tuple:
    dept = (await client.post("/api/v1/departments", json={"name": "Outpatient Clinic"})).json()
    visits = (
        await client.post(
            "/api/v1/metrics",
            json={"department_id": dept["id"], "name": "Visits", "unit": "patients", "order_number": 1},
        )
    ).json()
    week = (
        await client.post(
            "/api/v1/weeks",
            json={"week_number": 5, "year": 2024, "start_date": "2024-01-29", "end_date": "2024-02-04"},
        )
    ).json()
    return dept, visits, week


@pytest.mark.asyncio
async def test_metric_crud_and_soft_delete(client: AsyncClient) -> None:
    dept, visits, _ = await _setup(client)
    await client.post("/api/v1/metrics", json={"department_id": dept["id"], "name": "Admissions", "order_number": 0})

    listed = (await client.get("/api/v1/metrics", params={"department_id": dept["id"]})).json()
    assert [m["name"] for m in listed] == ["Admissions", "Visits"]

    response = await client.put(f"/api/v1/metrics/{visits['id']}", json={"unit": None, "order_number": 0})
    assert response.status_code == 200
    assert response.json()["unit"] is None
    assert response.json()["name"] == "Visits"

    assert (await client.delete(f"/api/v1/metrics/{visits['id']}")).status_code == 204
    assert [m["name"] for m in (await client.get("/api/v1/metrics")).json()] == ["Admissions"]
    assert (await client.get(f"/api/v1/metrics/{visits['id']}")).json()["is_active"] is False


@pytest.mark.asyncio
async def test_upsert_overwrites_the_same_week(client: AsyncClient) -> None:
    _, visits, week = await _setup(client)

    first = await client.post(
        "/api/v1/week-metrics",
        json={"metric_id": visits["id"], "week_id": week["id"], "value": 120, "note": "Flu season"},
    )
    assert first.status_code == 201

    second = await client.post(
        "/api/v1/week-metrics",
        json={"metric_id": visits["id"], "week_id": week["id"], "value": 135.5},
    )
    assert second.status_code == 201
    body = second.json()
    assert body["id"] == first.json()["id"]
    assert body["value"] == 135.5
    assert body["note"] == "Flu season"
    assert body["week"]["week_number"] == 5

    values = (await client.get("/api/v1/week-metrics", params={"week_id": week["id"]})).json()
    assert len(values) == 1

    detail = (await client.get(f"/api/v1/metrics/{visits['id']}")).json()
    assert [v["value"] for v in detail["recent_values"]] == [135.5]
    listed = (await client.get("/api/v1/metrics")).json()
    assert listed[0]["value_count"] == 1


@pytest.mark.asyncio
async def test_upsert_rejects_inactive_metric(client: AsyncClient) -> None:
    _, visits, week = await _setup(client)
    await client.delete(f"/api/v1/metrics/{visits['id']}")

    response = await client.post(
        "/api/v1/week-metrics",
        json={"metric_id": visits["id"], "week_id": week["id"], "value": 1},
    )
    assert response.status_code == 400
