import pytest
from httpx import AsyncClient


async def _setup(client: AsyncClient) -> tuple:
    dept = (await client.post("/api/v1/departments", json={"name": "Quality Management"})).json()
    task = (
        await client.post(
            "/api/v1/master-tasks",
            json={"department_id": dept["id"], "name": "ISO certification", "estimated_duration": 8},
        )
    ).json()
    return dept, task


async def _report_week(client: AsyncClient, number: int, task_id: str, progress) -> dict:
    start = f"2024-{1 + (number - 1) // 4:02d}-{1 + ((number - 1) % 4) * 7:02d}"
    response = await client.post(
        "/api/v1/weeks",
        json={
            "week_number": number,
            "year": 2024,
            "start_date": start,
            "end_date": start,
            "task_progress": [
                {"master_task_id": task_id, "order_number": 1, "result": f"week {number}", "progress": progress}
            ],
        },
    )
    assert response.status_code == 201
    return response.json()


@pytest.mark.asyncio
async def test_create_requires_active_department(client: AsyncClient) -> None:
    dept = (await client.post("/api/v1/departments", json={"name": "Closed"})).json()
    await client.delete(f"/api/v1/departments/{dept['id']}")

    response = await client.post("/api/v1/master-tasks", json={"department_id": dept["id"], "name": "Orphan"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_create_rejects_inverted_dates(client: AsyncClient) -> None:
    dept, _ = await _setup(client)

    response = await client.post(
        "/api/v1/master-tasks",
        json={"department_id": dept["id"], "name": "Backwards", "start_date": "2024-02-01", "end_date": "2024-01-01"},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_summary_without_progress(client: AsyncClient) -> None:
    dept, task = await _setup(client)

    response = await client.get("/api/v1/master-tasks", params={"department_id": dept["id"]})
    assert response.status_code == 200
    [item] = response.json()
    assert item["department"] == {"id": dept["id"], "name": "Quality Management"}
    assert item["latest_progress"] == 0
    assert item["is_completed"] is False
    assert item["week_count"] == 0
    assert item["weekly_progress"] is None


@pytest.mark.asyncio
async def test_latest_progress_comes_from_newest_report(client: AsyncClient) -> None:
    _, task = await _setup(client)
    await _report_week(client, 3, task["id"], 40)
    await _report_week(client, 1, task["id"], 10)

    summary = (await client.get("/api/v1/master-tasks")).json()[0]
    assert summary["latest_progress"] == 10
    assert summary["week_count"] == 2

    with_progress = (await client.get("/api/v1/master-tasks", params={"include_progress": True})).json()[0]
    assert [(p["week_number"], p["progress"]) for p in with_progress["weekly_progress"]] == [(1, 10), (3, 40)]
    assert with_progress["first_week"] == {"week_number": 1, "year": 2024}
    assert with_progress["last_week"] == {"week_number": 3, "year": 2024}
    assert with_progress["latest_progress"] == 10

    detail = (await client.get(f"/api/v1/master-tasks/{task['id']}")).json()
    assert detail["latest_progress"] == 10
    assert [h["week"]["week_number"] for h in detail["progress_history"]] == [3, 1]


@pytest.mark.asyncio
async def test_full_progress_marks_task_completed(client: AsyncClient) -> None:
    _, task = await _setup(client)
    await _report_week(client, 1, task["id"], None)
    await _report_week(client, 2, task["id"], 100)

    detail = (await client.get(f"/api/v1/master-tasks/{task['id']}")).json()
    assert detail["is_completed"] is True
    assert detail["latest_progress"] == 100
    assert [p["progress"] for p in detail["weekly_progress"]] == [0, 100]


@pytest.mark.asyncio
async def test_update_and_delete_task(client: AsyncClient) -> None:
    _, task = await _setup(client)

    response = await client.put(
        f"/api/v1/master-tasks/{task['id']}",
        json={"name": "ISO 9001 certification", "start_date": "2024-01-01", "end_date": "2024-06-30"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "ISO 9001 certification"
    assert body["estimated_duration"] == 8

    assert (await client.delete(f"/api/v1/master-tasks/{task['id']}")).status_code == 204
    assert (await client.get(f"/api/v1/master-tasks/{task['id']}")).status_code == 404
