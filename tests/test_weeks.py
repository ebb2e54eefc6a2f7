import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from report_app.core.models import Week

WEEK_1 = {"week_number": 1, "year": 2024, "start_date": "2024-01-01", "end_date": "2024-01-07"}


async def _tasks(client: AsyncClient) -> tuple:
    nursing = (await client.post("/api/v1/departments", json={"name": "Nursing"})).json()
    lab = (await client.post("/api/v1/departments", json={"name": "Laboratory"})).json()
    t1 = (await client.post("/api/v1/master-tasks", json={"department_id": nursing["id"], "name": "Hand hygiene"})).json()
    t2 = (await client.post("/api/v1/master-tasks", json={"department_id": lab["id"], "name": "Analyzer upgrade"})).json()
    t3 = (await client.post("/api/v1/master-tasks", json={"department_id": nursing["id"], "name": "Night shifts"})).json()
    return nursing, lab, t1, t2, t3


def _entry(task: dict, order: int, progress=None, **extra) -> dict:
    return {"master_task_id": task["id"], "order_number": order, "progress": progress, **extra}


def _content(rows: list) -> list:
    keys = ("master_task_id", "order_number", "result", "time_period", "progress", "next_week_plan", "is_important")
    return sorted((tuple(r[k] for k in keys) for r in rows), key=lambda t: t[1])


@pytest.mark.asyncio
async def test_create_week_stamps_caller_and_defaults_to_draft(client: AsyncClient, user) -> None:
    response = await client.post("/api/v1/weeks", json=WEEK_1)
    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "DRAFT"
    assert body["created_by_id"] == str(user.id)
    assert body["task_progress"] == []


@pytest.mark.asyncio
async def test_duplicate_week_conflicts_and_leaves_one_row(client: AsyncClient, db_session: AsyncSession) -> None:
    assert (await client.post("/api/v1/weeks", json=WEEK_1)).status_code == 201

    response = await client.post("/api/v1/weeks", json={**WEEK_1, "start_date": "2024-01-02"})
    assert response.status_code == 409

    count = await db_session.scalar(select(func.count(Week.id)).where(Week.week_number == 1, Week.year == 2024))
    assert count == 1


@pytest.mark.asyncio
async def test_create_rejects_duplicate_task_entries(client: AsyncClient) -> None:
    _, _, t1, _, _ = await _tasks(client)

    response = await client.post("/api/v1/weeks", json={**WEEK_1, "task_progress": [_entry(t1, 1), _entry(t1, 2)]})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_update_onto_taken_week_number_conflicts(client: AsyncClient) -> None:
    await client.post("/api/v1/weeks", json=WEEK_1)
    second = (
        await client.post(
            "/api/v1/weeks",
            json={"week_number": 2, "year": 2024, "start_date": "2024-01-08", "end_date": "2024-01-14"},
        )
    ).json()

    response = await client.put(f"/api/v1/weeks/{second['id']}", json={"week_number": 1})
    assert response.status_code == 409

    # Keeping its own number is not a conflict
    response = await client.put(f"/api/v1/weeks/{second['id']}", json={"week_number": 2, "status": "COMPLETED"})
    assert response.status_code == 200
    assert response.json()["status"] == "COMPLETED"


@pytest.mark.asyncio
async def test_replace_round_trip_and_completion(client: AsyncClient) -> None:
    _, _, t1, t2, t3 = await _tasks(client)
    week = (
        await client.post("/api/v1/weeks", json={**WEEK_1, "task_progress": [_entry(t1, 1, 30), _entry(t2, 2, 50)]})
    ).json()
    old_ids = {r["id"] for r in week["task_progress"]}

    submitted = [
        _entry(t2, 1, 100, result="Installed", next_week_plan="Train staff", is_important=True),
        _entry(t3, 2, None, result="Planned", time_period="Mon-Fri"),
    ]
    response = await client.put(f"/api/v1/weeks/{week['id']}", json={"task_progress": submitted})
    assert response.status_code == 200
    rows = response.json()["task_progress"]

    expected = [
        {"result": "", "time_period": "", "next_week_plan": "", "is_important": False, **e} for e in submitted
    ]
    assert _content(rows) == _content(expected)
    assert not old_ids & {r["id"] for r in rows}

    by_task = {r["master_task_id"]: r for r in rows}
    assert by_task[t2["id"]]["completed_at"] is not None
    assert by_task[t3["id"]]["completed_at"] is None

    reread = (await client.get(f"/api/v1/weeks/{week['id']}")).json()
    assert _content(reread["task_progress"]) == _content(rows)


@pytest.mark.asyncio
async def test_failed_replace_keeps_prior_rows(client: AsyncClient) -> None:
    _, _, t1, t2, _ = await _tasks(client)
    week = (
        await client.post("/api/v1/weeks", json={**WEEK_1, "task_progress": [_entry(t1, 1, 30), _entry(t2, 2, 50)]})
    ).json()

    bogus = {"master_task_id": str(uuid.uuid4()), "order_number": 2, "progress": 10}
    response = await client.put(
        f"/api/v1/weeks/{week['id']}",
        json={"status": "COMPLETED", "task_progress": [_entry(t1, 1, 90), bogus]},
    )
    assert response.status_code == 500
    assert response.json()["detail"] == "Internal server error"

    reread = (await client.get(f"/api/v1/weeks/{week['id']}")).json()
    assert reread["status"] == "DRAFT"
    assert {r["id"] for r in reread["task_progress"]} == {r["id"] for r in week["task_progress"]}
    assert sorted(r["progress"] for r in reread["task_progress"]) == [30, 50]


@pytest.mark.asyncio
async def test_report_file_url_cleared_only_by_explicit_null(client: AsyncClient) -> None:
    week = (await client.post("/api/v1/weeks", json={**WEEK_1, "report_file_url": "/files/w1.pdf"})).json()

    body = (await client.put(f"/api/v1/weeks/{week['id']}", json={"status": "COMPLETED"})).json()
    assert body["report_file_url"] == "/files/w1.pdf"

    body = (await client.put(f"/api/v1/weeks/{week['id']}", json={"report_file_url": None})).json()
    assert body["report_file_url"] is None


@pytest.mark.asyncio
async def test_week_detail_groups_by_department(client: AsyncClient) -> None:
    nursing, lab, t1, t2, t3 = await _tasks(client)
    week = (
        await client.post(
            "/api/v1/weeks",
            json={
                **WEEK_1,
                "task_progress": [_entry(t1, 1, 10), _entry(t2, 2, 20), _entry(t3, 3, 30)],
                "tasks": [{"department_id": lab["id"], "order_number": 1, "task_name": "Fire drill", "progress": 100}],
            },
        )
    ).json()

    detail = (await client.get(f"/api/v1/weeks/{week['id']}")).json()
    assert detail["created_by"]["email"] == "reporter@example.com"
    assert [t["task_name"] for t in detail["tasks"]] == ["Fire drill"]

    groups = detail["tasks_by_department"]
    assert [g["department"]["name"] for g in groups] == ["Nursing", "Laboratory"]
    assert [(t["kind"], t["task_name"]) for t in groups[1]["tasks"]] == [
        ("RECURRING", "Analyzer upgrade"),
        ("AD_HOC", "Fire drill"),
    ]
    assert groups[1]["tasks"][1]["completed_at"] is not None


@pytest.mark.asyncio
async def test_list_weeks_counts_and_search(client: AsyncClient) -> None:
    _, lab, t1, t2, t3 = await _tasks(client)
    await client.post(
        "/api/v1/weeks",
        json={
            **WEEK_1,
            "task_progress": [_entry(t1, 1), _entry(t2, 2), _entry(t3, 3)],
            "tasks": [{"department_id": lab["id"], "order_number": 1, "task_name": "Inventory"}],
        },
    )
    await client.post(
        "/api/v1/weeks",
        json={"week_number": 10, "year": 2024, "start_date": "2024-03-04", "end_date": "2024-03-10"},
    )
    await client.post(
        "/api/v1/weeks",
        json={"week_number": 1, "year": 2025, "start_date": "2024-12-30", "end_date": "2025-01-05"},
    )

    weeks = (await client.get("/api/v1/weeks")).json()
    assert [(w["year"], w["week_number"]) for w in weeks] == [(2025, 1), (2024, 10), (2024, 1)]
    assert (weeks[2]["department_count"], weeks[2]["task_count"]) == (2, 4)

    assert [w["week_number"] for w in (await client.get("/api/v1/weeks", params={"year": 2024})).json()] == [10, 1]
    assert [w["week_number"] for w in (await client.get("/api/v1/weeks", params={"search": "10"})).json()] == [10]
    assert (await client.get("/api/v1/weeks", params={"search": "ten"})).json() == []


@pytest.mark.asyncio
async def test_delete_week_removes_its_rows(client: AsyncClient) -> None:
    _, _, t1, _, _ = await _tasks(client)
    week = (await client.post("/api/v1/weeks", json={**WEEK_1, "task_progress": [_entry(t1, 1, 40)]})).json()

    assert (await client.delete(f"/api/v1/weeks/{week['id']}")).status_code == 204
    assert (await client.get(f"/api/v1/weeks/{week['id']}")).status_code == 404

    # The task is no longer referenced, so it can go
    assert (await client.delete(f"/api/v1/master-tasks/{t1['id']}")).status_code == 204
