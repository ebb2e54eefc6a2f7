import uuid
from datetime import date, datetime
from types import SimpleNamespace

import pytest
from httpx import AsyncClient

from report_app.core import reporting
from report_app.core.progress import TaskAggregate, WeeklyProgressPoint
from report_app.core.reporting import ReportTask

NURSING = uuid.uuid4()
LAB = uuid.uuid4()


def _point(week: int, progress: int, year: int = 2024) -> WeeklyProgressPoint:
    return WeeklyProgressPoint(
        week_number=week,
        year=year,
        progress=progress,
        result=None,
        start_date=date.fromisocalendar(year, week, 1),
    )


def _task(name, dept, points, completed=False, created=datetime(2024, 1, 1)) -> ReportTask:
    latest = points[-1].progress if points else 0
    return ReportTask(
        id=uuid.uuid4(),
        name=name,
        department_id=dept,
        department_name="Nursing" if dept == NURSING else "Laboratory",
        created_at=created,
        aggregate=TaskAggregate(
            latest_progress=latest,
            is_completed=completed,
            week_count=len(points),
            weekly_progress=list(points),
        ),
    )


def test_round_half_up() -> None:
    assert reporting.round_half_up(2.5) == 3
    assert reporting.round_half_up(3.5) == 4
    assert reporting.round_half_up(66.666) == 67
    assert reporting.round_half_up(0.49) == 0


def test_status_counts() -> None:
    tasks = [
        _task("done", NURSING, [_point(1, 50), _point(2, 100)], completed=True),
        _task("half", NURSING, [_point(1, 50)]),
        _task("new", LAB, []),
    ]

    counts = reporting.count_statuses(tasks)

    assert (counts.total, counts.completed, counts.in_progress, counts.not_started) == (3, 1, 1, 1)
    assert counts.avg_progress == 50
    assert counts.total_weeks == 3
    assert counts.avg_weeks_per_task == 1
    assert counts.completion_rate == 33
    assert reporting.count_statuses([]).completion_rate == 0


def test_year_filters() -> None:
    old = _task("old", NURSING, [_point(50, 30, year=2023)], created=datetime(2023, 12, 1))
    carried = _task("carried", NURSING, [_point(50, 30, year=2023), _point(2, 60)], created=datetime(2023, 12, 1))
    fresh = _task("fresh", LAB, [], created=datetime(2022, 5, 1))
    created_now = _task("created", LAB, [_point(40, 10, year=2023)], created=datetime(2024, 1, 3))
    tasks = [old, carried, fresh, created_now]

    assert [t.name for t in reporting.tasks_for_year(tasks, 2024)] == ["carried", "fresh", "created"]
    assert [t.name for t in reporting.timeline_tasks(tasks, 2024)] == ["carried", "fresh"]


def test_monthly_breakdown_uses_week_start_dates() -> None:
    # Weeks 1 and 2 of 2024 start in January, week 6 in February
    a = _task("a", NURSING, [_point(1, 20), _point(2, 40)])
    b = _task("b", LAB, [_point(1, 60), _point(6, 100)], completed=True)

    months = reporting.monthly_breakdown([a, b], 2024)

    assert len(months) == 12
    january, february = months[0], months[1]
    assert (january.tasks_started, january.tasks_completed, january.avg_progress) == (2, 0, 45)
    assert (february.tasks_started, february.tasks_completed, february.avg_progress) == (1, 1, 100)
    assert months[2].tasks_started == 0 and months[2].avg_progress == 0


def test_quarters_and_grouping() -> None:
    a = _task("a", NURSING, [_point(13, 10), _point(14, 30)])
    b = _task("b", LAB, [_point(20, 51)])
    c = _task("c", NURSING, [])

    quarters = reporting.quarter_summaries([a, b, c], 2024)
    assert [(q.name, q.first_week, q.last_week) for q in quarters] == [
        ("Q1", 1, 13),
        ("Q2", 14, 26),
        ("Q3", 27, 39),
        ("Q4", 40, 53),
    ]
    assert (quarters[0].task_count, quarters[0].avg_progress) == (1, 10)
    # Mean of per-task means: (30 + 51) / 2
    assert (quarters[1].task_count, quarters[1].avg_progress) == (2, 41)
    assert quarters[3].task_count == 0

    groups = reporting.group_by_department([a, b, c], 2024)
    assert [g.department_name for g in groups] == ["Nursing", "Laboratory"]
    assert [t.name for t, _ in groups[0].tasks] == ["a", "c"]


def test_top_lists() -> None:
    tasks = [_task(f"t{i}", NURSING, [_point(1, i * 10)]) for i in range(1, 8)]
    tasks.append(_task("idle", LAB, []))
    tasks.append(_task("finished", LAB, [_point(1, 100)], completed=True))

    assert [t.name for t in reporting.top_tasks_by_progress(tasks)] == ["finished", "t7", "t6", "t5", "t4"]
    assert [t.name for t in reporting.important_tasks(tasks)] == ["t7", "t6", "t5", "t4", "t3"]

    stats = reporting.department_breakdown([(NURSING, "Nursing"), (LAB, "Laboratory")], tasks)
    assert [s.department_name for s in reporting.top_departments(stats)] == ["Laboratory", "Nursing"]


def test_metric_matrix() -> None:
    w1 = SimpleNamespace(id=uuid.uuid4(), week_number=1, year=2024)
    w3 = SimpleNamespace(id=uuid.uuid4(), week_number=3, year=2024)
    visits = SimpleNamespace(id=uuid.uuid4(), name="Visits")
    beds = SimpleNamespace(id=uuid.uuid4(), name="Beds")
    values = [
        SimpleNamespace(metric=visits, week=w3, value=12.0, note=None),
        SimpleNamespace(metric=beds, week=w1, value=4.0, note="closed ward"),
        SimpleNamespace(metric=visits, week=w1, value=10.0, note=None),
    ]

    matrix = reporting.build_metric_matrix(values)

    assert [w.week_number for w in matrix.weeks] == [1, 3]
    [(m1, cells1), (m2, cells2)] = matrix.rows
    assert m1 is visits and m2 is beds
    assert [cells1[w.id].value for w in matrix.weeks] == [10.0, 12.0]
    assert cells2[w3.id] is None


@pytest.mark.asyncio
async def test_report_endpoints(client: AsyncClient) -> None:
    dept = (await client.post("/api/v1/departments", json={"name": "Nursing"})).json()
    task = (await client.post("/api/v1/master-tasks", json={"department_id": dept["id"], "name": "Audit"})).json()
    await client.post("/api/v1/master-tasks", json={"department_id": dept["id"], "name": "Idle"})
    week = (
        await client.post(
            "/api/v1/weeks",
            json={
                "week_number": 2,
                "year": 2024,
                "start_date": "2024-01-08",
                "end_date": "2024-01-14",
                "task_progress": [{"master_task_id": task["id"], "order_number": 1, "progress": 60}],
            },
        )
    ).json()
    metric = (await client.post("/api/v1/metrics", json={"department_id": dept["id"], "name": "Beds"})).json()
    await client.post("/api/v1/week-metrics", json={"metric_id": metric["id"], "week_id": week["id"], "value": 42})

    overview = (await client.get("/api/v1/reports/overview")).json()
    assert overview["total_departments"] == 1
    assert overview["total_master_tasks"] == 2
    assert overview["tasks_in_progress"] == 1
    assert [t["name"] for t in overview["important_tasks"]] == ["Audit"]
    assert [w["week_number"] for w in overview["recent_weeks"]] == [2]

    metrics = (await client.get("/api/v1/reports/task-metrics", params={"year": 2024})).json()
    assert metrics["overall"]["total_tasks"] == 2
    assert metrics["overall"]["avg_progress"] == 30
    assert metrics["monthly"][0]["tasks_started"] == 1
    assert metrics["departments"][0]["department"]["name"] == "Nursing"

    timeline = (await client.get("/api/v1/reports/timeline", params={"year": 2024})).json()
    audit = next(t for t in timeline["departments"][0]["tasks"] if t["name"] == "Audit")
    assert [(p["week_number"], p["progress"]) for p in audit["points"]] == [(2, 60)]
    assert timeline["quarters"][0]["avg_progress"] == 60

    data = (await client.get("/api/v1/reports/metrics-data", params={"year": 2024})).json()
    assert data["value_count"] == 1
    assert [w["week_number"] for w in data["weeks"]] == [2]
    assert data["rows"][0]["cells"][0]["value"] == 42
    assert (await client.get("/api/v1/reports/metrics-data", params={"year": 2023})).json()["rows"] == []
