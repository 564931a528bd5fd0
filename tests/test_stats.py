from datetime import date, datetime, timedelta

import pytest

from taskhub.models import Task, TaskStatus
from taskhub.services import stats_service

from conftest import auth


@pytest.fixture
def acme(make_company):
    return make_company("Acme")


@pytest.fixture
def make_task(db):
    def factory(company, assignee, assigner, title="Task", status=TaskStatus.PENDING, created_at=None):
        task = Task(
            title=title,
            company_id=company.id,
            assigned_to=assignee.id,
            assigned_by=assigner.id,
            start_date=date(2026, 10, 1),
            end_date=date(2026, 10, 31),
            status=status.value,
            progress=100 if status == TaskStatus.COMPLETED else 0,
            created_at=created_at or datetime.utcnow(),
        )
        db.add(task)
        db.commit()
        return task

    return factory


def test_stats_report(client, acme, make_user, make_task):
    admin = make_user("Ada Admin", role="admin")
    manager = make_user("Mia Manager", role="manager", company=acme)
    staff = make_user("Sam Staff", company=acme)
    make_user("Ian Inactive", company=acme, is_active=False)

    statuses = [TaskStatus.COMPLETED] * 3 + [TaskStatus.PENDING, TaskStatus.IN_PROGRESS, TaskStatus.DELAYED, TaskStatus.IN_PROGRESS]
    start = datetime(2026, 10, 1, 8, 0)
    for i, status in enumerate(statuses):
        make_task(acme, staff, manager, title=f"Task {i}", status=status, created_at=start + timedelta(hours=i))

    response = client.get(f"/companies/{acme.id}/stats", headers=auth(admin))
    assert response.status_code == 200
    stats = response.json()["stats"]

    assert stats["total_users"] == 3
    assert stats["active_users"] == 2
    assert stats["total_tasks"] == 7
    assert stats["completed_tasks"] == 3
    assert stats["pending_tasks"] == 1
    assert stats["in_progress_tasks"] == 2
    assert stats["delayed_tasks"] == 1
    assert stats["completion_rate"] == 43
    assert sorted((r["role"], r["count"]) for r in stats["user_role_distribution"]) == [("manager", 1), ("staff", 2)]

    recent = stats["recent_tasks"]
    assert [t["title"] for t in recent] == ["Task 6", "Task 5", "Task 4", "Task 3", "Task 2"]
    assert recent[0]["assigned_to"] == "Sam Staff"
    assert recent[0]["assigned_by"] == "Mia Manager"


def test_stats_for_empty_company(client, acme, make_user):
    manager = make_user("Mia Manager", role="manager", company=acme)
    stats = client.get(f"/companies/{acme.id}/stats", headers=auth(manager)).json()["stats"]

    assert stats["total_tasks"] == 0
    assert stats["completion_rate"] == 0
    assert stats["recent_tasks"] == []
    assert stats["user_role_distribution"] == [{"role": "manager", "count": 1}]


def test_stats_unknown_company_is_not_found(client, make_user):
    admin = make_user("Ada Admin", role="admin")
    response = client.get("/companies/4242/stats", headers=auth(admin))
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Company not found"}


def test_manager_cannot_read_other_company_stats(client, acme, make_company, make_user):
    manager = make_user("Mia Manager", role="manager", company=acme)
    other = make_company("Other")
    assert client.get(f"/companies/{other.id}/stats", headers=auth(manager)).status_code == 403


def test_failed_sub_query_fails_whole_report(client, acme, make_user, monkeypatch):
    admin = make_user("Ada Admin", role="admin")

    def broken(db, company_id):
        raise RuntimeError("connection reset")

    monkeypatch.setitem(stats_service.STATS_QUERIES, "active_users", broken)
    response = client.get(f"/companies/{acme.id}/stats", headers=auth(admin))

    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Could not compute company statistics"}
