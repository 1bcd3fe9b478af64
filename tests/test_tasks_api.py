import uuid
from datetime import UTC, datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from app.db_handlers import TaskDBHandler
from app.services.task_service import TaskService


@pytest.fixture
def create_task(client, auth_headers):
    def _create(headers=None, **payload):
        payload.setdefault("title", "Study for exam")
        resp = client.post("/tasks", json=payload, headers=headers or auth_headers)
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _create


def test_requires_authentication(client):
    resp = client.get("/tasks")
    assert resp.status_code == 401
    assert resp.json()["error"] == "unauthenticated"


def test_rejects_invalid_token(client):
    resp = client.get("/tasks", headers={"Authorization": "Bearer not-a-token"})
    assert resp.status_code == 401
    assert resp.json() == {
        "error": "unauthenticated",
        "detail": "Could not validate credentials",
    }


class TestCreateTask:
    def test_defaults(self, client, auth_headers):
        resp = client.post("/tasks", json={"title": "  Study  "}, headers=auth_headers)

        assert resp.status_code == 201
        task = resp.json()
        assert task["title"] == "Study"
        assert task["status"] == "PENDING"
        assert task["priority"] == "MEDIUM"
        assert task["tags"] == []
        assert task["is_recurring"] is False
        assert task["completed_at"] is None
        assert task["due_date"] is None

    def test_accepts_camel_case_fields(self, create_task):
        due = datetime(2030, 5, 1, 9, 30, tzinfo=UTC)
        task = create_task(
            title="Weekly quiz",
            priority="HIGH",
            dueDate=due.isoformat(),
            tags=["math", " math ", "", "quiz"],
            isRecurring=True,
            recurringPattern="weekly",
        )

        assert task["priority"] == "HIGH"
        assert datetime.fromisoformat(task["due_date"]) == due
        assert task["tags"] == ["math", "quiz"]
        assert task["is_recurring"] is True
        assert task["recurring_pattern"] == "weekly"

    def test_pattern_dropped_when_not_recurring(self, create_task):
        task = create_task(recurring_pattern="daily")
        assert task["recurring_pattern"] is None

    def test_due_date_offset_normalized_to_utc(self, create_task):
        task = create_task(due_date="2030-05-01T12:00:00+02:00")
        assert datetime.fromisoformat(task["due_date"]) == datetime(
            2030, 5, 1, 10, 0, tzinfo=UTC
        )

    def test_length_limit_applies_after_trimming(self, client, auth_headers):
        title = "a" * 254
        resp = client.post(
            "/tasks", json={"title": f"  {title}  "}, headers=auth_headers
        )
        assert resp.status_code == 201, resp.text
        assert resp.json()["title"] == title

        resp = client.post("/tasks", json={"title": "a" * 256}, headers=auth_headers)
        assert resp.status_code == 400

    def test_blank_due_date_means_none(self, create_task):
        task = create_task(dueDate="")
        assert task["due_date"] is None
        assert task["due_label"] == "No due date"

    def test_display_fields(self, create_task):
        past = (datetime.now(UTC) - timedelta(days=2)).isoformat()
        task = create_task(priority="URGENT", due_date=past)

        assert task["is_overdue"] is True
        assert task["due_label"] == "Overdue by 2 days"
        assert task["priority_category"] == "danger"
        assert task["status_category"] == "neutral"
        assert task["status_icon"] == "📝"

    @pytest.mark.parametrize(
        "payload",
        [
            {"title": "   "},
            {},
            {"title": "Essay", "priority": "SOMEDAY"},
            {"title": "Essay", "tags": "not-a-list"},
        ],
    )
    def test_invalid_payloads(self, client, auth_headers, payload):
        resp = client.post("/tasks", json=payload, headers=auth_headers)
        assert resp.status_code == 400
        assert resp.json()["error"] == "validation_failed"


class TestListTasks:
    def test_ordered_and_scoped_to_owner(self, client, sync_user, create_task):
        _, headers = sync_user()
        _, other_headers = sync_user()
        create_task(headers=headers, title="low", priority="LOW")
        create_task(headers=headers, title="urgent", priority="URGENT")
        create_task(headers=headers, title="high", priority="HIGH")
        create_task(headers=other_headers, title="not mine")

        resp = client.get("/tasks", headers=headers)

        assert resp.status_code == 200
        assert [t["title"] for t in resp.json()] == ["urgent", "high", "low"]

    def test_empty_list(self, client, auth_headers):
        resp = client.get("/tasks", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json() == []

    def test_storage_failure(self, client, auth_headers, monkeypatch):
        async def broken(self, owner_id, *, db=None):
            raise OperationalError("SELECT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(TaskDBHandler, "get_tasks_by_owner", broken)

        resp = client.get("/tasks", headers=auth_headers)

        assert resp.status_code == 500
        assert resp.json()["error"] == "storage_failure"
        assert "disk I/O" not in resp.json()["detail"]

    def test_unexpected_error_keeps_error_body(self, app, auth_headers, monkeypatch):
        async def broken(self, user, *, db=None):
            raise RuntimeError("boom")

        monkeypatch.setattr(TaskService, "list_tasks", broken)

        with TestClient(app, raise_server_exceptions=False) as c:
            resp = c.get("/tasks", headers=auth_headers)

        assert resp.status_code == 500
        assert resp.json() == {
            "error": "internal_error",
            "detail": "An unexpected error occurred",
        }


class TestSingleTask:
    def test_get_own_task(self, client, auth_headers, create_task):
        task = create_task()
        resp = client.get(f"/tasks/{task['id']}", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["id"] == task["id"]

    def test_other_users_task_is_forbidden(self, client, sync_user, create_task):
        _, owner_headers = sync_user()
        _, intruder_headers = sync_user()
        task = create_task(headers=owner_headers)

        for method, url in [
            ("get", f"/tasks/{task['id']}"),
            ("delete", f"/tasks/{task['id']}"),
            ("post", f"/tasks/{task['id']}/toggle"),
        ]:
            resp = client.request(method, url, headers=intruder_headers)
            assert resp.status_code == 403
            assert resp.json()["error"] == "forbidden"

        resp = client.put(
            f"/tasks/{task['id']}", json={"title": "hijacked"}, headers=intruder_headers
        )
        assert resp.status_code == 403

        # Untouched for the owner
        resp = client.get(f"/tasks/{task['id']}", headers=owner_headers)
        assert resp.json()["title"] == task["title"]

    def test_unknown_task(self, client, auth_headers):
        resp = client.get(f"/tasks/{uuid.uuid4()}", headers=auth_headers)
        assert resp.status_code == 404
        assert resp.json() == {"error": "not_found", "detail": "Task not found"}

    def test_malformed_task_id(self, client, auth_headers):
        resp = client.get("/tasks/abc", headers=auth_headers)
        assert resp.status_code == 400
        assert resp.json()["error"] == "validation_failed"

    def test_unauthenticated_before_lookup(self, client):
        resp = client.get(f"/tasks/{uuid.uuid4()}")
        assert resp.status_code == 401


class TestUpdateTask:
    def test_partial_update(self, client, auth_headers, create_task):
        task = create_task(title="Essay", description="draft", tags=["history"])

        resp = client.put(
            f"/tasks/{task['id']}",
            json={"priority": "URGENT", "description": "  "},
            headers=auth_headers,
        )

        assert resp.status_code == 200
        updated = resp.json()
        assert updated["priority"] == "URGENT"
        assert updated["description"] is None
        assert updated["title"] == "Essay"
        assert updated["tags"] == ["history"]

    def test_completion_timestamp_follows_status(self, client, auth_headers, create_task):
        task = create_task()
        url = f"/tasks/{task['id']}"

        completed = client.put(url, json={"status": "COMPLETED"}, headers=auth_headers)
        assert completed.status_code == 200
        stamp = completed.json()["completed_at"]
        assert stamp is not None
        assert datetime.fromisoformat(stamp) <= datetime.now(UTC) + timedelta(seconds=1)

        again = client.put(
            url, json={"status": "COMPLETED", "title": "renamed"}, headers=auth_headers
        )
        assert again.json()["completed_at"] == stamp

        reopened = client.put(url, json={"status": "IN_PROGRESS"}, headers=auth_headers)
        assert reopened.json()["status"] == "IN_PROGRESS"
        assert reopened.json()["completed_at"] is None

    def test_clearing_recurrence_drops_pattern(self, client, auth_headers, create_task):
        task = create_task(is_recurring=True, recurring_pattern="daily")

        resp = client.put(
            f"/tasks/{task['id']}", json={"isRecurring": False}, headers=auth_headers
        )

        assert resp.json()["is_recurring"] is False
        assert resp.json()["recurring_pattern"] is None

    def test_clear_due_date(self, client, auth_headers, create_task):
        task = create_task(due_date="2030-01-01T00:00:00Z")
        resp = client.put(
            f"/tasks/{task['id']}", json={"due_date": None}, headers=auth_headers
        )
        assert resp.json()["due_date"] is None

    def test_blank_due_date_clears_it(self, client, auth_headers, create_task):
        task = create_task(due_date="2030-01-01T00:00:00Z")
        resp = client.put(
            f"/tasks/{task['id']}", json={"dueDate": ""}, headers=auth_headers
        )
        assert resp.status_code == 200
        assert resp.json()["due_date"] is None

    def test_padded_title_within_limit(self, client, auth_headers, create_task):
        task = create_task()
        title = "b" * 255
        resp = client.put(
            f"/tasks/{task['id']}", json={"title": f" {title} "}, headers=auth_headers
        )
        assert resp.status_code == 200, resp.text
        assert resp.json()["title"] == title

    @pytest.mark.parametrize(
        "payload",
        [
            {"title": " "},
            {"status": None},
            {"status": "DONE"},
            {"owner_id": str(uuid.uuid4())},
            {"unknown": 1},
        ],
    )
    def test_invalid_updates(self, client, auth_headers, create_task, payload):
        task = create_task()
        resp = client.put(f"/tasks/{task['id']}", json=payload, headers=auth_headers)
        assert resp.status_code == 400
        assert resp.json()["error"] == "validation_failed"

    def test_empty_update_is_noop(self, client, auth_headers, create_task):
        task = create_task()
        resp = client.put(f"/tasks/{task['id']}", json={}, headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["updated_at"] == task["updated_at"]


def test_toggle_round_trip(client, auth_headers, create_task):
    task = create_task()
    url = f"/tasks/{task['id']}/toggle"

    first = client.post(url, headers=auth_headers).json()
    assert first["status"] == "COMPLETED"
    assert first["completed_at"] is not None

    second = client.post(url, headers=auth_headers).json()
    assert second["status"] == "PENDING"
    assert second["completed_at"] is None


def test_toggle_cancelled_task_completes_it(client, auth_headers, create_task):
    task = create_task()
    client.put(f"/tasks/{task['id']}", json={"status": "CANCELLED"}, headers=auth_headers)

    resp = client.post(f"/tasks/{task['id']}/toggle", headers=auth_headers)

    assert resp.json()["status"] == "COMPLETED"


def test_delete_task(client, auth_headers, create_task):
    task = create_task()

    resp = client.delete(f"/tasks/{task['id']}", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json() == {"message": "Task deleted successfully"}

    assert client.get(f"/tasks/{task['id']}", headers=auth_headers).status_code == 404
    assert client.delete(f"/tasks/{task['id']}", headers=auth_headers).status_code == 404


def test_stats(client, sync_user, create_task):
    _, headers = sync_user()
    past = (datetime.now(UTC) - timedelta(days=2)).isoformat()
    create_task(headers=headers, due_date=past)
    create_task(headers=headers)
    in_progress = create_task(headers=headers)
    done = create_task(headers=headers, due_date=past)
    client.put(f"/tasks/{in_progress['id']}", json={"status": "IN_PROGRESS"}, headers=headers)
    client.post(f"/tasks/{done['id']}/toggle", headers=headers)

    resp = client.get("/tasks/stats", headers=headers)

    assert resp.status_code == 200
    assert resp.json() == {
        "total": 4,
        "pending": 2,
        "in_progress": 1,
        "completed": 1,
        "cancelled": 0,
        "overdue": 1,
    }
