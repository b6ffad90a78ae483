from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from sqlmodel import select

from taskboard.core.config import settings
from taskboard.models import Tag, Task, TaskActivity


def create_task(client, headers, **fields):
    payload = {"title": "Write report", **fields}
    response = client.post("/api/tasks", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def activities(client, headers):
    response = client.get("/api/analytics/activities", headers=headers)
    assert response.status_code == 200
    return response.json()


class TestCreate:

    def test_defaults(self, client, auth_headers):
        task = create_task(client, auth_headers)

        assert task["status"] == "TODO"
        assert task["priority"] == 1
        assert task["userId"] == "alice"
        assert task["startedAt"] is None
        assert task["completedAt"] is None
        assert task["tags"] == []
        assert task["project"] is None

    def test_created_activity(self, client, auth_headers):
        task = create_task(client, auth_headers, priority=3)

        [entry] = activities(client, auth_headers)
        assert entry["taskId"] == task["id"]
        assert entry["action"] == "created"
        assert entry["newStatus"] == "TODO"
        assert entry["newPriority"] == 3
        assert entry["taskTitle"] == "Write report"

    def test_legacy_status_spelling(self, client, auth_headers):
        task = create_task(client, auth_headers, status="in-progress")

        assert task["status"] == "IN_PROGRESS"
        assert task["startedAt"] is not None

    def test_unknown_status(self, client, auth_headers):
        response = client.post("/api/tasks", json={"title": "x", "status": "blocked"}, headers=auth_headers)
        assert response.status_code == 400
        assert "Invalid status" in response.json()["error"]

    def test_title_required(self, client, auth_headers):
        response = client.post("/api/tasks", json={"description": "no title"}, headers=auth_headers)
        assert response.status_code == 400
        assert "title" in response.json()["error"]

    def test_blank_title(self, client, auth_headers):
        response = client.post("/api/tasks", json={"title": "   "}, headers=auth_headers)
        assert response.status_code == 400
        assert response.json() == {"error": "Title is required"}

    def test_snake_case_body_is_accepted(self, client, auth_headers):
        project = client.post("/api/projects", json={"name": "Home"}, headers=auth_headers).json()

        task = create_task(client, auth_headers, project_id=project["id"])

        assert task["projectId"] == project["id"]
        assert task["project"] == {"id": project["id"], "name": "Home"}

    def test_project_of_another_user(self, client, auth_headers, other_headers):
        project = client.post("/api/projects", json={"name": "Bob's"}, headers=other_headers).json()

        response = client.post("/api/tasks", json={"title": "x", "projectId": project["id"]}, headers=auth_headers)

        assert response.status_code == 404

    def test_with_tags(self, client, auth_headers):
        tag = client.post("/api/tags", json={"name": "work", "color": "#112233"}, headers=auth_headers).json()

        task = create_task(client, auth_headers, tagIds=[tag["id"], tag["id"]])

        assert [t["name"] for t in task["tags"]] == ["work"]

    def test_unknown_tag(self, client, auth_headers):
        response = client.post("/api/tasks", json={"title": "x", "tagIds": [999]}, headers=auth_headers)
        assert response.status_code == 400
        assert client.get("/api/tasks", headers=auth_headers).json() == []


class TestTimestamps:

    def test_due_date_comes_back_in_utc(self, client, auth_headers):
        task = create_task(client, auth_headers, dueDate="2026-03-05T12:00:00Z")

        assert task["dueDate"] == "2026-03-05T12:00:00Z"
        assert task["createdAt"].endswith("Z")
        [listed] = client.get("/api/tasks", headers=auth_headers).json()
        assert listed["dueDate"] == "2026-03-05T12:00:00Z"

    def test_naive_due_date_is_read_in_local_zone(self, client, auth_headers, monkeypatch):
        monkeypatch.setattr(settings, "TIMEZONE", "Europe/Berlin")

        task = create_task(client, auth_headers, dueDate="2026-03-05T12:00:00")

        assert task["dueDate"] == "2026-03-05T11:00:00Z"

    def test_stored_timestamps_are_aware_utc(self, client, session, auth_headers):
        task = create_task(client, auth_headers, status="DONE", dueDate="2026-03-05T12:00:00+02:00")

        stored = session.get(Task, task["id"])
        assert stored.due_date == datetime(2026, 3, 5, 10, 0, tzinfo=timezone.utc)
        for value in (stored.created_at, stored.updated_at, stored.completed_at):
            assert value.utcoffset() == timedelta(0)
        [entry] = session.exec(select(TaskActivity)).all()
        assert entry.timestamp.utcoffset() == timedelta(0)

    def test_column_normalizes_other_zones(self, session):
        berlin = datetime(2026, 3, 1, 1, 0, tzinfo=ZoneInfo("Europe/Berlin"))
        session.add(Tag(name="zoned", color="#000000", created_at=berlin, updated_at=berlin))
        session.commit()
        session.expire_all()

        tag = session.exec(select(Tag).where(Tag.name == "zoned")).one()

        assert tag.created_at == datetime(2026, 3, 1, 0, 0, tzinfo=timezone.utc)
        assert tag.created_at.tzinfo == timezone.utc


class TestLifecycle:

    def test_todo_in_progress_done(self, client, auth_headers):
        task = create_task(client, auth_headers)

        started = client.put(
            "/api/tasks", json={"id": task["id"], "status": "IN_PROGRESS"}, headers=auth_headers
        ).json()
        assert started["startedAt"] is not None
        assert started["completedAt"] is None

        done = client.put("/api/tasks", json={"id": task["id"], "status": "done"}, headers=auth_headers).json()
        assert done["status"] == "DONE"
        assert done["startedAt"] == started["startedAt"]
        assert done["completedAt"] is not None

        log = activities(client, auth_headers)
        assert [entry["action"] for entry in log] == ["status_changed", "status_changed", "created"]
        assert (log[0]["oldStatus"], log[0]["newStatus"]) == ("IN_PROGRESS", "DONE")
        assert (log[1]["oldStatus"], log[1]["newStatus"]) == ("TODO", "IN_PROGRESS")

    def test_started_at_is_set_once(self, client, auth_headers):
        task = create_task(client, auth_headers, status="IN_PROGRESS")
        first_start = task["startedAt"]

        client.put("/api/tasks", json={"id": task["id"], "status": "TODO"}, headers=auth_headers)
        again = client.put("/api/tasks", json={"id": task["id"], "status": "IN_PROGRESS"}, headers=auth_headers)

        assert again.json()["startedAt"] == first_start

    def test_reopen_keeps_completed_at(self, client, auth_headers):
        task = create_task(client, auth_headers)
        done = client.put("/api/tasks", json={"id": task["id"], "status": "DONE"}, headers=auth_headers).json()

        reopened = client.put("/api/tasks", json={"id": task["id"], "status": "TODO"}, headers=auth_headers).json()

        assert reopened["status"] == "TODO"
        assert reopened["completedAt"] == done["completedAt"]

    def test_title_only_update_logs_nothing(self, client, auth_headers):
        task = create_task(client, auth_headers)

        response = client.put("/api/tasks", json={"id": task["id"], "title": "Renamed"}, headers=auth_headers)

        assert response.json()["title"] == "Renamed"
        assert len(activities(client, auth_headers)) == 1

    def test_priority_change_logs_only_priority(self, client, auth_headers):
        task = create_task(client, auth_headers)

        client.put("/api/tasks", json={"id": task["id"], "priority": 5}, headers=auth_headers)

        latest = activities(client, auth_headers)[0]
        assert latest["action"] == "status_changed"
        assert (latest["oldPriority"], latest["newPriority"]) == (1, 5)
        assert latest["oldStatus"] is None and latest["newStatus"] is None

    def test_replace_tags(self, client, auth_headers):
        work = client.post("/api/tags", json={"name": "work", "color": "#112233"}, headers=auth_headers).json()
        home = client.post("/api/tags", json={"name": "home", "color": "#445566"}, headers=auth_headers).json()
        task = create_task(client, auth_headers, tagIds=[work["id"]])

        updated = client.put("/api/tasks", json={"id": task["id"], "tagIds": [home["id"]]}, headers=auth_headers)

        assert [t["name"] for t in updated.json()["tags"]] == ["home"]

    def test_update_of_another_users_task(self, client, session, auth_headers, other_headers):
        task = create_task(client, auth_headers)

        response = client.put("/api/tasks", json={"id": task["id"], "title": "Mine now"}, headers=other_headers)

        assert response.status_code == 403
        [mine] = client.get("/api/tasks", headers=auth_headers).json()
        assert mine["title"] == "Write report"

    def test_update_missing_task(self, client, auth_headers):
        response = client.put("/api/tasks", json={"id": 404, "title": "x"}, headers=auth_headers)
        assert response.status_code == 404
        assert response.json() == {"error": "Task not found"}


class TestListing:

    def test_only_own_tasks(self, client, auth_headers, other_headers):
        create_task(client, auth_headers, title="Mine")
        create_task(client, other_headers, title="Theirs")

        titles = [task["title"] for task in client.get("/api/tasks", headers=auth_headers).json()]

        assert titles == ["Mine"]

    def test_order_priority_then_due_date(self, client, auth_headers):
        create_task(client, auth_headers, title="low")
        create_task(client, auth_headers, title="late", priority=3, dueDate="2026-05-01T00:00:00Z")
        create_task(client, auth_headers, title="undated", priority=3)
        create_task(client, auth_headers, title="soon", priority=3, dueDate="2026-04-01T00:00:00Z")

        titles = [task["title"] for task in client.get("/api/tasks", headers=auth_headers).json()]

        assert titles == ["soon", "late", "undated", "low"]

    def test_filter_by_tag(self, client, auth_headers):
        work = client.post("/api/tags", json={"name": "work", "color": "#112233"}, headers=auth_headers).json()
        create_task(client, auth_headers, title="tagged", tagIds=[work["id"]])
        create_task(client, auth_headers, title="plain")

        response = client.get("/api/tasks", params={"tags": str(work["id"])}, headers=auth_headers)

        assert [task["title"] for task in response.json()] == ["tagged"]

    def test_bad_tag_filter(self, client, auth_headers):
        response = client.get("/api/tasks", params={"tags": "a,b"}, headers=auth_headers)
        assert response.status_code == 400


class TestDelete:

    def test_delete_logs_and_removes(self, client, session, auth_headers):
        task = create_task(client, auth_headers, status="IN_PROGRESS")

        response = client.delete("/api/tasks", params={"id": task["id"]}, headers=auth_headers)

        assert response.status_code == 204
        assert client.get("/api/tasks", headers=auth_headers).json() == []
        latest = activities(client, auth_headers)[0]
        assert latest["action"] == "deleted"
        assert latest["oldStatus"] == "IN_PROGRESS"
        assert latest["taskTitle"] == "Unknown Task"

    def test_id_required(self, client, auth_headers):
        response = client.delete("/api/tasks", headers=auth_headers)
        assert response.status_code == 400
        assert response.json() == {"error": "Task ID is required"}

    def test_invalid_id(self, client, auth_headers):
        response = client.delete("/api/tasks", params={"id": "abc"}, headers=auth_headers)
        assert response.status_code == 400

    def test_other_users_task_is_kept(self, client, session, auth_headers, other_headers):
        task = create_task(client, auth_headers)

        response = client.delete("/api/tasks", params={"id": task["id"]}, headers=other_headers)

        assert response.status_code == 403
        assert len(client.get("/api/tasks", headers=auth_headers).json()) == 1
        assert len(session.exec(select(TaskActivity)).all()) == 1
