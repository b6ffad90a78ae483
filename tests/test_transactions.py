"""
Writes that span several tables either land together or not at all.
"""

from sqlmodel import func, select

from taskboard.models import Project, Tag, Task, TaskActivity, TaskTag
from taskboard.services import task_service


def count(session, model):
    session.expire_all()
    return session.exec(select(func.count()).select_from(model)).one()


def failing_activity(*args, **kwargs):
    raise RuntimeError("activity log unavailable")


def new_tag(client, headers, name="work"):
    response = client.post("/api/tags", json={"name": name, "color": "#112233"}, headers=headers)
    assert response.status_code == 201
    return response.json()


class TestTaskWrites:

    def test_failed_activity_rolls_back_create(self, quiet_client, session, auth_headers, monkeypatch):
        tag = new_tag(quiet_client, auth_headers)
        monkeypatch.setattr(task_service, "TaskActivity", failing_activity)

        response = quiet_client.post(
            "/api/tasks", json={"title": "Half written", "tagIds": [tag["id"]]}, headers=auth_headers
        )

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}
        assert count(session, Task) == 0
        assert count(session, TaskTag) == 0
        assert count(session, TaskActivity) == 0

    def test_failed_activity_rolls_back_update(self, quiet_client, session, auth_headers, monkeypatch):
        first = new_tag(quiet_client, auth_headers, "first")
        second = new_tag(quiet_client, auth_headers, "second")
        task = quiet_client.post(
            "/api/tasks", json={"title": "Steady", "tagIds": [first["id"]]}, headers=auth_headers
        ).json()
        monkeypatch.setattr(task_service, "TaskActivity", failing_activity)

        response = quiet_client.put(
            "/api/tasks",
            json={"id": task["id"], "status": "DONE", "title": "Renamed", "tagIds": [second["id"]]},
            headers=auth_headers,
        )

        assert response.status_code == 500
        session.expire_all()
        stored = session.get(Task, task["id"])
        assert (stored.title, stored.status.value, stored.completed_at) == ("Steady", "TODO", None)
        assert [link.tag_id for link in session.exec(select(TaskTag)).all()] == [first["id"]]
        assert count(session, TaskActivity) == 1


class TestProjectDelete:

    def test_failure_mid_cascade_keeps_everything(self, quiet_client, session, auth_headers, monkeypatch):
        tag = new_tag(quiet_client, auth_headers)
        project = quiet_client.post("/api/projects", json={"name": "Launch"}, headers=auth_headers).json()
        for title in ("Plan", "Ship"):
            quiet_client.post(
                "/api/tasks",
                json={"title": title, "projectId": project["id"], "tagIds": [tag["id"]]},
                headers=auth_headers,
            )
        real_delete_tasks = task_service.delete_tasks

        def delete_then_fail(*args, **kwargs):
            real_delete_tasks(*args, **kwargs)
            raise RuntimeError("connection lost")

        monkeypatch.setattr(task_service, "delete_tasks", delete_then_fail)

        response = quiet_client.delete("/api/projects", params={"id": project["id"]}, headers=auth_headers)

        assert response.status_code == 500
        assert count(session, Project) == 1
        assert count(session, Task) == 2
        assert count(session, TaskTag) == 2
        assert count(session, Tag) == 1
        actions = [activity.action.value for activity in session.exec(select(TaskActivity)).all()]
        assert sorted(actions) == ["created", "created"]
        listed = quiet_client.get("/api/projects", headers=auth_headers).json()
        assert [(p["name"], p["taskCount"]) for p in listed] == [("Launch", 2)]
