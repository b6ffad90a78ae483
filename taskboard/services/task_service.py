"""Task mutations and the activity records that accompany them.

Each public function runs as one transaction: the task change, its tag
associations and its TaskActivity row are committed together or not at all.
Callers have already checked ownership and input.
"""
import logging
from typing import Iterable, List, Optional

from sqlalchemy import delete
from sqlmodel import Session, select

from ..core.clock import utcnow
from ..db.session import atomic
from ..models.activity import ActivityAction, TaskActivity
from ..models.tag import TaskTag
from ..models.task import Task, TaskStatus

logger = logging.getLogger(__name__)


def _stamp_transition(task: Task, old_status: Optional[TaskStatus], new_status: TaskStatus, now) -> None:
    """Set completed_at / started_at for a status transition.

    completed_at is refreshed on every entry into DONE and kept on re-open.
    started_at is only ever set once.
    """
    if new_status == old_status:
        return
    if new_status == TaskStatus.DONE:
        task.completed_at = now
    elif new_status == TaskStatus.IN_PROGRESS and task.started_at is None:
        task.started_at = now


def _unique(ids: Iterable[int]) -> List[int]:
    return list(dict.fromkeys(ids))


def _link_tags(session: Session, task_id: int, tag_ids: Iterable[int]) -> None:
    for tag_id in _unique(tag_ids):
        session.add(TaskTag(task_id=task_id, tag_id=tag_id))


def _clear_tags(session: Session, task_id: int) -> None:
    session.execute(delete(TaskTag).where(TaskTag.task_id == task_id))


def create_task(session: Session, user_id: str, values: dict, tag_ids: Optional[List[int]] = None) -> Task:
    now = utcnow()
    task = Task(user_id=user_id, created_at=now, updated_at=now, **values)
    _stamp_transition(task, None, task.status, now)

    with atomic(session):
        session.add(task)
        session.flush()
        _link_tags(session, task.id, tag_ids or [])
        session.add(
            TaskActivity(
                task_id=task.id,
                user_id=user_id,
                action=ActivityAction.created,
                new_status=task.status,
                new_priority=task.priority,
                timestamp=now,
            )
        )

    session.refresh(task)
    logger.info("Task %s created by %s", task.id, user_id)
    return task


def update_task(session: Session, task: Task, changes: dict, tag_ids: Optional[List[int]] = None) -> Task:
    """Apply a partial update.

    ``tag_ids`` of None leaves associations alone; a list replaces them.
    """
    now = utcnow()
    old_status, old_priority = task.status, task.priority
    new_status = changes.get("status", old_status)
    new_priority = changes.get("priority", old_priority)

    with atomic(session):
        _stamp_transition(task, old_status, new_status, now)
        for key, value in changes.items():
            setattr(task, key, value)
        task.updated_at = now
        session.add(task)

        if tag_ids is not None:
            _clear_tags(session, task.id)
            _link_tags(session, task.id, tag_ids)

        status_changed = new_status != old_status
        priority_changed = new_priority != old_priority
        if status_changed or priority_changed:
            session.add(
                TaskActivity(
                    task_id=task.id,
                    user_id=task.user_id,
                    action=ActivityAction.status_changed,
                    old_status=old_status if status_changed else None,
                    new_status=new_status if status_changed else None,
                    old_priority=old_priority if priority_changed else None,
                    new_priority=new_priority if priority_changed else None,
                    timestamp=now,
                )
            )

    session.refresh(task)
    return task


def delete_tasks(session: Session, tasks: Iterable[Task], acting_user_id: str) -> None:
    """Log a ``deleted`` activity for each task and remove it with its tag links.

    Must run inside the caller's ``atomic`` block.
    """
    now = utcnow()
    for task in tasks:
        session.add(
            TaskActivity(
                task_id=task.id,
                user_id=acting_user_id,
                action=ActivityAction.deleted,
                old_status=task.status,
                timestamp=now,
            )
        )
        _clear_tags(session, task.id)
        session.delete(task)


def delete_task(session: Session, task: Task) -> None:
    task_id = task.id
    with atomic(session):
        delete_tasks(session, [task], task.user_id)
    logger.info("Task %s deleted", task_id)


def record_activity(session: Session, task: Task, user_id: str, values: dict) -> TaskActivity:
    """Append a client-reported activity, stamping the task for status changes."""
    now = utcnow()
    activity = TaskActivity(task_id=task.id, user_id=user_id, timestamp=now, **values)

    with atomic(session):
        session.add(activity)
        if activity.action == ActivityAction.status_changed and activity.new_status is not None:
            _stamp_transition(task, activity.old_status, activity.new_status, now)
            session.add(task)

    session.refresh(activity)
    return activity


def tasks_in_project(session: Session, project_id: int) -> List[Task]:
    return list(session.exec(select(Task).where(Task.project_id == project_id)).all())
