from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import selectinload
from sqlmodel import Session, select
from typing import List, Optional

from taskboard.db.session import get_session
from taskboard.models.project import Project
from taskboard.models.tag import Tag, TaskTag
from taskboard.models.task import Task
from taskboard.schemas.task import TaskCreate, TaskRead, TaskUpdate
from taskboard.schemas.user import Identity
from taskboard.services import task_service
from taskboard.api.deps import (
    get_current_identity,
    get_current_user_id,
    get_owned_or_404,
    parse_id,
    sync_user_with_database,
)

router = APIRouter()

# Fields that cannot be cleared by sending null
_REQUIRED_ON_UPDATE = ("title", "status", "priority")


def _ensure_project(session: Session, project_id: Optional[int], user_id: str) -> None:
    if project_id is None:
        return
    project = session.get(Project, project_id)
    if project is None or project.user_id != user_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")


def _ensure_tags(session: Session, tag_ids: Optional[List[int]]) -> None:
    if not tag_ids:
        return
    wanted = set(tag_ids)
    found = set(session.exec(select(Tag.id).where(Tag.id.in_(wanted))).all())
    missing = sorted(wanted - found)
    if missing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown tag ids: {', '.join(str(tag_id) for tag_id in missing)}",
        )


def _parse_tag_filter(raw: Optional[str]) -> List[int]:
    if not raw:
        return []
    try:
        return [int(part) for part in raw.split(",") if part.strip()]
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid tags filter")


def _with_relations(statement):
    return statement.options(selectinload(Task.tags), selectinload(Task.project))


@router.get("", response_model=List[TaskRead])
def list_user_tasks(
    tags: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    statement = select(Task).where(Task.user_id == user_id)

    tag_ids = _parse_tag_filter(tags)
    if tag_ids:
        tagged = select(TaskTag.task_id).where(TaskTag.tag_id.in_(tag_ids))
        statement = statement.where(Task.id.in_(tagged))

    # Tasks without a due date sort last
    statement = statement.order_by(
        Task.priority.desc(), Task.due_date.is_(None), Task.due_date.asc(), Task.id
    )
    return session.exec(_with_relations(statement)).all()


@router.post("", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
def create_task(
    task_create: TaskCreate,
    identity: Identity = Depends(get_current_identity),
    session: Session = Depends(get_session),
):
    sync_user_with_database(session, identity)
    _ensure_project(session, task_create.project_id, identity.user_id)
    _ensure_tags(session, task_create.tag_ids)

    task = task_service.create_task(
        session,
        identity.user_id,
        task_create.model_dump(exclude={"tag_ids"}),
        tag_ids=task_create.tag_ids,
    )
    return TaskRead.model_validate(task)


@router.put("", response_model=TaskRead)
def update_task(
    task_update: TaskUpdate,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    task = get_owned_or_404(session, Task, task_update.id, user_id, "Task")

    changes = task_update.model_dump(exclude_unset=True, exclude={"id", "tag_ids"})
    for field in _REQUIRED_ON_UPDATE:
        if field in changes and changes[field] is None:
            del changes[field]
    if "project_id" in changes:
        _ensure_project(session, changes["project_id"], user_id)
    _ensure_tags(session, task_update.tag_ids)

    task = task_service.update_task(session, task, changes, tag_ids=task_update.tag_ids)
    return TaskRead.model_validate(task)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    id: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    task = get_owned_or_404(session, Task, parse_id(id, "Task"), user_id, "Task")
    task_service.delete_task(session, task)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
