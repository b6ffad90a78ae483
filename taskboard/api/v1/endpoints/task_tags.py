from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select
from typing import List, Optional

from taskboard.db.session import atomic, get_session
from taskboard.models.tag import Tag, TaskTag
from taskboard.models.task import Task
from taskboard.schemas.tag import TagRead, TaskTagCreate, TaskTagRead
from taskboard.api.deps import get_current_user_id, get_owned_or_404, parse_id

router = APIRouter()


def _find_link(session: Session, task_id: int, tag_id: int) -> Optional[TaskTag]:
    return session.exec(
        select(TaskTag).where(TaskTag.task_id == task_id, TaskTag.tag_id == tag_id)
    ).first()


@router.get("", response_model=List[TagRead])
def list_task_tags(
    taskId: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    task = get_owned_or_404(session, Task, parse_id(taskId, "Task"), user_id, "Task")
    return session.exec(
        select(Tag)
        .join(TaskTag, TaskTag.tag_id == Tag.id)
        .where(TaskTag.task_id == task.id)
        .order_by(Tag.name)
    ).all()


@router.post("", response_model=TaskTagRead, status_code=status.HTTP_201_CREATED)
def attach_tag(
    payload: TaskTagCreate,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    task = get_owned_or_404(session, Task, payload.task_id, user_id, "Task")

    if session.get(Tag, payload.tag_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tag not found")
    if _find_link(session, task.id, payload.tag_id) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Tag is already assigned to this task",
        )

    link = TaskTag(task_id=task.id, tag_id=payload.tag_id)
    try:
        with atomic(session):
            session.add(link)
    except IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Tag is already assigned to this task",
        ) from None
    session.refresh(link)
    return link


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def detach_tag(
    taskId: Optional[str] = None,
    tagId: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    task = get_owned_or_404(session, Task, parse_id(taskId, "Task"), user_id, "Task")

    link = _find_link(session, task.id, parse_id(tagId, "Tag"))
    if link is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Tag is not assigned to this task",
        )

    with atomic(session):
        session.delete(link)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
