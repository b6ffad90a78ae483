import logging
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select, func
from typing import List, Optional

from taskboard.core.clock import utcnow
from taskboard.db.session import atomic, get_session
from taskboard.models.tag import Tag, TaskTag
from taskboard.models.task import Task
from taskboard.schemas.tag import TagCreate, TagRead, TagUpdate, TagWithCount
from taskboard.schemas.user import Identity
from taskboard.api.deps import get_current_identity, get_current_user_id, parse_id, sync_user_with_database

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_tag_for_user(session: Session, tag_id: int, user_id: str, action: str) -> Tag:
    """Tags have no owner: a user may change a tag only while one of their tasks uses it."""
    tag = session.get(Tag, tag_id)
    if tag is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tag not found")

    in_use = session.exec(
        select(TaskTag.id)
        .join(Task, Task.id == TaskTag.task_id)
        .where(TaskTag.tag_id == tag_id, Task.user_id == user_id)
        .limit(1)
    ).first()
    if in_use is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Unauthorized to {action} this tag",
        )
    return tag


def _name_taken() -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Tag with this name already exists")


def _ensure_name_free(session: Session, name: str, exclude_id: Optional[int] = None) -> None:
    statement = select(Tag.id).where(Tag.name == name)
    if exclude_id is not None:
        statement = statement.where(Tag.id != exclude_id)
    if session.exec(statement).first() is not None:
        raise _name_taken()


@router.get("", response_model=List[TagWithCount])
def list_tags(
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    task_count = (
        select(func.count(TaskTag.id))
        .where(TaskTag.tag_id == Tag.id)
        .correlate(Tag)
        .scalar_subquery()
    )
    try:
        rows = session.exec(select(Tag, task_count).order_by(Tag.name)).all()
    except SQLAlchemyError:
        # Soft failure: the listing degrades to an empty list
        logger.exception("Error fetching tags for user %s", user_id)
        return []

    return [TagWithCount.model_validate(tag).model_copy(update={"task_count": count}) for tag, count in rows]


@router.post("", response_model=TagRead, status_code=status.HTTP_201_CREATED)
def create_tag(
    tag_create: TagCreate,
    identity: Identity = Depends(get_current_identity),
    session: Session = Depends(get_session),
):
    sync_user_with_database(session, identity)
    _ensure_name_free(session, tag_create.name)

    now = utcnow()
    tag = Tag(name=tag_create.name, color=tag_create.color, created_at=now, updated_at=now)
    try:
        with atomic(session):
            session.add(tag)
    except IntegrityError:
        # Lost a race with a concurrent create of the same name
        raise _name_taken() from None
    session.refresh(tag)
    logger.info("Tag %s (%s) created by %s", tag.id, tag.name, identity.user_id)
    return tag


@router.put("", response_model=TagRead)
def update_tag(
    tag_update: TagUpdate,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    tag = _get_tag_for_user(session, tag_update.id, user_id, "modify")
    _ensure_name_free(session, tag_update.name, exclude_id=tag.id)

    try:
        with atomic(session):
            tag.name = tag_update.name
            tag.color = tag_update.color
            tag.updated_at = utcnow()
            session.add(tag)
    except IntegrityError:
        raise _name_taken() from None
    session.refresh(tag)
    return tag


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def delete_tag(
    id: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    tag = _get_tag_for_user(session, parse_id(id, "Tag"), user_id, "delete")
    tag_id = tag.id

    with atomic(session):
        session.execute(delete(TaskTag).where(TaskTag.tag_id == tag_id))
        session.delete(tag)

    logger.info("Tag %s deleted by %s", tag_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
