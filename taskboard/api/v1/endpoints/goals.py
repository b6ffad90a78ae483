import logging
from fastapi import APIRouter, Depends, Response, status
from sqlmodel import Session, select
from typing import List, Optional

from taskboard.core.clock import utcnow
from taskboard.db.session import atomic, get_session
from taskboard.models.goal import ProductivityGoal
from taskboard.schemas.goal import GoalCreate, GoalRead, GoalUpdate
from taskboard.api.deps import get_current_user_id, get_owned_or_404, parse_id

logger = logging.getLogger(__name__)

router = APIRouter()

# Columns that cannot be cleared by sending null
_REQUIRED_ON_UPDATE = ("title", "target_type", "target_value", "start_date", "achieved", "progress")


@router.get("", response_model=List[GoalRead])
def list_goals(
    active: bool = False,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    statement = select(ProductivityGoal).where(ProductivityGoal.user_id == user_id)
    if active:
        statement = statement.where(ProductivityGoal.end_date >= utcnow())
    return session.exec(statement.order_by(ProductivityGoal.start_date, ProductivityGoal.id)).all()


@router.post("", response_model=GoalRead, status_code=status.HTTP_201_CREATED)
def create_goal(
    goal_create: GoalCreate,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    now = utcnow()
    goal = ProductivityGoal(user_id=user_id, created_at=now, updated_at=now, **goal_create.model_dump())
    with atomic(session):
        session.add(goal)
    session.refresh(goal)
    logger.info("Goal %s created by %s", goal.id, user_id)
    return goal


@router.put("", response_model=GoalRead)
def update_goal(
    goal_update: GoalUpdate,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    goal = get_owned_or_404(session, ProductivityGoal, goal_update.id, user_id, "Goal")

    changes = goal_update.model_dump(exclude_unset=True, exclude={"id"})
    for field in _REQUIRED_ON_UPDATE:
        if field in changes and changes[field] is None:
            del changes[field]

    with atomic(session):
        for key, value in changes.items():
            setattr(goal, key, value)
        goal.updated_at = utcnow()
        session.add(goal)
    session.refresh(goal)
    return goal


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def delete_goal(
    id: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    goal = get_owned_or_404(session, ProductivityGoal, parse_id(id, "Goal"), user_id, "Goal")
    goal_id = goal.id

    with atomic(session):
        session.delete(goal)

    logger.info("Goal %s deleted by %s", goal_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
