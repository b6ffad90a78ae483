import logging
from fastapi import APIRouter, Depends, Response, status
from sqlmodel import Session, select, func
from typing import List, Optional

from taskboard.core.clock import utcnow
from taskboard.db.session import atomic, get_session
from taskboard.models.project import Project
from taskboard.models.task import Task
from taskboard.schemas.project import ProjectCreate, ProjectRead, ProjectUpdate, ProjectWithCount
from taskboard.schemas.user import Identity
from taskboard.services import task_service
from taskboard.api.deps import (
    get_current_identity,
    get_current_user_id,
    get_owned_or_404,
    parse_id,
    sync_user_with_database,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=List[ProjectWithCount])
def list_user_projects(
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    task_count = (
        select(func.count(Task.id))
        .where(Task.project_id == Project.id)
        .correlate(Project)
        .scalar_subquery()
    )
    rows = session.exec(
        select(Project, task_count)
        .where(Project.user_id == user_id)
        .order_by(Project.updated_at.desc(), Project.id.desc())
    ).all()
    return [
        ProjectWithCount.model_validate(project).model_copy(update={"task_count": count})
        for project, count in rows
    ]


@router.post("", response_model=ProjectRead, status_code=status.HTTP_201_CREATED)
def create_project(
    project_create: ProjectCreate,
    identity: Identity = Depends(get_current_identity),
    session: Session = Depends(get_session),
):
    sync_user_with_database(session, identity)

    now = utcnow()
    project = Project(
        user_id=identity.user_id,
        name=project_create.name,
        description=project_create.description,
        created_at=now,
        updated_at=now,
    )
    with atomic(session):
        session.add(project)
    session.refresh(project)
    logger.info("Project %s created by %s", project.id, identity.user_id)
    return project


@router.put("", response_model=ProjectRead)
def update_project(
    project_update: ProjectUpdate,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    project = get_owned_or_404(session, Project, project_update.id, user_id, "Project")

    changes = project_update.model_dump(exclude_unset=True, exclude={"id"})
    if changes.get("name") is None:
        changes.pop("name", None)

    with atomic(session):
        for key, value in changes.items():
            setattr(project, key, value)
        project.updated_at = utcnow()
        session.add(project)
    session.refresh(project)
    return project


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(
    id: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    project = get_owned_or_404(session, Project, parse_id(id, "Project"), user_id, "Project")
    project_id = project.id

    # The project's tasks, their tag links and the project go together
    with atomic(session):
        tasks = task_service.tasks_in_project(session, project_id)
        task_service.delete_tasks(session, tasks, user_id)
        session.flush()
        session.delete(project)

    logger.info("Project %s deleted with %d tasks", project_id, len(tasks))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
