import logging
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlmodel import Session, select
from typing import List, Optional

from taskboard.core.clock import parse_datetime, utcnow
from taskboard.db.session import atomic, get_session
from taskboard.models.activity import ActivityAction, TaskActivity
from taskboard.models.preference import AnalyticsPreference
from taskboard.models.task import Task
from taskboard.schemas.activity import ActivityCreate, ActivityRead
from taskboard.schemas.analytics import DashboardData
from taskboard.schemas.preference import PreferenceRead, PreferenceUpdate
from taskboard.services import reporting, task_service
from taskboard.services.report_format import REPORT_FORMATS, csv_filename, to_csv, to_json
from taskboard.api.deps import get_current_user_id, get_owned_or_404

logger = logging.getLogger(__name__)

router = APIRouter()


def _parse_query_date(raw: Optional[str]) -> Optional[datetime]:
    if not raw:
        return None
    try:
        return parse_datetime(raw)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid date format")


def _get_or_create_preference(session: Session, user_id: str) -> AnalyticsPreference:
    preference = session.exec(
        select(AnalyticsPreference).where(AnalyticsPreference.user_id == user_id)
    ).first()
    if preference is None:
        preference = AnalyticsPreference(user_id=user_id)
        with atomic(session):
            session.add(preference)
        session.refresh(preference)
    return preference


# --- ACTIVITIES ---
@router.get("/activities", response_model=List[ActivityRead])
def list_activities(
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
    taskId: Optional[int] = None,
    action: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    criteria = [TaskActivity.user_id == user_id]

    start = _parse_query_date(startDate)
    if start is not None:
        criteria.append(TaskActivity.timestamp >= start)
    end = _parse_query_date(endDate)
    if end is not None:
        criteria.append(TaskActivity.timestamp <= end)
    if taskId is not None:
        criteria.append(TaskActivity.task_id == taskId)
    if action:
        try:
            criteria.append(TaskActivity.action == ActivityAction(action))
        except ValueError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid action")

    return reporting.activity_feed(session, *criteria)


@router.post("/activities", response_model=ActivityRead, status_code=status.HTTP_201_CREATED)
def create_activity(
    activity_create: ActivityCreate,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    task = get_owned_or_404(session, Task, activity_create.task_id, user_id, "Task")

    activity = task_service.record_activity(
        session, task, user_id, activity_create.model_dump(exclude={"task_id"})
    )
    return ActivityRead.model_validate(activity).model_copy(update={"task_title": task.title})


# --- DASHBOARD ---
@router.get("/dashboard", response_model=DashboardData)
def get_dashboard(
    timeRange: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    time_range = timeRange or reporting.preferred_time_range(session, user_id)
    return reporting.build_dashboard(session, user_id, time_range)


# --- REPORTS ---
@router.get("/reports")
def get_report(
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
    type: str = "productivity",
    format: str = "json",
    projectId: Optional[int] = None,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    if not startDate or not endDate:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Start date and end date are required",
        )
    start = _parse_query_date(startDate)
    end = _parse_query_date(endDate)
    if start > end:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Start date must be before end date",
        )
    if type not in reporting.REPORT_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid report type. Must be one of: " + ", ".join(reporting.REPORT_TYPES),
        )
    if format not in REPORT_FORMATS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid format. Must be one of: " + ", ".join(REPORT_FORMATS),
        )
    if type == "project" and projectId is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Project ID is required for project reports",
        )

    report = reporting.build_report(session, type, user_id, start, end, project_id=projectId)
    if report is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")

    logger.info("Generated %s report (%s) for %s", type, format, user_id)
    if format == "csv":
        return Response(
            content=to_csv(report, type),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{csv_filename(type)}"'},
        )
    return to_json(report)


# --- PREFERENCES ---
@router.get("/preferences", response_model=PreferenceRead)
def get_preferences(
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    return _get_or_create_preference(session, user_id)


@router.put("/preferences", response_model=PreferenceRead)
def update_preferences(
    preference_update: PreferenceUpdate,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    preference = _get_or_create_preference(session, user_id)

    changes = preference_update.model_dump(exclude_unset=True)
    for field in ("data_collection_enabled", "default_time_range"):
        if field in changes and changes[field] is None:
            del changes[field]

    with atomic(session):
        for key, value in changes.items():
            setattr(preference, key, value)
        preference.updated_at = utcnow()
        session.add(preference)
    session.refresh(preference)
    return preference
