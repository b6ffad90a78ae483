"""Load the rows for a reporting window and assemble report payloads.

Queries live here; all arithmetic is delegated to ``services.analytics``.
"""
import logging
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from sqlmodel import Session, select

from ..core.clock import DEFAULT_TIME_RANGE, TIME_RANGES, resolve_time_range, utcnow
from ..models.activity import TaskActivity
from ..models.preference import AnalyticsPreference
from ..models.project import Project
from ..models.tag import Tag, TaskTag
from ..models.task import Task, TaskStatus
from ..models.team import Team, TeamMember
from ..models.user import User
from ..schemas.activity import ActivityRead
from ..schemas.analytics import (
    DashboardData,
    MemberStats,
    Period,
    ProductivityReport,
    ProjectInfo,
    ProjectReport,
    TeamInfo,
    TeamMemberInfo,
    TeamReport,
    TeamReportEntry,
)
from . import analytics

logger = logging.getLogger(__name__)

REPORT_TYPES = ("productivity", "project", "team")
RECENT_ACTIVITY_LIMIT = 10


# --- ROW LOADERS ---
def tasks_created_between(
    session: Session,
    user_ids: Sequence[str],
    start: datetime,
    end: datetime,
    project_id: Optional[int] = None,
) -> List[Task]:
    if not user_ids:
        return []
    statement = select(Task).where(
        Task.user_id.in_(user_ids),
        Task.created_at >= start,
        Task.created_at <= end,
    )
    if project_id is not None:
        statement = statement.where(Task.project_id == project_id)
    return list(session.exec(statement).all())


def activities_between(session: Session, user_id: str, start: datetime, end: datetime) -> List[TaskActivity]:
    statement = select(TaskActivity).where(
        TaskActivity.user_id == user_id,
        TaskActivity.timestamp >= start,
        TaskActivity.timestamp <= end,
    )
    return list(session.exec(statement).all())


def tasks_completed_between(session: Session, user_id: str, start: datetime, end: datetime) -> List[Task]:
    statement = select(Task).where(
        Task.user_id == user_id,
        Task.status == TaskStatus.DONE,
        Task.started_at.is_not(None),
        Task.completed_at.is_not(None),
        Task.completed_at >= start,
        Task.completed_at <= end,
    )
    return list(session.exec(statement).all())


def tags_by_task(session: Session, task_ids: Sequence[int]) -> Dict[int, List[Tag]]:
    """Resolve the tags of many tasks with one query."""
    grouped: Dict[int, List[Tag]] = defaultdict(list)
    if not task_ids:
        return grouped
    statement = (
        select(TaskTag.task_id, Tag)
        .join(Tag, Tag.id == TaskTag.tag_id)
        .where(TaskTag.task_id.in_(task_ids))
        .order_by(Tag.name)
    )
    for task_id, tag in session.exec(statement).all():
        grouped[task_id].append(tag)
    return grouped


def _group_tasks_by_tag(session: Session, tasks: Sequence[Task]):
    """Pair every tag with the subset of ``tasks`` carrying it, ordered by tag id."""
    tags = session.exec(select(Tag).order_by(Tag.id)).all()
    tasks_per_tag: Dict[int, List[Task]] = defaultdict(list)
    task_index = {task.id: task for task in tasks}
    for task_id, task_tags in tags_by_task(session, list(task_index)).items():
        for tag in task_tags:
            tasks_per_tag[tag.id].append(task_index[task_id])
    return [(tag, tasks_per_tag.get(tag.id, [])) for tag in tags]


def activity_feed(session: Session, *criteria, limit: Optional[int] = None) -> List[ActivityRead]:
    """Activities matching ``criteria``, newest first, with their task title."""
    statement = (
        select(TaskActivity, Task.title)
        .outerjoin(Task, Task.id == TaskActivity.task_id)
        .where(*criteria)
        .order_by(TaskActivity.timestamp.desc(), TaskActivity.id.desc())
    )
    if limit is not None:
        statement = statement.limit(limit)

    return [
        ActivityRead.model_validate(activity).model_copy(update={"task_title": title or "Unknown Task"})
        for activity, title in session.exec(statement).all()
    ]


def recent_activities(session: Session, user_id: str, limit: int = RECENT_ACTIVITY_LIMIT) -> List[ActivityRead]:
    return activity_feed(session, TaskActivity.user_id == user_id, limit=limit)


def _period(start: datetime, end: datetime) -> Period:
    return Period(start_date=start, end_date=end)


# --- REPORT BUILDERS ---
def build_productivity_report(
    session: Session, user_id: str, start: datetime, end: datetime, now: Optional[datetime] = None
) -> ProductivityReport:
    now = now or utcnow()
    tasks = tasks_created_between(session, [user_id], start, end)
    activities = activities_between(session, user_id, start, end)

    return ProductivityReport(
        period=_period(start, end),
        task_stats=analytics.task_stats(tasks, now),
        daily_completions=analytics.daily_completions(activities, start, end),
        tag_efficiency=analytics.tag_efficiency(_group_tasks_by_tag(session, tasks)),
        hourly_productivity=analytics.hourly_productivity(activities),
        average_completion_time=analytics.average_completion_time(
            tasks_completed_between(session, user_id, start, end)
        ),
    )


def build_project_report(
    session: Session,
    user_id: str,
    project_id: int,
    start: datetime,
    end: datetime,
    now: Optional[datetime] = None,
) -> Optional[ProjectReport]:
    """Project rollup, or None when the caller owns no such project."""
    project = session.get(Project, project_id)
    if project is None or project.user_id != user_id:
        return None

    now = now or utcnow()
    tasks = tasks_created_between(session, [user_id], start, end, project_id=project_id)
    tag_rows = [
        tag
        for task_tags in tags_by_task(session, [task.id for task in tasks]).values()
        for tag in task_tags
    ]

    # History covers every task currently in the project, not only new ones
    project_task_ids = session.exec(select(Task.id).where(Task.project_id == project_id)).all()
    history = []
    if project_task_ids:
        history = activity_feed(
            session,
            TaskActivity.task_id.in_(project_task_ids),
            TaskActivity.timestamp >= start,
            TaskActivity.timestamp <= end,
        )

    return ProjectReport(
        project=ProjectInfo.model_validate(project),
        period=_period(start, end),
        task_stats=analytics.task_stats(tasks, now),
        task_progress=analytics.task_progress(tasks),
        tag_distribution=analytics.tag_distribution(tag_rows, len(tasks)),
        recent_activities=history,
    )


def build_team_report(
    session: Session, user_id: str, start: datetime, end: datetime, now: Optional[datetime] = None
) -> TeamReport:
    now = now or utcnow()
    teams = session.exec(
        select(Team)
        .join(TeamMember, TeamMember.team_id == Team.id)
        .where(TeamMember.user_id == user_id)
        .order_by(Team.id)
    ).all()

    if not teams:
        return TeamReport(
            period=_period(start, end),
            team_reports=[],
            message="User is not a member of any team",
        )

    entries = []
    for team in teams:
        members = session.exec(
            select(TeamMember, User)
            .outerjoin(User, User.id == TeamMember.user_id)
            .where(TeamMember.team_id == team.id)
            .order_by(TeamMember.id)
        ).all()
        member_ids = [member.user_id for member, _ in members]
        team_tasks = tasks_created_between(session, member_ids, start, end)

        tasks_by_member: Dict[str, List[Task]] = defaultdict(list)
        for task in team_tasks:
            tasks_by_member[task.user_id].append(task)

        entries.append(
            TeamReportEntry(
                team=TeamInfo(
                    id=team.id,
                    name=team.name,
                    description=team.description,
                    member_count=len(members),
                ),
                members=[
                    TeamMemberInfo(
                        id=member.user_id,
                        name=user.name if user else None,
                        email=user.email if user else None,
                        role=member.role,
                    )
                    for member, user in members
                ],
                team_task_stats=analytics.task_stats(team_tasks, now),
                member_stats=[
                    MemberStats(
                        user_id=member.user_id,
                        user_name=user.name if user else None,
                        role=member.role,
                        task_stats=analytics.task_stats(tasks_by_member[member.user_id], now),
                    )
                    for member, user in members
                ],
            )
        )

    return TeamReport(period=_period(start, end), team_reports=entries)


def build_report(session: Session, report_type: str, user_id: str, start: datetime, end: datetime,
                 project_id: Optional[int] = None):
    if report_type == "productivity":
        return build_productivity_report(session, user_id, start, end)
    if report_type == "project":
        return build_project_report(session, user_id, project_id, start, end)
    if report_type == "team":
        return build_team_report(session, user_id, start, end)
    raise ValueError(f"Unknown report type: {report_type}")


# --- DASHBOARD ---
def preferred_time_range(session: Session, user_id: str) -> str:
    preference = session.exec(
        select(AnalyticsPreference).where(AnalyticsPreference.user_id == user_id)
    ).first()
    if preference is None or preference.default_time_range not in TIME_RANGES:
        return DEFAULT_TIME_RANGE
    return preference.default_time_range


def build_dashboard(
    session: Session, user_id: str, time_range: str, now: Optional[datetime] = None
) -> DashboardData:
    now = now or utcnow()
    if time_range not in TIME_RANGES:
        time_range = DEFAULT_TIME_RANGE
    start, end = resolve_time_range(time_range, now)

    tasks = tasks_created_between(session, [user_id], start, end)
    summary = analytics.task_summary(tasks, now)

    tasks_by_project: Dict[int, List[Task]] = defaultdict(list)
    for task in tasks:
        if task.project_id is not None:
            tasks_by_project[task.project_id].append(task)
    projects = session.exec(select(Project).where(Project.user_id == user_id).order_by(Project.id)).all()

    logger.debug("Dashboard for %s over %s: %d tasks", user_id, time_range, summary.total)
    return DashboardData(
        time_range=time_range,
        period=_period(start, end),
        task_summary=summary,
        completion_rate=analytics.completion_rate(summary.completed, summary.total),
        tasks_by_project=analytics.project_breakdown(
            (project, tasks_by_project[project.id]) for project in projects
        ),
        tasks_by_tag=analytics.tag_breakdown(_group_tasks_by_tag(session, tasks)),
        recent_activities=recent_activities(session, user_id),
    )
