from typing import Dict, List, Optional
from datetime import date as Date

from ..models.task import TaskStatus
from .activity import ActivityRead
from .base import APIModel, UTCDatetime


class Period(APIModel):
    start_date: UTCDatetime
    end_date: UTCDatetime


class TaskStats(APIModel):
    total: int = 0
    completed: int = 0
    in_progress: int = 0
    todo: int = 0
    overdue: int = 0
    completion_rate: float = 0


class DailyCompletion(APIModel):
    date: Date
    completed: int
    created: int


class HourlyProductivity(APIModel):
    hour: int
    count: int


class TagEfficiency(APIModel):
    tag_id: int
    tag_name: str
    tag_color: str
    task_count: int
    completed_count: int
    completion_rate: float
    average_completion_time: float


class AverageCompletionTime(APIModel):
    average_hours: float = 0
    total_tasks: int = 0


class ProductivityReport(APIModel):
    period: Period
    task_stats: TaskStats
    daily_completions: List[DailyCompletion]
    tag_efficiency: List[TagEfficiency]
    hourly_productivity: List[HourlyProductivity]
    average_completion_time: AverageCompletionTime


# --- PROJECT REPORT ---
class ProjectInfo(APIModel):
    id: int
    name: str
    description: Optional[str] = None
    created_at: UTCDatetime
    updated_at: UTCDatetime


class TaskBrief(APIModel):
    id: int
    title: str
    status: TaskStatus
    priority: int
    due_date: Optional[UTCDatetime] = None
    created_at: UTCDatetime
    completed_at: Optional[UTCDatetime] = None


class TaskProgress(APIModel):
    total_tasks: int
    # Keyed by canonical status name
    status_groups: Dict[str, List[TaskBrief]]
    completion_rate: float


class TagShare(APIModel):
    tag_id: int
    tag_name: str
    tag_color: str
    count: int
    percentage: float


class ProjectReport(APIModel):
    project: ProjectInfo
    period: Period
    task_stats: TaskStats
    task_progress: TaskProgress
    tag_distribution: List[TagShare]
    recent_activities: List[ActivityRead]


# --- TEAM REPORT ---
class TeamInfo(APIModel):
    id: int
    name: str
    description: Optional[str] = None
    member_count: int


class TeamMemberInfo(APIModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    role: str


class MemberStats(APIModel):
    user_id: str
    user_name: Optional[str] = None
    role: str
    task_stats: TaskStats


class TeamReportEntry(APIModel):
    team: TeamInfo
    members: List[TeamMemberInfo]
    team_task_stats: TaskStats
    member_stats: List[MemberStats]


class TeamReport(APIModel):
    period: Period
    team_reports: List[TeamReportEntry]
    message: Optional[str] = None


# --- DASHBOARD ---
class TaskSummary(APIModel):
    total: int
    completed: int
    in_progress: int
    todo: int
    overdue: int


class ProjectBreakdown(APIModel):
    project_id: int
    project_name: str
    task_count: int
    completed_count: int


class TagBreakdown(APIModel):
    tag_id: int
    tag_name: str
    tag_color: str
    task_count: int
    completed_count: int


class DashboardData(APIModel):
    time_range: str
    period: Period
    task_summary: TaskSummary
    completion_rate: float
    tasks_by_project: List[ProjectBreakdown]
    tasks_by_tag: List[TagBreakdown]
    recent_activities: List[ActivityRead]
