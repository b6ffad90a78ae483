"""Pure aggregation functions behind the dashboard and the reports.

Every function here works on rows that were already loaded for a window
(see ``services.reporting``) and never touches the session. Rounding follows
``round(x * 100) / 100`` for rates and ``round(x * 10) / 10`` for hours,
rounding halves up.
"""
import math
from collections import Counter
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Sequence, Tuple

from ..core.clock import local_date, to_local
from ..models.activity import ActivityAction, TaskActivity
from ..models.project import Project
from ..models.tag import Tag
from ..models.task import Task, TaskStatus
from ..schemas.analytics import (
    AverageCompletionTime,
    DailyCompletion,
    HourlyProductivity,
    ProjectBreakdown,
    TagBreakdown,
    TagEfficiency,
    TagShare,
    TaskBrief,
    TaskProgress,
    TaskStats,
    TaskSummary,
)

MS_PER_HOUR = 3_600_000


def round_half_up(value: float, digits: int) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def completion_rate(completed: int, total: int) -> float:
    if total == 0:
        return 0
    return round_half_up(completed / total, 2)


def duration_ms(started_at: datetime, completed_at: datetime) -> float:
    return (completed_at - started_at) / timedelta(milliseconds=1)


def average_hours(tasks: Sequence[Task]) -> float:
    """Mean started->completed duration in hours, 0 for an empty sequence."""
    if not tasks:
        return 0
    total_ms = sum(duration_ms(task.started_at, task.completed_at) for task in tasks)
    return round_half_up(total_ms / len(tasks) / MS_PER_HOUR, 1)


def _is_timed_completion(task: Task) -> bool:
    return (
        task.status == TaskStatus.DONE
        and task.started_at is not None
        and task.completed_at is not None
    )


def _is_completion(activity: TaskActivity) -> bool:
    return (
        activity.action == ActivityAction.status_changed
        and activity.new_status == TaskStatus.DONE
    )


def task_summary(tasks: Iterable[Task], now: datetime) -> TaskSummary:
    counts = Counter()
    overdue = 0
    for task in tasks:
        counts[task.status] += 1
        if task.status != TaskStatus.DONE and task.due_date is not None and task.due_date < now:
            overdue += 1

    return TaskSummary(
        total=sum(counts.values()),
        completed=counts[TaskStatus.DONE],
        in_progress=counts[TaskStatus.IN_PROGRESS],
        todo=counts[TaskStatus.TODO],
        overdue=overdue,
    )


def task_stats(tasks: Iterable[Task], now: datetime) -> TaskStats:
    """Counts by status for tasks created in the window.

    ``overdue`` compares due dates against ``now``, not the window end.
    """
    summary = task_summary(tasks, now)
    return TaskStats(
        **summary.model_dump(),
        completion_rate=completion_rate(summary.completed, summary.total),
    )


def daily_completions(
    activities: Iterable[TaskActivity], start: datetime, end: datetime
) -> List[DailyCompletion]:
    """One entry per local calendar day in [start, end], zero days included."""
    completed = Counter()
    created = Counter()
    for activity in activities:
        day = local_date(activity.timestamp)
        if _is_completion(activity):
            completed[day] += 1
        elif activity.action == ActivityAction.created:
            created[day] += 1

    first_day, last_day = local_date(start), local_date(end)
    days = []
    day = first_day
    while day <= last_day:
        days.append(DailyCompletion(date=day, completed=completed[day], created=created[day]))
        day += timedelta(days=1)
    return days


def hourly_productivity(activities: Iterable[TaskActivity]) -> List[HourlyProductivity]:
    counts = Counter(
        to_local(activity.timestamp).hour for activity in activities if _is_completion(activity)
    )
    return [HourlyProductivity(hour=hour, count=counts[hour]) for hour in range(24)]


def tag_efficiency(tagged_tasks: Iterable[Tuple[Tag, Sequence[Task]]]) -> List[TagEfficiency]:
    """Completion figures per tag over the caller's in-window tasks.

    Tags without any applicable task are left out.
    """
    result = []
    for tag, tasks in tagged_tasks:
        if not tasks:
            continue
        completed = sum(1 for task in tasks if task.status == TaskStatus.DONE)
        timed = [task for task in tasks if _is_timed_completion(task)]
        result.append(
            TagEfficiency(
                tag_id=tag.id,
                tag_name=tag.name,
                tag_color=tag.color,
                task_count=len(tasks),
                completed_count=completed,
                completion_rate=completion_rate(completed, len(tasks)),
                average_completion_time=average_hours(timed),
            )
        )
    return result


def average_completion_time(tasks: Iterable[Task]) -> AverageCompletionTime:
    timed = [task for task in tasks if _is_timed_completion(task)]
    if not timed:
        return AverageCompletionTime(average_hours=0, total_tasks=0)
    return AverageCompletionTime(average_hours=average_hours(timed), total_tasks=len(timed))


def task_progress(tasks: Sequence[Task]) -> TaskProgress:
    groups: Dict[str, List[TaskBrief]] = {status.value: [] for status in TaskStatus}
    for task in tasks:
        groups[task.status.value].append(TaskBrief.model_validate(task))

    done = len(groups[TaskStatus.DONE.value])
    return TaskProgress(
        total_tasks=len(tasks),
        status_groups=groups,
        completion_rate=completion_rate(done, len(tasks)),
    )


def tag_distribution(tag_rows: Iterable[Tag], task_count: int) -> List[TagShare]:
    """Share of a project's tasks carrying each tag.

    ``tag_rows`` holds one tag per task-tag association; ``percentage`` is a
    0-1 fraction of ``task_count``.
    """
    if task_count == 0:
        return []

    counts: Dict[int, int] = {}
    tags: Dict[int, Tag] = {}
    for tag in tag_rows:
        tags.setdefault(tag.id, tag)
        counts[tag.id] = counts.get(tag.id, 0) + 1

    return [
        TagShare(
            tag_id=tag_id,
            tag_name=tags[tag_id].name,
            tag_color=tags[tag_id].color,
            count=count,
            percentage=completion_rate(count, task_count),
        )
        for tag_id, count in counts.items()
    ]


def project_breakdown(projects: Iterable[Tuple[Project, Sequence[Task]]]) -> List[ProjectBreakdown]:
    return [
        ProjectBreakdown(
            project_id=project.id,
            project_name=project.name,
            task_count=len(tasks),
            completed_count=sum(1 for task in tasks if task.status == TaskStatus.DONE),
        )
        for project, tasks in projects
    ]


def tag_breakdown(tagged_tasks: Iterable[Tuple[Tag, Sequence[Task]]]) -> List[TagBreakdown]:
    # Tags with no task in the window are dropped
    return [
        TagBreakdown(
            tag_id=tag.id,
            tag_name=tag.name,
            tag_color=tag.color,
            task_count=len(tasks),
            completed_count=sum(1 for task in tasks if task.status == TaskStatus.DONE),
        )
        for tag, tasks in tagged_tasks
        if tasks
    ]
