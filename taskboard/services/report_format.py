"""Render report payloads as JSON documents or sectioned CSV files."""
import csv
import io
from datetime import date, datetime
from typing import Iterable, List, Sequence, Tuple, Union

from ..core.clock import isoformat_utc
from ..schemas.analytics import ProductivityReport, ProjectReport, TeamReport

REPORT_FORMATS = ("json", "csv")

Report = Union[ProductivityReport, ProjectReport, TeamReport]
Section = Tuple[Sequence[str], List[Sequence[object]]]


def to_json(report: Report) -> dict:
    """The report as a JSON-ready dict, datetimes as ISO-8601 strings."""
    return report.model_dump(mode="json", by_alias=True)


def _cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return isoformat_utc(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _render(sections: Iterable[Section]) -> str:
    """Write each section as a header row plus labeled data rows.

    Sections are separated by one blank line. Cells are quoted only when they
    contain a delimiter, quote or newline.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    for index, (header, rows) in enumerate(sections):
        if index:
            buffer.write("\n")
        writer.writerow(header)
        label = header[0]
        for row in rows:
            writer.writerow([label, *(_cell(value) for value in row)])
    return buffer.getvalue()


PERIOD_HEADER = ("Period", "Start Date", "End Date")
TASK_STATS_HEADER = ("Task Statistics", "Total", "Completed", "In Progress", "Todo", "Overdue", "Completion Rate")


def _period_section(report) -> Section:
    return PERIOD_HEADER, [(report.period.start_date, report.period.end_date)]


def _task_stats_section(stats) -> Section:
    return TASK_STATS_HEADER, [
        (stats.total, stats.completed, stats.in_progress, stats.todo, stats.overdue, stats.completion_rate)
    ]


def productivity_sections(report: ProductivityReport) -> List[Section]:
    average = report.average_completion_time
    return [
        _period_section(report),
        _task_stats_section(report.task_stats),
        (
            ("Daily Completions", "Date", "Completed", "Created"),
            [(day.date, day.completed, day.created) for day in report.daily_completions],
        ),
        (
            ("Tag Efficiency", "Tag ID", "Tag Name", "Task Count", "Completed Count", "Completion Rate",
             "Average Completion Time (hours)"),
            [
                (tag.tag_id, tag.tag_name, tag.task_count, tag.completed_count, tag.completion_rate,
                 tag.average_completion_time)
                for tag in report.tag_efficiency
            ],
        ),
        (
            ("Hourly Productivity", "Hour", "Task Count"),
            [(bucket.hour, bucket.count) for bucket in report.hourly_productivity],
        ),
        (
            ("Average Completion Time", "Hours", "Total Tasks"),
            [(average.average_hours, average.total_tasks)],
        ),
    ]


def project_sections(report: ProjectReport) -> List[Section]:
    project = report.project
    progress = report.task_progress
    return [
        (
            ("Project", "ID", "Name", "Description", "Created At", "Updated At"),
            [(project.id, project.name, project.description, project.created_at, project.updated_at)],
        ),
        _period_section(report),
        _task_stats_section(report.task_stats),
        (
            ("Task Progress", "Total Tasks", "Completed Tasks", "Completion Rate"),
            [(progress.total_tasks, len(progress.status_groups.get("DONE", [])), progress.completion_rate)],
        ),
        (
            ("Tag Distribution", "Tag ID", "Tag Name", "Count", "Percentage"),
            [(tag.tag_id, tag.tag_name, tag.count, tag.percentage) for tag in report.tag_distribution],
        ),
    ]


def team_sections(report: TeamReport) -> List[Section]:
    sections = [_period_section(report)]
    for entry in report.team_reports:
        team = entry.team
        stats = entry.team_task_stats
        sections.extend([
            (
                ("Team", "ID", "Name", "Description", "Member Count"),
                [(team.id, team.name, team.description, team.member_count)],
            ),
            (
                ("Team Task Statistics", "Total", "Completed", "In Progress", "Todo", "Completion Rate"),
                [(stats.total, stats.completed, stats.in_progress, stats.todo, stats.completion_rate)],
            ),
            (
                ("Members", "User ID", "Name", "Email", "Role"),
                [(member.id, member.name, member.email, member.role) for member in entry.members],
            ),
            (
                ("Member Statistics", "User ID", "Name", "Role", "Total Tasks", "Completed Tasks",
                 "Completion Rate"),
                [
                    (member.user_id, member.user_name, member.role, member.task_stats.total,
                     member.task_stats.completed, member.task_stats.completion_rate)
                    for member in entry.member_stats
                ],
            ),
        ])
    return sections


_SECTION_BUILDERS = {
    "productivity": productivity_sections,
    "project": project_sections,
    "team": team_sections,
}


def to_csv(report: Report, report_type: str) -> str:
    try:
        build_sections = _SECTION_BUILDERS[report_type]
    except KeyError:
        raise ValueError(f"Unknown report type: {report_type}") from None
    return _render(build_sections(report))


def csv_filename(report_type: str) -> str:
    return f"{report_type}_report.csv"
