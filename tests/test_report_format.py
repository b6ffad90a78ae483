"""
Tests for report_format.py - JSON and sectioned CSV rendering.
"""

import csv
import io
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from taskboard.schemas.analytics import (
    AverageCompletionTime,
    DailyCompletion,
    HourlyProductivity,
    MemberStats,
    Period,
    ProductivityReport,
    TagEfficiency,
    TaskStats,
    TeamInfo,
    TeamMemberInfo,
    TeamReport,
    TeamReportEntry,
)
from taskboard.services.report_format import csv_filename, to_csv, to_json


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
def productivity_report():
    return ProductivityReport(
        period=Period(start_date=utc(2026, 3, 1), end_date=utc(2026, 3, 2, 12, 30)),
        task_stats=TaskStats(total=3, completed=1, in_progress=1, todo=1, overdue=0, completion_rate=0.33),
        daily_completions=[
            DailyCompletion(date=date(2026, 3, 1), completed=0, created=3),
            DailyCompletion(date=date(2026, 3, 2), completed=1, created=0),
        ],
        tag_efficiency=[
            TagEfficiency(
                tag_id=4,
                tag_name='Ops, "urgent"',
                tag_color="#FF0000",
                task_count=3,
                completed_count=1,
                completion_rate=0.33,
                average_completion_time=2.0,
            )
        ],
        hourly_productivity=[HourlyProductivity(hour=hour, count=1 if hour == 14 else 0) for hour in range(24)],
        average_completion_time=AverageCompletionTime(average_hours=2.0, total_tasks=1),
    )


def split_sections(text):
    return [section.split("\n") for section in text.strip("\n").split("\n\n")]


class TestProductivityCsv:

    def test_sections_and_headers(self, productivity_report):
        sections = split_sections(to_csv(productivity_report, "productivity"))

        assert [section[0] for section in sections] == [
            "Period,Start Date,End Date",
            "Task Statistics,Total,Completed,In Progress,Todo,Overdue,Completion Rate",
            "Daily Completions,Date,Completed,Created",
            "Tag Efficiency,Tag ID,Tag Name,Task Count,Completed Count,Completion Rate,"
            "Average Completion Time (hours)",
            "Hourly Productivity,Hour,Task Count",
            "Average Completion Time,Hours,Total Tasks",
        ]

    def test_rows_are_labeled(self, productivity_report):
        sections = split_sections(to_csv(productivity_report, "productivity"))

        assert sections[0][1] == "Period,2026-03-01T00:00:00Z,2026-03-02T12:30:00Z"
        assert sections[1][1] == "Task Statistics,3,1,1,1,0,0.33"
        assert sections[2][1:] == ["Daily Completions,2026-03-01,0,3", "Daily Completions,2026-03-02,1,0"]
        assert len(sections[4]) == 25
        assert sections[5][1] == "Average Completion Time,2,1"

    def test_free_text_is_quoted(self, productivity_report):
        text = to_csv(productivity_report, "productivity")

        rows = list(csv.reader(io.StringIO(text)))
        tag_row = next(row for row in rows if row and row[0] == "Tag Efficiency" and row[1] == "4")
        assert tag_row[2] == 'Ops, "urgent"'
        assert '"Ops, ""urgent"""' in text


class TestTeamCsv:

    def test_team_sections_repeat_per_team(self):
        entry = TeamReportEntry(
            team=TeamInfo(id=1, name="Core", description=None, member_count=1),
            members=[TeamMemberInfo(id="alice", name="Alice", email="alice@example.com", role="owner")],
            team_task_stats=TaskStats(total=2, completed=1, in_progress=0, todo=1, completion_rate=0.5),
            member_stats=[
                MemberStats(
                    user_id="alice",
                    user_name="Alice",
                    role="owner",
                    task_stats=TaskStats(total=2, completed=1, todo=1, completion_rate=0.5),
                )
            ],
        )
        report = TeamReport(
            period=Period(start_date=utc(2026, 3, 1), end_date=utc(2026, 3, 2)),
            team_reports=[entry, entry],
        )

        headers = [section[0].split(",")[0] for section in split_sections(to_csv(report, "team"))]

        assert headers == ["Period"] + ["Team", "Team Task Statistics", "Members", "Member Statistics"] * 2

    def test_member_rows(self):
        report = TeamReport(
            period=Period(start_date=utc(2026, 3, 1), end_date=utc(2026, 3, 2)),
            team_reports=[
                TeamReportEntry(
                    team=TeamInfo(id=1, name="Core", member_count=1),
                    members=[TeamMemberInfo(id="alice", name=None, email=None, role="member")],
                    team_task_stats=TaskStats(),
                    member_stats=[MemberStats(user_id="alice", role="member", task_stats=TaskStats())],
                )
            ],
        )

        text = to_csv(report, "team")

        assert "Team,1,Core,,1" in text
        assert "Members,alice,,,member" in text
        assert "Member Statistics,alice,,member,0,0,0" in text


def test_unknown_report_type():
    with pytest.raises(ValueError):
        to_csv(TeamReport(period=Period(start_date=utc(2026, 3, 1), end_date=utc(2026, 3, 2)),
                          team_reports=[]), "weekly")


def test_json_uses_camel_case_and_iso_dates(productivity_report):
    payload = to_json(productivity_report)

    assert payload["period"] == {"startDate": "2026-03-01T00:00:00Z", "endDate": "2026-03-02T12:30:00Z"}
    assert payload["taskStats"]["completionRate"] == 0.33
    assert payload["dailyCompletions"][0]["date"] == "2026-03-01"
    assert payload["averageCompletionTime"] == {"averageHours": 2.0, "totalTasks": 1}


def test_csv_filename():
    assert csv_filename("project") == "project_report.csv"


class TestCells:

    def test_whole_number_rates_drop_the_decimal(self, productivity_report):
        report = productivity_report.model_copy(update={
            "task_stats": TaskStats(total=2, completed=2, completion_rate=1.0),
        })

        sections = split_sections(to_csv(report, "productivity"))

        assert sections[1][1] == "Task Statistics,2,2,0,0,0,1"
        assert "Tag Efficiency,4,\"Ops, \"\"urgent\"\"\",3,1,0.33,2" in sections[3]

    def test_period_in_other_zone_is_written_in_utc(self, productivity_report):
        berlin = ZoneInfo("Europe/Berlin")
        report = productivity_report.model_copy(update={
            "period": Period(start_date=datetime(2026, 3, 1, tzinfo=berlin), end_date=datetime(2026, 3, 2, tzinfo=berlin)),
        })

        sections = split_sections(to_csv(report, "productivity"))

        assert sections[0][1] == "Period,2026-02-28T23:00:00Z,2026-03-01T23:00:00Z"
        assert to_json(report)["period"] == {"startDate": "2026-02-28T23:00:00Z", "endDate": "2026-03-01T23:00:00Z"}
