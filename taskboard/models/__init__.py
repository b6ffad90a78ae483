# This file ensures all models are loaded together to resolve circular references
from .user import User
from .tag import Tag, TaskTag
from .task import Task, TaskStatus, normalize_status
from .project import Project
from .activity import ActivityAction, TaskActivity
from .goal import ProductivityGoal
from .preference import AnalyticsPreference
from .team import Team, TeamMember

__all__ = [
    "User",
    "Tag",
    "TaskTag",
    "Task",
    "TaskStatus",
    "normalize_status",
    "Project",
    "ActivityAction",
    "TaskActivity",
    "ProductivityGoal",
    "AnalyticsPreference",
    "Team",
    "TeamMember",
]
