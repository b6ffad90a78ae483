from fastapi import APIRouter
from .endpoints import analytics, goals, projects, tags, task_tags, tasks

router = APIRouter()

# Include all API endpoints
router.include_router(task_tags.router, prefix="/tasks/tags", tags=["task-tags"])
router.include_router(tasks.router, prefix="/tasks", tags=["tasks"])
router.include_router(projects.router, prefix="/projects", tags=["projects"])
router.include_router(tags.router, prefix="/tags", tags=["tags"])
router.include_router(analytics.router, prefix="/analytics", tags=["analytics"])
router.include_router(goals.router, prefix="/goals", tags=["goals"])
