"""ORM models exposed for metadata discovery."""
from app.db.models.goal import Goal
from app.db.models.milestone import Milestone
from app.db.models.task import Task
from app.db.models.task_observation import TaskObservationRecord
from app.db.models.user import User
from app.db.models.user_preferences import UserPreferences

__all__ = [
    "Goal",
    "Milestone",
    "Task",
    "TaskObservationRecord",
    "User",
    "UserPreferences",
]
