"""
Database models for Academic Buddy task management.

Architecture: User → Task ownership pattern.
"""

from app.models.task import Task, TaskPriority, TaskStatus
from app.models.user import User

__all__ = [
    "User",
    "Task",
    "TaskPriority",
    "TaskStatus",
]
