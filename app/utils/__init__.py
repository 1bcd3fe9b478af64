"""
Common utilities package for the Academic Buddy application.

Logging and the task display helpers shared by the services and the API
layer. Access token helpers live in app.utils.auth, which depends on
app.config and is imported directly where needed.
"""

from app.utils.logger import cleanup_old_logs, setup_logger
from app.utils.task_presentation import (
    filter_tasks,
    format_due_date,
    get_priority_category,
    get_status_category,
    get_status_icon,
    is_overdue,
    sort_tasks,
    task_stats,
)

__all__ = [
    # Logging utilities
    "setup_logger",
    "cleanup_old_logs",
    # Task display utilities
    "get_priority_category",
    "get_status_category",
    "get_status_icon",
    "is_overdue",
    "format_due_date",
    "sort_tasks",
    "filter_tasks",
    "task_stats",
]
