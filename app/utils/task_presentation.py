"""
Display helpers for tasks: classification, overdue detection, due-date
wording, ordering, filtering and summary counts.

Everything here is pure. Functions accept ORM Task rows, TaskResponse
models or plain dicts, and never raise on unrecognized priority/status
values; those fall back to neutral defaults.
"""

import math
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta
from typing import Any

from app.models.task import TaskPriority, TaskStatus

NEUTRAL = "neutral"

PRIORITY_CATEGORIES = {
    TaskPriority.URGENT.value: "danger",
    TaskPriority.HIGH.value: "warning",
    TaskPriority.MEDIUM.value: "caution",
    TaskPriority.LOW.value: "success",
}

STATUS_CATEGORIES = {
    TaskStatus.COMPLETED.value: "success",
    TaskStatus.IN_PROGRESS.value: "info",
    TaskStatus.CANCELLED.value: "danger",
    TaskStatus.PENDING.value: NEUTRAL,
}

STATUS_ICONS = {
    TaskStatus.COMPLETED.value: "✅",
    TaskStatus.IN_PROGRESS.value: "⏳",
    TaskStatus.CANCELLED.value: "❌",
    TaskStatus.PENDING.value: "📝",
}
DEFAULT_STATUS_ICON = STATUS_ICONS[TaskStatus.PENDING.value]

STATUS_RANK = {
    TaskStatus.PENDING.value: 1,
    TaskStatus.IN_PROGRESS.value: 2,
    TaskStatus.COMPLETED.value: 3,
    TaskStatus.CANCELLED.value: 4,
}
PRIORITY_RANK = {
    TaskPriority.URGENT.value: 4,
    TaskPriority.HIGH.value: 3,
    TaskPriority.MEDIUM.value: 2,
    TaskPriority.LOW.value: 1,
}
# Unknown statuses sort after every known one, unknown priorities below LOW
UNKNOWN_STATUS_RANK = len(STATUS_RANK) + 1
UNKNOWN_PRIORITY_RANK = 0

ALL = "ALL"


def _get(task: Any, name: str) -> Any:
    if isinstance(task, dict):
        return task.get(name)
    return getattr(task, name, None)


def _enum_value(value: Any) -> Any:
    return value.value if isinstance(value, TaskPriority | TaskStatus) else value


def _as_datetime(value: Any) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value


def get_priority_category(priority: Any) -> str:
    return PRIORITY_CATEGORIES.get(_enum_value(priority), NEUTRAL)


def get_status_category(status: Any) -> str:
    return STATUS_CATEGORIES.get(_enum_value(status), NEUTRAL)


def get_status_icon(status: Any) -> str:
    return STATUS_ICONS.get(_enum_value(status), DEFAULT_STATUS_ICON)


def is_overdue(task: Any, now: datetime | None = None) -> bool:
    """True when the task has a due date in the past and is not completed."""
    due_date = _as_datetime(_get(task, "due_date"))
    if due_date is None or _enum_value(_get(task, "status")) == TaskStatus.COMPLETED.value:
        return False
    now = _as_datetime(now) or datetime.now(UTC)
    return due_date < now


def due_in_days(due_date: datetime, now: datetime | None = None) -> int:
    """Whole days until due_date, rounded up (negative when already past)."""
    now = _as_datetime(now) or datetime.now(UTC)
    delta = _as_datetime(due_date) - now
    return math.ceil(delta / timedelta(days=1))


def format_due_date(due_date: datetime | None, now: datetime | None = None) -> str:
    """
    Human-readable wording for a due date relative to now.

    Within a week either side the text is relative ("Due tomorrow",
    "Overdue by 3 days"); further ahead it is the calendar date.
    """
    if due_date is None:
        return "No due date"

    diff_days = due_in_days(due_date, now)

    if diff_days == 0:
        return "Due today"
    if diff_days == 1:
        return "Due tomorrow"
    if diff_days == -1:
        return "Due yesterday"
    if diff_days < 0:
        return f"Overdue by {abs(diff_days)} days"
    if diff_days <= 7:
        return f"Due in {diff_days} days"
    return _as_datetime(due_date).date().isoformat()


def task_sort_key(task: Any) -> tuple:
    """
    Sort key implementing the task list order:

    status (pending first), priority (urgent first), due date (earliest
    first, undated last), creation time (newest first), then id.
    """
    status_rank = STATUS_RANK.get(_enum_value(_get(task, "status")), UNKNOWN_STATUS_RANK)
    priority_rank = PRIORITY_RANK.get(
        _enum_value(_get(task, "priority")), UNKNOWN_PRIORITY_RANK
    )

    due_date = _as_datetime(_get(task, "due_date"))
    due_key = (0, due_date.timestamp()) if due_date else (1, 0.0)

    created_at = _as_datetime(_get(task, "created_at"))
    created_key = -created_at.timestamp() if created_at else 0.0

    return (status_rank, -priority_rank, due_key, created_key, str(_get(task, "id")))


def sort_tasks(tasks: Iterable[Any]) -> list[Any]:
    """Return a new list ordered by task_sort_key."""
    return sorted(tasks, key=task_sort_key)


def filter_tasks(
    tasks: Iterable[Any],
    search: str | None = None,
    status: Any = None,
    priority: Any = None,
    tag: str | None = None,
) -> list[Any]:
    """
    Narrow a task list for display.

    search matches title, description or any tag, case-insensitively.
    status/priority of None or "ALL" disable that filter. tag matches a
    whole tag, case-insensitively.
    """
    term = (search or "").strip().lower()
    status_value = _enum_value(status)
    priority_value = _enum_value(priority)
    tag_value = (tag or "").strip().lower()

    result = []
    for task in tasks:
        tags = [t.lower() for t in (_get(task, "tags") or [])]

        if term:
            title = (_get(task, "title") or "").lower()
            description = (_get(task, "description") or "").lower()
            if (
                term not in title
                and term not in description
                and not any(term in t for t in tags)
            ):
                continue
        if status_value not in (None, ALL) and _enum_value(_get(task, "status")) != status_value:
            continue
        if (
            priority_value not in (None, ALL)
            and _enum_value(_get(task, "priority")) != priority_value
        ):
            continue
        if tag_value and tag_value not in tags:
            continue
        result.append(task)
    return result


def group_by_status(tasks: Iterable[Any]) -> dict[str, list[Any]]:
    groups: dict[str, list[Any]] = {status.value: [] for status in TaskStatus}
    for task in tasks:
        groups.setdefault(_enum_value(_get(task, "status")), []).append(task)
    return groups


def task_stats(tasks: Iterable[Any], now: datetime | None = None) -> dict[str, int]:
    """Counts per status plus the number of overdue tasks."""
    tasks = list(tasks)
    groups = group_by_status(tasks)
    return {
        "total": len(tasks),
        "pending": len(groups[TaskStatus.PENDING.value]),
        "in_progress": len(groups[TaskStatus.IN_PROGRESS.value]),
        "completed": len(groups[TaskStatus.COMPLETED.value]),
        "cancelled": len(groups[TaskStatus.CANCELLED.value]),
        "overdue": sum(1 for task in tasks if is_overdue(task, now)),
    }
