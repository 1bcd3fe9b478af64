"""
Task service: ownership checks and the task lifecycle.

All operations act on behalf of an already-resolved user. Validation and
ownership failures are raised before anything is written, and database
errors surface as StorageError with the details kept in the log.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from functools import wraps
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db_handlers import TaskDBHandler
from app.exceptions import (
    ForbiddenError,
    NotFoundError,
    StorageError,
    ValidationFailedError,
)
from app.models import Task, TaskStatus, User
from app.schemas import TaskCreate, TaskUpdate
from app.utils.logger import setup_logger
from app.utils.task_presentation import sort_tasks, task_stats

logger = setup_logger("task_service")


def translate_storage_errors(func):
    """Re-raise SQLAlchemy failures as StorageError."""

    @wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except SQLAlchemyError as e:
            logger.error(f"Storage failure in {func.__name__}: {e}", exc_info=True)
            raise StorageError(f"Failed to {func.__name__.replace('_', ' ')}") from e

    return wrapper


def clean_title(title: str | None) -> str:
    if title is None or not title.strip():
        raise ValidationFailedError("Task title cannot be empty")
    return title.strip()


def clean_description(description: str | None) -> str | None:
    if description is None:
        return None
    return description.strip() or None


def clean_tags(tags: list[str] | None) -> list[str]:
    """Trim tags, drop blanks and duplicates, keep first-seen order."""
    cleaned: list[str] = []
    for tag in tags or []:
        tag = tag.strip()
        if tag and tag not in cleaned:
            cleaned.append(tag)
    return cleaned


def clean_pattern(pattern: str | None) -> str | None:
    if pattern is None:
        return None
    return pattern.strip() or None


def ensure_task_owner(task: Task | None, user: User) -> Task:
    """Raise NotFoundError / ForbiddenError unless user owns task."""
    if task is None:
        raise NotFoundError("Task not found")
    if task.owner_id != user.id:
        raise ForbiddenError("Unauthorized - Task belongs to another user")
    return task


def parse_task_id(task_id: str | uuid.UUID) -> uuid.UUID:
    if isinstance(task_id, uuid.UUID):
        return task_id
    try:
        return uuid.UUID(task_id)
    except (TypeError, ValueError) as e:
        raise ValidationFailedError("Invalid task_id format") from e


def next_toggle_status(status: Any) -> TaskStatus:
    """COMPLETED goes back to PENDING, everything else becomes COMPLETED."""
    if TaskStatus(status) == TaskStatus.COMPLETED:
        return TaskStatus.PENDING
    return TaskStatus.COMPLETED


class TaskService:
    """Task CRUD scoped to the owning user."""

    def __init__(self):
        self.task_db_handler = TaskDBHandler()

    @translate_storage_errors
    async def list_tasks(self, user: User, *, db: AsyncSession = None) -> list[Task]:
        tasks = await self.task_db_handler.get_tasks_by_owner(user.id, db=db)
        return sort_tasks(tasks)

    @translate_storage_errors
    async def create_task(
        self, user: User, data: TaskCreate, *, db: AsyncSession = None
    ) -> Task:
        task_dict = {
            "owner_id": user.id,
            "title": clean_title(data.title),
            "description": clean_description(data.description),
            "priority": data.priority.value,
            "status": TaskStatus.PENDING.value,
            "due_date": data.due_date,
            "tags": clean_tags(data.tags),
            "is_recurring": data.is_recurring,
            "recurring_pattern": (
                clean_pattern(data.recurring_pattern) if data.is_recurring else None
            ),
        }
        task = await self.task_db_handler.create_task(task_dict, db=db)
        logger.info(f"Created task {task.id} for user {user.id}")
        return task

    @translate_storage_errors
    async def get_owned_task(
        self, user: User, task_id: str | uuid.UUID, *, db: AsyncSession = None
    ) -> Task:
        task_uuid = parse_task_id(task_id)
        task = await self.task_db_handler.get_task(task_uuid, db=db)
        if task is not None and task.owner_id != user.id:
            logger.warning(
                f"User {user.id} attempted to access task {task_uuid} owned by {task.owner_id}"
            )
        return ensure_task_owner(task, user)

    def build_update(self, task: Task, data: TaskUpdate) -> dict[str, Any]:
        """
        Turn the supplied fields of a partial update into column changes.

        Status changes also maintain completed_at, and the recurrence
        pattern is dropped whenever the task is not recurring.
        """
        changes = data.model_dump(exclude_unset=True)
        update_data: dict[str, Any] = {}

        for field in ("priority", "status", "is_recurring"):
            if field in changes and changes[field] is None:
                raise ValidationFailedError(f"{field} cannot be null")

        if "title" in changes:
            update_data["title"] = clean_title(changes["title"])
        if "description" in changes:
            update_data["description"] = clean_description(changes["description"])
        if "priority" in changes:
            update_data["priority"] = changes["priority"].value
        if "status" in changes:
            new_status = changes["status"]
            update_data["status"] = new_status.value
            if new_status == TaskStatus.COMPLETED:
                if task.status != TaskStatus.COMPLETED.value or task.completed_at is None:
                    update_data["completed_at"] = datetime.now(UTC)
            else:
                update_data["completed_at"] = None
        if "due_date" in changes:
            update_data["due_date"] = changes["due_date"]
        if "tags" in changes:
            update_data["tags"] = clean_tags(changes["tags"])
        if "is_recurring" in changes:
            update_data["is_recurring"] = changes["is_recurring"]
        if "recurring_pattern" in changes:
            update_data["recurring_pattern"] = clean_pattern(changes["recurring_pattern"])

        if not update_data.get("is_recurring", task.is_recurring):
            if "recurring_pattern" in update_data or task.recurring_pattern is not None:
                update_data["recurring_pattern"] = None

        return update_data

    @translate_storage_errors
    async def update_task(
        self, task: Task, data: TaskUpdate, *, db: AsyncSession = None
    ) -> Task:
        update_data = self.build_update(task, data)
        if not update_data:
            return task
        task = await self.task_db_handler.update_task(task, update_data, db=db)
        logger.info(f"Updated task {task.id}: {sorted(update_data)}")
        return task

    async def toggle_task_status(
        self, task: Task, *, db: AsyncSession = None
    ) -> Task:
        new_status = next_toggle_status(task.status)
        return await self.update_task(task, TaskUpdate(status=new_status), db=db)

    @translate_storage_errors
    async def delete_task(self, task: Task, *, db: AsyncSession = None) -> None:
        task_id = task.id
        await self.task_db_handler.delete_task(task, db=db)
        logger.info(f"Deleted task {task_id}")

    async def get_stats(
        self, user: User, *, db: AsyncSession = None
    ) -> dict[str, int]:
        return task_stats(await self.list_tasks(user, db=db))
