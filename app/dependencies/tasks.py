from fastapi import Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_app_db
from app.dependencies.auth import get_current_user
from app.models import Task, User
from app.services.task_service import TaskService


async def get_owned_task(
    task_id: str = Path(..., description="The ID of the task"),
    db: AsyncSession = Depends(get_app_db),
    current_user: User = Depends(get_current_user),
) -> Task:
    """
    Dependency to get a task, ensuring the current user is the owner.

    Runs before the route body, so nothing is read or written for callers
    who fail the check.

    Raises UnauthenticatedError (401) if the caller cannot be resolved.
    Raises ValidationFailedError (400) if task_id is not a UUID.
    Raises NotFoundError (404) if the task does not exist.
    Raises ForbiddenError (403) if the task belongs to another user.
    """
    return await TaskService().get_owned_task(current_user, task_id, db=db)
