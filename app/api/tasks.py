"""
Task API Routes - CRUD endpoints for the caller's study tasks.

Every route resolves the caller first; routes addressing a single task go
through the get_owned_task dependency, which rejects unknown (404) and
foreign (403) tasks before the handler body runs.
"""


from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_app_db
from app.dependencies.auth import get_current_user
from app.dependencies.tasks import get_owned_task
from app.models import Task, User
from app.schemas import (
    ErrorResponse,
    MessageResponse,
    TaskCreate,
    TaskResponse,
    TaskStatsResponse,
    TaskUpdate,
)
from app.services.task_service import TaskService
from app.utils.logger import setup_logger

logger = setup_logger("api")

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}

router = APIRouter(prefix="/tasks", tags=["Tasks"], responses=ERROR_RESPONSES)


@router.get("", response_model=list[TaskResponse])
async def list_tasks(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_app_db),
    task_service: TaskService = Depends(),
):
    """
    Get all tasks owned by the current user.

    Ordered by status, priority, due date and creation time.
    """
    tasks = await task_service.list_tasks(current_user, db=db)
    logger.info(f"Found {len(tasks)} tasks for user {current_user.id}")
    return [TaskResponse.model_validate(task) for task in tasks]


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_data: TaskCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_app_db),
    task_service: TaskService = Depends(),
):
    """Create a new task owned by the current user. New tasks start as PENDING."""
    task = await task_service.create_task(current_user, task_data, db=db)
    return TaskResponse.model_validate(task)


@router.get("/stats", response_model=TaskStatsResponse)
async def get_task_stats(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_app_db),
    task_service: TaskService = Depends(),
):
    """Counts of the current user's tasks per status, plus overdue tasks."""
    return TaskStatsResponse(**await task_service.get_stats(current_user, db=db))


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(task: Task = Depends(get_owned_task)):
    """Retrieve a single task owned by the current user."""
    return TaskResponse.model_validate(task)


@router.put("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_data: TaskUpdate,
    task: Task = Depends(get_owned_task),
    db: AsyncSession = Depends(get_app_db),
    task_service: TaskService = Depends(),
):
    """
    Partially update a task.

    Only fields present in the body change. Moving into COMPLETED stamps
    completed_at; moving out of it clears the stamp.
    """
    task = await task_service.update_task(task, task_data, db=db)
    return TaskResponse.model_validate(task)


@router.post("/{task_id}/toggle", response_model=TaskResponse)
async def toggle_task_status(
    task: Task = Depends(get_owned_task),
    db: AsyncSession = Depends(get_app_db),
    task_service: TaskService = Depends(),
):
    """Flip a task between COMPLETED and PENDING."""
    task = await task_service.toggle_task_status(task, db=db)
    return TaskResponse.model_validate(task)


@router.delete("/{task_id}", response_model=MessageResponse)
async def delete_task(
    task: Task = Depends(get_owned_task),
    db: AsyncSession = Depends(get_app_db),
    task_service: TaskService = Depends(),
):
    """Permanently delete a task."""
    await task_service.delete_task(task, db=db)
    return MessageResponse(message="Task deleted successfully")
