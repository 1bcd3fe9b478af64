from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.db_handlers.base import BaseDBHandler, check_local_db
from app.models.task import Task
from app.utils.logger import setup_logger

logger = setup_logger("db_handlers.task")


class TaskDBHandler(BaseDBHandler[Task]):
    """Task persistence. Ownership is enforced by the service layer, not here."""

    def __init__(self):
        super().__init__(Task)

    @check_local_db
    async def create_task(
        self, obj_dict: dict[str, Any], *, db: AsyncSession = None
    ) -> Task:
        task = await self.create(obj_dict, db=db)
        logger.debug(f"Inserted task {task.id} for owner {task.owner_id}")
        return task

    @check_local_db
    async def get_tasks_by_owner(
        self, owner_id: uuid.UUID, *, db: AsyncSession = None
    ) -> list[Task]:
        """Every task owned by a user, newest first."""
        return await self.get_many_by(
            owner_id=owner_id, order_by=Task.created_at.desc(), db=db
        )

    @check_local_db
    async def get_task(
        self, task_id: uuid.UUID, *, db: AsyncSession = None
    ) -> Task | None:
        """Task by id regardless of owner."""
        return await self.get(task_id, db=db)

    @check_local_db
    async def update_task(
        self, task: Task, update_data: dict[str, Any], *, db: AsyncSession = None
    ) -> Task:
        return await self.update(task, update_data, db=db)

    @check_local_db
    async def delete_task(self, task: Task, *, db: AsyncSession = None) -> None:
        await self.delete(task, db=db)
        logger.debug(f"Deleted task row {task.id}")
