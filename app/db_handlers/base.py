from __future__ import annotations

from functools import wraps
from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import AppAsyncSessionLocal
from app.models.base import Base
from app.utils.logger import setup_logger

logger = setup_logger("db_handlers")


ModelType = TypeVar("ModelType", bound=Base)


def check_local_db(func):
    """Session decorator for handler methods.

    Calls that already pass ``db=`` run inside the caller's session (the
    request session from get_app_db). Otherwise a short-lived session is
    opened, committed on success and rolled back on any error. Failures are
    not retried.
    """

    @wraps(func)
    async def wrapper(*args, **kwargs):
        if kwargs.get("db") is not None:
            return await func(*args, **kwargs)

        async with AppAsyncSessionLocal() as db:
            kwargs["db"] = db
            try:
                result = await func(*args, **kwargs)
                await db.commit()
                return result
            except Exception as e:
                await db.rollback()
                logger.error(f"Transaction failed in {func.__name__}: {e}", exc_info=True)
                raise

    return wrapper


class BaseDBHandler(Generic[ModelType]):
    """Single-model persistence: each write is committed before returning."""

    def __init__(self, model: type[ModelType]):
        self.model = model

    async def _commit_and_refresh(
        self, db: AsyncSession, db_obj: ModelType, action: str
    ) -> ModelType:
        name = self.model.__name__
        try:
            db.add(db_obj)
            await db.commit()
            await db.refresh(db_obj)
            return db_obj
        except IntegrityError as e:
            await db.rollback()
            # Constraint violations are left to the caller to interpret
            logger.warning(f"IntegrityError on {action} {name}: {e}")
            raise
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Error on {action} {name}: {e}", exc_info=True)
            raise

    @check_local_db
    async def create(
        self, obj_dict: dict[str, Any], *, db: AsyncSession = None
    ) -> ModelType:
        return await self._commit_and_refresh(db, self.model(**obj_dict), "create")

    @check_local_db
    async def get(self, id: Any, *, db: AsyncSession = None) -> ModelType | None:
        """Get a single record by its primary key."""
        return await db.get(self.model, id)

    @check_local_db
    async def get_one_by(self, *, db: AsyncSession = None, **filters) -> ModelType | None:
        result = await db.execute(select(self.model).filter_by(**filters))
        return result.scalars().first()

    @check_local_db
    async def get_many_by(
        self, *, db: AsyncSession = None, order_by: Any = None, **filters
    ) -> list[ModelType]:
        """All records matching filters, optionally ordered by one or more clauses."""
        stmt = select(self.model).filter_by(**filters)
        if order_by is not None:
            clauses = order_by if isinstance(order_by, list | tuple) else [order_by]
            stmt = stmt.order_by(*clauses)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @check_local_db
    async def update(
        self,
        db_obj: ModelType,
        update_data: dict[str, Any],
        *,
        db: AsyncSession = None,
    ) -> ModelType:
        for field, value in update_data.items():
            if not hasattr(db_obj, field):
                raise AttributeError(f"{self.model.__name__} has no column '{field}'")
            setattr(db_obj, field, value)
        return await self._commit_and_refresh(db, db_obj, "update")

    @check_local_db
    async def delete(self, db_obj: ModelType, *, db: AsyncSession = None) -> None:
        try:
            await db.delete(db_obj)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(
                f"Error deleting {self.model.__name__} {db_obj.id}: {e}", exc_info=True
            )
            raise
