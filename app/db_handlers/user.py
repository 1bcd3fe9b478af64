from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.db_handlers.base import BaseDBHandler, check_local_db
from app.models.user import User


class UserDBHandler(BaseDBHandler[User]):
    def __init__(self):
        super().__init__(User)

    @check_local_db
    async def get_user_by_firebase_uid(
        self, firebase_uid: str, *, db: AsyncSession = None
    ) -> User | None:
        return await self.get_one_by(firebase_uid=firebase_uid, db=db)

    @check_local_db
    async def upsert_by_firebase_uid(
        self, firebase_uid: str, profile: dict[str, Any], *, db: AsyncSession = None
    ) -> tuple[User, bool]:
        """
        Create the user for firebase_uid, or refresh its profile fields.

        Returns the user and whether it was created. A unique violation
        (email taken, or the uid inserted concurrently) propagates as
        IntegrityError.
        """
        user = await self.get_user_by_firebase_uid(firebase_uid, db=db)
        if user is None:
            user = await self.create({"firebase_uid": firebase_uid, **profile}, db=db)
            return user, True
        return await self.update(user, profile, db=db), False
