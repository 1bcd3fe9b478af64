"""
Identity sync: mirrors identity provider accounts into the users table and
resolves request callers back to those rows.
"""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db_handlers import UserDBHandler
from app.exceptions import IdentitySyncError, StorageError
from app.models import User
from app.schemas import UserSyncRequest
from app.utils.auth import create_access_token
from app.utils.logger import setup_logger

logger = setup_logger("identity_service")


class IdentityService:
    def __init__(self):
        self.user_db_handler = UserDBHandler()

    async def sync_user(
        self, data: UserSyncRequest, *, db: AsyncSession = None
    ) -> tuple[User, bool]:
        """
        Create or refresh the local user for data.firebase_uid.

        Returns the user and whether it was newly created. A uid that appears
        concurrently is picked up and updated instead of duplicated; an email
        already bound to a different uid is rejected.
        """
        profile = {
            "email": data.email,
            "name": data.name,
            "profile_pic": data.profile_pic,
        }
        try:
            try:
                user, created = await self.user_db_handler.upsert_by_firebase_uid(
                    data.firebase_uid, profile, db=db
                )
            except IntegrityError:
                existing = await self.user_db_handler.get_user_by_firebase_uid(
                    data.firebase_uid, db=db
                )
                if existing is None:
                    raise IdentitySyncError(
                        "Email is already linked to another account"
                    ) from None
                # Lost a create race against another sync of the same uid
                user = await self.user_db_handler.update(existing, profile, db=db)
                created = False
        except IntegrityError as e:
            raise IdentitySyncError("Email is already linked to another account") from e
        except SQLAlchemyError as e:
            logger.error(f"Error syncing user {data.firebase_uid}: {e}", exc_info=True)
            raise StorageError("Failed to sync user with database") from e

        logger.info(
            f"{'Created' if created else 'Updated'} user {user.id} "
            f"for firebase_uid {data.firebase_uid}"
        )
        return user, created

    async def get_user(
        self, firebase_uid: str, *, db: AsyncSession = None
    ) -> User | None:
        try:
            return await self.user_db_handler.get_user_by_firebase_uid(
                firebase_uid, db=db
            )
        except SQLAlchemyError as e:
            raise StorageError("Failed to load user") from e

    @staticmethod
    def issue_access_token(user: User) -> str:
        return create_access_token(data={"sub": user.firebase_uid})
