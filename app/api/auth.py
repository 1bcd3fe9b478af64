# Identity sync API routes: mirror identity provider accounts and issue access tokens

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_app_db
from app.dependencies.auth import get_current_user
from app.models import User
from app.schemas import ErrorResponse, UserInfo, UserSyncRequest, UserSyncResponse
from app.services.identity_service import IdentityService

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
)


@router.post("/sync", response_model=UserSyncResponse)
async def sync_user(
    user_data: UserSyncRequest,
    db: AsyncSession = Depends(get_app_db),
    identity_service: IdentityService = Depends(),
):
    """
    Create or update the local user for an identity provider account.

    Called by the client after every successful sign-in. Returns the user
    record and an access token for the task endpoints.
    """
    user, _ = await identity_service.sync_user(user_data, db=db)
    return UserSyncResponse(
        user=UserInfo.model_validate(user),
        access_token=identity_service.issue_access_token(user),
        token_type="bearer",
    )


@router.get("/me", response_model=UserInfo)
async def get_current_user_info(
    current_user: User = Depends(get_current_user),
):
    """Retrieve current authenticated user's profile information."""
    return UserInfo.model_validate(current_user)
