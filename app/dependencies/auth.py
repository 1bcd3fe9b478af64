"""
Authentication dependencies for FastAPI route protection.

The caller is resolved per request from the Authorization bearer token.
When TRUST_IDENTITY_HEADER is enabled, the raw identity provider uid header
is accepted as a fallback for clients that have not switched to tokens.
"""


from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.db import get_app_db
from app.exceptions import UnauthenticatedError
from app.models import User
from app.services.identity_service import IdentityService
from app.utils.auth import extract_subject_from_token
from app.utils.logger import setup_logger

logger = setup_logger("auth")

# HTTP Bearer token extraction; missing tokens are reported by get_current_user
security = HTTPBearer(auto_error=False)


def resolve_caller_uid(
    request: Request, credentials: HTTPAuthorizationCredentials | None
) -> str | None:
    """Identity provider uid of the caller, or None when none can be trusted."""
    if credentials is not None:
        return extract_subject_from_token(credentials.credentials)

    if settings.trust_identity_header:
        uid = request.headers.get(settings.identity_header_name)
        if uid and uid.strip():
            return uid.strip()

    return None


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_app_db),
) -> User:
    """
    Dependency to get the current authenticated user.
    """
    firebase_uid = resolve_caller_uid(request, credentials)
    if firebase_uid is None:
        raise UnauthenticatedError("Could not validate credentials")

    user = await IdentityService().get_user(firebase_uid, db=db)
    if user is None:
        logger.info(f"No synced user for firebase_uid {firebase_uid}")
        raise UnauthenticatedError("User not found")

    return user
