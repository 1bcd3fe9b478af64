"""
Access token utilities.

Tokens are HS256-signed JWTs issued by this service after an identity sync.
The standard "sub" claim carries the identity provider uid of the user.
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from app.config import settings


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Create a JWT access token with the given data."""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(UTC) + expires_delta
    else:
        expire = datetime.now(UTC) + timedelta(
            minutes=settings.access_token_expire_minutes
        )

    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict | None:
    """Decode and verify a JWT access token."""
    try:
        return jwt.decode(
            token, settings.secret_key, algorithms=[settings.jwt_algorithm]
        )
    except JWTError:
        return None


def extract_subject_from_token(token: str) -> str | None:
    """Extract the identity provider uid from a JWT token."""
    payload = decode_access_token(token)
    if payload is None:
        return None
    return payload.get("sub")
