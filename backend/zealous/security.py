from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession

from .config import settings
from .database import get_db
from .envelope import ApiError
from .models import User


pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
security = HTTPBearer(auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def _encode(subject: int, key: str, expires_delta: timedelta, **claims) -> str:
    to_encode = {"sub": str(subject), **claims}
    to_encode["exp"] = datetime.utcnow() + expires_delta
    return jwt.encode(to_encode, key, algorithm=settings.ALGORITHM)


def create_access_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    return _encode(
        user_id,
        settings.ACCESS_TOKEN_PRIVATE_KEY,
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )


def create_refresh_token(user_id: int) -> str:
    return _encode(
        user_id,
        settings.REFRESH_TOKEN_PRIVATE_KEY,
        timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
    )


def create_reset_token(user_id: int) -> str:
    return _encode(
        user_id,
        settings.RESET_TOKEN_PRIVATE_KEY,
        timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES),
        purpose="reset",
    )


def decode_token(token: str, key: str) -> int:
    """Return the user id carried by ``token``; raises JWTError on any problem."""
    payload = jwt.decode(token, key, algorithms=[settings.ALGORITHM])
    subject = payload.get("sub")
    try:
        return int(subject)
    except (TypeError, ValueError):
        raise JWTError("Token subject is missing or malformed")


def decode_reset_token(token: str) -> Optional[int]:
    try:
        payload = jwt.decode(token, settings.RESET_TOKEN_PRIVATE_KEY, algorithms=[settings.ALGORITHM])
        if payload.get("purpose") != "reset":
            return None
        return int(payload.get("sub"))
    except (JWTError, TypeError, ValueError):
        return None


@dataclass
class AccessContext:
    user_id: int
    user: User


async def verify_access_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> AccessContext:
    """
    Gate for protected routes.

    Missing header -> 401, any token failure -> 401, unknown subject -> 404.
    Performs exactly one database read.
    """
    if not credentials or not credentials.credentials:
        raise ApiError(401, "Authorization header is required.")

    try:
        user_id = decode_token(credentials.credentials, settings.ACCESS_TOKEN_PRIVATE_KEY)
    except JWTError:
        raise ApiError(401, "Invalid user or token expired.")

    user = await db.get(User, user_id)
    if user is None:
        raise ApiError(404, "User not found.")

    return AccessContext(user_id=user_id, user=user)
