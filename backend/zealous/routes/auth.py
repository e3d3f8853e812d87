import logging
import re
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from jose import JWTError
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..database import get_db
from ..envelope import ApiError, success
from ..models import User
from ..schemas import Credentials, ForgetPasswordRequest, GoogleLogin, ResetPasswordRequest
from ..security import (
    create_access_token,
    create_refresh_token,
    create_reset_token,
    decode_reset_token,
    decode_token,
    get_password_hash,
    verify_password,
)
from ..services.mailer import Mailer, get_mailer, password_reset_html

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["auth"])

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PASSWORD_RE = re.compile(r"^(?=.*[A-Z])(?=.*[a-z])(?=.*\d)(?=.*[^A-Za-z0-9]).{8,}$")


def _with_refresh_cookie(response: JSONResponse, user_id: int) -> JSONResponse:
    response.set_cookie(
        settings.REFRESH_COOKIE_NAME,
        create_refresh_token(user_id),
        httponly=True,
        secure=settings.COOKIE_SECURE,
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
    )
    return response


@router.post("/auth")
async def auth_post(
    type: Optional[str] = None,
    credentials: Optional[Credentials] = None,
    db: AsyncSession = Depends(get_db),
):
    """Register (type=register) or log in (type=login) with email and password"""
    if type not in ("register", "login"):
        raise ApiError(404, "Type is required.")
    credentials = credentials or Credentials()
    if not credentials.email or not credentials.password:
        raise ApiError(400, "Email and Password are required.")

    email = credentials.email.strip().lower()
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if type == "register":
        if user:
            raise ApiError(409, "User is already registered.")
        db.add(User(email=email, password_hash=get_password_hash(credentials.password)))
        await db.commit()
        return success(201, "Sign in successfully.")

    if not user:
        raise ApiError(404, "User is not registered.")
    if not user.password_hash or not verify_password(credentials.password, user.password_hash):
        raise ApiError(403, "Incorrect password.")

    return _with_refresh_cookie(success(201, {"accessToken": create_access_token(user.id)}), user.id)


@router.get("/auth")
async def auth_get(request: Request, type: Optional[str] = None):
    """Exchange the refresh cookie for a new access token, or log out"""
    if type == "refreshToken":
        refresh_token = request.cookies.get(settings.REFRESH_COOKIE_NAME)
        if not refresh_token:
            raise ApiError(401, "Refresh token in cookie is required.")
        try:
            user_id = decode_token(refresh_token, settings.REFRESH_TOKEN_PRIVATE_KEY)
        except JWTError:
            raise ApiError(401, "Invalid refresh token.")
        return success(201, {"accessToken": create_access_token(user_id)})

    if type == "logout":
        response = success(200, "Logged out successfully")
        response.delete_cookie(settings.REFRESH_COOKIE_NAME, httponly=True, secure=settings.COOKIE_SECURE)
        return response

    raise ApiError(404, "Type is required.")


@router.post("/auth/google")
async def google_login(data: GoogleLogin, db: AsyncSession = Depends(get_db)):
    """Log in with a Google identity, creating the account on first use"""
    if not data.email or not data.id:
        raise ApiError(400, "Email and googleId are required.")

    email = data.email.strip().lower()
    result = await db.execute(select(User).where(or_(User.google_id == data.id, User.email == email)))
    user = result.scalars().first()

    if not user:
        user = User(email=email, google_id=data.id, full_name=data.name, has_agreed_to_privacy_policy=True)
        db.add(user)
    elif not user.google_id:
        user.google_id = data.id

    await db.commit()
    await db.refresh(user)
    return _with_refresh_cookie(success(201, {"accessToken": create_access_token(user.id)}), user.id)


@router.post("/forgetpassword")
async def forget_password(
    data: ForgetPasswordRequest,
    db: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    """Email a password reset link"""
    if not data.email:
        raise ApiError(400, "Email is required.")
    if not EMAIL_RE.match(data.email):
        raise ApiError(400, "Please provide a valid email address.")

    result = await db.execute(select(User).where(User.email == data.email.strip().lower()))
    user = result.scalar_one_or_none()
    if not user:
        raise ApiError(404, "No account found with this email address.")

    if not settings.DOMAIN_URL:
        logger.error("DOMAIN_URL is not set; cannot build reset links")
        raise ApiError(500, "Server configuration error. Please contact support.")

    reset_link = f"{settings.DOMAIN_URL.rstrip('/')}/reset-password?param={create_reset_token(user.id)}"
    html = password_reset_html(user.full_name, reset_link, settings.RESET_TOKEN_EXPIRE_MINUTES)
    await run_in_threadpool(mailer.send, user.email, f"Reset Your Password - {settings.APP_NAME}", html)

    return success(200, "Password reset link has been sent to your email.")


@router.get("/resetpassword")
async def check_reset_link(param: Optional[str] = None, db: AsyncSession = Depends(get_db)):
    """Check that a reset link is still valid"""
    if not param:
        raise ApiError(400, "User ID parameter is required.")
    user_id = decode_reset_token(param)
    if user_id is None or await db.get(User, user_id) is None:
        raise ApiError(404, "Invalid or expired reset link.")
    return success(200, "Valid reset link.")


@router.post("/resetpassword")
async def reset_password(data: ResetPasswordRequest, db: AsyncSession = Depends(get_db)):
    """Set a new password from a reset link"""
    if not data.param or not data.password:
        raise ApiError(400, "User ID and password are required.")
    if len(data.password) < 8:
        raise ApiError(400, "Password must be at least 8 characters long.")
    if not PASSWORD_RE.match(data.password):
        raise ApiError(
            400,
            "Password must contain at least one special character, one uppercase letter, "
            "one lowercase letter, and one number.",
        )

    user_id = decode_reset_token(data.param)
    user = await db.get(User, user_id) if user_id is not None else None
    if not user:
        raise ApiError(404, "Invalid or expired reset link.")

    user.password_hash = get_password_hash(data.password)
    await db.commit()
    return success(200, "Password reset successfully! You can now log in with your new password.")
