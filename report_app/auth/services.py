import logging
from uuid import UUID

from fastapi import status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from report_app.auth.models import User
from report_app.auth.schemas import ChangePasswordRequest, LoginRequest, LoginResponse, UserInfo
from report_app.auth.security import create_access_token, hash_password, verify_password
from report_app.core.exceptions import ServiceError

logger = logging.getLogger(__name__)


async def login_user(db: AsyncSession, payload: LoginRequest) -> LoginResponse:
    result = await db.execute(select(User).where(User.email == payload.email))
    user = result.scalar_one_or_none()
    if not user or not verify_password(payload.password, user.password_hash):
        logger.warning("Failed login for %s", payload.email)
        raise ServiceError("Invalid email or password", status.HTTP_401_UNAUTHORIZED)

    access_token = create_access_token(user.id)
    return LoginResponse(
        access_token=access_token,
        user=UserInfo(id=user.id, name=user.name, email=user.email),
    )


async def change_password(db: AsyncSession, user_id: UUID, payload: ChangePasswordRequest) -> None:
    user = await db.get(User, user_id)
    if not user:
        raise ServiceError("User not found", status.HTTP_404_NOT_FOUND)
    if not verify_password(payload.current_password, user.password_hash):
        raise ServiceError("Current password is incorrect", status.HTTP_400_BAD_REQUEST)
    user.password_hash = hash_password(payload.new_password)
    await db.commit()
    logger.info("Password changed for user %s", user_id)
