import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from report_app.auth.models import User
from report_app.auth.schemas import CurrentUser
from report_app.auth.security import InvalidToken, decode_access_token
from report_app.db.session import get_db

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login-oauth")


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> CurrentUser:
    """Resolve the reporting user from the bearer token. Every route except login depends on this."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        user_id = decode_access_token(token)
    except InvalidToken as e:
        logger.warning("Rejected access token: %s", e)
        raise credentials_exception

    user = await db.get(User, user_id)
    if not user:
        raise credentials_exception

    return CurrentUser(id=user.id, email=user.email, name=user.name)
