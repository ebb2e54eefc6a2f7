"""Password hashing and the bearer tokens handed out at login."""

from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

import bcrypt
from jose import JWTError, jwt

from report_app.core.config import settings


class InvalidToken(Exception):
    pass


def hash_password(plain_password: str) -> str:
    return bcrypt.hashpw(plain_password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Stored hash is not a bcrypt hash
        return False


def create_access_token(user_id: UUID, expires_minutes: Optional[int] = None) -> str:
    """Token carrying the user id as both `sub` and `user_id`."""
    if expires_minutes is None:
        expires_minutes = settings.access_token_expire_minutes
    claims = {
        "sub": str(user_id),
        "user_id": str(user_id),
        "exp": datetime.now(timezone.utc) + timedelta(minutes=expires_minutes),
    }
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> UUID:
    """User id of a valid, unexpired token. Raises InvalidToken otherwise."""
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        raise InvalidToken(str(e)) from e
    subject = payload.get("user_id") or payload.get("sub")
    if not subject:
        raise InvalidToken("token has no subject")
    try:
        return UUID(subject)
    except ValueError as e:
        raise InvalidToken("subject is not a user id") from e
