"""Login, registration and refresh-token rotation."""
import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from crud_backend.config import Settings
from crud_backend.errors import UnauthorizedError
from crud_backend.models.token import Token
from crud_backend.models.user import User
from crud_backend.services.security import (
    ACCESS,
    REFRESH,
    access_expiry,
    create_token,
    decode_token,
    refresh_expiry,
    verify_password,
)
from crud_backend.services.user_service import get_user_by_email

logger = logging.getLogger(__name__)


async def login(db: AsyncSession, email: str, password: str) -> User:
    user = await get_user_by_email(db, email)
    if not user or not verify_password(password, user.password):
        raise UnauthorizedError("Invalid email or password")
    return user


async def generate_auth_tokens(db: AsyncSession, user: User, settings: Settings) -> dict:
    """Issue an access token and persist a new refresh token."""
    access_expires = access_expiry(settings)
    refresh_expires = refresh_expiry(settings)
    access_token = create_token(str(user.id), ACCESS, access_expires, settings)
    refresh_token = create_token(str(user.id), REFRESH, refresh_expires, settings)

    db.add(Token(token=refresh_token, user_id=user.id, type=REFRESH, expires=refresh_expires))
    await db.commit()

    return {
        "access": {"token": access_token, "expires": access_expires},
        "refresh": {"token": refresh_token, "expires": refresh_expires},
    }


async def _pop_refresh_token(db: AsyncSession, refresh_token: str, settings: Settings) -> Token:
    data = decode_token(refresh_token, settings, expected_type=REFRESH)
    try:
        user_id = uuid.UUID(data.sub)
    except ValueError:
        raise UnauthorizedError("Invalid token")
    result = await db.execute(
        select(Token).where(
            Token.token == refresh_token,
            Token.type == REFRESH,
            Token.user_id == user_id,
        )
    )
    token = result.scalar_one_or_none()
    if not token:
        raise UnauthorizedError("Invalid token")
    await db.delete(token)
    return token


async def refresh_auth(db: AsyncSession, refresh_token: str, settings: Settings) -> dict:
    """Rotate a refresh token: the old one is consumed, a new pair is issued."""
    token = await _pop_refresh_token(db, refresh_token, settings)
    user = await db.get(User, token.user_id)
    if not user:
        await db.commit()
        raise UnauthorizedError("Invalid token")
    return await generate_auth_tokens(db, user, settings)


async def logout(db: AsyncSession, refresh_token: str, settings: Settings) -> None:
    token = await _pop_refresh_token(db, refresh_token, settings)
    await db.commit()
    logger.info("User %s logged out", token.user_id)

