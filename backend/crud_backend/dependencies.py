"""Shared FastAPI dependencies: settings, storage backend and the authenticated user."""
import uuid

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from crud_backend.config import Settings
from crud_backend.database import get_db
from crud_backend.errors import ForbiddenError, UnauthorizedError
from crud_backend.models.user import User
from crud_backend.services.file_storage import StorageService
from crud_backend.services.security import decode_token

bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_storage(request: Request) -> StorageService:
    return request.app.state.storage


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> User:
    """Resolve the bearer access token to a live user. 401 otherwise."""
    if credentials is None:
        raise UnauthorizedError("Please authenticate")
    data = decode_token(credentials.credentials, settings)
    try:
        user_id = uuid.UUID(data.sub)
    except ValueError:
        raise UnauthorizedError("Invalid token")
    user = await db.get(User, user_id)
    if not user:
        raise UnauthorizedError("Please authenticate")
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    if user.role != "admin":
        raise ForbiddenError("You don't have permission to access this resource")
    return user


def ensure_self_or_admin(current: User, user_id: uuid.UUID) -> None:
    """Users may act on themselves; only admins may act on others."""
    if current.role != "admin" and current.id != user_id:
        raise ForbiddenError("You don't have permission to access this resource")
