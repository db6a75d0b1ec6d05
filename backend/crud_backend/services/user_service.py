"""User CRUD and paginated listing."""
import logging
import uuid

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from crud_backend.errors import ConflictError, NotFoundError, ValidationError
from crud_backend.models.token import Token
from crud_backend.models.user import User
from crud_backend.schemas.common import PaginationParams
from crud_backend.schemas.user import UserCreate, UserUpdate
from crud_backend.services.pagination import PaginationResult, paginate
from crud_backend.services.security import hash_password

logger = logging.getLogger(__name__)


def parse_user_id(value: str) -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except (TypeError, ValueError):
        raise ValidationError("Invalid user ID")


def _search_users(stmt, term: str):
    pattern = f"%{term.lower()}%"
    return stmt.where(
        or_(
            func.lower(User.name).like(pattern),
            func.lower(User.email).like(pattern),
            func.lower(User.role).like(pattern),
        )
    )


async def list_users(db: AsyncSession, params: PaginationParams) -> PaginationResult[User]:
    return await paginate(
        db,
        select(User),
        params,
        User.created_at,
        search=_search_users,
        tie_breaker=User.id,
    )


async def get_user(db: AsyncSession, user_id: uuid.UUID) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


async def create_user(db: AsyncSession, body: UserCreate) -> User:
    if await get_user_by_email(db, body.email):
        raise ConflictError("Email already taken")
    user = User(
        name=body.name,
        email=body.email.lower(),
        password=hash_password(body.password),
        role=body.role,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Email already taken")
    await db.refresh(user)
    logger.info("Created user %s", user.id)
    return user


async def update_user(db: AsyncSession, user_id: uuid.UUID, body: UserUpdate) -> User:
    """Update a user. Only provided fields are updated."""
    user = await get_user(db, user_id)
    update_data = body.model_dump(exclude_unset=True, exclude_none=True)
    if "email" in update_data:
        update_data["email"] = update_data["email"].lower()
        existing = await get_user_by_email(db, update_data["email"])
        if existing and existing.id != user.id:
            raise ConflictError("Email already taken")
    if "password" in update_data:
        update_data["password"] = hash_password(update_data["password"])

    for key, value in update_data.items():
        setattr(user, key, value)

    await db.commit()
    await db.refresh(user)
    return user


async def delete_user(db: AsyncSession, user_id: uuid.UUID) -> None:
    """Delete a user along with all of their tokens."""
    user = await get_user(db, user_id)
    await db.execute(delete(Token).where(Token.user_id == user.id))
    await db.delete(user)
    await db.commit()
    logger.info("Deleted user %s", user_id)
