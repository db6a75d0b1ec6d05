"""Seed the default admin user on startup.

Idempotent: checks for an existing user with the admin email before inserting.
"""
import logging
from sqlalchemy.ext.asyncio import AsyncSession

from crud_backend.config import Settings
from crud_backend.models.user import User
from crud_backend.services.security import hash_password
from crud_backend.services.user_service import get_user_by_email

logger = logging.getLogger(__name__)


async def _seed_admin(session: AsyncSession, settings: Settings) -> bool:
    if await get_user_by_email(session, settings.ADMIN_EMAIL):
        return False
    session.add(User(
        name=settings.ADMIN_NAME,
        email=settings.ADMIN_EMAIL.lower(),
        password=hash_password(settings.ADMIN_PASSWORD),
        role="admin",
        verified_email=True,
    ))
    return True


async def seed_all_defaults(session: AsyncSession, settings: Settings) -> None:
    """Idempotent entry point: seed all default data."""
    logger.info("Checking seed defaults...")
    created = await _seed_admin(session, settings)
    await session.commit()
    logger.info("Seed defaults check complete: %d created, %d skipped", int(created), int(not created))
