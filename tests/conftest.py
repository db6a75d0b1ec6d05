"""Shared fixtures: a SQLite database per test, local storage in tmp_path, an HTTP client."""
import os
import tempfile

# Module-level app creation must not touch ./backend/uploads
_BOOT_DIR = tempfile.mkdtemp(prefix="crud-backend-tests-")
os.environ.setdefault("STORAGE_LOCAL_PATH", os.path.join(_BOOT_DIR, "uploads"))

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from crud_backend.config import Settings
from crud_backend.database import get_db
from crud_backend.main import create_app
from crud_backend.models import Base, User
from crud_backend.services.file_storage import LocalStorageService
from crud_backend.services.security import ACCESS, access_expiry, create_token, hash_password
from tests.helpers import TEST_PASSWORD


@pytest.fixture
def settings(tmp_path):
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path}/test.db",
        STORAGE_TYPE="local",
        STORAGE_LOCAL_PATH=str(tmp_path / "uploads"),
        STORAGE_MAX_FILE_SIZE=1024 * 1024,
        JWT_SECRET="test-secret",
        CORS_ORIGINS="http://test",
    )


@pytest.fixture
async def session_factory(settings):
    engine = create_async_engine(settings.DATABASE_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def local_storage(settings, session_factory):
    return LocalStorageService(settings, session_factory)


@pytest.fixture
async def client(settings, session_factory, local_storage):
    app = create_app(settings)
    app.state.storage = local_storage

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


async def _make_user(session_factory, name: str, email: str, role: str) -> User:
    async with session_factory() as session:
        user = User(
            name=name,
            email=email,
            password=hash_password(TEST_PASSWORD),
            role=role,
            verified_email=True,
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user


@pytest.fixture
async def admin(session_factory):
    return await _make_user(session_factory, "Admin", "admin@example.com", "admin")


@pytest.fixture
async def user(session_factory):
    return await _make_user(session_factory, "Regular", "user@example.com", "user")


@pytest.fixture
def auth_headers(settings):
    def _headers(u: User) -> dict:
        token = create_token(str(u.id), ACCESS, access_expiry(settings), settings)
        return {"Authorization": f"Bearer {token}"}
    return _headers

