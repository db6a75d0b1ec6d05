"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from crud_backend.config import Settings, settings
from crud_backend.database import build_engine, build_session_factory, get_db
from crud_backend.errors import register_error_handlers
from crud_backend.models import Base
from crud_backend.routes.auth import router as auth_router
from crud_backend.routes.files import router as files_router
from crud_backend.routes.users import router as users_router
from crud_backend.services.file_storage import create_storage_service
from crud_backend.services.seed_defaults import seed_all_defaults

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the database named by the app settings, seed the admin user and pick the storage backend."""
    app_settings = app.state.settings
    logging.basicConfig(
        level=app_settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    engine = build_engine(app_settings.DATABASE_URL)
    session_factory = build_session_factory(engine)
    app.state.engine = engine
    app.state.session_factory = session_factory

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with session_factory() as session:
        await seed_all_defaults(session, app_settings)

    app.state.storage = create_storage_service(app_settings, session_factory)
    logger.info(f"Storage backend: {app_settings.STORAGE_TYPE}")

    yield

    # Cleanup
    await engine.dispose()


def create_app(app_settings: Settings = settings) -> FastAPI:
    app = FastAPI(
        title="CRUD Backend API",
        version="1.0.0",
        description="User management, JWT auth and file storage.",
        lifespan=lifespan,
    )
    app.state.settings = app_settings

    # CORS
    origins = [o.strip() for o in app_settings.CORS_ORIGINS.split(",")]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    @app.get("/v1/health")
    async def health_check(db: AsyncSession = Depends(get_db)):
        """Verify API and database connectivity."""
        try:
            await db.execute(text("SELECT 1"))
            return {"status": "ok", "database": "connected"}
        except Exception as e:
            return {"status": "error", "database": str(e)}

    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(files_router)

    # Local uploads are served straight from disk
    if app_settings.STORAGE_TYPE == "local":
        Path(app_settings.STORAGE_LOCAL_PATH).mkdir(parents=True, exist_ok=True)
        app.mount(
            app_settings.LOCAL_URL_PREFIX,
            StaticFiles(directory=app_settings.STORAGE_LOCAL_PATH),
            name="uploads",
        )

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn on API_PORT."""
    import uvicorn

    uvicorn.run("crud_backend.main:app", host="0.0.0.0", port=settings.API_PORT)
