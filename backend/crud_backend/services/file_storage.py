"""File storage abstraction. Local filesystem for dev, MinIO (S3-compatible) for production.

Both backends keep one row per stored object in the ``files`` table. The
backend is picked once at startup by ``create_storage_service``.
"""
import asyncio
import io
import logging
import os
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from pathlib import Path, PurePosixPath
from typing import Optional

import aiofiles
from minio import Minio
from minio.error import S3Error
from sqlalchemy import delete, desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from crud_backend.config import Settings
from crud_backend.errors import NotFoundError, StorageError, ValidationError
from crud_backend.models.file_record import FileRecord
from crud_backend.models.user import User
from crud_backend.schemas.file import FileUploadResult, ReconcileReport

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".pdf", ".doc", ".docx", ".txt"}
DEFAULT_FOLDER = "general"
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def file_size_of(file) -> int:
    """Size of an upload without consuming it."""
    size = getattr(file, "size", None)
    if size is not None:
        return size
    stream = file.file
    pos = stream.tell()
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(pos)
    return size


def generate_file_name(original_name: str) -> str:
    """``<base>_<YYYYmmddHHMMSS>_<8 hex>.<ext>`` from the client's file name."""
    name = PurePosixPath(original_name.replace("\\", "/")).name
    ext = os.path.splitext(name)[1]
    base = name[: len(name) - len(ext)] if ext else name
    timestamp = datetime.now().strftime("%Y%m%d%H%M%S")
    suffix = uuid.uuid4().hex[:8]
    return f"{base}_{timestamp}_{suffix}{ext}"


def clean_folder(folder: Optional[str]) -> str:
    """Normalize a folder label into a relative posix path."""
    parts = [p for p in (folder or "").replace("\\", "/").split("/") if p]
    if not parts:
        return DEFAULT_FOLDER
    if any(p in (".", "..") for p in parts):
        raise ValidationError(f"Invalid folder: {folder}")
    return "/".join(parts)


class StorageService(ABC):
    """Upload/delete/lookup contract shared by every backend."""

    def __init__(self, settings: Settings, session_factory: async_sessionmaker[AsyncSession]):
        self.settings = settings
        self.session_factory = session_factory
        self.max_file_size = settings.STORAGE_MAX_FILE_SIZE

    # ── backend hooks ────────────────────────────────────────────
    @abstractmethod
    async def _write(self, path: str, data: bytes, content_type: str) -> None:
        """Persist bytes under ``path``. Raises StorageError."""

    @abstractmethod
    async def _remove(self, path: str) -> None:
        """Remove the object at ``path``. Missing objects are not an error."""

    @abstractmethod
    async def _list_objects(self) -> dict[str, Optional[datetime]]:
        """Every stored object path, relative to the backend root, mapped to its last-modified time."""

    @abstractmethod
    def get_url(self, path: str) -> str:
        """Public URL for ``path``. Pure, no I/O."""

    # ── contract ─────────────────────────────────────────────────
    def validate(self, file) -> None:
        """Size and extension checks only."""
        if not file.filename:
            raise ValidationError("File name is required")
        size = file_size_of(file)
        if size > self.max_file_size:
            raise ValidationError(f"File size exceeds maximum limit of {self.max_file_size} bytes")
        ext = os.path.splitext(file.filename)[1].lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(f"File extension {ext or '(none)'} is not allowed")

    async def upload(
        self,
        file,
        folder: Optional[str] = DEFAULT_FOLDER,
        owner_id: Optional[uuid.UUID] = None,
    ) -> FileUploadResult:
        """Validate, write the bytes, then record the metadata row.

        If the row cannot be written the bytes are removed again.
        """
        self.validate(file)
        folder = clean_folder(folder)
        file_name = generate_file_name(file.filename)
        path = f"{folder}/{file_name}"
        content_type = file.content_type or DEFAULT_CONTENT_TYPE
        data = await file.read()
        if len(data) > self.max_file_size:
            raise ValidationError(f"File size exceeds maximum limit of {self.max_file_size} bytes")

        async with self.session_factory() as session:
            if owner_id is not None and await session.get(User, owner_id) is None:
                raise NotFoundError("User not found")

            await self._write(path, data, content_type)

            record = FileRecord(
                file_name=file_name,
                file_path=path,
                file_size=len(data),
                file_url=self.get_url(path),
                content_type=content_type,
                folder=folder,
                uploaded_by=owner_id,
            )
            session.add(record)
            try:
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                await self._rollback_write(path)
                raise StorageError(f"Failed to save file record: {e}") from e

        logger.info("Uploaded %s (%d bytes)", path, len(data))
        return FileUploadResult(
            file_name=file_name,
            file_path=path,
            file_size=len(data),
            file_url=self.get_url(path),
        )

    async def _rollback_write(self, path: str) -> None:
        try:
            await self._remove(path)
        except StorageError as e:
            logger.error("Orphaned object %s left behind after failed metadata write: %s", path, e.message)

    async def delete(self, path: str) -> None:
        """Remove the physical object, then its metadata row."""
        async with self.session_factory() as session:
            record = await self._find(session, path)
            try:
                await self._remove(record.file_path)
            except StorageError:
                logger.error("Failed to delete object %s; metadata row kept", path)
                raise
            try:
                await session.delete(record)
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error("Object %s deleted but metadata row remains: %s", path, e)
                raise StorageError(f"Failed to delete file record: {e}") from e
        logger.info("Deleted %s", path)

    async def get_by_path(self, path: str) -> FileRecord:
        async with self.session_factory() as session:
            return await self._find(session, path)

    async def list_by_user(self, owner_id: uuid.UUID) -> list[FileRecord]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(FileRecord)
                .where(FileRecord.uploaded_by == owner_id)
                .order_by(desc(FileRecord.created_at), desc(FileRecord.file_path))
            )
            return list(result.scalars().all())

    async def reconcile(self, dry_run: bool = True, grace_seconds: Optional[int] = None) -> ReconcileReport:
        """Compare metadata rows against stored objects.

        Reports rows whose object is gone and objects with no row. Unless
        ``dry_run``, both kinds are removed. Rows are read before objects are
        listed, and objects modified within ``grace_seconds`` are skipped, so an
        upload running alongside the sweep is never touched.
        """
        if grace_seconds is None:
            grace_seconds = self.settings.STORAGE_RECONCILE_GRACE_SECONDS
        cutoff = datetime.now(timezone.utc) - timedelta(seconds=grace_seconds)

        async with self.session_factory() as session:
            result = await session.execute(select(FileRecord.file_path))
            paths = set(result.scalars().all())

            objects = await self._list_objects()
            settled = {
                path for path, modified in objects.items()
                if modified is None or modified <= cutoff
            }

            missing = sorted(paths - objects.keys())
            orphaned = sorted(settled - paths)

            if not dry_run:
                if missing:
                    await session.execute(delete(FileRecord).where(FileRecord.file_path.in_(missing)))
                    await session.commit()
                for path in orphaned:
                    await self._remove(path)

        if missing or orphaned:
            logger.warning(
                "Reconcile (dry_run=%s): %d row(s) without object, %d object(s) without row",
                dry_run, len(missing), len(orphaned),
            )
        return ReconcileReport(dry_run=dry_run, missing_objects=missing, orphaned_objects=orphaned)

    @staticmethod
    async def _find(session: AsyncSession, path: str) -> FileRecord:
        result = await session.execute(select(FileRecord).where(FileRecord.file_path == path))
        record = result.scalar_one_or_none()
        if not record:
            raise NotFoundError("File not found")
        return record


class LocalStorageService(StorageService):
    """Stores bytes under ``STORAGE_LOCAL_PATH``; served from ``LOCAL_URL_PREFIX``."""

    def __init__(self, settings: Settings, session_factory: async_sessionmaker[AsyncSession]):
        super().__init__(settings, session_factory)
        self.base_path = Path(settings.STORAGE_LOCAL_PATH)
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.url_prefix = settings.LOCAL_URL_PREFIX.rstrip("/")

    def _full_path(self, path: str) -> Path:
        full = (self.base_path / path).resolve()
        if not full.is_relative_to(self.base_path.resolve()):
            raise ValidationError(f"Invalid file path: {path}")
        return full

    async def _write(self, path: str, data: bytes, content_type: str) -> None:
        full = self._full_path(path)
        try:
            full.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(full, "wb") as f:
                await f.write(data)
        except OSError as e:
            full.unlink(missing_ok=True)
            raise StorageError(f"Failed to save file: {e}") from e

    async def _remove(self, path: str) -> None:
        try:
            self._full_path(path).unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to delete file: {e}") from e

    async def _list_objects(self) -> dict[str, Optional[datetime]]:
        def _scan():
            return {
                p.relative_to(self.base_path).as_posix(): datetime.fromtimestamp(p.stat().st_mtime, timezone.utc)
                for p in self.base_path.rglob("*")
                if p.is_file()
            }

        try:
            return await asyncio.to_thread(_scan)
        except OSError as e:
            raise StorageError(f"Failed to list stored files: {e}") from e

    def get_url(self, path: str) -> str:
        normalized = path.replace("\\", "/")
        return f"{self.url_prefix}/{normalized}"


class MinioStorageService(StorageService):
    """Stores bytes in a MinIO bucket. The bucket is created if missing."""

    def __init__(self, settings: Settings, session_factory: async_sessionmaker[AsyncSession]):
        super().__init__(settings, session_factory)
        self.endpoint = settings.MINIO_ENDPOINT
        self.bucket_name = settings.MINIO_BUCKET
        self.secure = settings.MINIO_USE_SSL
        self.client = Minio(
            self.endpoint,
            access_key=settings.MINIO_ACCESS_KEY,
            secret_key=settings.MINIO_SECRET_KEY,
            secure=self.secure,
        )
        self._ensure_bucket()

    def _ensure_bucket(self) -> None:
        try:
            if not self.client.bucket_exists(self.bucket_name):
                self.client.make_bucket(self.bucket_name)
                logger.info(f"Created bucket {self.bucket_name}")
        except S3Error as e:
            raise StorageError(f"Failed to prepare bucket {self.bucket_name}: {e}") from e

    async def _write(self, path: str, data: bytes, content_type: str) -> None:
        try:
            await asyncio.to_thread(
                self.client.put_object,
                self.bucket_name,
                path,
                io.BytesIO(data),
                len(data),
                content_type=content_type,
            )
        except S3Error as e:
            raise StorageError(f"Failed to upload file to MinIO: {e}") from e

    async def _remove(self, path: str) -> None:
        try:
            await asyncio.to_thread(self.client.remove_object, self.bucket_name, path)
        except S3Error as e:
            if e.code == "NoSuchKey":
                return
            raise StorageError(f"Failed to delete file from MinIO: {e}") from e

    async def _list_objects(self) -> dict[str, Optional[datetime]]:
        def _names():
            return {
                o.object_name: o.last_modified
                for o in self.client.list_objects(self.bucket_name, recursive=True)
            }

        try:
            return await asyncio.to_thread(_names)
        except S3Error as e:
            raise StorageError(f"Failed to list MinIO objects: {e}") from e

    def get_url(self, path: str) -> str:
        protocol = "https" if self.secure else "http"
        return f"{protocol}://{self.endpoint}/{self.bucket_name}/{path}"


def create_storage_service(
    settings: Settings, session_factory: async_sessionmaker[AsyncSession]
) -> StorageService:
    """Pick the backend from ``settings.STORAGE_TYPE``."""
    if settings.STORAGE_TYPE == "local":
        return LocalStorageService(settings, session_factory)
    elif settings.STORAGE_TYPE == "minio":
        return MinioStorageService(settings, session_factory)
    raise ValueError(f"Unknown storage type: {settings.STORAGE_TYPE}")
