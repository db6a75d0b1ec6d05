"""FileRecord model - file metadata (actual bytes on local disk or in the object store)."""
import uuid
from sqlalchemy import BigInteger, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from crud_backend.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class FileRecord(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "files"

    file_name: Mapped[str] = mapped_column(String(500), nullable=False)
    file_path: Mapped[str] = mapped_column(String(1000), nullable=False, unique=True)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    file_url: Mapped[str] = mapped_column(String(2000), nullable=False)
    content_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    folder: Mapped[str] = mapped_column(String(255), nullable=False)
    uploaded_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
