"""Token model - persisted refresh tokens."""
import uuid
from datetime import datetime
from sqlalchemy import DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from crud_backend.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Token(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "tokens"

    token: Mapped[str] = mapped_column(String(1000), nullable=False, index=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type: Mapped[str] = mapped_column(String(20), nullable=False, default="refresh")
    expires: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
