"""Builders for upload handles and user rows used across tests."""
import io
import uuid
from datetime import datetime, timedelta, timezone

from starlette.datastructures import Headers, UploadFile

from crud_backend.models import User

TEST_PASSWORD = "password1"


def make_upload(name: str, data: bytes, content_type: str = "application/pdf") -> UploadFile:
    return UploadFile(
        file=io.BytesIO(data),
        filename=name,
        size=len(data),
        headers=Headers({"content-type": content_type}),
    )


def make_users(count: int, start: datetime | None = None, step_hours: int = 1) -> list[User]:
    """Unsaved users with distinct, increasing created_at values."""
    start = start or datetime(2024, 1, 1, tzinfo=timezone.utc)
    return [
        User(
            id=uuid.uuid4(),
            name=f"User {i:03d}",
            email=f"user{i:03d}@example.com",
            password="not-hashed",
            role="user",
            created_at=start + timedelta(hours=i * step_hours),
            updated_at=start + timedelta(hours=i * step_hours),
        )
        for i in range(count)
    ]
