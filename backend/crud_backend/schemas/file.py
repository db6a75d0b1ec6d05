"""File request/response schemas."""
from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from uuid import UUID


class FileUploadResult(BaseModel):
    file_name: str
    file_path: str
    file_size: int
    file_url: str


class FileInfo(BaseModel):
    file_path: str
    file_url: str


class FileResponse(BaseModel):
    id: UUID
    file_name: str
    file_path: str
    file_size: int
    file_url: str
    content_type: Optional[str] = None
    folder: str
    uploaded_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ReconcileReport(BaseModel):
    dry_run: bool
    missing_objects: list[str] = []
    orphaned_objects: list[str] = []
