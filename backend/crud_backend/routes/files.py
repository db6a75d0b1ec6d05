"""Files API routes."""
from typing import Optional
from fastapi import APIRouter, Depends, File as FastAPIFile, Form, Query, UploadFile

from crud_backend.dependencies import get_current_user, get_storage, require_admin
from crud_backend.models.user import User
from crud_backend.schemas.common import CommonResponse, DataResponse
from crud_backend.schemas.file import FileInfo, FileResponse, FileUploadResult, ReconcileReport
from crud_backend.services.file_storage import DEFAULT_FOLDER, StorageService

router = APIRouter(prefix="/v1/files", tags=["files"])


@router.post("/upload", response_model=DataResponse[FileUploadResult], status_code=201)
async def upload_file(
    file: UploadFile = FastAPIFile(...),
    folder: Optional[str] = Form(DEFAULT_FOLDER),
    user: User = Depends(get_current_user),
    storage: StorageService = Depends(get_storage),
):
    """Upload a file to the configured backend and record its metadata."""
    result = await storage.upload(file, folder, user.id)
    return {
        "code": 201,
        "message": "File uploaded successfully",
        "data": result,
    }


@router.delete("/delete", response_model=CommonResponse)
async def delete_file(
    file_path: str = Query(..., min_length=1),
    user: User = Depends(get_current_user),
    storage: StorageService = Depends(get_storage),
):
    """Delete a file and its record. Any authenticated user may delete any path, not only their own uploads."""
    await storage.delete(file_path)
    return {"code": 200, "message": "File deleted successfully"}


@router.get("/info", response_model=DataResponse[FileInfo])
async def get_file_info(
    file_path: str = Query(..., min_length=1),
    user: User = Depends(get_current_user),
    storage: StorageService = Depends(get_storage),
):
    """Public URL for a stored path."""
    return {
        "code": 200,
        "message": "File info retrieved successfully",
        "data": {"file_path": file_path, "file_url": storage.get_url(file_path)},
    }


@router.get("/my-files", response_model=DataResponse[list[FileResponse]])
async def get_my_files(
    user: User = Depends(get_current_user),
    storage: StorageService = Depends(get_storage),
):
    """Files uploaded by the authenticated user, newest first."""
    files = await storage.list_by_user(user.id)
    return {
        "code": 200,
        "message": "Files retrieved successfully",
        "data": files,
    }


@router.post("/reconcile", response_model=DataResponse[ReconcileReport])
async def reconcile_files(
    dry_run: bool = Query(True),
    admin: User = Depends(require_admin),
    storage: StorageService = Depends(get_storage),
):
    """Find (and unless dry_run, remove) rows without objects and objects without rows."""
    report = await storage.reconcile(dry_run=dry_run)
    return {
        "code": 200,
        "message": "Reconcile completed",
        "data": report,
    }
