"""Users API routes."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from crud_backend.database import get_db
from crud_backend.dependencies import ensure_self_or_admin, get_current_user, require_admin
from crud_backend.models.user import User
from crud_backend.schemas.common import CommonResponse, PaginatedResponse, PaginationParams, pagination_params
from crud_backend.schemas.user import UserCreate, UserResponse, UserUpdate
from crud_backend.services import user_service

router = APIRouter(prefix="/v1/users", tags=["users"])


@router.get("", response_model=PaginatedResponse[UserResponse])
async def list_users(
    params: PaginationParams = Depends(pagination_params),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Paginated users, newest first. Search matches name, email or role."""
    page = await user_service.list_users(db, params)
    return {
        "code": 200,
        "message": "Get all users successfully",
        "results": page.results,
        "page": page.page,
        "limit": page.limit,
        "total_pages": page.total_pages,
        "total_results": page.total_results,
    }


@router.post("", status_code=201)
async def create_user(
    body: UserCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.create_user(db, body)
    return {
        "code": 201,
        "status": "success",
        "message": "Create user successfully",
        "user": UserResponse.model_validate(user),
    }


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    current: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    uid = user_service.parse_user_id(user_id)
    ensure_self_or_admin(current, uid)
    user = await user_service.get_user(db, uid)
    return {
        "code": 200,
        "status": "success",
        "message": "Get user successfully",
        "user": UserResponse.model_validate(user),
    }


@router.patch("/{user_id}")
async def update_user(
    user_id: str,
    body: UserUpdate,
    current: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    uid = user_service.parse_user_id(user_id)
    ensure_self_or_admin(current, uid)
    user = await user_service.update_user(db, uid, body)
    return {
        "code": 200,
        "status": "success",
        "message": "Update user successfully",
        "user": UserResponse.model_validate(user),
    }


@router.delete("/{user_id}", response_model=CommonResponse)
async def delete_user(
    user_id: str,
    current: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    uid = user_service.parse_user_id(user_id)
    ensure_self_or_admin(current, uid)
    await user_service.delete_user(db, uid)
    return {"code": 200, "message": "Delete user successfully"}
