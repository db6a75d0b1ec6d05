"""Auth API routes."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from crud_backend.config import Settings
from crud_backend.database import get_db
from crud_backend.dependencies import get_settings
from crud_backend.schemas.auth import AuthResponse, LoginRequest, RefreshRequest, RefreshResponse, RegisterRequest
from crud_backend.schemas.common import CommonResponse
from crud_backend.schemas.user import UserCreate, UserResponse
from crud_backend.services import auth_service, user_service

router = APIRouter(prefix="/v1/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Create a regular user and log them in."""
    user = await user_service.create_user(db, UserCreate(**body.model_dump()))
    tokens = await auth_service.generate_auth_tokens(db, user, settings)
    return {
        "code": 201,
        "message": "Register successfully",
        "user": UserResponse.model_validate(user),
        "tokens": tokens,
    }


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    user = await auth_service.login(db, body.email, body.password)
    tokens = await auth_service.generate_auth_tokens(db, user, settings)
    return {
        "code": 200,
        "message": "Login successfully",
        "user": UserResponse.model_validate(user),
        "tokens": tokens,
    }


@router.post("/refresh-tokens", response_model=RefreshResponse)
async def refresh_tokens(
    body: RefreshRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    tokens = await auth_service.refresh_auth(db, body.refresh_token, settings)
    return {"code": 200, "message": "Refresh token successfully", "tokens": tokens}


@router.post("/logout", response_model=CommonResponse)
async def logout(
    body: RefreshRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    await auth_service.logout(db, body.refresh_token, settings)
    return {"code": 200, "message": "Logout successfully"}
