"""Auth request/response schemas."""
from pydantic import BaseModel, EmailStr, Field
from datetime import datetime

from crud_backend.schemas.user import UserResponse


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=20)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class TokenExpires(BaseModel):
    token: str
    expires: datetime


class Tokens(BaseModel):
    access: TokenExpires
    refresh: TokenExpires


class AuthResponse(BaseModel):
    code: int
    status: str = "success"
    message: str
    user: UserResponse
    tokens: Tokens


class RefreshResponse(BaseModel):
    code: int
    status: str = "success"
    message: str
    tokens: Tokens
