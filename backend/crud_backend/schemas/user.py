"""User request/response schemas."""
from pydantic import BaseModel, EmailStr, Field
from typing import Literal, Optional
from datetime import datetime
from uuid import UUID


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=20)
    role: Literal["user", "admin"] = "user"


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=8, max_length=20)


class UserResponse(BaseModel):
    id: UUID
    name: str
    email: str
    role: str
    verified_email: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
