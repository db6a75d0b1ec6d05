"""Shared Pydantic schemas."""
from typing import Generic, Optional, TypeVar
from fastapi import Query
from pydantic import BaseModel, Field

T = TypeVar("T")

MAX_PAGE = 1000
MAX_LIMIT = 100
DEFAULT_LIMIT = 10


class PaginationParams(BaseModel):
    page: int = Field(1, le=MAX_PAGE)
    limit: int = Field(DEFAULT_LIMIT, le=MAX_LIMIT)
    search: str = Field("", max_length=100)
    start_date: Optional[str] = None
    end_date: Optional[str] = None


def pagination_params(
    page: int = Query(1, le=MAX_PAGE, description="Page number"),
    limit: int = Query(DEFAULT_LIMIT, le=MAX_LIMIT, description="Maximum number of results"),
    search: str = Query("", max_length=100),
    start_date: Optional[str] = Query(None, description="Filter by start date (YYYY-MM-DD)"),
    end_date: Optional[str] = Query(None, description="Filter by end date (YYYY-MM-DD)"),
) -> PaginationParams:
    """FastAPI dependency collecting pagination query parameters."""
    return PaginationParams(
        page=page,
        limit=limit,
        search=search,
        start_date=start_date or None,
        end_date=end_date or None,
    )


class CommonResponse(BaseModel):
    code: int
    status: str = "success"
    message: str


class DataResponse(CommonResponse, Generic[T]):
    data: T


class PaginatedResponse(CommonResponse, Generic[T]):
    results: list[T]
    page: int
    limit: int
    total_pages: int
    total_results: int
