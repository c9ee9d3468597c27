"""Common schemas for the marketplace API."""

from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class PaginatedResponse(BaseModel, Generic[T]):
    """Paginated response wrapper."""
    items: List[T]
    total: int
    page: int
    per_page: int
    pages: int

    @classmethod
    def create(cls, items: List[T], total: int, page: int, per_page: int):
        pages = (total + per_page - 1) // per_page if per_page > 0 else 0
        return cls(items=items, total=total, page=page, per_page=per_page, pages=pages)


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    code: Optional[str] = None
    detail: Optional[Dict[str, Any]] = None


class DecisionAction(BaseModel):
    comment: Optional[str] = None


class BatchDecisionResponse(BaseModel):
    succeeded: List[str] = []
    failed: List[dict] = []
