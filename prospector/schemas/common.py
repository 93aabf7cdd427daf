"""
Common schemas used across multiple endpoints.
"""
from typing import TypeVar, Generic, List
from pydantic import BaseModel
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base for request/response bodies exchanged in camelCase."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class ErrorResponse(BaseModel):
    """Error response."""
    code: str
    message: str

    class Config:
        json_schema_extra = {"example": {"code": "NOT_FOUND", "message": "Company list not found"}}


class PaginatedResponse(BaseModel, Generic[T]):
    """Generic paginated response."""
    items: List[T]
    total: int
    page: int
    limit: int
    pages: int
    has_next: bool
    has_prev: bool
