"""Common Schemas — response envelopes shared by every route.

Invariants:
    - Wire format is camelCase; snake_case input is accepted too
    - ApiResponse carries either data (success) or error (failure)
    - PaginatedResponse.pagination.totalPages is ceil(total / limit)
"""

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")

# Loose on purpose: provider-issued addresses like alice@app.local must pass
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class CamelModel(BaseModel):
    """Base for wire schemas — camelCase aliases, populate by field name."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApiResponse(CamelModel, Generic[T]):
    success: bool
    data: T | None = None
    error: str | None = None


class Pagination(CamelModel):
    page: int = Field(ge=1)
    limit: int = Field(ge=1)
    total: int = Field(ge=0)
    total_pages: int = Field(ge=0)


class PaginatedResponse(CamelModel, Generic[T]):
    success: bool
    data: list[T]
    pagination: Pagination
