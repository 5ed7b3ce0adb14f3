"""Response envelope and shared schema configuration (camelCase on the wire)."""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base for wire schemas: camelCase aliases, python names accepted too, ORM attributes readable."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class PageMeta(CamelModel):
    """Pagination metadata; total_pages is computed from total and limit, not from rows returned."""

    page: int
    limit: int
    total: int
    total_pages: int


class ApiResponse(CamelModel, Generic[T]):
    """Success envelope shared by every endpoint."""

    success: bool = True
    message: str
    data: T | None = None
    meta: PageMeta | None = None


class ErrorEnvelope(BaseModel):
    """Failure envelope as documented in OpenAPI; the exception handlers build it."""

    success: bool = False
    message: str
    error: str = Field(..., description="Stable error code, e.g. NOT_FOUND")
    details: Any | None = None
