# pranveda/schemas/common.py
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """
    Success envelope shared by every route:
        {"success": true, "data": ..., "message": ...}
    """

    success: bool = True
    data: T | None = None
    message: str | None = None


class PageMeta(BaseModel):
    page: int
    limit: int
    total: int
    has_more: bool


class Paginated(BaseModel, Generic[T]):
    items: list[T]
    pagination: PageMeta


def ok(data: Any = None, message: str | None = None) -> dict[str, Any]:
    """
    Build a success envelope.

    Returned as a plain dict so FastAPI validates `data` (often a table
    model) against the route's response_model.
    """
    body: dict[str, Any] = {"success": True, "data": data}
    if message is not None:
        body["message"] = message
    return body


def page_meta(page: int, limit: int, total: int) -> dict[str, Any]:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "has_more": page * limit < total,
    }
