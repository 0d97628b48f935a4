"""Reusable pagination helpers."""

from __future__ import annotations

from collections.abc import Callable
from typing import Generic, TypeVar

from fastapi import Query
from pydantic import BaseModel

T = TypeVar("T")


class PaginationParams(BaseModel):
    """Pagination query params."""

    limit: int
    offset: int


def pagination_params(
    *,
    default_limit: int = 20,
    max_limit: int = 100,
) -> Callable[..., PaginationParams]:
    """Build a pagination dependency with its own default and page size cap."""

    def _dependency(
        limit: int = Query(default=default_limit, ge=1, le=max_limit),
        offset: int = Query(default=0, ge=0),
    ) -> PaginationParams:
        return PaginationParams(limit=limit, offset=offset)

    return _dependency


get_pagination_params = pagination_params()


class Page(BaseModel, Generic[T]):
    """Generic paginated response."""

    items: list[T]
    total: int
    limit: int
    offset: int


def build_page(items: list[T], total: int, params: PaginationParams) -> Page[T]:
    """Build page object from query result and params."""
    return Page(items=items, total=total, limit=params.limit, offset=params.offset)
