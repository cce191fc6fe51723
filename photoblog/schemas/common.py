"""Shared response models."""

from typing import Generic, List, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """One page of a paginated listing."""

    items: List[T]
    total: int
    page: int
    per_page: int
    pages: int
