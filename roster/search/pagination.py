"""Offset/limit pagination over a ranked candidate list."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Sequence, TypeVar

from ..config import settings
from .planner import InvalidArgumentError

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    """One slice of a ranked result."""
    rows: list[T]
    total: int
    limit: int


def paginate(items: Sequence[T], offset: int = 0, limit: int | None = None) -> Page[T]:
    """Count the full sequence, then skip ``offset`` and take ``limit``.

    Args:
        items: Full ranked sequence
        offset: Rows to skip
        limit: Rows to take (default from SearchSettings)

    Raises:
        InvalidArgumentError: If offset or limit is negative
    """
    if limit is None:
        limit = settings.search.default_limit
    offset = offset or 0
    if offset < 0:
        raise InvalidArgumentError(f"offset must be non-negative, got {offset}")
    if limit < 0:
        raise InvalidArgumentError(f"limit must be non-negative, got {limit}")

    return Page(rows=list(items[offset:offset + limit]), total=len(items), limit=limit)
